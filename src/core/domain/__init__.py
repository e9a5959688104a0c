"""Modelos y entidades del dominio.

Aquí viven las estructuras de datos puras (Pydantic v2).
El dominio no conoce HTTP, CLI, ni SDKs.
"""
