"""Interfaces/abstracciones del Core.

Contratos (Protocol) que implementan adaptadores concretos.
"""
