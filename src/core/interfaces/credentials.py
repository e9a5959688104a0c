"""Contrato del proveedor de credenciales.

El transporte HTTP no sabe de dónde salen las credenciales (env, login
interactivo, keychain); solo las pide a través de este Protocol.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ApiCredentials


@runtime_checkable
class CredentialProvider(Protocol):
    """Contrato mínimo para obtener credenciales de la API."""

    async def login_or_refresh_if_required(self) -> bool:
        """Asegura una sesión válida; devuelve False si no hay forma de autenticarse."""

        ...

    def require_api_token(self) -> ApiCredentials:
        """Devuelve las credenciales actuales o lanza `UserError`."""

        ...
