"""Proveedor de credenciales basado en variables de entorno / `.env`."""

from __future__ import annotations

from core.config import AppSettings
from core.domain.models import ApiCredentials, ApiKeyCredentials, ApiTokenCredentials
from core.errors import UserError


class EnvCredentialProvider:
    """Lee `CLOUDFLARE_API_TOKEN` o `CLOUDFLARE_API_KEY` + `CLOUDFLARE_EMAIL`.

    Si hay key y email, la key gana sobre el token.
    """

    def __init__(self, settings: AppSettings | None = None) -> None:
        self._settings = settings or AppSettings()

    def _configured(self) -> ApiCredentials | None:
        api_key = (self._settings.api_key or "").strip()
        email = (self._settings.email or "").strip()
        token = (self._settings.api_token or "").strip()

        if api_key and email:
            return ApiKeyCredentials(auth_key=api_key, auth_email=email)
        if token:
            return ApiTokenCredentials(api_token=token)
        return None

    async def login_or_refresh_if_required(self) -> bool:
        # No hay flujo OAuth: basta con que exista alguna credencial. Una key sin
        # email cuenta como intento de login para que `require_api_token` lo explique.
        return bool(
            (self._settings.api_token or "").strip() or (self._settings.api_key or "").strip()
        )

    def require_api_token(self) -> ApiCredentials:
        credentials = self._configured()
        if credentials is not None:
            return credentials

        if (self._settings.api_key or "").strip():
            raise UserError("CLOUDFLARE_API_KEY is set but CLOUDFLARE_EMAIL is missing.")
        raise UserError(
            "No API credentials found. Set CLOUDFLARE_API_TOKEN, "
            "or CLOUDFLARE_API_KEY and CLOUDFLARE_EMAIL."
        )
