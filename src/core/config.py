"""Configuración del Core.

Responsabilidad:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Los adaptadores (HTTP/credenciales) leen config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "cfctl"
APP_VERSION = "0.1.0"

DEFAULT_API_BASE_URL = "https://api.cloudflare.com/client/v4"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = [f"# {APP_NAME} user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Las variables usan el prefijo `CLOUDFLARE_` (p.ej. `CLOUDFLARE_API_TOKEN`).
    """

    model_config = SettingsConfigDict(
        env_prefix="CLOUDFLARE_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_token: str | None = Field(
        default=None,
        description="API token (Bearer) de Cloudflare.",
    )
    api_key: str | None = Field(
        default=None,
        description="Global API key (legacy); requiere `email`.",
    )
    email: str | None = Field(
        default=None,
        description="Email de la cuenta asociada a la global API key.",
    )
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        min_length=8,
        description="Base URL de la API v4 (sin barra final).",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ...).",
    )
    log_sanitize: bool = Field(
        default=True,
        description="Omitir headers/bodies en los logs de depuración.",
    )

    @property
    def user_agent(self) -> str:
        return f"{APP_NAME}/{APP_VERSION}"

    @property
    def api_root(self) -> str:
        return self.api_base_url.rstrip("/")
