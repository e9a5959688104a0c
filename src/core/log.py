"""Logging de la aplicación (stdlib `logging` + handler de Rich)."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

SANITIZE_HINT = "omitted; set CLOUDFLARE_LOG_SANITIZE=false to include sanitized data"


def configure_logging(level: str = "WARNING", *, console: Console | None = None) -> None:
    """Instala un `RichHandler` en el root logger (stderr)."""

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
        markup=False,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def debug_with_sanitization(logger: logging.Logger, label: str, payload: str, *, sanitize: bool) -> None:
    """Loguea `payload` en DEBUG solo si la sanitización está desactivada.

    Headers y bodies pueden contener secretos o datos de clientes; por defecto
    solo se emite la etiqueta.
    """

    if sanitize:
        logger.debug("%s %s", label, SANITIZE_HINT)
    else:
        logger.debug("%s %s", label, payload)
