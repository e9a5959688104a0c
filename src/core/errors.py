"""Errores del dominio.

- `UserError`: algo que el usuario puede corregir (credenciales, flags).
- `ApiError`: la API respondió algo que no podemos usar.
- `FetchError`: un endpoint no-JSON devolvió un status no exitoso.
"""

from __future__ import annotations


class UserError(Exception):
    """Error mostrado tal cual al usuario (sin traceback)."""


class ApiError(UserError):
    """Fallo reportado por (o al hablar con) la API de Cloudflare."""

    def __init__(
        self,
        text: str,
        *,
        notes: list[str] | None = None,
        status: int | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.notes = list(notes or [])
        self.status = status
        self.code = code

    def render(self) -> str:
        lines = [self.text]
        lines.extend(f"- {note}" for note in self.notes)
        return "\n".join(lines)


class FetchError(RuntimeError):
    """Respuesta no exitosa de un endpoint binario/raw."""

    def __init__(self, resource: str, status: int, reason: str) -> None:
        super().__init__(f"Failed to fetch {resource} - {status}: {reason}")
        self.resource = resource
        self.status = status
        self.reason = reason
