"""Parsing de texto JSON devuelto por la API."""

from __future__ import annotations

import json
from typing import Any


class ParseError(ValueError):
    """El texto recibido no es JSON válido."""

    def __init__(self, text: str, *, line: int | None = None, column: int | None = None) -> None:
        super().__init__(text)
        self.line = line
        self.column = column


def parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(exc.msg, line=exc.lineno, column=exc.colno) from exc


def truncate(text: str, max_length: int) -> str:
    """Recorta `text` para mostrarlo en notas de error."""

    length = len(text)
    if length <= max_length:
        return text
    return f"{text[:max_length]}... (length = {length})"
