"""Decodificación de respuestas `multipart/form-data`.

httpx no parsea bodies multipart de respuesta; usamos el parser MIME de la
stdlib anteponiendo el header `Content-Type` original.
"""

from __future__ import annotations

from email.parser import BytesParser
from email.policy import HTTP
from email.utils import collapse_rfc2231_value

from core.domain.models import ModuleFile


def parse_multipart_modules(body: bytes, content_type: str) -> list[ModuleFile]:
    """Convierte cada parte en un `ModuleFile`.

    Nombre: `filename` de la parte si existe, si no el `name` del campo.
    """

    head = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode("utf-8")
    message = BytesParser(policy=HTTP).parsebytes(head + body)
    if not message.is_multipart():
        raise ValueError(f"Expected a multipart body, got {content_type!r}")

    modules: list[ModuleFile] = []
    for index, part in enumerate(message.iter_parts()):
        filename = part.get_filename()
        field = part.get_param("name", header="content-disposition")
        if field is not None:
            field = collapse_rfc2231_value(field)

        name = filename or field or f"module-{index}"
        payload = part.get_payload(decode=True) or b""
        part_type = part.get_content_type() if part.get("content-type") else None
        modules.append(ModuleFile(name=name, content=payload, content_type=part_type))
    return modules
