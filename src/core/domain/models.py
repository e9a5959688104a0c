"""Modelos del dominio (Pydantic v2).

Estos modelos describen *qué* viaja entre la CLI y la API de Cloudflare
(requests, credenciales, envelopes, scripts), no *cómo* se transporta.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class RequestInit(BaseModel):
    """Descriptor de una petición saliente (método, headers, body opcional).

    Solo se debe usar una forma de body. `data` puede combinarse con `files`
    para formularios multipart.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: str = Field(
        default="GET",
        min_length=1,
        description="Método HTTP.",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers del llamador (se copian, nunca se mutan).",
    )
    content: bytes | str | None = Field(
        default=None,
        description="Body crudo.",
    )
    json_body: Any = Field(
        default=None,
        description="Body serializado como JSON.",
    )
    data: dict[str, str] | None = Field(
        default=None,
        description="Campos de formulario (urlencoded, o multipart junto a `files`).",
    )
    files: Any = Field(
        default=None,
        description="Partes multipart en el formato de httpx.",
    )

    def describe(self) -> dict[str, Any]:
        """Resumen apto para logs (sin headers ni bytes)."""

        out: dict[str, Any] = {"method": self.method.upper()}
        if self.content is not None:
            out["content_length"] = len(self.content)
        if self.json_body is not None:
            out["json"] = self.json_body
        if self.data is not None:
            out["data"] = sorted(self.data.keys())
        if self.files is not None:
            out["multipart"] = True
        return out


class ApiTokenCredentials(BaseModel):
    """Credencial Bearer (API token)."""

    api_token: str = Field(..., min_length=1)


class ApiKeyCredentials(BaseModel):
    """Credencial legacy: global API key + email de la cuenta."""

    auth_key: str = Field(..., min_length=1)
    auth_email: str = Field(..., min_length=1)


ApiCredentials = Union[ApiTokenCredentials, ApiKeyCredentials]


class ApiMessage(BaseModel):
    """Entrada de `errors`/`messages` del envelope."""

    model_config = ConfigDict(extra="allow")

    code: int | None = None
    message: str = ""
    documentation_url: str | None = None
    error_chain: list[ApiMessage] | None = None


class ResultInfo(BaseModel):
    """Metadatos de paginación (`result_info`)."""

    model_config = ConfigDict(extra="allow")

    page: int | None = None
    per_page: int | None = None
    count: int | None = None
    total_count: int | None = None
    cursor: str | None = None


class ApiEnvelope(BaseModel):
    """Wrapper JSON estándar de la API v4."""

    model_config = ConfigDict(extra="ignore")

    result: Any = None
    success: bool = Field(
        ...,
        description="Indica si la API procesó la petición correctamente.",
    )
    errors: list[ApiMessage] = Field(default_factory=list)
    messages: list[ApiMessage | str] = Field(default_factory=list)
    result_info: ResultInfo | None = None


class ModuleFile(BaseModel):
    """Un módulo (archivo) de un Worker script."""

    name: str = Field(..., min_length=1)
    content: bytes = b""
    content_type: str | None = None

    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class WorkerScript(BaseModel):
    """Script descargado: entrypoint + módulos."""

    entrypoint: str = Field(..., min_length=1)
    modules: list[ModuleFile] = Field(default_factory=list)
