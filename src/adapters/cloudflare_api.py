"""Transporte HTTP hacia la API v4 de Cloudflare.

Responsabilidad:
- Adjuntar autenticación (Bearer token o key+email) y User-Agent.
- Serializar la petición y normalizar la respuesta JSON (envelope).
- Casos especiales no-JSON: valor KV crudo, objetos R2 y scripts de Workers.

Cada llamada es un round trip independiente: sin reintentos ni estado.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from adapters.credentials import EnvCredentialProvider
from adapters.http_client import build_async_client
from adapters.multipart import parse_multipart_modules
from core.config import AppSettings
from core.domain.models import (
    ApiCredentials,
    ApiEnvelope,
    ApiKeyCredentials,
    ApiMessage,
    ModuleFile,
    RequestInit,
    WorkerScript,
)
from core.errors import ApiError, FetchError, UserError
from core.interfaces.credentials import CredentialProvider
from core.log import debug_with_sanitization
from core.parse import ParseError, parse_json, truncate

logger = logging.getLogger(__name__)

Params = Union[httpx.QueryParams, Mapping[str, Any], Sequence[tuple[str, Any]], str]

EMPTY_ENVELOPE = '{"result": {}, "success": true, "errors": [], "messages": []}'
DEFAULT_MODULES_ENTRYPOINT = "src/index.js"

# Nunca se escriben en logs, aunque la sanitización esté desactivada.
_CREDENTIAL_HEADERS = frozenset({"authorization", "x-auth-key", "x-auth-email"})


def clone_headers(headers: Mapping[str, str] | httpx.Headers | None) -> dict[str, str]:
    if headers is None:
        return {}
    return {str(k): str(v) for k, v in headers.items()}


def _has_header(headers: Mapping[str, str], name: str) -> bool:
    wanted = name.lower()
    return any(key.lower() == wanted for key in headers)


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


def add_authorization_header_if_unspecified(headers: dict[str, str], auth: ApiCredentials) -> None:
    """Añade la credencial salvo que el llamador ya haya puesto `Authorization`."""

    if _has_header(headers, "Authorization"):
        return
    if isinstance(auth, ApiKeyCredentials):
        headers["X-Auth-Key"] = auth.auth_key
        headers["X-Auth-Email"] = auth.auth_email
    else:
        headers["Authorization"] = f"Bearer {auth.api_token}"


def loggable_headers(headers: Mapping[str, str] | httpx.Headers) -> dict[str, str]:
    return {k: v for k, v in clone_headers(headers).items() if k.lower() not in _CREDENTIAL_HEADERS}


def render_api_message(message: ApiMessage, level: int = 0) -> str:
    """Formatea un error del envelope (incluye `error_chain` anidada)."""

    indent = "  " * level
    text = f"{message.message} [code: {message.code}]" if message.code else message.message
    lines = [f"{indent}{text}"]
    if message.documentation_url:
        lines.append(f"{indent}To learn more about this error, visit: {message.documentation_url}")
    for child in message.error_chain or []:
        lines.append(render_api_message(child, level + 1))
    return "\n".join(lines)


def _envelope_error(resource: str, envelope: ApiEnvelope, status: int | None) -> ApiError:
    first_code = next((err.code for err in envelope.errors if err.code), None)
    return ApiError(
        f"A request to the Cloudflare API ({resource}) failed.",
        notes=[render_api_message(err) for err in envelope.errors],
        status=status,
        code=first_code,
    )


class CloudflareApiFetcher:
    """Cliente de bajo nivel para la API v4.

    `credentials` por defecto lee del entorno; `transport` permite sustituir la
    red (p.ej. `httpx.MockTransport` en tests).
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        credentials: CredentialProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._credentials = credentials or EnvCredentialProvider(self._settings)
        self._transport = transport

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def _debug(self, label: str, payload: str) -> None:
        debug_with_sanitization(logger, label, payload, sanitize=self._settings.log_sanitize)

    async def _require_logged_in(self) -> None:
        if not await self._credentials.login_or_refresh_if_required():
            raise UserError("Not logged in.")

    async def _authorized_headers(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        await self._require_logged_in()
        auth = self._credentials.require_api_token()
        out = clone_headers(headers)
        add_authorization_header_if_unspecified(out, auth)
        _set_header(out, "User-Agent", self._settings.user_agent)
        return out

    async def _send(
        self,
        url: str,
        init: RequestInit,
        headers: dict[str, str],
        params: httpx.QueryParams | None = None,
        *,
        log_request: bool = False,
    ) -> httpx.Response:
        async with build_async_client(self._settings, transport=self._transport) as client:
            request = client.build_request(
                init.method.upper(),
                url,
                headers=headers,
                params=params,
                content=init.content,
                json=init.json_body,
                data=init.data,
                files=init.files,
            )
            if log_request:
                if init.files is not None:
                    if self._settings.log_sanitize:
                        self._debug("BODY:", "")
                    else:
                        body = await request.aread()
                        self._debug("BODY:", body.decode("utf-8", errors="replace"))
                logger.debug("-- END CF API REQUEST")
            return await client.send(request)

    async def perform_api_fetch(
        self,
        resource: str,
        init: RequestInit | None = None,
        params: Params | None = None,
    ) -> httpx.Response:
        """Hace todo lo necesario para una petición, sin parsear la respuesta.

        Para respuestas v4 normales usar `fetch_internal` / `fetch_result`.
        """

        init = init or RequestInit()
        method = init.method.upper()
        if not resource.startswith("/"):
            raise ValueError(f'CF API fetch - resource path must start with a "/" but got "{resource}"')

        headers = await self._authorized_headers(init.headers)
        query = httpx.QueryParams(params) if params is not None else None
        query_string = f"?{query}" if query is not None and str(query) else ""
        url = f"{self._settings.api_root}{resource}"

        logger.debug("-- START CF API REQUEST: %s %s%s", method, url, query_string)
        self._debug("HEADERS:", json.dumps(loggable_headers(headers), indent=2))
        self._debug("INIT:", json.dumps(init.describe(), indent=2, default=str))
        return await self._send(url, init, headers, query, log_request=True)

    async def _fetch_json(
        self,
        resource: str,
        init: RequestInit | None,
        params: Params | None,
    ) -> tuple[Any, httpx.Response]:
        init = init or RequestInit()
        response = await self.perform_api_fetch(resource, init, params)
        text = response.text

        logger.debug("-- START CF API RESPONSE: %s %s", response.reason_phrase, response.status_code)
        self._debug("HEADERS:", json.dumps(loggable_headers(response.headers), indent=2))
        self._debug("RESPONSE:", text)
        logger.debug("-- END CF API RESPONSE")

        # 204/205 no traen body; devolvemos un envelope vacío exitoso.
        if not text and response.status_code in (204, 205):
            return parse_json(EMPTY_ENVELOPE), response

        try:
            return parse_json(text), response
        except ParseError as exc:
            raise ApiError(
                "Received a malformed response from the API",
                notes=[
                    truncate(text, 100),
                    f"{init.method.upper()} {resource} -> {response.status_code} {response.reason_phrase}",
                ],
                status=response.status_code,
            ) from exc

    async def fetch_internal(
        self,
        resource: str,
        init: RequestInit | None = None,
        params: Params | None = None,
    ) -> Any:
        """Petición a la API v4; devuelve el JSON decodificado (sin validar)."""

        payload, _ = await self._fetch_json(resource, init, params)
        return payload

    async def _fetch_envelope(
        self,
        resource: str,
        init: RequestInit | None,
        params: Params | None,
    ) -> ApiEnvelope:
        payload, response = await self._fetch_json(resource, init, params)
        try:
            envelope = ApiEnvelope.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(
                "Received an unexpected response from the API",
                notes=[truncate(json.dumps(payload), 100)],
                status=response.status_code,
            ) from exc
        if not envelope.success:
            raise _envelope_error(resource, envelope, response.status_code)
        return envelope

    async def fetch_result(
        self,
        resource: str,
        init: RequestInit | None = None,
        params: Params | None = None,
    ) -> Any:
        """Devuelve `result` del envelope o lanza `ApiError` si `success` es falso."""

        envelope = await self._fetch_envelope(resource, init, params)
        return envelope.result

    async def fetch_list_result(
        self,
        resource: str,
        init: RequestInit | None = None,
        params: Params | None = None,
    ) -> list[Any]:
        """Como `fetch_result`, siguiendo `result_info.cursor` hasta agotar páginas."""

        base_query = httpx.QueryParams(params) if params is not None else httpx.QueryParams()
        results: list[Any] = []
        cursor: str | None = None
        while True:
            query = base_query.set("cursor", cursor) if cursor else base_query
            envelope = await self._fetch_envelope(resource, init, query)
            if isinstance(envelope.result, list):
                results.extend(envelope.result)
            elif envelope.result not in (None, {}):
                raise ApiError(
                    "Received an unexpected response from the API",
                    notes=[f"{resource} returned a non-list result: {truncate(json.dumps(envelope.result, default=str), 100)}"],
                )

            cursor = envelope.result_info.cursor if envelope.result_info else None
            if not cursor:
                return results

    async def fetch_kv_get_value(self, account_id: str, namespace_id: str, key: str) -> bytes:
        """Obtiene un valor KV crudo (el único endpoint que no devuelve JSON).

        `key` se pasa sin codificar; aquí se aplica percent-encoding.
        """

        headers = await self._authorized_headers(None)
        url = (
            f"{self._settings.api_root}/accounts/{account_id}/storage/kv/namespaces/"
            f"{namespace_id}/values/{quote(key, safe='')}"
        )
        logger.debug("-- CF API KV GET: %s", url)
        response = await self._send(url, RequestInit(method="GET"), headers)
        if response.is_success:
            return response.content
        raise FetchError(url, response.status_code, response.reason_phrase)

    async def fetch_r2_objects(self, resource: str, init: RequestInit | None = None) -> httpx.Response | None:
        """Petición a un objeto R2; devuelve la respuesta binaria o `None` si no existe."""

        init = init or RequestInit()
        headers = await self._authorized_headers(init.headers)
        logger.debug("-- CF API R2 %s: %s", init.method.upper(), resource)
        response = await self._send(f"{self._settings.api_root}{resource}", init, headers)

        if response.is_success:
            return response
        if response.status_code == 404:
            return None
        raise FetchError(resource, response.status_code, response.reason_phrase)

    async def fetch_worker(self, resource: str, init: RequestInit | None = None) -> WorkerScript:
        """Descarga un Worker script (texto plano o multipart con módulos)."""

        init = init or RequestInit()
        headers = await self._authorized_headers(init.headers)
        logger.debug("-- CF API WORKER %s: %s", init.method.upper(), resource)
        response = await self._send(f"{self._settings.api_root}{resource}", init, headers)

        if not response.is_success or response.status_code in (204, 205):
            logger.error("Worker fetch failed: %s %s", response.status_code, response.reason_phrase)
            raise FetchError(resource, response.status_code, response.reason_phrase)

        content_type = response.headers.get("content-type", "")
        if content_type.lower().startswith("multipart"):
            try:
                modules = parse_multipart_modules(response.content, content_type)
            except ValueError as exc:
                raise ApiError(
                    "Received a malformed multipart response from the API",
                    notes=[str(exc), f"{init.method.upper()} {resource} -> {response.status_code} {response.reason_phrase}"],
                    status=response.status_code,
                ) from exc
            return WorkerScript(
                entrypoint=response.headers.get("cf-entrypoint") or DEFAULT_MODULES_ENTRYPOINT,
                modules=modules,
            )

        return WorkerScript(
            entrypoint="index.js",
            modules=[ModuleFile(name="index.js", content=response.content, content_type="text")],
        )
