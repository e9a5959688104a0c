"""CLI principal (Typer).

Comandos:
- `api get`: GET genérico que imprime `result` del envelope.
- `kv get`, `r2 get`, `worker download`: endpoints no-JSON.
- `auth set-token`: guarda credenciales en el .env del usuario.
- `doctor`: diagnóstico del entorno.
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable
from pathlib import Path
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import typer
from rich.console import Console
from rich.text import Text

from adapters.cloudflare_api import CloudflareApiFetcher
from cli import doctor
from cli.ui_components import build_error_panel, build_modules_table, print_banner
from core.config import AppSettings, write_user_env_vars
from core.errors import FetchError, UserError
from core.log import configure_logging

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Thin client for the Cloudflare v4 API.")
api_app = typer.Typer(no_args_is_help=True, help="Raw v4 API calls.")
kv_app = typer.Typer(no_args_is_help=True, help="Workers KV values.")
r2_app = typer.Typer(no_args_is_help=True, help="R2 objects.")
worker_app = typer.Typer(no_args_is_help=True, help="Worker scripts.")
auth_app = typer.Typer(no_args_is_help=True, help="Credential storage.")

app.add_typer(api_app, name="api")
app.add_typer(kv_app, name="kv")
app.add_typer(r2_app, name="r2")
app.add_typer(worker_app, name="worker")
app.add_typer(auth_app, name="auth")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def _build_fetcher() -> CloudflareApiFetcher:
    return CloudflareApiFetcher(AppSettings())


def _run(coro: Awaitable[T]) -> T:
    """Ejecuta la corrutina y convierte errores de usuario en exit code 1."""

    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except (UserError, FetchError) as exc:
        if isinstance(exc, UserError):
            _err_console.print(build_error_panel(exc))
        else:
            _err_console.print(Text(str(exc), style="red"))
        raise typer.Exit(code=1) from exc


def _parse_params(values: list[str]) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = []
    for raw in values:
        if "=" not in raw:
            raise typer.BadParameter(f"expected key=value, got {raw!r}", param_hint="--param")
        key, value = raw.split("=", 1)
        params.append((key.strip(), value))
    return params


def _print_json(obj: Any) -> None:
    _console.print_json(json.dumps(obj, default=str))


def _write_output(data: bytes, out: Path | None) -> None:
    if out is None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    _err_console.print(f"[green]Saved {len(data)} bytes to:[/green] {out}")


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override CLOUDFLARE_LOG_LEVEL."),
) -> None:
    configure_logging(log_level or AppSettings().log_level)


@app.command()
def banner() -> None:
    """Print the banner and version."""

    print_banner(_console)


@api_app.command("get")
def api_get(
    path: str = typer.Argument(..., help="Resource path, e.g. /accounts"),
    param: list[str] = typer.Option([], "--param", "-p", help="Query parameter key=value (repeatable)."),
    all_pages: bool = typer.Option(False, "--all", help="Follow cursor pagination."),
) -> None:
    """GET a v4 resource and print its `result`."""

    params = _parse_params(param)
    fetcher = _build_fetcher()
    if all_pages:
        result = _run(fetcher.fetch_list_result(path, params=params or None))
    else:
        result = _run(fetcher.fetch_result(path, params=params or None))
    _print_json(result)


@kv_app.command("get")
def kv_get(
    key: str = typer.Argument(..., help="KV key (raw, not URL-encoded)."),
    account_id: str = typer.Option(..., "--account-id", envvar="CLOUDFLARE_ACCOUNT_ID"),
    namespace_id: str = typer.Option(..., "--namespace-id"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the value to a file."),
) -> None:
    """Fetch a raw KV value."""

    fetcher = _build_fetcher()
    value = _run(fetcher.fetch_kv_get_value(account_id, namespace_id, key))
    _write_output(value, out)


@r2_app.command("get")
def r2_get(
    bucket: str = typer.Argument(...),
    key: str = typer.Argument(...),
    account_id: str = typer.Option(..., "--account-id", envvar="CLOUDFLARE_ACCOUNT_ID"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the object to a file."),
) -> None:
    """Download an R2 object."""

    resource = f"/accounts/{account_id}/r2/buckets/{bucket}/objects/{quote(key, safe='')}"
    fetcher = _build_fetcher()
    response = _run(fetcher.fetch_r2_objects(resource))
    if response is None:
        _err_console.print(Text.assemble(("The specified key does not exist: ", "red"), f"{bucket}/{key}"))
        raise typer.Exit(code=1)
    _write_output(response.content, out)


@worker_app.command("download")
def worker_download(
    name: str = typer.Argument(..., help="Worker script name."),
    account_id: str = typer.Option(..., "--account-id", envvar="CLOUDFLARE_ACCOUNT_ID"),
    out_dir: Path = typer.Option(Path("."), "--out-dir", "-d"),
) -> None:
    """Download a Worker script (all modules) into a directory."""

    fetcher = _build_fetcher()
    script = _run(fetcher.fetch_worker(f"/accounts/{account_id}/workers/scripts/{name}"))

    root = out_dir.resolve()
    for module in script.modules:
        target = (root / module.name).resolve()
        if root not in target.parents:
            _err_console.print(Text.assemble(("Skipping module outside output dir: ", "yellow"), module.name))
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(module.content)

    _console.print(build_modules_table(script))


@auth_app.command("set-token")
def auth_set_token(
    api_token: Optional[str] = typer.Option(None, "--token", help="Token value (prompted when omitted)."),
) -> None:
    """Store an API token in the user config .env."""

    token = (api_token or typer.prompt("API token", hide_input=True)).strip()
    if not token:
        raise typer.BadParameter("token must not be empty", param_hint="--token")

    env_path = write_user_env_vars({"CLOUDFLARE_API_TOKEN": token})
    _console.print(f"[green]Saved API token to:[/green] {env_path}")


def run() -> None:
    app()
