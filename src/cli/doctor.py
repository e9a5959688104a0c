"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.cloudflare_api import CloudflareApiFetcher
from adapters.credentials import EnvCredentialProvider
from adapters.http_client import build_async_client
from core.config import AppSettings, get_user_env_file
from core.domain.models import ApiKeyCredentials
from core.errors import UserError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(settings.api_root)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


async def _check_token(settings: AppSettings) -> tuple[bool, str]:
    """Verifica el token contra `/user/tokens/verify` (solo auth Bearer)."""

    fetcher = CloudflareApiFetcher(settings)
    try:
        result = await fetcher.fetch_result("/user/tokens/verify")
    except UserError as exc:
        return False, str(exc)
    status = result.get("status") if isinstance(result, dict) else None
    return status == "active", f"status={status}"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="cfctl Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("User config", "OK" if get_user_env_file().exists() else "MISSING", str(get_user_env_file()))

    credentials = None
    try:
        credentials = EnvCredentialProvider(settings).require_api_token()
        kind = "key + email" if isinstance(credentials, ApiKeyCredentials) else "API token"
        table.add_row("Credentials", "OK", kind)
    except UserError as exc:
        table.add_row("Credentials", "FAIL", str(exc))

    ok_http, detail_http = asyncio.run(_check_http(settings))
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    if credentials is not None and not isinstance(credentials, ApiKeyCredentials):
        ok_token, detail_token = asyncio.run(_check_token(settings))
        table.add_row("Token verify", "OK" if ok_token else "FAIL", detail_token)

    _console.print(table)

    if credentials is None:
        _console.print("\n[yellow]Note:[/yellow] run `cfctl auth set-token` to store an API token.")
