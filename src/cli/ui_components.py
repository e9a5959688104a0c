"""Componentes de UI para CLI (Rich).

Separa los detalles visuales de la lógica de comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import APP_NAME, APP_VERSION
from core.domain.models import WorkerScript
from core.errors import ApiError, UserError


def print_banner(console: Console) -> None:
    title = Text(f"{APP_NAME} {APP_VERSION}", style="bold cyan")
    subtitle = Text("Cloudflare API • KV • R2 • Workers", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_modules_table(script: WorkerScript) -> Table:
    """Tabla con los módulos de un Worker descargado."""

    table = Table(title=f"Worker modules (entrypoint: {script.entrypoint})")
    table.add_column("Module", style="cyan", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Bytes", style="green", justify="right")
    for module in script.modules:
        table.add_row(module.name, module.content_type or "-", str(len(module.content)))
    return table


def build_error_panel(error: UserError) -> Panel:
    """Panel rojo para errores mostrables al usuario."""

    body = Text()
    if isinstance(error, ApiError):
        body.append(error.text + "\n", style="bold")
        for note in error.notes:
            body.append(f"\n{note}")
        if error.status is not None:
            body.append(f"\n\nHTTP {error.status}", style="dim")
    else:
        body.append(str(error), style="bold")

    return Panel(body, title=Text("Error", style="bold red"), border_style="red")
