"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en `run`, `report` y `doctor`.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Category, Classification


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("VPP-SWEEPER", style="bold cyan")
    subtitle = Text("Jamf Pro • Inventario de apps • Licencias VPP", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_summary_table(counts: dict[Category, int], *, title: str = "Applications by VPP state") -> Table:
    table = Table(title=title)
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Applications", style="white", justify="right")
    for category in Category:
        table.add_row(category.label(), str(counts.get(category, 0)))
    table.add_row("Total classified", str(sum(counts.values())), style="bold")
    return table


def build_members_table(classification: Classification, category: Category) -> Table:
    """Tabla con id y nombre de cada aplicación de una categoría."""

    table = Table(title=category.label())
    table.add_column("ID", style="magenta", justify="right", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Total", style="green", justify="right")
    table.add_column("Used", style="green", justify="right")
    for record in classification.members(category):
        vpp = record.vpp
        total = vpp.total_vpp_licenses if vpp else None
        used = vpp.used_vpp_licenses if vpp else None
        table.add_row(
            str(record.id),
            record.name,
            "-" if total is None else str(total),
            "-" if used is None else str(used),
        )
    return table
