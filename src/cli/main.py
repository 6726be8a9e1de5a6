"""CLI principal (Typer).

Traduce flags a un `SyncRequest`; toda la lógica vive en `core.services`.
Los flags se pueden combinar y siempre se ejecutan en orden fijo:
`--apps` -> `--vpp` -> `--vpp-range` -> borrados.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Tuple

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, TaskID

from adapters.blob_store import BlobKey, FileBlobStore
from adapters.jamf_client import JamfClient
from adapters.json_exporter import decode_classification
from adapters.report_exporter import export_report_text
from cli import doctor
from cli.ui_components import build_members_table, build_summary_table, print_banner
from core.config import AppSettings
from core.domain.errors import MdmError
from core.domain.models import Category, Classification
from core.services.session import PipelineHooks
from core.services.sync_pipeline import SyncRequest, SyncResult, open_session, run_sync

app = typer.Typer(no_args_is_help=True, help="Inventory, classify and clean up Jamf Pro mobile apps by VPP state.")
app.add_typer(doctor.app, name="doctor")

_console = Console()

_PHASE_LABELS: dict[str, str] = {"vpp": "Fetching VPP data"}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_console, show_path=False)],
        force=True,
    )
    # httpx registra cada request en INFO; demasiado ruido para un lote largo.
    logging.getLogger("httpx").setLevel(logging.WARNING)


class _ProgressHooks(PipelineHooks):
    """Conecta los hooks del pipeline con una barra de progreso Rich."""

    def __init__(self, progress: Progress) -> None:
        super().__init__(phase_start=self._on_start, phase_progress=self._on_progress)
        self._progress = progress
        self._tasks: dict[str, TaskID] = {}

    def _on_start(self, phase: str, total: int) -> None:
        label = _PHASE_LABELS.get(phase)
        if label is None and phase.startswith("delete:"):
            label = f"Deleting {Category(phase.split(':', 1)[1]).label()}"
        self._tasks[phase] = self._progress.add_task(label or phase, total=total)

    def _on_progress(self, phase: str, done: int, total: int) -> None:
        task = self._tasks.get(phase)
        if task is not None:
            self._progress.update(task, completed=done, total=total)


async def _run_sync(settings: AppSettings, request: SyncRequest) -> SyncResult:
    store = FileBlobStore(settings)
    with Progress(console=_console, transient=True) as progress:
        async with JamfClient(settings) as client:
            session = open_session(
                api=client,
                store=store,
                settings=settings,
                hooks=_ProgressHooks(progress),
            )
            return await run_sync(session, request)


@app.command(name="run")
def sync_command(
    apps: bool = typer.Option(False, "--apps", help="Force a full reload of the application inventory."),
    vpp: bool = typer.Option(False, "--vpp", help="Fetch VPP data for every application (forced)."),
    vpp_range: Optional[Tuple[int, int]] = typer.Option(
        None,
        "--vpp-range",
        metavar="START END",
        help="Fetch VPP data for inventory indexes START..END (inclusive), skipping enriched apps.",
    ),
    delete_unlicensed: bool = typer.Option(False, "--delete-unlicensed"),
    delete_licensed_unpurchased: bool = typer.Option(False, "--delete-licensed-unpurchased"),
    delete_licensed_not_in_use: bool = typer.Option(False, "--delete-licensed-not-in-use"),
    delete_licensed_in_use: bool = typer.Option(
        False,
        "--delete-licensed-in-use",
        help="Delete apps whose licenses are assigned. Almost never what you want.",
    ),
    delete_other: bool = typer.Option(False, "--delete-other"),
    delete_not_in_use: bool = typer.Option(
        False,
        "--delete-not-in-use",
        help="Delete unlicensed and unpurchased apps.",
    ),
    include_licensed: bool = typer.Option(
        False,
        "--include-licensed",
        help="With --delete-not-in-use, also delete purchased apps nobody uses.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    no_banner: bool = typer.Option(False, "--no-banner"),
) -> None:
    """Refresh, enrich, classify and optionally delete mobile applications."""

    _configure_logging(verbose)
    if not no_banner:
        print_banner(_console)

    flags = {
        Category.UNLICENSED: delete_unlicensed,
        Category.LICENSED_UNPURCHASED: delete_licensed_unpurchased,
        Category.LICENSED_PURCHASED_NOT_IN_USE: delete_licensed_not_in_use,
        Category.LICENSED_PURCHASED_IN_USE: delete_licensed_in_use,
        Category.OTHER: delete_other,
    }
    enrich_range = None
    if vpp_range and None not in vpp_range:
        enrich_range = (int(vpp_range[0]), int(vpp_range[1]))

    request = SyncRequest(
        refresh_inventory=apps,
        enrich_all=vpp,
        enrich_range=enrich_range,
        delete_categories=[category for category, wanted in flags.items() if wanted],
        delete_not_in_use=delete_not_in_use,
        include_licensed=include_licensed,
    )

    settings = AppSettings()
    try:
        result = asyncio.run(_run_sync(settings, request))
    except (MdmError, httpx.HTTPError) as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _console.print(build_summary_table(result.counts))
    for category, count in result.deleted.items():
        _console.print(f"[green]Deleted {count} {category.label()} application(s)[/green]")


@app.command()
def report(
    category: Optional[Category] = typer.Option(
        None,
        "--category",
        "-c",
        case_sensitive=False,
        help="List the applications of one category.",
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the text report to this path."),
) -> None:
    """Show the last saved classification (no network calls)."""

    settings = AppSettings()
    store = FileBlobStore(settings)
    data = store.load(BlobKey.CLASSIFICATION.value)
    classification = Classification()
    if data is not None:
        try:
            classification = decode_classification(data)
        except ValueError as exc:
            _console.print(f"[yellow]Could not read {store.path_for(BlobKey.CLASSIFICATION.value)}:[/yellow] {exc}")

    _console.print(build_summary_table(classification.counts()))
    if category is not None:
        _console.print(build_members_table(classification, category))
    if output is not None:
        path = export_report_text(classification=classification, output_path=output)
        _console.print(f"[green]Report saved to:[/green] {path}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
