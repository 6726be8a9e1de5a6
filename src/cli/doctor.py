"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.blob_store import BlobKey, FileBlobStore
from adapters.http_client import build_async_client
from adapters.json_exporter import decode_credential
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get("/")
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc) or exc.__class__.__name__


def _check_data_dir(path: Path) -> tuple[bool, str]:
    """Attempt to write a scratch file where state is persisted."""

    probe = path / ".vpp-sweeper-doctor"
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe.write_text("ok", encoding="utf-8")
        probe.unlink(missing_ok=True)
        return True, str(path.resolve())
    except OSError as exc:
        return False, str(exc)


def _check_token(settings: AppSettings) -> tuple[str, str]:
    store = FileBlobStore(settings)
    data = store.load(BlobKey.CREDENTIAL.value)
    if data is None:
        return "MISSING", "A new token will be requested on the next run"
    try:
        credential = decode_credential(data)
    except ValueError as exc:
        return "INVALID", str(exc)
    if credential.is_valid(datetime.now(timezone.utc)):
        return "OK", f"Valid until {credential.expires}"
    return "EXPIRED", "A new token will be requested on the next run"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="VPP-SWEEPER Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    missing = settings.missing_credentials()
    if missing:
        table.add_row("Jamf config", "FAIL", f"Missing: {', '.join(missing)}")
    else:
        table.add_row("Jamf config", "OK", f"{settings.user} @ {settings.base_url()}")
    table.add_row("Query delay", "OK", f"{settings.query_delay_seconds:g}s between requests")

    ok_dir, detail_dir = _check_data_dir(Path(settings.data_dir))
    table.add_row("Data dir", "OK" if ok_dir else "FAIL", detail_dir)

    token_status, token_detail = _check_token(settings)
    table.add_row("Token", token_status, token_detail)

    # Connectivity (best-effort)
    if settings.jss_url:
        ok_http, detail_http = asyncio.run(_check_http(settings))
        table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)
    else:
        table.add_row("HTTP connectivity", "SKIPPED", "No JAMF_JSS_URL")

    _console.print(table)

    if missing:
        _console.print("\n[yellow]Note:[/yellow] run `vpp-sweeper doctor setup` to store Jamf credentials.")


@app.command(name="setup")
def setup() -> None:
    """Interactive Jamf setup (stores config in the user config .env)."""

    settings = AppSettings()
    url = typer.prompt("Jamf Pro URL", default=settings.jss_url or "", show_default=True).strip()
    user = typer.prompt("API user", default=settings.user or "", show_default=True).strip()
    password = typer.prompt("API password", hide_input=True, confirmation_prompt=False).strip()

    if not url or not user or not password:
        raise typer.BadParameter("url, user and password are required")

    env_path = write_user_env_vars(
        {
            "JAMF_JSS_URL": url,
            "JAMF_USER": user,
            "JAMF_PASSWORD": password,
        }
    )

    _console.print(f"[green]Saved Jamf config to:[/green] {env_path}")
