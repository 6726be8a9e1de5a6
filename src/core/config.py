"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/persistencia) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "vpp-sweeper"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "vpp-sweeper"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "vpp-sweeper"
    return Path.home() / ".config" / "vpp-sweeper"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        try:
            existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))
        except OSError:
            existing = {}

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# vpp-sweeper user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Mantiene los nombres históricos `JAMF_JSS_URL`, `JAMF_USER` y
      `JAMF_PASSWORD` gracias al prefijo.
    """

    model_config = SettingsConfigDict(
        env_prefix="JAMF_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    jss_url: str | None = Field(
        default=None,
        description="URL base del servidor Jamf Pro (p.ej. https://jss.example.com:8443).",
    )
    user: str | None = Field(
        default=None,
        description="Usuario de la API de Jamf Pro.",
    )
    password: str | None = Field(
        default=None,
        description="Password del usuario de la API.",
    )

    query_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Pausa fija entre requests consecutivos (rate limit implícito del servidor).",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="vpp-sweeper/0.1",
        min_length=1,
        description="User-Agent para las peticiones a la API.",
    )

    data_dir: Path = Field(
        default=Path("."),
        description="Directorio donde se guardan token, inventario, clasificación y reporte.",
    )
    token_file: str = Field(default="token.json", min_length=1)
    inventory_file: str = Field(default="mobileApplications.json", min_length=1)
    classification_file: str = Field(default="sortedApplications.json", min_length=1)
    report_file: str = Field(default="results.txt", min_length=1)

    def base_url(self) -> str:
        """URL base normalizada (sin barra final)."""

        return (self.jss_url or "").rstrip("/")

    def missing_credentials(self) -> list[str]:
        """Nombres de las variables obligatorias que no están configuradas."""

        missing: list[str] = []
        if not self.jss_url:
            missing.append("JAMF_JSS_URL")
        if not self.user:
            missing.append("JAMF_USER")
        if not self.password:
            missing.append("JAMF_PASSWORD")
        return missing
