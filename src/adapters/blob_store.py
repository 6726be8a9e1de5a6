"""Persistencia clave -> archivo.

Cada clave lógica (`credential`, `inventory`, `classification`, `report`) se
guarda en un archivo dentro de `AppSettings.data_dir`. Las escrituras son
best-effort: un error de disco se registra y la ejecución sigue con el estado
en memoria.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from core.config import AppSettings

logger = logging.getLogger(__name__)


class BlobKey(str, Enum):
    CREDENTIAL = "credential"
    INVENTORY = "inventory"
    CLASSIFICATION = "classification"
    REPORT = "report"


class FileBlobStore:
    """Implementación de `BlobStore` sobre el sistema de archivos."""

    def __init__(self, settings: AppSettings | None = None) -> None:
        settings = settings or AppSettings()
        self._dir = Path(settings.data_dir)
        self._files: dict[str, str] = {
            BlobKey.CREDENTIAL.value: settings.token_file,
            BlobKey.INVENTORY.value: settings.inventory_file,
            BlobKey.CLASSIFICATION.value: settings.classification_file,
            BlobKey.REPORT.value: settings.report_file,
        }

    def path_for(self, key: str) -> Path:
        try:
            return self._dir / self._files[key]
        except KeyError:
            raise KeyError(f"Unknown blob key: {key!r}") from None

    def load(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.debug("No %s blob at %s", key, path)
            return None
        except OSError as exc:
            logger.error("Error loading %s from %s: %s", key, path, exc)
            return None

    def save(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            logger.error("Error saving %s to %s: %s", key, path, exc)
            return
        logger.debug("Saved %s to %s", key, path)
