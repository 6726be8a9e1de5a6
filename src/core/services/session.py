"""Estado de una ejecución del pipeline.

Por qué un objeto sesión:
- Inventario, clasificación y token viven aquí en vez de en globals de módulo.
- Cada componente (credenciales, inventario, enriquecimiento, borrado) recibe
  la misma sesión y la muta; hay un único hilo de control, sin locks.
- Las escrituras a disco pasan por aquí para que todas usen el mismo formato.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from adapters.blob_store import BlobKey
from adapters.json_exporter import (
    encode_classification,
    encode_credential,
    encode_inventory,
)
from adapters.report_exporter import render_report_text
from core.domain.models import ApplicationRecord, Classification, Credential
from core.interfaces.mdm_api import BlobStore, MdmApi
from core.services.dispatcher import SerialDispatcher

logger = logging.getLogger(__name__)


@dataclass
class PipelineHooks:
    """Callbacks opcionales para capas de UI (progreso)."""

    phase_start: Callable[[str, int], None] | None = None
    phase_progress: Callable[[str, int, int], None] | None = None

    def start(self, phase: str, total: int) -> None:
        if self.phase_start:
            self.phase_start(phase, total)

    def advance(self, phase: str, done: int, total: int) -> None:
        if self.phase_progress:
            self.phase_progress(phase, done, total)


@dataclass
class SyncSession:
    api: MdmApi
    store: BlobStore
    dispatcher: SerialDispatcher
    hooks: PipelineHooks = field(default_factory=PipelineHooks)
    credential: Credential | None = None
    inventory: list[ApplicationRecord] = field(default_factory=list)
    classification: Classification = field(default_factory=Classification)
    has_deletions: bool = False

    def persist_credential(self) -> None:
        if self.credential is None:
            return
        self.store.save(BlobKey.CREDENTIAL.value, encode_credential(self.credential))
        logger.info("Token saved")

    def persist_inventory(self) -> None:
        logger.info("Saving %d mobile applications", len(self.inventory))
        self.store.save(BlobKey.INVENTORY.value, encode_inventory(self.inventory))

    def persist_classification(self) -> None:
        self.store.save(BlobKey.CLASSIFICATION.value, encode_classification(self.classification))

    def persist_report(self) -> str:
        text = render_report_text(classification=self.classification)
        self.store.save(BlobKey.REPORT.value, text.encode("utf-8"))
        logger.info("Results report regenerated")
        return text
