"""Orquestación de una ejecución completa.

La CLI traduce flags a un `SyncRequest` y delega aquí. Las operaciones se
ejecutan siempre en el mismo orden relativo, sin importar el orden de los
flags:

token -> inventario -> VPP (todo) -> VPP (rango) -> borrados -> compactación
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Sequence

from core.config import AppSettings
from core.domain.models import Category
from core.interfaces.mdm_api import BlobStore, MdmApi
from core.services.classifier import load_classification
from core.services.credentials import CredentialManager, utcnow
from core.services.deletion import NOT_IN_USE_CATEGORIES, DeletionPipeline
from core.services.dispatcher import SerialDispatcher
from core.services.enrichment import EnrichmentPipeline
from core.services.inventory import InventoryStore
from core.services.session import PipelineHooks, SyncSession

logger = logging.getLogger(__name__)

DELETE_ORDER: tuple[Category, ...] = (
    Category.UNLICENSED,
    Category.LICENSED_UNPURCHASED,
    Category.LICENSED_PURCHASED_NOT_IN_USE,
    Category.LICENSED_PURCHASED_IN_USE,
    Category.OTHER,
)


@dataclass
class SyncRequest:
    """Operaciones pedidas para esta ejecución."""

    refresh_inventory: bool = False
    enrich_all: bool = False
    enrich_range: tuple[int, int] | None = None
    delete_categories: Sequence[Category] = ()
    delete_not_in_use: bool = False
    include_licensed: bool = False

    @property
    def wants_enrichment(self) -> bool:
        return self.enrich_all or self.enrich_range is not None

    def categories_to_delete(self) -> list[Category]:
        requested = set(self.delete_categories)
        if self.delete_not_in_use:
            requested.update(NOT_IN_USE_CATEGORIES)
            if self.include_licensed:
                requested.add(Category.LICENSED_PURCHASED_NOT_IN_USE)
        return [category for category in DELETE_ORDER if category in requested]


@dataclass
class SyncResult:
    refreshed: bool = False
    enriched: int = 0
    deleted: dict[Category, int] = field(default_factory=dict)
    compacted: bool = False
    counts: dict[Category, int] = field(default_factory=dict)


def open_session(
    *,
    api: MdmApi,
    store: BlobStore,
    settings: AppSettings | None = None,
    hooks: PipelineHooks | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> SyncSession:
    """Construye la sesión e hidrata token, inventario y clasificación."""

    settings = settings or AppSettings()
    session = SyncSession(
        api=api,
        store=store,
        dispatcher=SerialDispatcher(settings.query_delay_seconds, sleep=sleep),
        hooks=hooks or PipelineHooks(),
    )
    CredentialManager(session).load()
    InventoryStore(session).load_or_init()
    load_classification(session)
    return session


async def run_sync(
    session: SyncSession,
    request: SyncRequest,
    *,
    clock: Callable[[], datetime] = utcnow,
) -> SyncResult:
    """Ejecuta `request` sobre `session`.

    La compactación corre en `finally`: si un error fatal corta un lote de
    borrados, lo ya borrado en el servidor igual desaparece del estado local.
    """

    result = SyncResult()
    deletion = DeletionPipeline(session)
    try:
        await CredentialManager(session, clock=clock).ensure_valid_credential()

        if request.refresh_inventory or request.wants_enrichment:
            result.refreshed = await InventoryStore(session).refresh(force=request.refresh_inventory)

        enrichment = EnrichmentPipeline(session)
        if request.enrich_all:
            result.enriched += await enrichment.enrich_all(force=True)
        if request.enrich_range is not None:
            start, end = request.enrich_range
            result.enriched += await enrichment.enrich_range(start, end)

        for category in request.categories_to_delete():
            result.deleted[category] = await deletion.delete_category(category)
    finally:
        result.compacted = deletion.finalize()

    result.counts = session.classification.counts()
    logger.info(
        "Run finished: %d applications, %d enriched, %d deleted",
        len(session.inventory),
        result.enriched,
        sum(result.deleted.values()),
    )
    return result
