"""Enriquecimiento VPP del inventario.

Por qué serial:
- El servidor aplica un rate limit implícito; un solo request en vuelo y una
  pausa fija entre llamadas (`SerialDispatcher`) lo respetan.
- Es reanudable: lo ya enriquecido se salta salvo `force`, así una ejecución
  cortada continúa donde quedó.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from core.domain.errors import RequestFailedError
from core.domain.models import ApplicationRecord, VppData
from core.services.classifier import rebuild_classification
from core.services.session import SyncSession

logger = logging.getLogger(__name__)

PHASE = "vpp"


class EnrichmentPipeline:
    def __init__(self, session: SyncSession) -> None:
        self._session = session

    async def enrich_all(self, *, force: bool = False) -> int:
        logger.info("Getting VPP data for all mobile applications")
        return await self.enrich_range(0, len(self._session.inventory) - 1, force=force)

    async def enrich_range(self, start: int, end: int, *, force: bool = False) -> int:
        """Enriquece los registros `[start, end]` (inclusivo).

        `end` se recorta al último índice válido. Devuelve cuántos registros
        recibieron datos VPP; si alguno cambió se persiste el inventario y se
        regeneran clasificación y reporte, también cuando un error fatal corta
        el lote a la mitad.
        """

        session = self._session
        inventory = session.inventory
        start = max(start, 0)
        end = min(end, len(inventory) - 1)

        pending = [
            record
            for record in inventory[start : end + 1]
            if not record.is_tombstoned and (force or not record.is_enriched)
        ]
        if not pending:
            logger.info("No applications need VPP data in range [%d, %d]", start, end)
            return 0

        total = len(pending)
        session.hooks.start(PHASE, total)
        done = 0
        enriched = 0

        async def fetch(record: ApplicationRecord) -> None:
            nonlocal done, enriched
            if await self._fetch_one(record):
                enriched += 1
            done += 1
            session.hooks.advance(PHASE, done, total)

        try:
            await session.dispatcher.run(pending, fetch)
        finally:
            # Un error fatal corta el lote pero lo ya enriquecido se guarda.
            if enriched:
                session.persist_inventory()
                rebuild_classification(session)
                session.persist_report()
            logger.info("VPP data attached to %d of %d applications", enriched, total)
        return enriched

    async def _fetch_one(self, record: ApplicationRecord) -> bool:
        app_id = record.id
        if app_id is None:
            return False
        logger.info("Getting VPP data for [%s] %s", app_id, record.name)
        try:
            payload = await self._session.api.fetch_vpp(app_id)
        except RequestFailedError as exc:
            logger.warning("VPP request failed for [%s] %s: %s", app_id, record.name, exc)
            return False
        try:
            record.vpp = VppData.model_validate(payload or {})
        except ValidationError as exc:
            logger.warning("Unexpected VPP payload for [%s] %s: %s", app_id, record.name, exc)
            return False
        return True
