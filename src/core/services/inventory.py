"""Inventario de aplicaciones móviles.

Política de refresco incremental: solo se paga el listado completo cuando se
fuerza o cuando no hay nada en memoria/disco.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from adapters.blob_store import BlobKey
from adapters.json_exporter import decode_inventory
from core.domain.errors import RequestFailedError
from core.domain.models import ApplicationRecord
from core.services.session import SyncSession

logger = logging.getLogger(__name__)


class InventoryStore:
    def __init__(self, session: SyncSession) -> None:
        self._session = session

    def load_or_init(self) -> list[ApplicationRecord]:
        """Hidrata el inventario desde disco; vacío si falta o está corrupto."""

        data = self._session.store.load(BlobKey.INVENTORY.value)
        records: list[ApplicationRecord] = []
        if data is not None:
            try:
                records = decode_inventory(data)
            except ValueError as exc:
                logger.error("Error loading mobile applications: %s", exc)
                records = []
        self._session.inventory = records
        return records

    async def refresh(self, *, force: bool = False) -> bool:
        """Reemplaza el inventario con el listado remoto si está vacío o `force`.

        Devuelve True si hubo listado remoto. Un fallo del listado aborta el
        lote (`RequestFailedError` se propaga).
        """

        session = self._session
        if session.inventory and not force:
            logger.info("Using existing %d mobile applications", len(session.inventory))
            return False

        logger.info("Getting all mobile applications from JSS")
        payload = await session.api.list_applications()
        try:
            records = [ApplicationRecord.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise RequestFailedError(f"Unexpected application payload: {exc}") from exc

        session.inventory = records
        logger.info("Found %d mobile applications", len(records))
        session.persist_inventory()
        return True
