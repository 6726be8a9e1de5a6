"""Borrado de aplicaciones por categoría.

Dos fases:
1. Marcar (tombstone): tras cada borrado confirmado el registro queda con
   `id=None` en el inventario (y en la lista de clasificación que lo tenga),
   sin mover índices mientras se itera.
2. Compactar: una sola vez al final de la ejecución, si hubo borrados, se
   filtran los tombstones de las seis colecciones y se persiste todo.
"""

from __future__ import annotations

import logging

from core.domain.errors import RequestFailedError
from core.domain.models import ApplicationRecord, Category
from core.services.session import SyncSession

logger = logging.getLogger(__name__)

NOT_IN_USE_CATEGORIES: tuple[Category, ...] = (
    Category.UNLICENSED,
    Category.LICENSED_UNPURCHASED,
)


def mark_tombstone(app_id: int, records: list[ApplicationRecord]) -> bool:
    for record in records:
        if record.id == app_id:
            record.id = None
            return True
    return False


def drop_tombstones(records: list[ApplicationRecord]) -> int:
    """Filtro estable in situ; devuelve cuántos registros se quitaron."""

    before = len(records)
    records[:] = [record for record in records if record.id is not None]
    return before - len(records)


class DeletionPipeline:
    def __init__(self, session: SyncSession) -> None:
        self._session = session

    async def delete_category(self, category: Category) -> int:
        """Borra en el servidor cada miembro actual de `category`.

        La lista se copia al empezar; fallos individuales se registran y se
        sigue con el siguiente. Devuelve cuántos borrados se confirmaron.
        """

        session = self._session
        targets = [record for record in session.classification.members(category) if record.id is not None]
        if not targets:
            logger.info("No %s applications to delete", category.label())
            return 0

        total = len(targets)
        phase = f"delete:{category.value}"
        session.hooks.start(phase, total)
        done = 0

        async def delete(record: ApplicationRecord) -> bool:
            nonlocal done
            deleted = await self._delete_one(record)
            done += 1
            session.hooks.advance(phase, done, total)
            return deleted

        results = await session.dispatcher.run(targets, delete)
        deleted = sum(1 for ok in results if ok)
        logger.info("Deleted %d of %d %s applications", deleted, total, category.label())
        return deleted

    async def delete_not_in_use(self, *, include_licensed: bool = False) -> int:
        """Borra las aplicaciones sin licencia y sin comprar.

        Con `include_licensed` también las compradas que nadie usa.
        """

        categories = list(NOT_IN_USE_CATEGORIES)
        if include_licensed:
            categories.append(Category.LICENSED_PURCHASED_NOT_IN_USE)
        deleted = 0
        for category in categories:
            deleted += await self.delete_category(category)
        return deleted

    async def _delete_one(self, record: ApplicationRecord) -> bool:
        app_id = record.id
        if app_id is None:
            return False
        logger.info("Deleting %s", record.name)
        try:
            confirmed = await self._session.api.delete_application(app_id)
        except RequestFailedError as exc:
            logger.warning("Delete failed for [%s] %s: %s", app_id, record.name, exc)
            return False
        if not confirmed:
            logger.warning("Delete of [%s] %s was not confirmed", app_id, record.name)
            return False
        logger.info("Deleted mobile application %s", app_id)
        return self.tombstone(app_id)

    def tombstone(self, app_id: int) -> bool:
        """Marca `app_id` en el inventario y en la primera lista que lo conserve."""

        session = self._session
        if not mark_tombstone(app_id, session.inventory):
            logger.warning("Deleted application %s was not in the inventory", app_id)
            return False
        session.has_deletions = True
        for _, records in session.classification.iter_lists():
            if mark_tombstone(app_id, records):
                break
        return True

    def compact(self) -> int:
        session = self._session
        removed = drop_tombstones(session.inventory)
        for _, records in session.classification.iter_lists():
            drop_tombstones(records)
        return removed

    def finalize(self) -> bool:
        """Compacta y persiste si hubo borrados en esta ejecución."""

        session = self._session
        if not session.has_deletions:
            return False
        removed = self.compact()
        logger.info("Removed %d deleted applications from local state", removed)
        session.persist_inventory()
        session.persist_classification()
        session.persist_report()
        session.has_deletions = False
        return True
