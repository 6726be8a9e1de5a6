"""Clasificación de aplicaciones por estado de licencia VPP.

Regla (la primera que aplica gana):
1. sin datos VPP             -> fuera de toda categoría
2. sin `total_vpp_licenses`  -> unlicensed
3. total == 0                -> licensedUnpurchased
4. used == 0                 -> licensedPurchasedNotInUse
5. used > 0                  -> licensedPurchasedInUse
6. cualquier otra cosa       -> other (incluye contadores que no son enteros)
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from adapters.blob_store import BlobKey
from adapters.json_exporter import decode_classification
from core.domain.models import ApplicationRecord, Category, Classification
from core.services.session import SyncSession

logger = logging.getLogger(__name__)


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def categorize(record: ApplicationRecord) -> Category | None:
    vpp = record.vpp
    if vpp is None:
        return None
    # Ausente, no `null`: un `null` explícito es dato malformado.
    if "total_vpp_licenses" not in vpp.model_fields_set:
        return Category.UNLICENSED
    total = vpp.total_vpp_licenses
    if not _is_count(total):
        return Category.OTHER
    if total == 0:
        return Category.LICENSED_UNPURCHASED
    used = vpp.used_vpp_licenses
    if not _is_count(used):
        return Category.OTHER
    if used == 0:
        return Category.LICENSED_PURCHASED_NOT_IN_USE
    if used > 0:
        return Category.LICENSED_PURCHASED_IN_USE
    return Category.OTHER


def classify(inventory: Iterable[ApplicationRecord]) -> Classification:
    """Construye una clasificación nueva; no modifica el inventario.

    Las listas contienen las mismas instancias que `inventory`.
    """

    classification = Classification()
    for record in inventory:
        category = categorize(record)
        if category is not None:
            classification.members(category).append(record)
    return classification


def rebuild_classification(session: SyncSession) -> Classification:
    session.classification = classify(session.inventory)
    session.persist_classification()
    return session.classification


def load_classification(session: SyncSession) -> Classification:
    """Hidrata la clasificación persistida y la re-enlaza con el inventario."""

    data = session.store.load(BlobKey.CLASSIFICATION.value)
    classification = Classification()
    if data is not None:
        try:
            classification = decode_classification(data)
        except ValueError as exc:
            logger.error("Error loading sorted applications: %s", exc)
            classification = Classification()
    classification.relink(session.inventory)
    session.classification = classification
    return classification
