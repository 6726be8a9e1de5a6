"""Ciclo de vida del token bearer de Jamf."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from adapters.blob_store import BlobKey
from adapters.json_exporter import decode_credential
from core.domain.models import Credential
from core.services.session import SyncSession

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialManager:
    """Reutiliza el token persistido mientras no expire; si no, pide uno nuevo.

    Un fallo del intercambio (`AuthenticationError`) se propaga sin reintentos.
    """

    def __init__(
        self,
        session: SyncSession,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._clock = clock

    def load(self) -> Credential | None:
        data = self._session.store.load(BlobKey.CREDENTIAL.value)
        if data is None:
            return None
        try:
            credential = decode_credential(data)
        except ValueError as exc:
            logger.error("Error loading token: %s", exc)
            return None
        self._session.credential = credential
        return credential

    async def ensure_valid_credential(self) -> Credential:
        session = self._session
        current = session.credential
        if current is not None and current.is_valid(self._clock()):
            logger.info("Using existing valid token that expires at %s", current.expires)
        else:
            logger.info("Getting new auth token from JSS")
            current = await session.api.authenticate()
            session.credential = current
            session.persist_credential()
        session.api.use_credential(current)
        return current
