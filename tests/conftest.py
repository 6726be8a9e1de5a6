"""Shared fixtures built on the in-memory fakes."""

from __future__ import annotations

import pytest

from core.domain.models import ApplicationRecord
from core.services.dispatcher import SerialDispatcher
from core.services.session import SyncSession
from fakes import FakeMdmApi, MemoryBlobStore, SleepRecorder


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def api() -> FakeMdmApi:
    return FakeMdmApi()


@pytest.fixture
def make_session(api, store, sleeper):
    def _make(
        records: list[ApplicationRecord] | None = None,
        *,
        fake_api: FakeMdmApi | None = None,
        delay: float = 1.0,
    ) -> SyncSession:
        return SyncSession(
            api=fake_api or api,
            store=store,
            dispatcher=SerialDispatcher(delay, sleep=sleeper),
            inventory=list(records or []),
        )

    return _make
