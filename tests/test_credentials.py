"""Credential lifecycle: reuse until expiry, one exchange and one write per refresh."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from adapters.json_exporter import encode_credential
from core.domain.errors import AuthenticationError
from core.domain.models import Credential
from core.services.credentials import CredentialManager
from fakes import FakeMdmApi

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _clock() -> datetime:
    return NOW


class TestCredentialModel:
    def test_valid_only_when_expiry_in_future(self):
        assert Credential(token="t", expires=NOW + timedelta(seconds=1)).is_valid(NOW)
        assert not Credential(token="t", expires=NOW).is_valid(NOW)
        assert not Credential(token="t", expires=NOW - timedelta(hours=1)).is_valid(NOW)

    def test_missing_expiry_is_unusable(self):
        assert not Credential(token="t").is_valid(NOW)

    def test_naive_expiry_is_utc(self):
        credential = Credential.model_validate({"token": "t", "expires": "2026-10-18T13:00:00"})
        assert credential.expires == NOW + timedelta(hours=1)


class TestEnsureValidCredential:
    @pytest.mark.asyncio
    async def test_reuses_unexpired_credential(self, make_session, api, store):
        session = make_session()
        session.credential = Credential(token="cached", expires=NOW + timedelta(hours=1))
        manager = CredentialManager(session, clock=_clock)

        first = await manager.ensure_valid_credential()
        second = await manager.ensure_valid_credential()

        assert first is second
        assert api.auth_calls == 0
        assert store.saves == []
        assert api.credential is first

    @pytest.mark.asyncio
    async def test_expired_credential_is_replaced_once(self, make_session, api, store):
        session = make_session()
        session.credential = Credential(token="old", expires=NOW - timedelta(minutes=1))
        manager = CredentialManager(session, clock=_clock)

        fresh = await manager.ensure_valid_credential()

        assert api.auth_calls == 1
        assert fresh.token == "token-1"
        assert session.credential is fresh
        assert store.saves == ["credential"]

    @pytest.mark.asyncio
    async def test_missing_credential_triggers_exchange(self, make_session, api, store):
        session = make_session()
        await CredentialManager(session).ensure_valid_credential()

        assert api.auth_calls == 1
        assert store.saves == ["credential"]

    @pytest.mark.asyncio
    async def test_exchange_failure_propagates(self, make_session, store):
        session = make_session(fake_api=FakeMdmApi(reject_auth=True))

        with pytest.raises(AuthenticationError):
            await CredentialManager(session, clock=_clock).ensure_valid_credential()
        assert store.saves == []


class TestLoad:
    def test_loads_persisted_credential(self, make_session, store):
        persisted = Credential(token="disk", expires=NOW + timedelta(hours=1))
        store.blobs["credential"] = encode_credential(persisted)
        session = make_session()

        assert CredentialManager(session).load() == persisted
        assert session.credential == persisted

    def test_corrupt_credential_is_ignored(self, make_session, store):
        store.blobs["credential"] = b"not json"
        session = make_session()

        assert CredentialManager(session).load() is None
        assert session.credential is None
