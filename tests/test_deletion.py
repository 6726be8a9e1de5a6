"""Two-phase deletion: tombstone during the batch, compact once at the end."""

from __future__ import annotations

import pytest

from adapters.json_exporter import decode_classification, decode_inventory
from core.domain.models import Category
from core.services.classifier import classify
from core.services.deletion import DeletionPipeline, drop_tombstones, mark_tombstone
from fakes import FakeMdmApi, make_record, make_unlicensed


def _inventory():
    return [
        make_unlicensed(1),
        make_record(2, total_vpp_licenses=0),
        make_unlicensed(3),
        make_record(4, total_vpp_licenses=5, used_vpp_licenses=2),
        make_unlicensed(5),
        make_record(6),
    ]


def _classified_session(make_session, fake_api=None):
    session = make_session(_inventory(), fake_api=fake_api)
    session.classification = classify(session.inventory)
    return session


class TestHelpers:
    def test_mark_tombstone_stops_at_first_match(self):
        records = [make_record(1), make_record(1)]
        assert mark_tombstone(1, records) is True
        assert [r.id for r in records] == [None, 1]

    def test_mark_tombstone_missing_id(self):
        assert mark_tombstone(7, [make_record(1)]) is False

    def test_drop_tombstones_is_stable_and_in_place(self):
        records = [make_record(None), make_record(1), make_record(None), make_record(None), make_record(2)]
        same_list = records

        assert drop_tombstones(records) == 3
        assert records is same_list
        assert [r.id for r in records] == [1, 2]


class TestDeleteCategory:
    @pytest.mark.asyncio
    async def test_successful_batch_then_compaction(self, make_session, api, store, sleeper):
        session = _classified_session(make_session)
        doomed = {r.id for r in session.classification.unlicensed}
        pipeline = DeletionPipeline(session)

        deleted = await pipeline.delete_category(Category.UNLICENSED)

        assert deleted == 3
        assert api.calls_for("delete") == [1, 3, 5]
        assert sleeper.delays == [1.0, 1.0]
        assert session.has_deletions is True
        # tombstoned but not yet removed
        assert len(session.inventory) == 6
        assert [r.id for r in session.classification.unlicensed] == [None, None, None]

        assert pipeline.finalize() is True

        assert doomed.isdisjoint({r.id for r in session.inventory})
        assert [r.id for r in session.inventory] == [2, 4, 6]
        assert session.classification.unlicensed == []
        assert store.saves == ["inventory", "classification", "report"]
        assert [r.id for r in decode_inventory(store.blobs["inventory"])] == [2, 4, 6]
        assert decode_classification(store.blobs["classification"]).unlicensed == []

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_failed_record(self, make_session, store):
        api = FakeMdmApi(failing_delete={3})
        session = _classified_session(make_session, fake_api=api)
        failed = session.inventory[2]
        before = failed.model_dump()
        pipeline = DeletionPipeline(session)

        assert await pipeline.delete_category(Category.UNLICENSED) == 2
        pipeline.finalize()

        assert api.calls_for("delete") == [1, 3, 5]
        assert [r.id for r in session.inventory] == [2, 3, 4, 6]
        assert session.classification.unlicensed == [failed]
        assert failed.model_dump() == before

    @pytest.mark.asyncio
    async def test_unconfirmed_delete_is_not_applied(self, make_session):
        api = FakeMdmApi(unconfirmed_delete={2})
        session = _classified_session(make_session, fake_api=api)
        pipeline = DeletionPipeline(session)

        assert await pipeline.delete_category(Category.LICENSED_UNPURCHASED) == 0
        assert session.has_deletions is False
        assert pipeline.finalize() is False

    @pytest.mark.asyncio
    async def test_empty_category_makes_no_calls(self, make_session, api, store):
        session = _classified_session(make_session)

        assert await DeletionPipeline(session).delete_category(Category.OTHER) == 0
        assert api.calls == []
        assert store.saves == []

    @pytest.mark.asyncio
    async def test_in_use_category_is_deletable(self, make_session, api):
        session = _classified_session(make_session)
        pipeline = DeletionPipeline(session)

        assert await pipeline.delete_category(Category.LICENSED_PURCHASED_IN_USE) == 1
        pipeline.finalize()

        assert 4 not in {r.id for r in session.inventory}

    @pytest.mark.asyncio
    async def test_stale_classification_copy_is_tombstoned(self, make_session):
        session = _classified_session(make_session)
        # classification persisted from an older inventory: same ids, different objects
        session.classification = classify([r.model_copy(deep=True) for r in session.inventory])
        pipeline = DeletionPipeline(session)

        await pipeline.delete_category(Category.LICENSED_UNPURCHASED)
        assert session.inventory[1].id is None
        assert session.classification.licensed_unpurchased[0].id is None

        pipeline.finalize()
        assert session.classification.licensed_unpurchased == []
        assert 2 not in {r.id for r in session.inventory}

    @pytest.mark.asyncio
    async def test_finalize_without_deletions_writes_nothing(self, make_session, store):
        session = _classified_session(make_session)
        assert DeletionPipeline(session).finalize() is False
        assert store.saves == []


class TestDeleteNotInUse:
    @pytest.mark.asyncio
    async def test_default_skips_purchased(self, make_session):
        inventory = _inventory() + [make_record(7, total_vpp_licenses=3, used_vpp_licenses=0)]
        api = FakeMdmApi()
        session = make_session(inventory, fake_api=api)
        session.classification = classify(session.inventory)

        assert await DeletionPipeline(session).delete_not_in_use() == 4
        assert api.calls_for("delete") == [1, 3, 5, 2]

    @pytest.mark.asyncio
    async def test_include_licensed(self, make_session):
        inventory = _inventory() + [make_record(7, total_vpp_licenses=3, used_vpp_licenses=0)]
        api = FakeMdmApi()
        session = make_session(inventory, fake_api=api)
        session.classification = classify(session.inventory)

        assert await DeletionPipeline(session).delete_not_in_use(include_licensed=True) == 5
        assert api.calls_for("delete") == [1, 3, 5, 2, 7]
