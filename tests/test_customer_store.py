"""Tests for the SQLAlchemy-backed customer store."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.models._mixins import ensure_utc
from app.models.customer import Customer
from app.services.customer_store import CustomerStore
from app.services.errors import Conflict, NotFound, StoreUnavailable


class TestCreateAndFind:
    def test_create_starts_at_one_visit(self, store):
        c = store.create("Asha", "9876543210")
        assert c.id
        assert c.visits == 1
        assert c.created_at == c.updated_at

    def test_find_by_phone_exact_match(self, store):
        created = store.create("Asha", "9876543210")
        found = store.find_by_phone("9876543210")
        assert found.id == created.id

    def test_find_by_phone_miss(self, store):
        with pytest.raises(NotFound):
            store.find_by_phone("1112223333")

    def test_get_unknown_id(self, store):
        with pytest.raises(NotFound):
            store.get("does-not-exist")

    def test_duplicate_phone_conflicts(self, store, db):
        store.create("Asha", "9876543210")
        with pytest.raises(Conflict):
            store.create("Someone Else", "9876543210")
        count = db.execute(select(func.count(Customer.id))).scalar_one()
        assert count == 1

    def test_store_usable_after_conflict(self, store):
        store.create("Asha", "9876543210")
        with pytest.raises(Conflict):
            store.create("Asha", "9876543210")
        other = store.create("Ravi", "9123456780")
        assert other.phone_number == "9123456780"


class TestIncrementVisit:
    def test_increments_are_monotonic(self, store):
        c = store.create("Asha", "9876543210")
        previous = ensure_utc(c.updated_at)
        for expected in range(2, 7):
            c = store.increment_visit(c.id)
            assert c.visits == expected
            current = ensure_utc(c.updated_at)
            assert current >= previous
            previous = current

    def test_updated_at_not_before_created_at(self, store):
        c = store.create("Asha", "9876543210")
        c = store.increment_visit(c.id)
        assert ensure_utc(c.updated_at) >= ensure_utc(c.created_at)

    def test_unknown_id(self, store):
        with pytest.raises(NotFound):
            store.increment_visit("missing")


class TestListAndStats:
    def test_list_in_creation_order(self, store):
        phones = ["9000000001", "9000000002", "9000000003"]
        for i, p in enumerate(phones):
            store.create(f"Guest {i}", p)
        assert [c.phone_number for c in store.list_all()] == phones

    def test_empty_stats(self, store):
        s = store.stats()
        assert s.total_customers == 0
        assert s.total_visits == 0
        assert s.average_visits == 0.0

    def test_stats_aggregate_visits(self, store):
        a = store.create("Asha", "9000000001")
        store.create("Ravi", "9000000002")
        store.create("Meena", "9000000003")
        store.increment_visit(a.id)
        store.increment_visit(a.id)
        s = store.stats()
        assert s.total_customers == 3
        assert s.total_visits == 5
        assert s.average_visits == 1.7


class _LockedSession:
    """Session stand-in whose every query fails like a locked database."""

    def __init__(self):
        self.rolled_back = False

    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    def get(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    def rollback(self):
        self.rolled_back = True


class TestStorageFailures:
    def test_lookup_surfaces_unavailable(self):
        session = _LockedSession()
        store = CustomerStore(session)
        with pytest.raises(StoreUnavailable):
            store.find_by_phone("9876543210")
        assert session.rolled_back

    def test_list_surfaces_unavailable(self):
        with pytest.raises(StoreUnavailable):
            CustomerStore(_LockedSession()).list_all()
