"""Tests for the in-memory store."""

import asyncio

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.store import (
    COLLECTIONS,
    InMemoryAuditStorage,
    InMemoryDatabase,
    InMemoryRepository,
)


class TestInMemoryRepository:
    """Tests for a single collection."""

    def test_first_id_is_one(self):
        repo = InMemoryRepository("expenses")
        assert repo.insert({"amount": "10"})["id"] == 1
        assert repo.insert({"amount": "20"})["id"] == 2

    def test_insert_ignores_supplied_id(self):
        repo = InMemoryRepository("expenses")
        created = repo.insert({"id": 99, "amount": "10"})
        assert created["id"] == 1

    def test_ids_are_never_reused(self):
        """Test that deleting the highest id does not free it."""
        repo = InMemoryRepository("expenses")
        repo.insert({"amount": "10"})
        second = repo.insert({"amount": "20"})
        repo.delete(second["id"])
        assert repo.insert({"amount": "30"})["id"] == 3

    def test_next_id_after_fixtures(self, seeded_db):
        """Test new ids continue after the seeded maximum."""
        assert seeded_db.expenses.next_id() == 6
        assert seeded_db.users.next_id() == 2

    def test_select_filters_by_text_value(self, seeded_db):
        """Test equality filters compare as text."""
        assert len(seeded_db.expenses.select({"userId": "1"})) == 5
        food = seeded_db.expenses.select({"userId": "1", "category": "Food"})
        assert [row["id"] for row in food] == [2, 4]
        assert seeded_db.expenses.select({"userId": "2"}) == []

    def test_select_bool_filter(self, seeded_db):
        recurring = seeded_db.expenses.select({"isRecurring": "true"})
        assert [row["id"] for row in recurring] == [1]

    def test_select_unknown_key_matches_nothing(self, seeded_db):
        assert seeded_db.expenses.select({"colour": "red"}) == []

    def test_select_keeps_insertion_order(self, seeded_db):
        ids = [row["id"] for row in seeded_db.expenses.select()]
        assert ids == [1, 2, 3, 4, 5]

    def test_returned_rows_are_copies(self, seeded_db):
        """Test callers cannot change stored rows by mutating results."""
        row = seeded_db.expenses.get(1)
        row["amount"] = "0"
        seeded_db.expenses.select()[0]["category"] = "Changed"
        stored = seeded_db.expenses.get(1)
        assert stored["amount"] == "1200"
        assert stored["category"] == "Housing"

    def test_update_is_shallow_merge(self, seeded_db):
        merged = seeded_db.expenses.update(2, {"amount": "175.50", "id": 42})
        assert merged["id"] == 2
        assert merged["amount"] == "175.50"
        assert merged["description"] == "Grocery shopping"
        assert seeded_db.expenses.get(2)["amount"] == "175.50"

    def test_update_and_delete_missing(self, seeded_db):
        assert seeded_db.expenses.update(999, {"amount": "1"}) is None
        assert seeded_db.expenses.delete(999) is False
        assert len(seeded_db.expenses) == 5

    def test_delete_removes_row(self, seeded_db):
        assert seeded_db.expenses.delete(3) is True
        assert seeded_db.expenses.get(3) is None
        assert len(seeded_db.expenses) == 4

    def test_load_requires_ids(self):
        repo = InMemoryRepository("goals")
        with pytest.raises(ValueError):
            repo.load([{"title": "No id"}])


class TestInMemoryDatabase:
    """Tests for the collection registry."""

    def test_empty_database(self, empty_db):
        assert empty_db.collection_names == COLLECTIONS
        assert all(len(empty_db.collection(name)) == 0 for name in COLLECTIONS)

    def test_seeded_counts(self, seeded_db):
        assert len(seeded_db.users) == 1
        assert len(seeded_db.expenses) == 5
        assert len(seeded_db.incomes) == 2
        assert len(seeded_db.budgets) == 1
        assert len(seeded_db.goals) == 2

    def test_unknown_collection(self, empty_db):
        assert not empty_db.has_collection("accounts")
        with pytest.raises(KeyError):
            empty_db.collection("accounts")

    def test_databases_are_isolated(self):
        """Test that two databases never share rows."""
        first = InMemoryDatabase(seed=True)
        second = InMemoryDatabase(seed=True)
        first.expenses.delete(1)
        assert second.expenses.get(1) is not None


class TestInMemoryAuditStorage:
    """Tests for the append-only audit trail."""

    def test_append_and_lookup(self):
        storage = InMemoryAuditStorage()
        first = AuditEventBuilder.record_created("expenses", 6, user_id=1)
        second = AuditEventBuilder.record_deleted("expenses", 6, user_id=1)
        other = AuditEventBuilder.record_created("goals", 3, user_id=1)

        async def scenario():
            for event in (first, second, other):
                assert await storage.append_event(event)
            by_entity = await storage.get_events_by_entity("expenses", 6)
            recent = await storage.get_recent_events(limit=2)
            return by_entity, recent

        by_entity, recent = asyncio.run(scenario())
        assert [e.event_id for e in by_entity] == [first.event_id, second.event_id]
        assert len(recent) == 2
        assert len(storage) == 3


class TestAuditLoggerStorage:
    """Tests for the audit logger writing through to its store."""

    def test_first_event_reaches_empty_store(self):
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage)
        stored = asyncio.run(audit.log(AuditEventBuilder.record_created("expenses", 6, user_id=1)))
        assert stored is True
        assert len(storage) == 1

    def test_without_store(self):
        audit = AuditLogger()
        assert asyncio.run(audit.log(AuditEventBuilder.record_created("expenses", 6))) is True
