# Overview: Pytest coverage for the batch/reminder ledger.

"""
Batch/Reminder Ledger Tests

Covers:
- A batch of N creates exactly N pending reminders sharing its expiry
- Rejected input creates no rows at all
- Time-window classification against the injected clock
- Handling is terminal, store-scoped and writes one HandlingLog
- Batch and reminder writes roll back together
"""

from datetime import timedelta

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from freshguard.extensions import db
from freshguard.models import Batch, HandlingLog, Reminder
from freshguard.services import ledger_service
from freshguard.validation import ConflictError, InvalidArgumentError, NotFoundError

from conftest import NOW


def _counts():
    return (
        db.session.query(Batch).count(),
        db.session.query(Reminder).count(),
        db.session.query(HandlingLog).count(),
    )


class TestCreateBatch:

    @pytest.mark.parametrize("quantity", [1, 7, 500])
    def test_creates_one_reminder_per_unit(self, store, product, quantity):
        result = ledger_service.create_batch(store.id, product.id, quantity)

        assert result.reminders_created == quantity
        reminders = db.session.query(Reminder).filter_by(batch_id=result.batch.id).all()
        assert len(reminders) == quantity
        assert {r.status for r in reminders} == {"pending"}
        assert {r.expires_at for r in reminders} == {result.batch.expires_at}
        assert all(r.handled_at is None for r in reminders)
        assert all(r.store_id == store.id and r.product_id == product.id for r in reminders)

    def test_expiry_is_printed_plus_shelf_life(self, store, bilingual_product):
        result = ledger_service.create_batch(store.id, bilingual_product.id, 1)
        assert result.batch.printed_at == NOW
        assert result.batch.expires_at == NOW + timedelta(days=2)

    def test_explicit_printed_at(self, store, product):
        result = ledger_service.create_batch(store.id, product.id, 2, "2026-01-10T06:30:00Z")
        assert result.batch.expires_at == result.batch.printed_at + timedelta(days=1)
        assert result.batch.expires_at.isoformat() == "2026-01-11T06:30:00"

    @pytest.mark.parametrize("quantity", [0, -1, 501, "abc", 2.5, None, True])
    def test_invalid_quantity_creates_nothing(self, store, product, quantity):
        with pytest.raises(InvalidArgumentError):
            ledger_service.create_batch(store.id, product.id, quantity)
        assert _counts() == (0, 0, 0)

    def test_expiry_past_calendar_range_rejected(self, store, product):
        with pytest.raises(InvalidArgumentError, match="printedAt is out of range"):
            ledger_service.create_batch(store.id, product.id, 1, "9999-12-31T12:00:00Z")
        assert _counts() == (0, 0, 0)

    def test_cross_brand_product_rejected(self, store, foreign_product):
        with pytest.raises(InvalidArgumentError, match="does not belong"):
            ledger_service.create_batch(store.id, foreign_product.id, 3)
        assert _counts() == (0, 0, 0)

    def test_unknown_store_and_product(self, store, product):
        with pytest.raises(NotFoundError, match="storeId not found"):
            ledger_service.create_batch(9999, product.id, 1)
        with pytest.raises(NotFoundError, match="productId not found"):
            ledger_service.create_batch(store.id, 9999, 1)
        assert _counts() == (0, 0, 0)

    def test_reminder_insert_failure_rolls_back_batch(self, store, product, monkeypatch):
        monkeypatch.setattr(ledger_service, "REMINDER_PENDING", "bogus")
        with pytest.raises(IntegrityError):
            ledger_service.create_batch(store.id, product.id, 5)
        assert _counts() == (0, 0, 0)


class TestListReminders:

    def test_classification_scenario(self, store, product):
        today = ledger_service.create_batch(store.id, product.id, 1, NOW).batch
        past = ledger_service.create_batch(store.id, product.id, 1, NOW - timedelta(days=2)).batch
        future = ledger_service.create_batch(store.id, product.id, 1, NOW + timedelta(days=1)).batch

        expiring = ledger_service.list_reminders(store.id)
        expired = ledger_service.list_reminders(store.id, "expired")
        everything = ledger_service.list_reminders(store.id, "all")

        assert [r.batch_id for r in expiring] == [today.id]
        assert [r.batch_id for r in expired] == [past.id]
        assert [r.batch_id for r in everything] == [past.id, today.id, future.id]

    def test_threshold_zero_excludes_future(self, store, product, clock):
        ledger_service.create_batch(store.id, product.id, 1, NOW - timedelta(hours=12))
        # expires at NOW + 12h, i.e. half of a one-day threshold
        assert len(ledger_service.list_reminders(store.id, "expiring", 1)) == 1
        assert ledger_service.list_reminders(store.id, "expiring", 0) == []

    def test_expiry_at_now_is_expiring(self, store, product):
        ledger_service.create_batch(store.id, product.id, 1, NOW - timedelta(days=1))
        assert len(ledger_service.list_reminders(store.id, "expiring", 0)) == 1
        assert ledger_service.list_reminders(store.id, "expired") == []

    def test_classification_moves_with_clock(self, store, product, clock):
        ledger_service.create_batch(store.id, product.id, 2)
        assert len(ledger_service.list_reminders(store.id, "expiring")) == 2

        clock.advance(days=1, seconds=1)
        assert ledger_service.list_reminders(store.id, "expiring") == []
        assert len(ledger_service.list_reminders(store.id, "expired")) == 2
        assert len(ledger_service.list_reminders(store.id, "all")) == 2

    def test_ordered_by_expiry_then_id(self, store, product):
        later = ledger_service.create_batch(store.id, product.id, 2, NOW).batch
        sooner = ledger_service.create_batch(store.id, product.id, 2, NOW - timedelta(hours=1)).batch

        reminders = ledger_service.list_reminders(store.id, "all")
        assert [r.batch_id for r in reminders] == [sooner.id, sooner.id, later.id, later.id]
        assert reminders[0].id < reminders[1].id

    def test_scoped_to_store(self, store, second_store, product):
        ledger_service.create_batch(second_store.id, product.id, 3)
        assert ledger_service.list_reminders(store.id, "all") == []
        assert len(ledger_service.list_reminders(second_store.id, "all")) == 3

    def test_handled_never_listed(self, store, product, clock):
        ledger_service.create_batch(store.id, product.id, 1)
        reminder = ledger_service.list_reminders(store.id)[0]
        ledger_service.handle_reminder(store.id, reminder.id, "sold")

        for status in ("expiring", "expired", "all"):
            assert ledger_service.list_reminders(store.id, status) == []
        clock.advance(days=5)
        assert ledger_service.list_reminders(store.id, "expired") == []

    @pytest.mark.parametrize("threshold", [-1, "1.5", "x", 0.5])
    def test_invalid_threshold(self, store, threshold):
        with pytest.raises(InvalidArgumentError, match="thresholdDays"):
            ledger_service.list_reminders(store.id, "expiring", threshold)

    def test_threshold_beyond_calendar_range_has_no_upper_bound(self, store, product):
        ledger_service.create_batch(store.id, product.id, 1, NOW - timedelta(days=3))
        future = ledger_service.create_batch(store.id, product.id, 2, NOW + timedelta(days=400)).batch

        expiring = ledger_service.list_reminders(store.id, "expiring", 10**7)
        assert [r.batch_id for r in expiring] == [future.id, future.id]

    def test_product_loaded_with_reminders(self, store, product):
        ledger_service.create_batch(store.id, product.id, 3)
        db.session.expire_all()

        reminders = ledger_service.list_reminders(store.id, "all")
        assert all("product" not in inspect(r).unloaded for r in reminders)
        assert {r.to_dict()["productName"] for r in reminders} == {"Tuna Sandwich"}

    def test_invalid_status(self, store):
        with pytest.raises(InvalidArgumentError, match="status must be"):
            ledger_service.list_reminders(store.id, "stale")

    def test_default_threshold_from_config(self, app, store, product):
        ledger_service.create_batch(store.id, product.id, 1, NOW + timedelta(days=1))
        assert ledger_service.list_reminders(store.id) == []

        app.config["REMINDER_THRESHOLD_DAYS"] = 3
        assert len(ledger_service.list_reminders(store.id)) == 1


class TestHandleReminder:

    @pytest.fixture
    def reminder(self, store, product):
        ledger_service.create_batch(store.id, product.id, 2)
        return ledger_service.list_reminders(store.id, "all")[0]

    def test_handle_records_log(self, store, reminder, clock):
        clock.advance(hours=3)
        handled = ledger_service.handle_reminder(store.id, reminder.id, "Discarded", "  moldy ")

        assert handled.status == "handled"
        assert handled.handled_at == NOW + timedelta(hours=3)

        log = db.session.query(HandlingLog).filter_by(reminder_id=reminder.id).one()
        assert log.reason == "discarded"
        assert log.note == "moldy"
        assert log.store_id == store.id
        assert log.handled_at == handled.handled_at

    def test_handle_twice_conflicts(self, store, reminder):
        ledger_service.handle_reminder(store.id, reminder.id, "sold")
        with pytest.raises(ConflictError, match="already handled"):
            ledger_service.handle_reminder(store.id, reminder.id, "transferred")
        assert db.session.query(HandlingLog).count() == 1

    def test_other_store_sees_not_found(self, second_store, reminder):
        with pytest.raises(NotFoundError):
            ledger_service.handle_reminder(second_store.id, reminder.id, "sold")
        assert db.session.get(Reminder, reminder.id).handled_at is None

    def test_unknown_reminder(self, store):
        with pytest.raises(NotFoundError, match="Reminder not found"):
            ledger_service.handle_reminder(store.id, 424242, "sold")

    @pytest.mark.parametrize("reason", ["eaten", "", None])
    def test_invalid_reason(self, store, reminder, reason):
        with pytest.raises(InvalidArgumentError, match="reason must be"):
            ledger_service.handle_reminder(store.id, reminder.id, reason)
        assert db.session.get(Reminder, reminder.id).status == "pending"

    def test_log_failure_rolls_back_status(self, store, reminder, monkeypatch):
        def broken_log(**kwargs):
            kwargs["reason"] = "lost"
            return HandlingLog(**kwargs)

        monkeypatch.setattr(ledger_service, "HandlingLog", broken_log)
        with pytest.raises(IntegrityError):
            ledger_service.handle_reminder(store.id, reminder.id, "sold")

        db.session.expire_all()
        refreshed = db.session.get(Reminder, reminder.id)
        assert refreshed.status == "pending"
        assert refreshed.handled_at is None
        assert db.session.query(HandlingLog).count() == 0
