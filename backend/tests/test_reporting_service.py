# Overview: Pytest coverage for the expired handling report.

from datetime import timedelta

from freshguard.services import ledger_service, reporting_service

from conftest import NOW


class TestExpiredHandlingReport:

    def test_empty_without_expired_reminders(self, store, product):
        ledger_service.create_batch(store.id, product.id, 4)
        assert reporting_service.expired_handling_report() == []

    def test_counts_per_store_and_product(self, store, second_store, product, bilingual_product):
        ledger_service.create_batch(store.id, product.id, 3, NOW - timedelta(days=3))
        ledger_service.create_batch(store.id, bilingual_product.id, 2, NOW - timedelta(days=5))
        ledger_service.create_batch(second_store.id, product.id, 1, NOW - timedelta(days=2))
        # not yet expired; must not be counted
        ledger_service.create_batch(store.id, product.id, 6)

        expired = ledger_service.list_reminders(store.id, "expired")
        tuna = [r for r in expired if r.product_id == product.id]
        ledger_service.handle_reminder(store.id, tuna[0].id, "discarded")
        ledger_service.handle_reminder(store.id, tuna[1].id, "sold")

        rows = reporting_service.expired_handling_report()

        assert [(r["store_id"], r["product_id"]) for r in rows] == [
            (store.id, product.id),
            (store.id, bilingual_product.id),
            (second_store.id, product.id),
        ]
        first = rows[0]
        assert first["store_name"] == "Downtown"
        assert first["product_name"] == "Tuna Sandwich"
        assert first["expired_total_count"] == 3
        assert first["expired_handled_count"] == 2
        assert first["expired_unhandled_count"] == 1
        assert rows[1]["expired_handled_count"] == 0
        assert rows[2]["expired_total_count"] == 1

        for row in rows:
            assert row["expired_total_count"] == row["expired_handled_count"] + row["expired_unhandled_count"]

    def test_handled_before_expiry_counts_once_forever(self, store, product, clock):
        ledger_service.create_batch(store.id, product.id, 2)
        reminder = ledger_service.list_reminders(store.id)[0]
        ledger_service.handle_reminder(store.id, reminder.id, "transferred")

        assert reporting_service.expired_handling_report() == []

        clock.advance(days=2)
        rows = reporting_service.expired_handling_report()
        assert len(rows) == 1
        assert rows[0]["expired_total_count"] == 2
        assert rows[0]["expired_handled_count"] == 1

        clock.advance(days=30)
        assert reporting_service.expired_handling_report() == rows
