# Overview: Pytest coverage for binding code issue and one-time consumption.

"""
Binding Code Tests

A code is consumed at most once, never after it expires, and a terminal
that loses a race for the same code gets a conflict without disturbing the
winner's binding.
"""

import threading
from datetime import timedelta
from types import SimpleNamespace

import pytest

from freshguard import create_app
from freshguard.extensions import db
from freshguard.models import BindingCode, Brand, Store
from freshguard.services import binding_service
from freshguard.validation import (
    ConflictError,
    ExpiredError,
    InvalidArgumentError,
    NotFoundError,
)

from conftest import NOW, TEST_CONFIG


class TestIssue:

    def test_issue_generates_code_with_default_ttl(self, store, clock):
        binding = binding_service.issue_binding_code(store.id)

        assert len(binding.code) == 8
        assert binding.code == binding.code.upper()
        assert binding.brand_id == store.brand_id
        assert binding.store_id == store.id
        assert binding.expires_at == NOW + timedelta(hours=24)
        assert binding.used_at is None

    def test_issue_explicit_code_is_normalized(self, store):
        binding = binding_service.issue_binding_code(store.id, 2, code="  abcd1234 ")
        assert binding.code == "ABCD1234"
        assert binding.expires_at == NOW + timedelta(hours=2)

    def test_issue_duplicate_explicit_code_conflicts(self, store):
        binding_service.issue_binding_code(store.id, code="DUPL0001")
        with pytest.raises(ConflictError):
            binding_service.issue_binding_code(store.id, code="dupl0001")
        assert db.session.query(BindingCode).count() == 1

    def test_issue_unknown_store(self, app):
        with pytest.raises(NotFoundError, match="storeId not found"):
            binding_service.issue_binding_code(999)

    def test_issue_rejects_non_positive_ttl(self, store):
        with pytest.raises(InvalidArgumentError):
            binding_service.issue_binding_code(store.id, 0)

    def test_ttl_past_calendar_range_rejected(self, store):
        with pytest.raises(InvalidArgumentError, match="expiresInHours is out of range"):
            binding_service.issue_binding_code(store.id, 1e10)
        assert db.session.query(BindingCode).count() == 0

    def test_list_newest_first(self, store):
        first = binding_service.issue_binding_code(store.id, code="FIRST001")
        second = binding_service.issue_binding_code(store.id, code="SECOND01")
        codes = [b.code for b in binding_service.list_binding_codes()]
        assert codes == [second.code, first.code]


class TestConsume:

    def test_consume_binds_device(self, store, clock):
        binding_service.issue_binding_code(store.id, code="BIND0001")
        clock.advance(minutes=5)

        consumed = binding_service.consume_binding_code("bind0001", "device-a")

        assert consumed.store.id == store.id
        assert consumed.binding_code.used_at == NOW + timedelta(minutes=5)
        assert consumed.binding_code.bound_device_id == "device-a"

    def test_second_consume_conflicts(self, store):
        binding_service.issue_binding_code(store.id, code="ONCE0001")
        binding_service.consume_binding_code("ONCE0001", "device-a")

        with pytest.raises(ConflictError, match="already used"):
            binding_service.consume_binding_code("ONCE0001", "device-b")

        assert binding_service.get_binding_code("ONCE0001").bound_device_id == "device-a"

    def test_expired_code_rejected(self, store, clock):
        binding_service.issue_binding_code(store.id, 1, code="LATE0001")
        clock.advance(hours=1, seconds=1)

        with pytest.raises(ExpiredError, match="expired"):
            binding_service.consume_binding_code("LATE0001", "device-a")
        assert binding_service.get_binding_code("LATE0001").used_at is None

    def test_code_valid_at_exact_expiry(self, store, clock):
        binding_service.issue_binding_code(store.id, 1, code="EDGE0001")
        clock.advance(hours=1)
        consumed = binding_service.consume_binding_code("EDGE0001")
        assert consumed.binding_code.used_at is not None

    def test_used_wins_over_expired(self, store, clock):
        binding_service.issue_binding_code(store.id, 1, code="USED0001")
        binding_service.consume_binding_code("USED0001", "device-a")
        clock.advance(days=2)
        with pytest.raises(ConflictError):
            binding_service.consume_binding_code("USED0001", "device-b")

    @pytest.mark.parametrize("code", [None, "", "   "])
    def test_empty_code(self, app, code):
        with pytest.raises(InvalidArgumentError, match="required"):
            binding_service.consume_binding_code(code)

    def test_unknown_code(self, app):
        with pytest.raises(InvalidArgumentError, match="Invalid binding code"):
            binding_service.consume_binding_code("NOPE0000")


class TestConsumeRace:

    def test_stale_read_loses_on_conditional_update(self, store, monkeypatch):
        """Both callers pass the pre-checks; only the first UPDATE matches."""
        binding = binding_service.issue_binding_code(store.id, code="RACE0001")
        stale = SimpleNamespace(id=binding.id, used_at=None, expires_at=binding.expires_at)

        binding_service.consume_binding_code("RACE0001", "winner")

        monkeypatch.setattr(binding_service, "_load_code", lambda code: stale)
        with pytest.raises(ConflictError):
            binding_service.consume_binding_code("RACE0001", "loser")

        monkeypatch.undo()
        db.session.expire_all()
        assert binding_service.get_binding_code("RACE0001").bound_device_id == "winner"

    def test_parallel_consumers_single_winner(self, tmp_path, clock):
        config = dict(TEST_CONFIG)
        config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{tmp_path / 'race.sqlite3'}"
        config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "connect_args": {"check_same_thread": False, "timeout": 15},
        }
        app = create_app(config, clock=clock)

        with app.app_context():
            db.create_all()
            brand = Brand(name="Race Brand")
            db.session.add(brand)
            db.session.flush()
            store = Store(brand_id=brand.id, name="Race Store")
            db.session.add(store)
            db.session.commit()
            binding_service.issue_binding_code(store.id, code="PARALLEL")

        workers = 4
        barrier = threading.Barrier(workers)
        outcomes = []
        lock = threading.Lock()

        def consume(device):
            with app.app_context():
                barrier.wait()
                try:
                    binding_service.consume_binding_code("PARALLEL", device)
                    result = "ok"
                except ConflictError:
                    result = "conflict"
                finally:
                    db.session.remove()
                with lock:
                    outcomes.append((device, result))

        threads = [threading.Thread(target=consume, args=(f"device-{i}",)) for i in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [device for device, result in outcomes if result == "ok"]
        assert len(outcomes) == workers
        assert len(winners) == 1

        with app.app_context():
            binding = binding_service.get_binding_code("PARALLEL")
            assert binding.bound_device_id == winners[0]
            db.drop_all()
