# Overview: Service-layer operations for the batch/reminder ledger; encapsulates business logic and database work.

"""
Batch/Reminder Ledger

A printed batch of N labels becomes one Batch row plus N Reminder rows,
one per physical unit. Reminders are then listed by time window and
handled one at a time.

DESIGN PRINCIPLES:
- Batch + reminders are written in one unit of work (all or nothing)
- Reminder.status is only pending/handled; expired vs expiring is derived
  from expires_at against the injected clock at query time
- Handling is terminal and writes an audit HandlingLog in the same
  transaction as the status flip
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import insert, update
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Batch, HandlingLog, Product, Reminder, Store
from ..models.labels import HANDLING_REASONS, REMINDER_HANDLED, REMINDER_PENDING
from ..time_utils import Clock, add_days, get_clock
from ..validation import (
    MAX_BATCH_QUANTITY,
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    normalize_choice,
    optional_text,
    parse_instant,
    require_non_negative_int,
    require_positive_int,
)
from .concurrency import lock_for_update, unit_of_work

logger = logging.getLogger(__name__)

STATUS_EXPIRING = "expiring"
STATUS_EXPIRED = "expired"
STATUS_ALL = "all"
REMINDER_FILTERS = (STATUS_EXPIRING, STATUS_EXPIRED, STATUS_ALL)

DEFAULT_THRESHOLD_DAYS = 1


@dataclass
class BatchResult:
    batch: Batch
    reminders_created: int


def create_batch(
    store_id,
    product_id,
    quantity,
    printed_at=None,
    *,
    clock: Clock | None = None,
) -> BatchResult:
    """
    Record a print run and one pending reminder per printed unit.

    Validation happens before the transaction opens. Inside it, the batch
    and all `quantity` reminders are inserted; any failure rolls back every
    row, so a batch is never visible without its full set of reminders.

    Raises:
        InvalidArgumentError: bad quantity/ids/printed_at, or product from another brand
        NotFoundError: unknown store or product
    """
    store_id = require_positive_int(store_id, "storeId")
    product_id = require_positive_int(product_id, "productId")
    quantity = require_positive_int(quantity, "quantity")
    if quantity > MAX_BATCH_QUANTITY:
        raise InvalidArgumentError(f"quantity cannot exceed {MAX_BATCH_QUANTITY}")

    store = db.session.get(Store, store_id)
    if not store:
        raise NotFoundError("storeId not found")

    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("productId not found")

    if product.brand_id != store.brand_id:
        raise InvalidArgumentError("product does not belong to this store brand")

    printed = parse_instant(printed_at, "printedAt") or (clock or get_clock()).now()
    try:
        expires_at = add_days(printed, product.shelf_life_days)
    except OverflowError:
        raise InvalidArgumentError("printedAt is out of range")

    with unit_of_work() as session:
        batch = Batch(
            store_id=store_id,
            product_id=product_id,
            quantity=quantity,
            printed_at=printed,
            expires_at=expires_at,
        )
        session.add(batch)
        session.flush()

        session.execute(
            insert(Reminder),
            [
                {
                    "batch_id": batch.id,
                    "store_id": store_id,
                    "product_id": product_id,
                    "expires_at": expires_at,
                    "status": REMINDER_PENDING,
                }
                for _ in range(quantity)
            ],
        )

    logger.info(
        "Created batch id=%s store_id=%s product_id=%s with %d reminders",
        batch.id, store_id, product_id, quantity,
    )
    return BatchResult(batch=batch, reminders_created=quantity)


def list_reminders(
    store_id,
    status=STATUS_EXPIRING,
    threshold_days=None,
    *,
    clock: Clock | None = None,
) -> list[Reminder]:
    """
    Unhandled reminders for a store, ordered by expires_at then id.

    - expired:  expires_at < now
    - expiring: now <= expires_at <= now + threshold_days
    - all:      no time filter
    Handled reminders never appear, whatever the filter.
    """
    store_id = require_positive_int(store_id, "storeId")
    status = normalize_choice(status, REMINDER_FILTERS, "status", default=STATUS_EXPIRING)
    if threshold_days is None or threshold_days == "":
        threshold_days = current_app.config.get("REMINDER_THRESHOLD_DAYS", DEFAULT_THRESHOLD_DAYS)
    threshold_days = require_non_negative_int(threshold_days, "thresholdDays")

    now = (clock or get_clock()).now()

    query = db.session.query(Reminder).options(joinedload(Reminder.product)).filter(
        Reminder.store_id == store_id,
        Reminder.handled_at.is_(None),
    )

    if status == STATUS_EXPIRED:
        query = query.filter(Reminder.expires_at < now)
    elif status == STATUS_EXPIRING:
        query = query.filter(Reminder.expires_at >= now)
        # past datetime.max every future instant is inside the window
        if threshold_days <= (datetime.max - now).days:
            query = query.filter(Reminder.expires_at <= now + timedelta(days=threshold_days))

    return query.order_by(Reminder.expires_at.asc(), Reminder.id.asc()).all()


def handle_reminder(
    store_id,
    reminder_id,
    reason,
    note=None,
    *,
    clock: Clock | None = None,
) -> Reminder:
    """
    Record the disposition of one unit.

    The status flip is conditional on handled_at IS NULL, so two terminals
    handling the same reminder cannot both succeed. The HandlingLog insert
    shares the transaction with the flip.

    Raises:
        InvalidArgumentError: unknown reason or malformed ids
        NotFoundError: reminder absent or owned by another store
        ConflictError: reminder already handled
    """
    store_id = require_positive_int(store_id, "storeId")
    reminder_id = require_positive_int(reminder_id, "reminderId")
    reason = normalize_choice(reason, HANDLING_REASONS, "reason")
    note = optional_text(note)

    handled_at = (clock or get_clock()).now()

    with unit_of_work() as session:
        reminder = lock_for_update(
            session.query(Reminder).filter_by(id=reminder_id, store_id=store_id)
        ).first()
        if not reminder:
            raise NotFoundError("Reminder not found")
        if reminder.handled_at is not None:
            raise ConflictError("Reminder already handled")

        result = session.execute(
            update(Reminder)
            .where(Reminder.id == reminder_id, Reminder.handled_at.is_(None))
            .values(status=REMINDER_HANDLED, handled_at=handled_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Reminder already handled")

        session.add(
            HandlingLog(
                reminder_id=reminder_id,
                store_id=store_id,
                product_id=reminder.product_id,
                reason=reason,
                note=note,
                handled_at=handled_at,
            )
        )

    logger.info("Reminder id=%s handled as %s at store_id=%s", reminder_id, reason, store_id)
    return db.session.get(Reminder, reminder_id)
