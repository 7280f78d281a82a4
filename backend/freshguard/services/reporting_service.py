# Overview: Service-layer operations for reporting; aggregates expired/handled reminder counts.

from __future__ import annotations

from sqlalchemy import case, func

from ..extensions import db
from ..models import Product, Reminder, Store
from ..time_utils import Clock, get_clock


def expired_handling_report(*, clock: Clock | None = None) -> list[dict]:
    """
    Per (store, product): how many reminders have expired and how many of
    those were handled.

    Only groups with at least one expired reminder are returned, ordered by
    store id then product id. Unhandled is derived as total - handled so the
    three counts always add up.
    """
    now = (clock or get_clock()).now()

    handled = func.sum(case((Reminder.handled_at.isnot(None), 1), else_=0))

    rows = (
        db.session.query(
            Store.id.label("store_id"),
            Store.name.label("store_name"),
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            func.count(Reminder.id).label("expired_total"),
            handled.label("expired_handled"),
        )
        .join(Store, Store.id == Reminder.store_id)
        .join(Product, Product.id == Reminder.product_id)
        .filter(Reminder.expires_at < now)
        .group_by(Store.id, Store.name, Product.id, Product.name)
        .having(func.count(Reminder.id) > 0)
        .order_by(Store.id.asc(), Product.id.asc())
        .all()
    )

    report = []
    for row in rows:
        total = int(row.expired_total or 0)
        handled_count = int(row.expired_handled or 0)
        report.append(
            {
                "store_id": row.store_id,
                "store_name": row.store_name,
                "product_id": row.product_id,
                "product_name": row.product_name,
                "expired_total_count": total,
                "expired_handled_count": handled_count,
                "expired_unhandled_count": total - handled_count,
            }
        )
    return report
