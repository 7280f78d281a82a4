from __future__ import annotations

from ..extensions import db
from freshguard.time_utils import to_utc_z

REMINDER_PENDING = "pending"
REMINDER_HANDLED = "handled"

HANDLING_REASONS = ("discarded", "sold", "transferred")


class Batch(db.Model):
    """
    One print run of `quantity` identical labels.

    Created together with exactly `quantity` reminders and never updated.
    """
    __tablename__ = "batches"
    __table_args__ = (
        db.CheckConstraint("quantity BETWEEN 1 AND 500", name="ck_batches_quantity_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    printed_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship(
        "Store",
        backref=db.backref("batches", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )
    product = db.relationship(
        "Product",
        backref=db.backref("batches", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )

    def __repr__(self) -> str:
        return f"<Batch id={self.id} product_id={self.product_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "printedAt": to_utc_z(self.printed_at),
            "expiresAt": to_utc_z(self.expires_at),
            "createdAt": to_utc_z(self.created_at),
        }


class Reminder(db.Model):
    """
    Expiry tracking for a single physical label unit.

    status is only ever pending or handled. Whether a pending reminder is
    "expired" or "expiring" is derived from expires_at at query time.
    """
    __tablename__ = "reminders"
    __table_args__ = (
        db.CheckConstraint("status IN ('pending', 'handled')", name="ck_reminders_status"),
        db.CheckConstraint(
            "(status = 'handled') = (handled_at IS NOT NULL)",
            name="ck_reminders_handled_at_matches_status",
        ),
        db.Index("ix_reminders_store_expires", "store_id", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=REMINDER_PENDING)
    handled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    batch = db.relationship(
        "Batch",
        backref=db.backref("reminders", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )
    product = db.relationship("Product")

    def __repr__(self) -> str:
        return f"<Reminder id={self.id} batch_id={self.batch_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "batchId": self.batch_id,
            "storeId": self.store_id,
            "productId": self.product_id,
            "productName": self.product.name if self.product else None,
            "expiresAt": to_utc_z(self.expires_at),
            "status": self.status,
            "handledAt": to_utc_z(self.handled_at),
        }


class HandlingLog(db.Model):
    """
    Append-only audit row, one per handled reminder.

    Written in the same transaction that flips the reminder to handled.
    """
    __tablename__ = "handling_logs"
    __table_args__ = (
        db.CheckConstraint(
            "reason IN ('discarded', 'sold', 'transferred')",
            name="ck_handling_logs_reason",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    reminder_id = db.Column(
        db.Integer,
        db.ForeignKey("reminders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    reason = db.Column(db.String(16), nullable=False)
    note = db.Column(db.Text, nullable=True)
    handled_at = db.Column(db.DateTime(timezone=True), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    reminder = db.relationship(
        "Reminder",
        backref=db.backref(
            "handling_log",
            uselist=False,
            cascade="all, delete-orphan",
            passive_deletes=True,
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reminderId": self.reminder_id,
            "storeId": self.store_id,
            "productId": self.product_id,
            "reason": self.reason,
            "note": self.note,
            "handledAt": to_utc_z(self.handled_at),
        }
