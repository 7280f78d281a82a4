from __future__ import annotations

from ..extensions import db
from freshguard.time_utils import to_utc_z


class BindingCode(db.Model):
    """
    One-time code that provisions a physical terminal as a given store.

    IMMUTABLE once used: used_at is written exactly once, together with
    bound_device_id, by a conditional update (see binding_service).
    """
    __tablename__ = "binding_codes"
    __table_args__ = (
        db.Index("ix_binding_codes_store_id", "store_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)

    # Stored upper-case; lookups normalize before querying
    code = db.Column(db.String(64), nullable=False, unique=True)

    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    bound_device_id = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    brand = db.relationship("Brand")
    store = db.relationship(
        "Store",
        backref=db.backref("binding_codes", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )

    def __repr__(self) -> str:
        return f"<BindingCode id={self.id} code={self.code!r} store_id={self.store_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brandId": self.brand_id,
            "brandName": self.brand.name if self.brand else None,
            "storeId": self.store_id,
            "storeName": self.store.name if self.store else None,
            "code": self.code,
            "expiresAt": to_utc_z(self.expires_at),
            "usedAt": to_utc_z(self.used_at),
            "boundDeviceId": self.bound_device_id,
            "createdAt": to_utc_z(self.created_at),
        }
