from __future__ import annotations

from ..extensions import db
from freshguard.time_utils import to_utc_z


class Brand(db.Model):
    """
    Tenant root: a retail brand owning stores and a product catalogue.

    Products are shared by every store of the brand; a store may only print
    labels for its own brand's products.
    """
    __tablename__ = "brands"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Brand id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": to_utc_z(self.created_at),
        }


class Store(db.Model):
    """
    Store within a brand, with the label printer its terminals print to.

    Store names are unique within a brand, not globally.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("brand_id", "name", name="uq_stores_brand_name"),
        db.Index("ix_stores_brand_id", "brand_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(120), nullable=False)

    # Printer target handed to the terminal with every rendered label
    printer_name = db.Column(db.String(128), nullable=True)
    printer_model = db.Column(db.String(128), nullable=True)
    printer_address = db.Column(db.String(255), nullable=True)
    printer_port = db.Column(db.Integer, nullable=True)
    printer_dpi = db.Column(db.Integer, nullable=True)
    label_width_mm = db.Column(db.Integer, nullable=True, default=58)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    brand = db.relationship(
        "Brand",
        backref=db.backref("stores", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r} brand_id={self.brand_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brandId": self.brand_id,
            "brandName": self.brand.name if self.brand else None,
            "name": self.name,
            "printerName": self.printer_name,
            "printerModel": self.printer_model,
            "printerAddress": self.printer_address,
            "printerPort": self.printer_port,
            "printerDpi": self.printer_dpi,
            "labelWidthMm": self.label_width_mm,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
