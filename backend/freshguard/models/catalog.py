from __future__ import annotations

from ..extensions import db
from freshguard.time_utils import to_utc_z

LABEL_LANGUAGE_SINGLE = "single"
LABEL_LANGUAGE_BILINGUAL = "bilingual"
LABEL_LANGUAGES = (LABEL_LANGUAGE_SINGLE, LABEL_LANGUAGE_BILINGUAL)


class Product(db.Model):
    """
    Brand-level product master.

    shelf_life_days drives the expiry of every batch printed for it;
    label_language decides whether labels carry one or two languages.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("brand_id", "name", name="uq_products_brand_name"),
        db.UniqueConstraint("brand_id", "sku", name="uq_products_brand_sku"),
        db.CheckConstraint("shelf_life_days > 0", name="ck_products_shelf_life_positive"),
        db.CheckConstraint(
            "label_language IN ('single', 'bilingual')",
            name="ck_products_label_language",
        ),
        db.Index("ix_products_brand_id", "brand_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=True)

    shelf_life_days = db.Column(db.Integer, nullable=False)
    label_language = db.Column(db.String(16), nullable=False, default=LABEL_LANGUAGE_SINGLE)
    primary_language = db.Column(db.String(16), nullable=False, default="en")
    secondary_language = db.Column(db.String(16), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    brand = db.relationship(
        "Brand",
        backref=db.backref("products", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} brand_id={self.brand_id}>"

    @property
    def languages(self) -> list[str]:
        if self.label_language == LABEL_LANGUAGE_BILINGUAL:
            return [self.primary_language, self.secondary_language]
        return [self.primary_language]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brandId": self.brand_id,
            "brandName": self.brand.name if self.brand else None,
            "name": self.name,
            "sku": self.sku,
            "shelfLifeDays": self.shelf_life_days,
            "labelLanguage": self.label_language,
            "primaryLanguage": self.primary_language,
            "secondaryLanguage": self.secondary_language,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
