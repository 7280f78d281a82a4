# backend/freshguard/services/catalog_service.py
"""
Catalog Service: brands, stores, products and store printer settings.

Thin CRUD with no invariants beyond uniqueness, which the database
enforces; IntegrityError surfaces as ConflictError.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Brand, Product, Store
from ..models.catalog import LABEL_LANGUAGE_BILINGUAL, LABEL_LANGUAGE_SINGLE, LABEL_LANGUAGES
from ..validation import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    coerce_int,
    normalize_choice,
    optional_text,
    require_positive_int,
    require_text,
)
from .concurrency import unit_of_work

PRINTER_TEXT_FIELDS = ("printer_name", "printer_model", "printer_address")
PRINTER_INT_FIELDS = ("printer_port", "printer_dpi", "label_width_mm")

# Wire (camelCase) -> column name
PRINTER_SETTING_KEYS = {
    "printerName": "printer_name",
    "printerModel": "printer_model",
    "printerAddress": "printer_address",
    "printerPort": "printer_port",
    "printerDpi": "printer_dpi",
    "labelWidthMm": "label_width_mm",
}
_WIRE_NAMES = {column: key for key, column in PRINTER_SETTING_KEYS.items()}


def _save(instance, conflict_message: str):
    try:
        with unit_of_work() as session:
            session.add(instance)
    except IntegrityError:
        raise ConflictError(conflict_message)
    return instance


# =============================================================================
# BRANDS
# =============================================================================

def create_brand(name) -> Brand:
    name = require_text(name, "Brand name is required")
    return _save(Brand(name=name), f"Brand '{name}' already exists")


def get_brand(brand_id) -> Brand:
    brand = db.session.get(Brand, require_positive_int(brand_id, "brandId"))
    if not brand:
        raise NotFoundError("brandId not found")
    return brand


def list_brands() -> list[Brand]:
    return db.session.query(Brand).order_by(Brand.id.asc()).all()


# =============================================================================
# STORES
# =============================================================================

def create_store(brand_id, name) -> Store:
    name = require_text(name, "Store name is required")
    brand = get_brand(brand_id)
    return _save(
        Store(brand_id=brand.id, name=name),
        f"Store '{name}' already exists for this brand",
    )


def get_store(store_id) -> Store:
    store = db.session.get(Store, require_positive_int(store_id, "storeId"))
    if not store:
        raise NotFoundError("storeId not found")
    return store


def list_stores() -> list[Store]:
    return db.session.query(Store).order_by(Store.id.asc()).all()


def update_printer_settings(store_id, settings: dict) -> Store:
    """
    Patch a store's printer settings.

    Policy: a key absent from `settings` keeps the stored value; a key
    present with None clears it; a present numeric field that is not an
    integer raises InvalidArgumentError. Keys may be camelCase (wire) or
    column names.
    """
    store = get_store(store_id)
    if settings is None:
        settings = {}
    if not isinstance(settings, dict):
        raise InvalidArgumentError("Invalid JSON payload")

    patch: dict = {}
    for key, raw in settings.items():
        column = PRINTER_SETTING_KEYS.get(key, key)
        if column in PRINTER_TEXT_FIELDS:
            patch[column] = optional_text(raw)
        elif column in PRINTER_INT_FIELDS:
            patch[column] = None if raw is None else coerce_int(raw, _WIRE_NAMES[column])
        else:
            raise InvalidArgumentError(f"Field not allowed: {key}")

    with unit_of_work():
        for column, value in patch.items():
            setattr(store, column, value)

    return store


# =============================================================================
# PRODUCTS
# =============================================================================

def create_product(
    brand_id,
    name,
    sku=None,
    shelf_life_days=None,
    label_language=None,
    primary_language=None,
    secondary_language=None,
) -> Product:
    name = require_text(name, "Product name is required")
    sku = optional_text(sku)
    shelf_life_days = require_positive_int(shelf_life_days, "shelfLifeDays")
    label_language = normalize_choice(
        label_language, LABEL_LANGUAGES, "labelLanguage", default=LABEL_LANGUAGE_SINGLE
    )
    primary_language = (optional_text(primary_language) or "en").lower()
    secondary_language = (optional_text(secondary_language) or "").lower() or None

    if label_language == LABEL_LANGUAGE_BILINGUAL and not secondary_language:
        raise InvalidArgumentError("secondaryLanguage is required for bilingual labels")

    brand = get_brand(brand_id)
    return _save(
        Product(
            brand_id=brand.id,
            name=name,
            sku=sku,
            shelf_life_days=shelf_life_days,
            label_language=label_language,
            primary_language=primary_language,
            secondary_language=secondary_language,
        ),
        "Product name or SKU already exists for this brand",
    )


def list_products(brand_id=None) -> list[Product]:
    query = db.session.query(Product)
    if brand_id is not None and brand_id != "":
        query = query.filter(Product.brand_id == require_positive_int(brand_id, "brandId"))
    return query.order_by(Product.id.asc()).all()


def list_store_products(store_id) -> list[Product]:
    store = get_store(store_id)
    return list_products(brand_id=store.brand_id)
