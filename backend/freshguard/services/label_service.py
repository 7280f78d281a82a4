# Overview: Label rendering for printed batches; pure functions plus the print composition.

from __future__ import annotations

from ..extensions import db
from ..models import Batch, Product, Store
from ..models.catalog import LABEL_LANGUAGE_BILINGUAL, LABEL_LANGUAGE_SINGLE
from ..time_utils import Clock, to_utc_z
from . import ledger_service

PRINTER_SETTING_FIELDS = (
    "printer_name",
    "printer_model",
    "printer_address",
    "printer_port",
    "printer_dpi",
    "label_width_mm",
)


def printer_settings_for(store: Store) -> dict:
    return {field: getattr(store, field) for field in PRINTER_SETTING_FIELDS}


def label_languages(product: Product) -> tuple[str, list[str]]:
    if product.label_language == LABEL_LANGUAGE_BILINGUAL:
        return LABEL_LANGUAGE_BILINGUAL, [product.primary_language, product.secondary_language]
    return LABEL_LANGUAGE_SINGLE, [product.primary_language]


def render_label(batch: Batch, product: Product, store: Store, printer_settings: dict | None = None) -> dict:
    """
    Render the text of one label for a batch.

    Deterministic: the output depends only on the arguments, never on the
    clock or on randomness, so reprinting a batch yields the same bytes.
    """
    template, languages = label_languages(product)
    printer_settings = printer_settings or {}

    lines = [
        product.name,
        f"Batch #{batch.id}",
        f"Store: {store.name}",
        f"Printed: {to_utc_z(batch.printed_at)}",
        f"Expires: {to_utc_z(batch.expires_at)}",
        f"Qty: {batch.quantity}",
        f"Languages: {', '.join(languages)}",
    ]
    width = printer_settings.get("label_width_mm")
    if width is not None:
        lines.append(f"Width: {width}mm")

    return {
        "product_name": product.name,
        "batch_id": batch.id,
        "store_name": store.name,
        "template": template,
        "languages": languages,
        "text": "\n".join(lines),
    }


def print_batch(store_id, product_id, quantity, printed_at=None, *, clock: Clock | None = None) -> dict:
    """
    Create the batch and its reminders, then render the label the terminal
    sends to its printer.
    """
    result = ledger_service.create_batch(
        store_id, product_id, quantity, printed_at, clock=clock
    )
    batch = result.batch
    store = db.session.get(Store, batch.store_id)
    product = db.session.get(Product, batch.product_id)
    settings = printer_settings_for(store)

    return {
        "batch": batch,
        "reminders_created": result.reminders_created,
        "label": render_label(batch, product, store, settings),
        "printer_settings": settings,
    }
