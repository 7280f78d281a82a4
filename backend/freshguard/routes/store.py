# Overview: Flask API routes for store terminals; parses input and returns JSON responses.

"""
Store Terminal API Routes

A terminal binds once with a binding code and then acts as that store.
The store is always taken from the session, never from the request.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_terminal
from ..extensions import db
from ..models import Store
from ..services import (
    binding_service,
    catalog_service,
    label_service,
    ledger_service,
    session_service,
)
from ..time_utils import to_utc_z
from . import json_body


store_bp = Blueprint("store", __name__, url_prefix="/api/store")


def _printer_settings_json(settings: dict) -> dict:
    return {
        "printerName": settings["printer_name"],
        "printerModel": settings["printer_model"],
        "printerAddress": settings["printer_address"],
        "printerPort": settings["printer_port"],
        "printerDpi": settings["printer_dpi"],
        "labelWidthMm": settings["label_width_mm"],
    }


@store_bp.post("/bind")
def bind():
    """
    Consume a binding code and open a terminal session.

    Request body:
    {
        "code": "ABCD1234",
        "deviceId": "android-emulator-01"
    }
    """
    data = json_body()
    consumed = binding_service.consume_binding_code(data.get("code"), data.get("deviceId"))
    _session, token = session_service.create_terminal_session(
        consumed.store, consumed.binding_code.bound_device_id
    )
    return jsonify({
        "token": token,
        "store": consumed.store.to_dict(),
        "bindingCode": consumed.binding_code.to_dict(),
    }), 200


@store_bp.get("/me")
@require_terminal
def me():
    store = db.session.get(Store, g.store_id)
    return jsonify({
        "storeId": store.id,
        "brandId": store.brand_id,
        "storeName": store.name,
        "brandName": store.brand.name,
        "deviceId": g.device_id,
    }), 200


@store_bp.get("/products")
@require_terminal
def list_products():
    products = catalog_service.list_store_products(g.store_id)
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@store_bp.post("/print")
@require_terminal
def print_labels():
    """
    Request body:
    {
        "productId": 3,
        "quantity": 12,
        "printedAt": "2026-01-01T08:00:00Z"   (optional, defaults to now)
    }
    """
    data = json_body()
    result = label_service.print_batch(
        g.store_id,
        data.get("productId"),
        data.get("quantity"),
        data.get("printedAt"),
    )
    batch = result["batch"]
    label = result["label"]
    return jsonify({
        "batch": {
            "id": batch.id,
            "quantity": batch.quantity,
            "printedAt": to_utc_z(batch.printed_at),
            "expiresAt": to_utc_z(batch.expires_at),
        },
        "remindersCreated": result["reminders_created"],
        "label": {
            "productName": label["product_name"],
            "batchId": label["batch_id"],
            "storeName": label["store_name"],
            "template": label["template"],
            "languages": label["languages"],
            "text": label["text"],
        },
        "printerSettings": _printer_settings_json(result["printer_settings"]),
    }), 201


@store_bp.get("/reminders")
@require_terminal
def list_reminders():
    reminders = ledger_service.list_reminders(
        g.store_id,
        status=request.args.get("status"),
        threshold_days=request.args.get("thresholdDays"),
    )
    return jsonify({"reminders": [r.to_dict() for r in reminders]}), 200


@store_bp.post("/reminders/<int:reminder_id>/handle")
@require_terminal
def handle_reminder(reminder_id: int):
    """
    Request body:
    {
        "reason": "discarded" | "sold" | "transferred",
        "note": "optional free text"
    }
    """
    data = json_body()
    reminder = ledger_service.handle_reminder(
        g.store_id,
        reminder_id,
        data.get("reason"),
        data.get("note"),
    )
    return jsonify({"reminder": reminder.to_dict()}), 200
