# Overview: Flask API routes for back-office administration; parses input and returns JSON responses.

"""
Admin API Routes

Brands, stores, printer settings, products, binding codes and the expired
handling report. Every route requires an admin session.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_admin
from ..services import (
    auth_service,
    binding_service,
    catalog_service,
    reporting_service,
)
from . import json_body


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_admin
def list_users():
    users = auth_service.list_admin_users()
    return jsonify({"users": [u.to_dict() for u in users]}), 200


# =============================================================================
# BRANDS / STORES
# =============================================================================

@admin_bp.get("/brands")
@require_admin
def list_brands():
    return jsonify({"brands": [b.to_dict() for b in catalog_service.list_brands()]}), 200


@admin_bp.post("/brands")
@require_admin
def create_brand():
    brand = catalog_service.create_brand(json_body().get("name"))
    return jsonify({"brand": brand.to_dict()}), 201


@admin_bp.get("/stores")
@require_admin
def list_stores():
    return jsonify({"stores": [s.to_dict() for s in catalog_service.list_stores()]}), 200


@admin_bp.post("/stores")
@require_admin
def create_store():
    data = json_body()
    store = catalog_service.create_store(data.get("brandId"), data.get("name"))
    return jsonify({"store": store.to_dict()}), 201


@admin_bp.patch("/stores/<int:store_id>/printer-settings")
@require_admin
def update_printer_settings(store_id: int):
    """
    Keys left out of the body are unchanged; explicit null clears a setting.
    """
    store = catalog_service.update_printer_settings(store_id, json_body())
    return jsonify({"store": store.to_dict()}), 200


# =============================================================================
# PRODUCTS
# =============================================================================

@admin_bp.get("/products")
@require_admin
def list_products():
    products = catalog_service.list_products(brand_id=request.args.get("brandId"))
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@admin_bp.post("/products")
@require_admin
def create_product():
    data = json_body()
    product = catalog_service.create_product(
        brand_id=data.get("brandId"),
        name=data.get("name"),
        sku=data.get("sku"),
        shelf_life_days=data.get("shelfLifeDays"),
        label_language=data.get("labelLanguage"),
        primary_language=data.get("primaryLanguage"),
        secondary_language=data.get("secondaryLanguage"),
    )
    return jsonify({"product": product.to_dict()}), 201


# =============================================================================
# BINDING CODES
# =============================================================================

@admin_bp.get("/binding-codes")
@require_admin
def list_binding_codes():
    codes = binding_service.list_binding_codes()
    return jsonify({"bindingCodes": [c.to_dict() for c in codes]}), 200


@admin_bp.post("/binding-codes")
@require_admin
def create_binding_code():
    """
    Request body:
    {
        "storeId": 1,
        "expiresInHours": 24,   (optional)
        "code": "ABCD1234"      (optional, generated when omitted)
    }
    """
    data = json_body()
    binding = binding_service.issue_binding_code(
        data.get("storeId"),
        data.get("expiresInHours"),
        data.get("code"),
    )
    return jsonify({"bindingCode": binding.to_dict()}), 201


# =============================================================================
# REPORTS
# =============================================================================

@admin_bp.get("/reports/expired-handling")
@require_admin
def expired_handling_report():
    rows = reporting_service.expired_handling_report()
    return jsonify({
        "rows": [
            {
                "storeId": row["store_id"],
                "storeName": row["store_name"],
                "productId": row["product_id"],
                "productName": row["product_name"],
                "expiredTotalCount": row["expired_total_count"],
                "expiredHandledCount": row["expired_handled_count"],
                "expiredUnhandledCount": row["expired_unhandled_count"],
            }
            for row in rows
        ]
    }), 200
