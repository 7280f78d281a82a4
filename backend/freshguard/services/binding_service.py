# Overview: Service-layer operations for binding codes; issues and consumes one-time terminal credentials.

"""
Binding Code Registry

A binding code lets one physical terminal act as one store. Admins issue
codes; a terminal consumes a code exactly once.

CONCURRENCY: consumption is a single conditional UPDATE
(... WHERE used_at IS NULL) inside a transaction. Two terminals racing for
the same code both pass the pre-checks at most; only one UPDATE can match,
the other sees rowcount 0 and gets ConflictError.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import BindingCode, Store
from ..time_utils import Clock, get_clock
from ..validation import (
    ConflictError,
    ExpiredError,
    InvalidArgumentError,
    NotFoundError,
    optional_text,
    require_positive_int,
    require_positive_number,
)
from .concurrency import unit_of_work

logger = logging.getLogger(__name__)

CODE_BYTES = 4  # 8 hex characters
MAX_GENERATION_ATTEMPTS = 5
DEFAULT_TTL_HOURS = 24


@dataclass
class ConsumedBinding:
    binding_code: BindingCode
    store: Store


def generate_code() -> str:
    return secrets.token_hex(CODE_BYTES).upper()


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


def get_binding_code(code: str) -> BindingCode | None:
    return db.session.query(BindingCode).filter_by(code=normalize_code(code)).first()


def list_binding_codes() -> list[BindingCode]:
    return db.session.query(BindingCode).order_by(BindingCode.id.desc()).all()


def issue_binding_code(
    store_id,
    expires_in_hours=None,
    code: str | None = None,
    *,
    clock: Clock | None = None,
) -> BindingCode:
    """
    Create a binding code for a store.

    An explicit code is trimmed and upper-cased; a clash with an existing
    code raises ConflictError. Without one, a random code is generated and
    regenerated on the (unlikely) clash.
    """
    store_id = require_positive_int(store_id, "storeId")
    store = db.session.get(Store, store_id)
    if not store:
        raise NotFoundError("storeId not found")

    if expires_in_hours is None:
        expires_in_hours = current_app.config.get("BINDING_CODE_TTL_HOURS", DEFAULT_TTL_HOURS)
    hours = require_positive_number(expires_in_hours, "expiresInHours")

    brand_id = store.brand_id
    try:
        expires_at = (clock or get_clock()).now() + timedelta(hours=hours)
    except OverflowError:
        raise InvalidArgumentError("expiresInHours is out of range")
    explicit = normalize_code(code)
    attempts = 1 if explicit else MAX_GENERATION_ATTEMPTS

    for attempt in range(attempts):
        candidate = explicit or generate_code()
        binding = BindingCode(
            brand_id=brand_id,
            store_id=store_id,
            code=candidate,
            expires_at=expires_at,
        )
        try:
            with unit_of_work() as session:
                session.add(binding)
        except IntegrityError:
            if explicit:
                raise ConflictError(f"Binding code {candidate} already exists")
            logger.warning("Generated binding code collided (attempt %d), regenerating", attempt + 1)
            continue

        logger.info("Issued binding code id=%s for store_id=%s", binding.id, store_id)
        return binding

    raise ConflictError("Could not generate a unique binding code")


def _load_code(code: str):
    return db.session.query(BindingCode).filter_by(code=code).first()


def consume_binding_code(code, device_id=None, *, clock: Clock | None = None) -> ConsumedBinding:
    """
    Mark a binding code used by device_id and return it with its store.

    Raises:
        InvalidArgumentError: empty or unknown code
        ConflictError: code already used (including losing a race)
        ExpiredError: code past its expiry
    """
    normalized = normalize_code(code)
    if not normalized:
        raise InvalidArgumentError("Binding code is required")
    device = optional_text(device_id)
    now = (clock or get_clock()).now()

    with unit_of_work() as session:
        existing = _load_code(normalized)
        if not existing:
            raise InvalidArgumentError("Invalid binding code")
        if existing.used_at is not None:
            raise ConflictError("Binding code already used")
        if existing.expires_at is not None and existing.expires_at < now:
            raise ExpiredError("Binding code expired")

        binding_id = existing.id
        result = session.execute(
            update(BindingCode)
            .where(BindingCode.id == binding_id, BindingCode.used_at.is_(None))
            .values(used_at=now, bound_device_id=device)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Binding code already used")

    binding = db.session.get(BindingCode, binding_id)
    logger.info("Binding code id=%s consumed by device %r", binding_id, device)
    return ConsumedBinding(binding_code=binding, store=binding.store)
