from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .time_utils import parse_iso_date


# Maximum price: 9,999,999.99
# This prevents nonsensical prices from reaching the catalog
MAX_PRICE = Decimal("9999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """Reference to a product or transaction id that does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


@dataclass(frozen=True)
class FieldPolicy:
    """
    Central policy layer:
    - fields: JSON key -> attribute name for everything clients may set
    - required_on_create: JSON keys that must be present on create/replace
    - ignored: JSON keys that are accepted but never applied (server-owned)
    """
    fields: dict[str, str]
    required_on_create: frozenset[str] = frozenset()
    ignored: frozenset[str] = frozenset()


PRODUCT_POLICY = FieldPolicy(
    fields={
        "name": "name",
        "category": "category",
        "description": "description",
        "supplier": "supplier",
        "unit": "unit",
        "stock": "stock",
        "price": "price",
        "reorderLevel": "reorder_level",
        "unitCount": "unit_count",
        "expiryDate": "expiry_date",
    },
    required_on_create=frozenset({"name", "category", "supplier", "unit", "price"}),
    ignored=frozenset({"id", "lastUpdated"}),
)

PRODUCT_TEXT_FIELDS = {"name", "category", "description", "supplier", "unit"}
PRODUCT_COUNT_FIELDS = {"stock", "reorderLevel", "unitCount"}

PRODUCT_DEFAULTS = {
    "description": "",
    "stock": 0,
    "reorder_level": 0,
    "unit_count": 1,
    "expiry_date": None,
}


def coerce_int(name: str, value: Any) -> int:
    """
    Strict integer coercion - rejects floats, bools and scientific notation.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def coerce_non_negative_int(name: str, value: Any) -> int:
    number = coerce_int(name, value)
    if number < 0:
        raise ValidationError(f"{name} must be >= 0")
    return number


def coerce_positive_int(name: str, value: Any) -> int:
    number = coerce_int(name, value)
    if number <= 0:
        raise ValidationError(f"{name} must be > 0")
    return number


def coerce_price(name: str, value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be a number")
    if isinstance(value, Decimal):
        price = value
    else:
        try:
            # str() keeps floats like 12.5 exact instead of their binary expansion
            price = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{name} must be a number")
    if not price.is_finite():
        raise ValidationError(f"{name} must be a number")
    if price < 0:
        raise ValidationError(f"{name} must be >= 0")
    if price > MAX_PRICE:
        raise ValidationError(f"{name} cannot exceed {MAX_PRICE}")
    return price


def _coerce_product_field(key: str, value: Any) -> Any:
    if key in PRODUCT_TEXT_FIELDS:
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        return value.strip()
    if key in PRODUCT_COUNT_FIELDS:
        return coerce_non_negative_int(key, value)
    if key == "price":
        return coerce_price(key, value)
    if key == "expiryDate":
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise ValidationError("expiryDate must be a YYYY-MM-DD date")
        try:
            return parse_iso_date(value).isoformat()
        except ValueError:
            raise ValidationError("expiryDate must be a YYYY-MM-DD date")
    return value


def validate_product_payload(payload: Any, *, policy: FieldPolicy = PRODUCT_POLICY) -> dict:
    """
    Validates + normalizes an incoming product payload (JSON shape, camelCase keys).

    Create and update both have full-replacement semantics, so required fields
    are always enforced and omitted optional fields fall back to defaults.
    Returns a dict keyed by Product attribute names.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid product payload")

    missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown fields
    for k in payload.keys():
        if k not in policy.fields and k not in policy.ignored:
            raise ValidationError(f"Field not allowed: {k}")

    cleaned: dict = dict(PRODUCT_DEFAULTS)
    for k, raw in payload.items():
        if k in policy.ignored:
            continue
        attr = policy.fields[k]
        if raw is None:
            if attr not in PRODUCT_DEFAULTS:
                raise ValidationError(f"{k} cannot be null")
            cleaned[attr] = PRODUCT_DEFAULTS[attr]
            continue
        cleaned[attr] = _coerce_product_field(k, raw)

    for k in policy.required_on_create & PRODUCT_TEXT_FIELDS:
        if cleaned[policy.fields[k]] == "":
            raise ValidationError(f"{k} cannot be blank")

    return cleaned
