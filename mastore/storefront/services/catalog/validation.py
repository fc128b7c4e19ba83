"""
Input normalisation for product field bags coming from the admin UI.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from .errors import Unauthorized, ValidationError

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}

# products.price is DECIMAL(12, 2)
MAX_PRICE = Decimal("9999999999.99")


def require_actor(actor_id: Any) -> None:
    if actor_id is None or (isinstance(actor_id, str) and not actor_id.strip()):
        raise Unauthorized("Admin authentication required")


def clean_text(value: Any, max_length: Optional[int] = None, field: str = "") -> str:
    if value is None:
        return ""
    text = str(value).strip()
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field or 'value'} must be at most {max_length} characters", field=field)
    return text


def parse_price(value: Any) -> Optional[Decimal]:
    """
    Parse a positive price.

    Returns ``None`` for missing/blank input so callers can decide whether
    the field is required. Raises ValidationError for anything else that is
    not a positive decimal.
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, bool):
        raise ValidationError("Valid product price is required", field="price")
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Valid product price is required", field="price")
    if not price.is_finite() or price <= 0:
        raise ValidationError("Valid product price is required", field="price")
    if price > MAX_PRICE:
        raise ValidationError("Product price is too large", field="price")
    # 0.004 rounds to 0.00
    price = price.quantize(Decimal("0.01"))
    if price <= 0:
        raise ValidationError("Valid product price is required", field="price")
    return price


def parse_tags(value: Any) -> List[str]:
    """
    Turn "a, b, ,a" (or an iterable of strings) into ["a", "b"].
    """
    if value is None:
        return []
    if isinstance(value, str):
        raw_items = value.split(",")
    else:
        raw_items = list(value)

    tags: List[str] = []
    for item in raw_items:
        tag = clean_text(item)
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def parse_bool(value: Any, field: str = "") -> Optional[bool]:
    """Presence-based flag parsing: ``None``/blank means "not supplied"."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    text = clean_text(value).lower()
    if not text:
        return None
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValidationError(f"Invalid boolean value for {field or 'flag'}: {value!r}", field=field)
