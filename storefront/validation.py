"""
Input checks shared by the request models and the core operations.

Request models run every free-text field through ``ensure_safe``; the
catalog and cart services re-check identifiers and quantities with
``check_product_id`` and ``check_quantity`` so a malformed value
reaching them is rejected before any state changes.
"""

from __future__ import annotations

import re
from typing import Any

from .errors import ValidationFailed

MAX_QUANTITY = 100

_DANGEROUS_PATTERNS = [
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"DROP\s+TABLE", re.IGNORECASE),
    re.compile(r"DELETE\s+FROM", re.IGNORECASE),
    re.compile(r"INSERT\s+INTO", re.IGNORECASE),
    re.compile(r"UPDATE\s+\w+\s+SET", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"eval\(", re.IGNORECASE),
    re.compile(r"expression\(", re.IGNORECASE),
]

PRODUCT_ID_PATTERN = r"^[A-Za-z0-9_-]+$"
_PRODUCT_ID_RE = re.compile(PRODUCT_ID_PATTERN)


def is_safe_input(value: Any) -> bool:
    """Return ``False`` when ``value`` looks like markup or SQL injection."""
    text = str(value)
    return not any(p.search(text) for p in _DANGEROUS_PATTERNS)


def ensure_safe(value: str) -> str:
    """Pydantic validator helper: reject unsafe text, return it trimmed.

    Text is stored as submitted; responses are JSON and need no HTML escaping.
    """
    if not is_safe_input(value):
        raise ValueError("contains disallowed content")
    return value.strip()


def is_valid_product_id(value: Any) -> bool:
    return isinstance(value, str) and 0 < len(value) <= 50 and bool(_PRODUCT_ID_RE.match(value))


def check_product_id(value: Any) -> str:
    if not is_valid_product_id(value):
        raise ValidationFailed("Invalid product ID format")
    return value


def check_quantity(value: Any, minimum: int = 0) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailed("Quantity must be an integer")
    if value < minimum or value > MAX_QUANTITY:
        raise ValidationFailed(f"Quantity must be between {minimum} and {MAX_QUANTITY}")
    return value
