from __future__ import annotations
from datetime import time
from typing import Any, Dict, Iterable, List, Optional
import re

from .errors import ValidationError

# Strings a client produces when it stringifies a missing id
PLACEHOLDER_REFS = {"null", "undefined", "none"}

SKU_PATTERN = re.compile(r"^[A-Z0-9-]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ---------------------------------------------------------
# Identity references
# ---------------------------------------------------------
def is_valid_ref(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    v = value.strip()
    return bool(v) and v.lower() not in PLACEHOLDER_REFS

def require_ref(value: Any, what: str) -> str:
    """Return the trimmed reference or raise ValidationError('Invalid <what> ID')."""
    if not is_valid_ref(value):
        raise ValidationError(f"Invalid {what} ID")
    return value.strip()

def reject_nulls(values: Dict[str, Any], fields: Iterable[str]) -> None:
    """A patch may omit a required field but never set it to None."""
    for field in fields:
        if field in values and values[field] is None:
            raise ValidationError(f"{field} cannot be empty")

def valid_refs(values: Iterable[Any]) -> List[str]:
    """Drop malformed references, keep order, drop duplicates."""
    out: List[str] = []
    for v in values or []:
        if is_valid_ref(v) and v.strip() not in out:
            out.append(v.strip())
    return out


# ---------------------------------------------------------
# Addresses
# ---------------------------------------------------------
def format_address(address: Any) -> str:
    parts = [
        getattr(address, "line1", None),
        getattr(address, "line2", None),
        getattr(address, "city", None),
        getattr(address, "state", None),
        getattr(address, "postal_code", None),
    ]
    return ", ".join(p for p in parts if p)

def _fmt_time(t: time) -> str:
    ampm = "PM" if t.hour >= 12 else "AM"
    hour = 12 if t.hour == 0 else (t.hour - 12 if t.hour > 12 else t.hour)
    return f"{hour}:{t.minute:02d} {ampm}"

def format_delivery_window(start: Optional[time], end: Optional[time]) -> str:
    if not start or not end:
        return ""
    return f"{_fmt_time(start)} - {_fmt_time(end)}"

def is_valid_delivery_window(start: Optional[time], end: Optional[time]) -> bool:
    # an open-ended window is not validated
    if not start or not end:
        return True
    return start < end
