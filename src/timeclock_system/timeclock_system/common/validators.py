from __future__ import annotations

import math
import re
from typing import Any, Optional

from ..core.constants import MIN_RADIUS_M
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: Optional[str]) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Email is not valid")
    return email


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_number(value: Any, field_name: str) -> float:
    # bool is an int subclass; a JSON true/false is never a coordinate
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    return number


def require_latitude(value: Any) -> float:
    lat = require_number(value, "Latitude")
    if not -90 <= lat <= 90:
        raise ValidationError("Latitude must be between -90 and 90")
    return lat


def require_longitude(value: Any) -> float:
    lon = require_number(value, "Longitude")
    if not -180 <= lon <= 180:
        raise ValidationError("Longitude must be between -180 and 180")
    return lon


def require_radius(value: Any) -> float:
    radius = require_number(value, "Radius")
    if radius < MIN_RADIUS_M:
        raise ValidationError(f"Radius must be at least {MIN_RADIUS_M} meters")
    return radius


def require_identifier(value: Any, field_name: str) -> str:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    return require_non_empty(str(value), field_name)
