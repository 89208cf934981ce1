"""
converters.py - Special-case column converters
==============================================
Columns that do not follow the " | " label grammar:

  coordinates           flat latitude/longitude strings  <->  {"type": "Point",
                        "coordinates": [lon, lat]}  (axis order swapped)
  province              free text  ->  closed 5-value enum (with fallback)
  application_type      purpose    ->  category (encode only)
  water_purpose         purpose   <->  storage purpose (asymmetric remaps)
  storage_facilities    "<facility> (Capacity: <n>m³)"
  location_description  "district, sector, cell[, village]"  (encode only)
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

from .codec_engine import as_text, format_number, is_present, parse_number, report_issue
from .codec_schema import (
    APPLICATION_TYPE_BY_PURPOSE,
    DEFAULT_APPLICATION_TYPE,
    LOCATION_PARTS,
    PROVINCES,
    PURPOSE_BY_WATER_PURPOSE,
    STORAGE_CAPACITY_LABEL,
    STORAGE_CAPACITY_UNIT,
    STORAGE_COLUMN,
    WATER_PURPOSE_BY_PURPOSE,
)
from .models import CodecIssue, IssueKind, ProvinceType, WaterPurpose

_WATER_PURPOSES = {p.value for p in WaterPurpose}

_STORAGE_PATTERN = re.compile(
    r"^(?P<facility>.*?)\s*\(\s*" + re.escape(STORAGE_CAPACITY_LABEL) + r"(?P<capacity>[^)]*)\)\s*$",
    re.DOTALL,
)


# =============================================================================
# Coordinates
# =============================================================================

def _finite_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def encode_coordinates(latitude: Any, longitude: Any) -> Optional[dict[str, Any]]:
    """Point geometry in [lon, lat] order, or None unless both parse as finite numbers."""
    if not is_present(latitude) or not is_present(longitude):
        return None
    lat = _finite_float(latitude)
    lon = _finite_float(longitude)
    if lat is None or lon is None:
        return None
    return {"type": "Point", "coordinates": [lon, lat]}


def decode_coordinates(
    geometry: Any,
    issues: Optional[list[CodecIssue]] = None,
) -> tuple[Optional[str], Optional[str]]:
    """
    Return (latitude, longitude) strings from a stored point.

    Anything that is not a Point with two finite numbers is treated as
    absent and reported as a structural mismatch.
    """
    if geometry is None:
        return None, None
    try:
        if geometry.get("type") != "Point":
            raise ValueError(f"expected type 'Point', got {geometry.get('type')!r}")
        coords = geometry["coordinates"]
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            raise ValueError(f"expected [lon, lat], got {coords!r}")
        lon = _finite_float(coords[0])
        lat = _finite_float(coords[1])
        if lon is None or lat is None:
            raise ValueError(f"non-numeric coordinates {coords!r}")
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        report_issue(issues, IssueKind.STRUCTURAL_MISMATCH, "coordinates", str(exc))
        return None, None
    return format_number(lat), format_number(lon)


# =============================================================================
# Province
# =============================================================================

def encode_province(
    value: Any,
    default: ProvinceType = ProvinceType.KIGALI,
    issues: Optional[list[CodecIssue]] = None,
) -> str:
    """Case-insensitive lookup; unknown or missing input falls back to ``default``."""
    text = as_text(value)
    province = PROVINCES.get(text.lower()) if text else None
    if province is None:
        report_issue(
            issues, IssueKind.UNKNOWN_ENUM_INPUT, "province",
            f"unknown province {value!r}, stored as {default.value!r}",
        )
        province = default
    return province.value


def decode_province(value: Any) -> Optional[str]:
    text = as_text(value)
    return text.lower() if text else None


# =============================================================================
# Purpose vocabularies
# =============================================================================

def encode_application_type(purpose: Any) -> str:
    text = as_text(purpose)
    return APPLICATION_TYPE_BY_PURPOSE.get(text, DEFAULT_APPLICATION_TYPE).value


def encode_water_purpose(
    purpose: Any,
    issues: Optional[list[CodecIssue]] = None,
) -> Optional[str]:
    text = as_text(purpose)
    if text is None:
        return None
    water_purpose = WATER_PURPOSE_BY_PURPOSE.get(text, text)
    if water_purpose not in _WATER_PURPOSES:
        report_issue(
            issues, IssueKind.UNKNOWN_ENUM_INPUT, "water_purpose",
            f"purpose {text!r} is not a stored water purpose; kept as-is",
        )
    return water_purpose


def decode_purpose(water_purpose: Any) -> Optional[str]:
    text = as_text(water_purpose)
    if text is None:
        return None
    return PURPOSE_BY_WATER_PURPOSE.get(text, text)


# =============================================================================
# Storage facilities
# =============================================================================

def encode_storage(facilities: Any, capacity: Any) -> Optional[str]:
    facility = as_text(facilities)
    if facility is None:
        return None
    if is_present(capacity):
        rendered = format_number(capacity)
        if rendered is not None:
            return f"{facility} ({STORAGE_CAPACITY_LABEL} {rendered}{STORAGE_CAPACITY_UNIT})"
    return facility


def decode_storage(
    value: Any,
    issues: Optional[list[CodecIssue]] = None,
) -> tuple[Optional[str], Optional[float]]:
    """Split "<facility> (Capacity: <n>m³)" into (facility, capacity)."""
    text = as_text(value)
    if text is None:
        return None, None
    match = _STORAGE_PATTERN.match(text)
    if match is None:
        return text, None

    capacity_text = match.group("capacity").strip()
    capacity = parse_number(capacity_text)
    if capacity is None and capacity_text:
        report_issue(
            issues, IssueKind.UNPARSABLE_NUMBER, STORAGE_COLUMN,
            f"could not read a capacity from {capacity_text!r}",
        )
    return as_text(match.group("facility")), capacity


# =============================================================================
# Location description
# =============================================================================

def encode_location_description(form: Any) -> Optional[str]:
    parts = [as_text(getattr(form, name, None)) for name in LOCATION_PARTS]
    present = [part for part in parts if part]
    return ", ".join(present) if present else None
