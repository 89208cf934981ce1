"""
codec_engine.py - Generic label-grammar encoder / decoder
=========================================================
Packs the sub-fields of one CompositeSlot into a single string column and
unpacks them again. All slot-specific knowledge lives in codec_schema.py;
this module only knows the grammar.

Neither direction raises: a value that cannot be formatted is left out of
the encoded string, and a fragment that cannot be parsed decodes to None.
"""

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal
from typing import Any, Optional

from .codec_schema import FRAGMENT_SEPARATOR, CompositeSlot, SubField
from .models import CodecIssue, IssueKind

logger = logging.getLogger(__name__)

_NON_NUMERIC_PATTERN = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER_PATTERN = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

_ISSUE_LOG_LEVELS = {
    IssueKind.MALFORMED_COMPOSITE: logging.DEBUG,
    IssueKind.UNPARSABLE_NUMBER:   logging.INFO,
    IssueKind.STRUCTURAL_MISMATCH: logging.WARNING,
    IssueKind.UNKNOWN_ENUM_INPUT:  logging.WARNING,
}


# =============================================================================
# Issue reporting
# =============================================================================

def report_issue(
    issues: Optional[list[CodecIssue]],
    kind: IssueKind,
    column: str,
    detail: str,
) -> None:
    """Log a codec anomaly and append it to the caller's collector, if any."""
    logger.log(_ISSUE_LOG_LEVELS[kind], "%s [%s]: %s", kind.value, column, detail)
    if issues is not None:
        issues.append(CodecIssue(kind=kind, column=column, detail=detail))


# =============================================================================
# Value helpers
# =============================================================================

def is_present(value: Any) -> bool:
    """True for values worth writing: not None, not blank, not zero."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


def as_text(value: Any) -> Optional[str]:
    """Trimmed string, or None when blank."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def format_number(value: Any) -> Optional[str]:
    """
    Render a number in its shortest plain form: 12.5 -> "12.5",
    2000.0 -> "2000", 1e-07 -> "0.0000001". Non-finite or
    non-numeric input gives None.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    if number.is_integer():
        return str(int(number))
    return format(Decimal(repr(number)), "f")


def parse_number(text: Optional[str]) -> Optional[float]:
    """
    Strip everything but digits, '.' and '-', then read the leading decimal
    number: "2000m³" -> 2000.0, "12.5 hectares" -> 12.5, "n/a" -> None.
    """
    if not text:
        return None
    stripped = _NON_NUMERIC_PATTERN.sub("", text)
    match = _LEADING_NUMBER_PATTERN.match(stripped)
    if match is None:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


# =============================================================================
# Encode
# =============================================================================

def _render_value(sub: SubField, form: Any) -> Optional[str]:
    if sub.kind == "coord-pair":
        lat_name, lon_name = sub.sources
        lat = as_text(getattr(form, lat_name, None))
        lon = as_text(getattr(form, lon_name, None))
        if lat is None or lon is None:
            return None
        return f"{lat}, {lon}"

    value = getattr(form, sub.source, None)
    if not is_present(value):
        return None
    if sub.kind == "number":
        rendered = format_number(value)
        return None if rendered is None else f"{rendered}{sub.unit}"
    return as_text(value)


def encode_fragment(sub: SubField, form: Any) -> Optional[str]:
    """One "<label> <value>" fragment (bare value when positional), or None."""
    value = _render_value(sub, form)
    if value is None:
        return None
    if sub.positional:
        return value
    return f"{sub.label} {value}"


def encode_slot(slot: CompositeSlot, form: Any) -> Optional[str]:
    """
    Pack the slot's sub-fields from ``form`` into one column value.

    Returns None (column left out of the patch) when no sub-field is present.
    """
    fragments: list[str] = []

    positional = slot.positional_field
    if positional is not None:
        fragment = encode_fragment(positional, form)
        if fragment is not None:
            fragments.append(fragment)

    for sub in slot.labeled_fields:
        fragment = encode_fragment(sub, form)
        if fragment is not None:
            fragments.append(fragment)

    if not fragments:
        return None
    return FRAGMENT_SEPARATOR.join(fragments)


# =============================================================================
# Decode
# =============================================================================

def _empty_result(slot: CompositeSlot) -> dict[str, Any]:
    return {name: None for sub in slot.fields for name in sub.sources}


def _decode_value(
    sub: SubField,
    text: str,
    column: str,
    issues: Optional[list[CodecIssue]],
) -> dict[str, Any]:
    if sub.kind == "coord-pair":
        lat_name, lon_name = sub.sources
        lat, _, lon = text.partition(",")
        return {lat_name: as_text(lat), lon_name: as_text(lon)}

    if sub.kind == "number":
        number = parse_number(text)
        if number is None and text:
            report_issue(
                issues, IssueKind.UNPARSABLE_NUMBER, column,
                f"{sub.label or sub.source}: could not read a number from {text!r}",
            )
        return {sub.source: number}

    return {sub.source: as_text(text)}


def decode_slot(
    slot: CompositeSlot,
    raw_value: Optional[str],
    issues: Optional[list[CodecIssue]] = None,
) -> dict[str, Any]:
    """
    Unpack a composite column into ``{form attribute: value}``.

    Every sub-field of the slot appears in the result; sub-fields that are
    missing or unparsable map to None.
    """
    result = _empty_result(slot)
    if not isinstance(raw_value, str) or not raw_value.strip():
        return result

    parts = [part.strip() for part in raw_value.split(FRAGMENT_SEPARATOR)]
    labels = slot.labels
    claimed: set[int] = set()

    positional = slot.positional_field
    if positional is not None and parts and not parts[0].startswith(labels):
        result.update(_decode_value(positional, parts[0], slot.column, issues))
        claimed.add(0)

    for sub in slot.labeled_fields:
        for index, part in enumerate(parts):
            if index in claimed or not part.startswith(sub.label):
                continue
            text = part[len(sub.label):].strip()
            result.update(_decode_value(sub, text, slot.column, issues))
            claimed.add(index)
            break

    for index, part in enumerate(parts):
        if index not in claimed and part:
            report_issue(
                issues, IssueKind.MALFORMED_COMPOSITE, slot.column,
                f"ignored fragment {part!r}",
            )

    return result
