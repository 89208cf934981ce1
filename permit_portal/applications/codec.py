"""
codec.py - Application Record Codec
===================================
Translates between the flat ApplicationForm edited in the wizard and the
columns of the applications table.

  encode_application(form, status)  -> partial ApplicationRecord (dict patch)
  decode_application(record, user)  -> ApplicationForm

Both directions are pure transforms: no I/O, no shared state. They never
raise on bad data; anomalies degrade to "field absent" and are logged and
optionally collected as CodecIssue entries so the caller can show them.

Known asymmetries
-----------------
- application_type is derived from purpose but never decoded. purpose comes
  back only through water_purpose, so "electricity_generation" entered as a
  purpose reopens as "hydropower".
- An unknown province is stored as the configured default province.
- A storage capacity without a storage facility description is not stored.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from .codec_engine import decode_slot, encode_slot, report_issue
from .codec_schema import COMPOSITE_SLOTS, SCALAR_FIELDS
from .config import CodecConfig
from .converters import (
    decode_coordinates,
    decode_province,
    decode_purpose,
    decode_storage,
    encode_application_type,
    encode_coordinates,
    encode_location_description,
    encode_province,
    encode_storage,
    encode_water_purpose,
)
from .models import ApplicationForm, ApplicationRecord, CodecIssue, IssueKind, UserContext

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = CodecConfig()


def _status_value(status: Any) -> str:
    return getattr(status, "value", status)


def encode_application(
    form: ApplicationForm,
    status: Any = "draft",
    config: Optional[CodecConfig] = None,
    issues: Optional[list[CodecIssue]] = None,
) -> dict[str, Any]:
    """
    Build the storage patch for ``form``.

    Columns with nothing to store are left out of the patch rather than
    written as empty strings.
    """
    config = config or _DEFAULT_CONFIG
    patch: dict[str, Any] = {"status": _status_value(status)}

    patch["application_type"] = encode_application_type(form.purpose)
    patch["water_purpose"] = encode_water_purpose(form.purpose, issues)
    patch["province"] = encode_province(form.province, config.default_province, issues)
    patch["coordinates"] = encode_coordinates(form.latitude, form.longitude)
    patch["location_description"] = encode_location_description(form)
    patch["storage_facilities"] = encode_storage(form.storage_facilities, form.storage_capacity)

    for column, name in SCALAR_FIELDS.items():
        patch[column] = getattr(form, name)

    for slot in COMPOSITE_SLOTS:
        patch[slot.column] = encode_slot(slot, form)

    patch["sla_status"] = config.sla_status.value
    patch["applicant_id"] = config.applicant_id

    patch = {column: value for column, value in patch.items() if value is not None}
    logger.debug("Encoded application patch with %d columns", len(patch))
    return patch


def _load_record(
    data: Mapping[str, Any],
    issues: Optional[list[CodecIssue]],
) -> ApplicationRecord:
    """Validate a raw row, dropping columns whose values have the wrong type."""
    row = dict(data)
    try:
        return ApplicationRecord.model_validate(row)
    except ValidationError as exc:
        bad_columns = {str(err["loc"][0]) for err in exc.errors() if err.get("loc")}
        for column in sorted(bad_columns):
            report_issue(
                issues, IssueKind.STRUCTURAL_MISMATCH, column,
                f"unexpected value {row.get(column)!r}; treated as absent",
            )
        return ApplicationRecord.model_validate(
            {column: value for column, value in row.items() if column not in bad_columns}
        )


def decode_application(
    record: Union[ApplicationRecord, Mapping[str, Any]],
    user: Optional[UserContext] = None,
    issues: Optional[list[CodecIssue]] = None,
) -> ApplicationForm:
    """Rebuild the form for a stored application (e.g. to reopen a draft)."""
    if not isinstance(record, ApplicationRecord):
        record = _load_record(record, issues)

    values: dict[str, Any] = {}

    for column, name in SCALAR_FIELDS.items():
        values[name] = getattr(record, column)

    for slot in COMPOSITE_SLOTS:
        values.update(decode_slot(slot, getattr(record, slot.column), issues))

    values["storage_facilities"], values["storage_capacity"] = decode_storage(
        record.storage_facilities, issues
    )
    values["latitude"], values["longitude"] = decode_coordinates(record.coordinates, issues)
    values["province"] = decode_province(record.province)
    values["purpose"] = decode_purpose(record.water_purpose)

    if user is not None:
        values.update(
            full_name=user.full_name,
            email=user.email,
            phone=user.phone,
            address=user.address,
            id_number=user.id_number,
        )

    # A stored application was created with the terms accepted.
    values["terms_accepted"] = True

    return ApplicationForm(**values)
