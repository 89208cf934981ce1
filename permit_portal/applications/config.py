"""
config.py - Environment-driven settings
=======================================
Fallback constants used by the codec and the on-disk application store.
Every value can be overridden through an environment variable, which is
read when the settings object is built (not at import), so tests can patch
the environment.

  PERMIT_DEFAULT_PROVINCE          province stored when the form value is unknown
  PERMIT_PLACEHOLDER_APPLICANT_ID  applicant_id written until auth supplies one
  PERMIT_INITIAL_SLA_STATUS        sla_status written with every patch
  PERMIT_APPLICATIONS_DIR          root folder of the JSON application store
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .models import ProvinceType, SlaStatus

logger = logging.getLogger(__name__)

_DEFAULT_PROVINCE      = ProvinceType.KIGALI
_DEFAULT_APPLICANT_ID  = "550e8400-e29b-41d4-a716-446655440001"
_DEFAULT_SLA_STATUS    = SlaStatus.ON_TIME
_DEFAULT_APPLICATIONS_DIR = Path("data/applications")


@dataclass(frozen=True)
class CodecConfig:
    default_province: ProvinceType = _DEFAULT_PROVINCE
    applicant_id:     str          = _DEFAULT_APPLICANT_ID
    sla_status:       SlaStatus    = _DEFAULT_SLA_STATUS


@dataclass(frozen=True)
class StoreSettings:
    applications_dir: Path = _DEFAULT_APPLICATIONS_DIR


def _province_from_env(raw: str | None) -> ProvinceType:
    if not raw:
        return _DEFAULT_PROVINCE
    for province in ProvinceType:
        if province.value.lower() == raw.strip().lower():
            return province
    logger.warning(
        "PERMIT_DEFAULT_PROVINCE=%r is not a province; using %s", raw, _DEFAULT_PROVINCE.value
    )
    return _DEFAULT_PROVINCE


def _sla_from_env(raw: str | None) -> SlaStatus:
    if not raw:
        return _DEFAULT_SLA_STATUS
    try:
        return SlaStatus(raw.strip().lower())
    except ValueError:
        logger.warning(
            "PERMIT_INITIAL_SLA_STATUS=%r is not an SLA status; using %s", raw, _DEFAULT_SLA_STATUS.value
        )
        return _DEFAULT_SLA_STATUS


def load_codec_config() -> CodecConfig:
    return CodecConfig(
        default_province=_province_from_env(os.getenv("PERMIT_DEFAULT_PROVINCE")),
        applicant_id=os.getenv("PERMIT_PLACEHOLDER_APPLICANT_ID") or _DEFAULT_APPLICANT_ID,
        sla_status=_sla_from_env(os.getenv("PERMIT_INITIAL_SLA_STATUS")),
    )


def load_store_settings() -> StoreSettings:
    return StoreSettings(
        applications_dir=Path(os.getenv("PERMIT_APPLICATIONS_DIR", str(_DEFAULT_APPLICATIONS_DIR))),
    )
