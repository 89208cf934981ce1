"""
models.py - Water Permit Application Data Models
================================================
Pydantic models and data structures shared by the application record codec,
the application store and the applications API.

Contains:
  - ProvinceType / ApplicationType / WaterPurpose / ApplicationStatus /
    SlaStatus:  storage enums (closed vocabularies of the applications table)
  - IssueKind, CodecIssue:  non-fatal codec anomalies reported to callers
  - UserContext:            identity/contact supplied by the session, never stored
  - ApplicationForm:        flat UI-facing form model (every field optional)
  - ApplicationRecord:      one row of the applications table
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================
# Storage enums
# =============================================================

class ProvinceType(str, Enum):
    """Canonical province names stored in the applications table."""
    KIGALI   = "Kigali"
    NORTHERN = "Northern"
    SOUTHERN = "Southern"
    EASTERN  = "Eastern"
    WESTERN  = "Western"


class ApplicationType(str, Enum):
    DOMESTIC         = "domestic"
    INDUSTRIAL       = "industrial"
    AGRICULTURAL     = "agricultural"
    COMMERCIAL       = "commercial"
    MUNICIPAL        = "municipal"
    MINING_WATER_USE = "mining_water_use"


class WaterPurpose(str, Enum):
    DOMESTIC               = "domestic"
    IRRIGATION             = "irrigation"
    INDUSTRIAL             = "industrial"
    LIVESTOCK              = "livestock"
    AQUACULTURE            = "aquaculture"
    RECREATION             = "recreation"
    ELECTRICITY_GENERATION = "electricity_generation"
    MINING                 = "mining"
    MUNICIPAL_SUPPLY       = "municipal_supply"
    OTHER                  = "other"


class ApplicationStatus(str, Enum):
    DRAFT              = "draft"
    SUBMITTED          = "submitted"
    UNDER_REVIEW       = "under_review"
    PENDING_INSPECTION = "pending_inspection"
    APPROVED           = "approved"
    REJECTED           = "rejected"
    REVISION_REQUIRED  = "revision_required"
    CANCELLED          = "cancelled"


class SlaStatus(str, Enum):
    ON_TIME  = "on_time"
    DUE_SOON = "due_soon"
    OVERDUE  = "overdue"


# =============================================================
# Codec issues
# =============================================================

class IssueKind(str, Enum):
    """Non-fatal anomalies the codec degrades to "field absent"."""
    MALFORMED_COMPOSITE = "malformed_composite"   # fragment matches no label
    UNPARSABLE_NUMBER   = "unparsable_number"     # numeric strip+parse failed
    STRUCTURAL_MISMATCH = "structural_mismatch"   # coordinates not a Point
    UNKNOWN_ENUM_INPUT  = "unknown_enum_input"    # fallback or off-enum value


@dataclass(frozen=True)
class CodecIssue:
    kind:   IssueKind
    column: str
    detail: str

    def as_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "column": self.column, "detail": self.detail}


# =============================================================
# Session identity
# =============================================================

@dataclass(frozen=True)
class UserContext:
    """
    Identity/contact fields for the signed-in applicant.

    The codec never stores these; decode copies them into the form so the
    personal-info step is pre-filled when a draft is reopened.
    """
    full_name: Optional[str] = None
    email:     Optional[str] = None
    phone:     Optional[str] = None
    address:   Optional[str] = None
    id_number: Optional[str] = None


# =============================================================
# Form model
# =============================================================

class ApplicationForm(BaseModel):
    """
    Flat form model edited by the application wizard.

    None = field not filled in. JSON keys are camelCase (``projectTitle``);
    Python attributes are snake_case. Numeric strings are coerced to floats
    and numeric coordinates to strings.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    # ----------------------------------------------------------
    # Identity / contact (from UserContext, not stored)
    # ----------------------------------------------------------
    full_name: Optional[str] = None
    email:     Optional[str] = None
    phone:     Optional[str] = None
    address:   Optional[str] = None
    id_number: Optional[str] = None

    # ----------------------------------------------------------
    # Permit classification
    # ----------------------------------------------------------
    permit_type:      Optional[str]   = None   # "new" | "renewal" | "modification"
    applicant_type:   Optional[str]   = None
    purpose:          Optional[str]   = None   # UI purpose, e.g. "hydropower"
    water_source:     Optional[str]   = None
    water_usage:      Optional[float] = None
    water_usage_unit: Optional[str]   = None   # "m3_per_day" | "m3_per_hour" | "liters_per_sec"

    # ----------------------------------------------------------
    # Location
    # ----------------------------------------------------------
    province:  Optional[str] = None   # lower-case, e.g. "kigali"
    district:  Optional[str] = None
    sector:    Optional[str] = None
    cell:      Optional[str] = None
    village:   Optional[str] = None
    latitude:  Optional[str] = None
    longitude: Optional[str] = None

    # ----------------------------------------------------------
    # Project
    # ----------------------------------------------------------
    project_title:       Optional[str] = None
    project_description: Optional[str] = None

    # ----------------------------------------------------------
    # Technical
    # ----------------------------------------------------------
    water_taking_method:    Optional[str]   = None
    water_measuring_method: Optional[str]   = None
    storage_facilities:     Optional[str]   = None
    storage_capacity:       Optional[float] = None   # m³
    return_flow_quality:    Optional[str]   = None
    return_flow_quantity:   Optional[float] = None   # m³/day
    concession_duration:    Optional[str]   = None

    # ----------------------------------------------------------
    # Electricity generation (purpose = hydropower)
    # ----------------------------------------------------------
    power_generation_type: Optional[str]   = None
    installed_capacity:    Optional[float] = None   # MW
    turbine_type:          Optional[str]   = None
    head_height:           Optional[float] = None   # m

    # ----------------------------------------------------------
    # Mining (purpose = mining)
    # ----------------------------------------------------------
    mining_type:   Optional[str]   = None
    mining_method: Optional[str]   = None
    mineral_type:  Optional[str]   = None
    mining_area:   Optional[float] = None   # hectares

    # ----------------------------------------------------------
    # Water diversion
    # ----------------------------------------------------------
    intake_location:            Optional[str]   = None
    intake_flow:                Optional[float] = None   # m³/s
    intake_latitude:            Optional[str]   = None
    intake_longitude:           Optional[str]   = None
    intake_elevation:           Optional[float] = None   # m
    discharge_location:         Optional[str]   = None
    discharge_flow:             Optional[float] = None   # m³/s
    discharge_latitude:         Optional[str]   = None
    discharge_longitude:        Optional[str]   = None
    discharge_elevation:        Optional[float] = None   # m
    stream_level_variations:    Optional[str]   = None
    diversion_structure_config: Optional[str]   = None

    # ----------------------------------------------------------
    # Infrastructure
    # ----------------------------------------------------------
    pipe_details:             Optional[str]   = None
    pump_capacity:            Optional[float] = None   # m³/h
    valve_details:            Optional[str]   = None
    backflow_control_devices: Optional[str]   = None
    meter_details:            Optional[str]   = None

    # ----------------------------------------------------------
    # Environmental
    # ----------------------------------------------------------
    potential_effects:  Optional[str] = None
    mitigation_actions: Optional[str] = None

    # ----------------------------------------------------------
    # Metadata
    # ----------------------------------------------------------
    industry_type:    Optional[str] = None
    industry_details: Optional[str] = None

    terms_accepted: Optional[bool] = None


# =============================================================
# Storage record
# =============================================================

class ApplicationRecord(BaseModel):
    """
    One row of the applications table.

    Only the columns the codec reads or writes are declared; any other
    column (assignments, workflow timestamps, ...) is kept as an extra.
    Enum-typed columns are plain strings here so that a row written by an
    older client still loads.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id:           Optional[str] = None
    applicant_id: Optional[str] = None
    status:       Optional[str] = None
    sla_status:   Optional[str] = None

    application_type:       Optional[str]   = None
    water_source:           Optional[str]   = None
    water_purpose:          Optional[str]   = None
    estimated_usage_volume: Optional[float] = None
    usage_unit:             Optional[str]   = None

    province:             Optional[str] = None
    district:             Optional[str] = None
    sector:               Optional[str] = None
    cell:                 Optional[str] = None
    village:              Optional[str] = None
    coordinates:          Optional[Any] = Field(
        default=None,
        description='GeoJSON-like point: {"type": "Point", "coordinates": [lon, lat]}',
    )
    location_description: Optional[str] = None

    project_title:       Optional[str] = None
    project_description: Optional[str] = None

    water_taking_method:     Optional[str] = None
    water_measuring_method:  Optional[str] = None
    storage_facilities:      Optional[str] = None
    return_flow_description: Optional[str] = None

    electricity_generation_capacity: Optional[str] = None
    mining_operations_type:          Optional[str] = None
    water_diversion_details:         Optional[str] = None

    infrastructure_pipes:  Optional[str] = None
    infrastructure_pumps:  Optional[str] = None
    infrastructure_valves: Optional[str] = None
    infrastructure_meters: Optional[str] = None

    environmental_assessment: Optional[str] = None
    mitigation_actions:       Optional[str] = None

    internal_notes: Optional[str] = None
