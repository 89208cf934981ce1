"""
codec_schema.py   -  Application Record Codec Schema
====================================================
Declarative description of how ApplicationForm fields map onto the columns
of the applications table.

Composite slots
---------------
Several storage columns hold more than one form field. Each sub-field is
written as a fragment and fragments are joined with " | ":

    fragment := <label> " " <value>       (labeled sub-field)
              | <value>                   (positional sub-field, always first)
    slot     := fragment (" | " fragment)*

    e.g.  mining_operations_type = "Type: Open Pit | Area: 12.5 hectares"

Rows already stored depend on this grammar, so labels and units below are a
wire format: change them only together with a data migration.

Each SubField entry maps:
  - label  : exact label token including the trailing colon, or None for the
             positional sub-field
  - source : ApplicationForm attribute (a (latitude, longitude) pair for
             coord-pair sub-fields)
  - kind   : "raw" | "number" | "coord-pair"
  - unit   : suffix rendered after a number, e.g. "m³/day" -> "100m³/day"

Vocabulary tables
-----------------
  - PROVINCES                    lower-case UI value -> canonical stored name
  - APPLICATION_TYPE_BY_PURPOSE  UI purpose -> application_type
  - WATER_PURPOSE_BY_PURPOSE     UI purpose -> water_purpose (remaps only)
  - PURPOSE_BY_WATER_PURPOSE     water_purpose -> UI purpose (remaps only)

The two purpose tables are not inverses of APPLICATION_TYPE_BY_PURPOSE;
application_type is never decoded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

from .models import ApplicationForm, ApplicationType, ProvinceType


SubFieldKind = Literal["raw", "number", "coord-pair"]

FRAGMENT_SEPARATOR = " | "


@dataclass(frozen=True)
class SubField:
    """One logical form field packed into a composite column."""
    label:  Optional[str]
    source: Union[str, tuple[str, str]]
    kind:   SubFieldKind = "raw"
    unit:   str = ""

    @property
    def positional(self) -> bool:
        return self.label is None

    @property
    def sources(self) -> tuple[str, ...]:
        if isinstance(self.source, tuple):
            return self.source
        return (self.source,)


@dataclass(frozen=True)
class CompositeSlot:
    """A storage column and the ordered sub-fields packed into it."""
    column: str
    fields: tuple[SubField, ...]

    @property
    def positional_field(self) -> Optional[SubField]:
        for sub in self.fields:
            if sub.positional:
                return sub
        return None

    @property
    def labeled_fields(self) -> tuple[SubField, ...]:
        return tuple(sub for sub in self.fields if not sub.positional)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(sub.label for sub in self.labeled_fields)


# =============================================================================
# Composite slots
# =============================================================================

COMPOSITE_SLOTS: tuple[CompositeSlot, ...] = (
    CompositeSlot(
        column="return_flow_description",
        fields=(
            SubField(None,          "return_flow_quality"),
            SubField("Quantity:",   "return_flow_quantity", "number", "m³/day"),
            SubField("Duration:",   "concession_duration"),
        ),
    ),
    CompositeSlot(
        column="electricity_generation_capacity",
        fields=(
            SubField(None,          "installed_capacity", "number", " MW"),
            SubField("Type:",       "power_generation_type"),
            SubField("Turbine:",    "turbine_type"),
            SubField("Head:",       "head_height", "number", "m"),
        ),
    ),
    CompositeSlot(
        column="mining_operations_type",
        fields=(
            SubField("Type:",       "mining_type"),
            SubField("Method:",     "mining_method"),
            SubField("Mineral:",    "mineral_type"),
            SubField("Area:",       "mining_area", "number", " hectares"),
        ),
    ),
    CompositeSlot(
        column="water_diversion_details",
        fields=(
            SubField("Intake:",              "intake_location"),
            SubField("Intake Flow:",         "intake_flow", "number", "m³/s"),
            SubField("Intake Coords:",       ("intake_latitude", "intake_longitude"), "coord-pair"),
            SubField("Intake Elevation:",    "intake_elevation", "number", "m"),
            SubField("Discharge:",           "discharge_location"),
            SubField("Discharge Flow:",      "discharge_flow", "number", "m³/s"),
            SubField("Discharge Coords:",    ("discharge_latitude", "discharge_longitude"), "coord-pair"),
            SubField("Discharge Elevation:", "discharge_elevation", "number", "m"),
            SubField("Stream Variations:",   "stream_level_variations"),
            SubField("Structure Config:",    "diversion_structure_config"),
        ),
    ),
    CompositeSlot(
        column="infrastructure_pumps",
        fields=(
            SubField("Capacity:",   "pump_capacity", "number", "m³/h"),
        ),
    ),
    CompositeSlot(
        column="infrastructure_valves",
        fields=(
            SubField(None,                "valve_details"),
            SubField("Backflow Control:", "backflow_control_devices"),
        ),
    ),
    CompositeSlot(
        column="internal_notes",
        fields=(
            SubField("Permit Type:",      "permit_type"),
            SubField("Applicant Type:",   "applicant_type"),
            SubField("Industry:",         "industry_type"),
            SubField("Industry Details:", "industry_details"),
        ),
    ),
)

SLOTS_BY_COLUMN: dict[str, CompositeSlot] = {slot.column: slot for slot in COMPOSITE_SLOTS}


# =============================================================================
# Storage facilities (parenthesis form, outside the " | " grammar)
#   "Concrete tank (Capacity: 500m³)"
# =============================================================================

STORAGE_COLUMN         = "storage_facilities"
STORAGE_CAPACITY_LABEL = "Capacity:"
STORAGE_CAPACITY_UNIT  = "m³"


# =============================================================================
# Scalar 1:1 columns   (storage column -> ApplicationForm attribute)
# =============================================================================

SCALAR_FIELDS: dict[str, str] = {
    "water_source":             "water_source",
    "estimated_usage_volume":   "water_usage",
    "usage_unit":               "water_usage_unit",
    "district":                 "district",
    "sector":                   "sector",
    "cell":                     "cell",
    "village":                  "village",
    "project_title":            "project_title",
    "project_description":      "project_description",
    "water_taking_method":      "water_taking_method",
    "water_measuring_method":   "water_measuring_method",
    "infrastructure_pipes":     "pipe_details",
    "infrastructure_meters":    "meter_details",
    "environmental_assessment": "potential_effects",
    "mitigation_actions":       "mitigation_actions",
}

# Parts of location_description, in join order
LOCATION_PARTS: tuple[str, ...] = ("district", "sector", "cell", "village")


# =============================================================================
# Vocabularies
# =============================================================================

PROVINCES: dict[str, ProvinceType] = {p.value.lower(): p for p in ProvinceType}

APPLICATION_TYPE_BY_PURPOSE: dict[str, ApplicationType] = {
    "domestic":         ApplicationType.DOMESTIC,
    "industrial":       ApplicationType.INDUSTRIAL,
    "irrigation":       ApplicationType.AGRICULTURAL,
    "commercial":       ApplicationType.COMMERCIAL,
    "municipal_supply": ApplicationType.MUNICIPAL,
    "mining":           ApplicationType.MINING_WATER_USE,
}
DEFAULT_APPLICATION_TYPE = ApplicationType.DOMESTIC

# Purposes not listed here are stored unchanged.
WATER_PURPOSE_BY_PURPOSE: dict[str, str] = {
    "hydropower": "electricity_generation",
}
PURPOSE_BY_WATER_PURPOSE: dict[str, str] = {
    "electricity_generation": "hydropower",
}


# =============================================================================
# Table contract
# =============================================================================

def check_schema(slots: tuple[CompositeSlot, ...] = COMPOSITE_SLOTS) -> None:
    """
    Raise ValueError if a slot breaks the label contract.

    Every label must end with a colon and be unique within its slot, a slot
    has at most one positional sub-field, and every source must be an
    ApplicationForm field.
    """
    form_fields = set(ApplicationForm.model_fields)
    for slot in slots:
        positional = [sub for sub in slot.fields if sub.positional]
        if len(positional) > 1:
            raise ValueError(f"{slot.column}: more than one positional sub-field")
        if positional and positional[0].kind == "coord-pair":
            raise ValueError(f"{slot.column}: positional sub-field cannot be a coord-pair")

        seen: set[str] = set()
        for sub in slot.labeled_fields:
            if not sub.label.endswith(":"):
                raise ValueError(f"{slot.column}: label {sub.label!r} must end with ':'")
            if sub.label in seen:
                raise ValueError(f"{slot.column}: duplicate label {sub.label!r}")
            seen.add(sub.label)

        for sub in slot.fields:
            if sub.kind == "coord-pair" and len(sub.sources) != 2:
                raise ValueError(f"{slot.column}: {sub.label} needs a (latitude, longitude) source")
            for name in sub.sources:
                if name not in form_fields:
                    raise ValueError(f"{slot.column}: unknown form field {name!r}")

    for column, name in SCALAR_FIELDS.items():
        if name not in form_fields:
            raise ValueError(f"{column}: unknown form field {name!r}")


check_schema()
