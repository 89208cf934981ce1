"""
Pytest configuration and fixtures
"""
import os
import tempfile

import pytest

# Keep the module-level app in permit_portal.main away from ./data
os.environ.setdefault("PERMIT_APPLICATIONS_DIR", tempfile.mkdtemp(prefix="permit-apps-"))

from permit_portal.applications.application_store import ApplicationStore
from permit_portal.applications.models import ApplicationForm, UserContext


@pytest.fixture
def store(tmp_path):
    """Empty on-disk application store"""
    return ApplicationStore(root_dir=tmp_path / "applications")


@pytest.fixture
def user():
    return UserContext(
        full_name="Jane Doe",
        email="jane.doe@example.com",
        phone="+250 789 123 456",
        address="KN 5 Ave, Kigali, Rwanda",
        id_number="1 1980 8 0123456 7 89",
    )


@pytest.fixture
def full_form():
    """A form with every codec-relevant field filled in"""
    return ApplicationForm(
        permit_type="new",
        applicant_type="commercial",
        purpose="mining",
        water_source="river",
        water_usage=250,
        water_usage_unit="m3_per_day",
        province="northern",
        district="Musanze",
        sector="Muhoza",
        cell="Cyabararika",
        village="Rwebeya",
        latitude="-1.4998",
        longitude="29.6344",
        project_title="Musanze quarry water supply",
        project_description="Water abstraction for dust suppression and ore washing.",
        water_taking_method="Submersible pump",
        water_measuring_method="Electromagnetic flow meter",
        storage_facilities="Concrete tank",
        storage_capacity=500,
        return_flow_quality="Settled, pH neutral",
        return_flow_quantity=120.5,
        concession_duration="10 years",
        power_generation_type="Run-of-river",
        installed_capacity=2.5,
        turbine_type="Francis",
        head_height=45,
        mining_type="Open Pit",
        mining_method="Quarrying",
        mineral_type="Limestone",
        mining_area=12.5,
        intake_location="Mukungwa River left bank",
        intake_flow=0.75,
        intake_latitude="-1.5012",
        intake_longitude="29.6301",
        intake_elevation=1850,
        discharge_location="Settling pond outlet",
        discharge_flow=0.5,
        discharge_latitude="-1.5030",
        discharge_longitude="29.6322",
        discharge_elevation=1838.5,
        stream_level_variations="Seasonal, 0.4m to 1.8m",
        diversion_structure_config="Gabion weir with side intake",
        pipe_details="HDPE 110mm, 1.2km",
        pump_capacity=75,
        valve_details="Gate valves at intake and tank",
        backflow_control_devices="Double check valve",
        meter_details="DN100 flow meter",
        potential_effects="Reduced downstream flow during the dry season.",
        mitigation_actions="Abstraction capped at 30% of low flow.",
        industry_type="manufacturing",
        industry_details="Crushed stone and lime",
    )
