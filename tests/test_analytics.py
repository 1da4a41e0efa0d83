"""
Tests for workload and capacity analytics
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Add project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from models import Action, ActionType, Patient, SYSTEM_STAFF
from scheduler.analytics import chair_load_by_time_slot, occupancy_by_time_slot, staff_utilization, warnings
from scheduler.catalog import load_catalog
from scheduler.config import ClinicConfig
from scheduler.protocols import ProtocolExpander


DAY = date(2026, 10, 20)


def make_patient(pid, start, **fields):
    data = dict(id=pid, name=f"Patient {pid}", start_time=start, scheduled_date=DAY,
                medication_id="infliximab_5mg", treatment_number=4)
    data.update(fields)
    return Patient(**data)


class TestOccupancy:
    """Test start-slot occupancy"""

    def test_grid(self):
        slots = occupancy_by_time_slot([])
        assert slots[0].time == "08:00"
        assert slots[-1].time == "14:30"
        assert len(slots) == 14
        assert all(s.count == 0 and s.within_capacity for s in slots)

    def test_over_capacity_flagged(self):
        patients = [make_patient(f"p-{i}", "08:00") for i in range(4)]
        slot = occupancy_by_time_slot(patients)[0]
        assert slot.count == 4
        assert not slot.within_capacity
        assert len(slot.occupants) == 4

    def test_off_grid_start_counts_in_its_slot(self):
        slots = {s.time: s for s in occupancy_by_time_slot([make_patient("p-1", "08:45")])}
        assert slots["08:30"].count == 1

    def test_inactive_not_counted(self):
        patients = [make_patient("p-1", "08:00", late_cancellation=True)]
        assert occupancy_by_time_slot(patients)[0].count == 0

    def test_warnings(self):
        patients = [make_patient(f"p-{i}", "09:00") for i in range(4)]
        patients.append(make_patient("p-9", "13:00"))
        lines = warnings(patients)
        assert len(lines) == 1
        assert lines[0].startswith("09:00")
        assert warnings(patients[:3]) == []


class TestChairLoad:
    """Test chair presence profile"""

    @pytest.fixture
    def expander(self):
        return ProtocolExpander(load_catalog())

    def test_presence_from_protocol(self, expander):
        slots = {s.time: s.count for s in chair_load_by_time_slot([make_patient("p-1", "08:00")], expander)}
        # 55 minutes of treatment
        assert [slots[t] for t in ["08:00", "08:15", "08:30", "08:45", "09:00"]] == [1, 1, 1, 1, 0]

    def test_grid_covers_operating_day(self, expander):
        slots = chair_load_by_time_slot([], expander)
        assert slots[0].time == "08:00"
        assert slots[-1].time == "15:45"

    def test_unknown_protocol_left_out(self, expander):
        slots = chair_load_by_time_slot([make_patient("p-1", "08:00", medication_id="unknown")], expander)
        assert all(s.count == 0 for s in slots)

    def test_over_chair_capacity_flagged(self, expander):
        config = ClinicConfig(total_chairs=1)
        patients = [make_patient("p-1", "08:00"), make_patient("p-2", "08:30")]
        slots = {s.time: s for s in chair_load_by_time_slot(patients, expander, config)}
        assert slots["08:15"].within_capacity
        assert not slots["08:30"].within_capacity
        assert not slots["08:45"].within_capacity
        assert slots["09:00"].within_capacity

    def test_handover_inside_a_slot_fits(self, expander):
        # p-1 leaves at 08:55 and p-2 sits down at 08:55: both in the slot, never at once
        config = ClinicConfig(total_chairs=1)
        patients = [make_patient("p-1", "08:00"), make_patient("p-2", "08:55")]
        slot = {s.time: s for s in chair_load_by_time_slot(patients, expander, config)}["08:45"]
        assert slot.count == 2
        assert slot.within_capacity

    def test_slot_width_from_config(self, expander):
        slots = chair_load_by_time_slot([], expander, ClinicConfig(chair_slot_minutes=30))
        assert [s.time for s in slots[:2]] == ["08:00", "08:30"]
        assert slots[-1].time == "15:30"

    def test_chair_warnings(self, expander):
        config = ClinicConfig(total_chairs=1)
        patients = [make_patient("p-1", "08:00"), make_patient("p-2", "08:30")]
        lines = warnings(patients, config, expander)
        assert lines == [
            "08:30: 2 patients in chairs (max 1 chairs)",
            "08:45: 2 patients in chairs (max 1 chairs)",
        ]
        # Without an expander only start slots are checked
        assert warnings(patients, config) == []


class TestStaffUtilization:
    """Test nurse-minute usage"""

    def test_only_nurse_work_counts(self):
        actions = [
            Action(id="a1", name="Aanbrengen", duration_minutes=15, type=ActionType.SETUP,
                   staff="Anna", patient_id="p-1", start_time="08:00"),
            Action(id="a2", name="Loopt", duration_minutes=30, type=ActionType.INFUSION,
                   staff=SYSTEM_STAFF, patient_id="p-1", start_time="08:15"),
            Action(id="a3", name="Spoelen", duration_minutes=5, actual_duration_minutes=2,
                   type=ActionType.FLUSH, staff="Anna", patient_id="p-1", start_time="08:45"),
        ]
        patient = make_patient("p-1", "08:00", actions=actions)
        # 17 of 480 minutes
        assert staff_utilization([patient], 1) == 3.5

    def test_no_staff(self):
        assert staff_utilization([make_patient("p-1", "08:00")], 0) == 0.0
