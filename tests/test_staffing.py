"""
Tests for staff assignment (load balance, ceilings, continuity of care)
"""

import sys
from pathlib import Path

import pytest

# Add project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from models import ActionType, DayOfWeek, Medication, StaffMember, SYSTEM_STAFF, NO_STAFF, to_minutes
from scheduler.catalog import load_catalog
from scheduler.protocols import ProtocolExpander
from scheduler.staffing import StaffScheduler, UNASSIGNED


TUESDAY = DayOfWeek.TUESDAY


def nurses(*names, max_patients=8, max_work_minutes=None):
    return [StaffMember(name=n, max_patients=max_patients, max_work_minutes=max_work_minutes) for n in names]


class TestAssignForSetup:
    """Test setup allocation"""

    def test_least_loaded_first(self):
        scheduler = StaffScheduler(nurses("Anna", "Bram"), TUESDAY)
        assert scheduler.assign_for_setup("08:00", 15) == "Anna"
        assert scheduler.assign_for_setup("08:30", 15) == "Bram"
        assert scheduler.assign_for_setup("09:00", 15) == "Anna"

    def test_one_setup_per_nurse_at_a_time(self):
        scheduler = StaffScheduler(nurses("Anna", "Bram", "Cees"), TUESDAY)
        assigned = [scheduler.assign_for_setup("08:00", 15) for _ in range(4)]
        assert sorted(assigned[:3]) == ["Anna", "Bram", "Cees"]
        assert assigned[3] is UNASSIGNED
        assert scheduler.unassigned_count == 1

    def test_preparation_time_between_setups(self):
        scheduler = StaffScheduler(nurses("Anna"), TUESDAY)
        assert scheduler.assign_for_setup("08:00", 5) == "Anna"
        assert scheduler.assign_for_setup("08:05", 5) is UNASSIGNED
        assert scheduler.assign_for_setup("08:10", 5) == "Anna"

    def test_preparation_checked_against_every_setup(self):
        # The 09:00 setup is booked before the 08:00 one; 09:05 is still too close to it
        scheduler = StaffScheduler(nurses("Anna"), TUESDAY)
        scheduler.register_existing_task("Anna", "09:00", 2, ActionType.SETUP)
        scheduler.register_existing_task("Anna", "08:00", 15, ActionType.SETUP)

        assert scheduler.assign_for_setup("09:05", 2) is UNASSIGNED
        report = scheduler.state.get_failure_report()
        assert report[0]["primary_failure_cause"] == "Preparation"
        assert scheduler.assign_for_setup("09:10", 2) == "Anna"

    def test_patient_cap(self):
        scheduler = StaffScheduler(nurses("Anna", max_patients=2), TUESDAY)
        assert scheduler.assign_for_setup("08:00", 15) == "Anna"
        assert scheduler.assign_for_setup("08:30", 15) == "Anna"
        assert scheduler.assign_for_setup("09:00", 15) is UNASSIGNED

        report = scheduler.state.get_failure_report()
        assert report[0]["primary_failure_cause"] == "PatientCap"

    def test_coordinator_has_smaller_cap(self):
        staff = [StaffMember(name="Dagco", max_patients=10)]
        scheduler = StaffScheduler(staff, TUESDAY, coordinator_name="Dagco")
        times = ["08:00", "08:30", "09:00", "09:30", "10:30", "11:00"]
        assigned = [scheduler.assign_for_setup(t, 15) for t in times]
        assert assigned[:5] == ["Dagco"] * 5
        assert assigned[5] is UNASSIGNED

    def test_work_minute_ceiling(self):
        """A nurse at 350/360 minutes cannot take a 20-minute action."""
        scheduler = StaffScheduler(nurses("Yvonne", max_work_minutes=360), TUESDAY)
        scheduler.register_existing_task("Yvonne", "08:00", 350, ActionType.CHECK)
        assert scheduler.assign_for_action(ActionType.REMOVAL, 20, "15:00") is UNASSIGNED
        assert scheduler.assign_for_action(ActionType.REMOVAL, 10, "15:00") == "Yvonne"

    def test_work_minute_ceiling_picks_other_nurse(self):
        staff = nurses("Yvonne", max_work_minutes=360) + nurses("Anna")
        scheduler = StaffScheduler(staff, TUESDAY)
        scheduler.register_existing_task("Yvonne", "08:00", 350, ActionType.CHECK)
        assert scheduler.assign_for_action(ActionType.REMOVAL, 20, "15:00", preferred_staff="Yvonne") == "Anna"


class TestAssignForAction:
    """Test non-setup actions"""

    def test_preferred_nurse_wins_when_eligible(self):
        scheduler = StaffScheduler(nurses("Anna", "Bram"), TUESDAY)
        scheduler.register_existing_task("Bram", "08:00", 60, ActionType.CHECK)
        assert scheduler.assign_for_action(ActionType.REMOVAL, 5, "10:00", preferred_staff="Bram") == "Bram"

    def test_busy_preferred_nurse_falls_back(self):
        scheduler = StaffScheduler(nurses("Anna", "Bram"), TUESDAY)
        scheduler.register_existing_task("Bram", "09:55", 15, ActionType.CHECK)
        assert scheduler.assign_for_action(ActionType.REMOVAL, 5, "10:00", preferred_staff="Bram") == "Anna"

    def test_excluded_nurse_never_chosen(self):
        scheduler = StaffScheduler(nurses("Anna", "Bram"), TUESDAY)
        assert scheduler.assign_for_action(ActionType.PROTOCOL_CHECK, 5, "09:00", exclude_staff="Anna") == "Bram"

    def test_setup_not_handled(self):
        scheduler = StaffScheduler(nurses("Anna"), TUESDAY)
        with pytest.raises(ValueError):
            scheduler.assign_for_action(ActionType.SETUP, 15, "08:00")

    def test_unknown_staff_registration(self):
        scheduler = StaffScheduler(nurses("Anna"), TUESDAY)
        with pytest.raises(ValueError):
            scheduler.register_existing_task("Nobody", "08:00", 10, ActionType.CHECK)


class TestForDay:
    """Test roster filtering"""

    @pytest.fixture
    def all_staff(self):
        return [
            StaffMember(name="Carla", max_patients=10, work_days=["monday", "thursday"]),
            StaffMember(name="Emmy", max_patients=10, work_days=["tuesday"]),
            StaffMember(name="Henriette", max_patients=10, work_days=["tuesday"]),
            StaffMember(name="Flex", max_patients=6),
        ]

    def test_work_days_without_roster(self, all_staff):
        scheduler = StaffScheduler.for_day(all_staff, None, TUESDAY)
        assert scheduler.available_staff() == ["Emmy", "Flex", "Henriette"]

    def test_roster_overrides_work_days(self, all_staff):
        scheduler = StaffScheduler.for_day(all_staff, ["Carla"], TUESDAY)
        assert scheduler.available_staff() == ["Carla"]

    def test_coordinator_joins_roster(self, all_staff):
        scheduler = StaffScheduler.for_day(all_staff, ["Emmy"], TUESDAY, coordinator_name="Carla")
        assert scheduler.available_staff() == ["Carla", "Emmy"]
        assert scheduler.state.loads["Carla"].max_patients == 5


class TestStaffTimeline:
    """Test whole-patient assignment"""

    @pytest.fixture
    def expander(self):
        return ProtocolExpander(load_catalog())

    def test_markers_and_continuity(self, expander):
        scheduler = StaffScheduler(nurses("Anna", "Bram"), TUESDAY)
        templates = expander.expand("abatacept", 1)
        actions = scheduler.staff_timeline("p-1", expander.materialize(to_minutes("08:00"), templates))

        by_type = {a.type: a for a in actions}
        assert by_type[ActionType.INFUSION].staff == SYSTEM_STAFF
        assert by_type[ActionType.OBSERVATION].staff == NO_STAFF
        setup_staff = by_type[ActionType.SETUP].staff
        assert setup_staff == "Anna"
        assert by_type[ActionType.REMOVAL].staff == setup_staff
        assert by_type[ActionType.FLUSH].staff == setup_staff
        assert [a.id for a in actions][0] == "p-1-a01"
        assert actions[0].start_time == "08:00"

    def test_protocol_check_by_second_nurse(self):
        medication = Medication.model_validate({
            "id": "double_check", "name": "Double", "display_name": "Double",
            "variants": [{"treatment_number": 1, "actions": [
                {"name": "Aanbrengen", "type": "setup", "duration_minutes": 15},
                {"name": "Controle", "type": "protocol_check", "duration_minutes": 5},
                {"name": "Loopt", "type": "infusion", "duration_minutes": 30},
                {"name": "Afkoppelen", "type": "removal", "duration_minutes": 5},
            ]}],
        })
        expander = ProtocolExpander({medication.id: medication})
        scheduler = StaffScheduler(nurses("Anna", "Bram"), TUESDAY)
        timed = expander.materialize(to_minutes("08:00"), expander.expand("double_check", 1))
        actions = scheduler.staff_timeline("p-1", timed)

        assert actions[0].staff == "Anna"
        assert actions[1].staff == "Bram"
        assert actions[3].staff == "Anna"

    def test_transfusion_checks_staffed(self, expander):
        scheduler = StaffScheduler(nurses("Anna", "Bram"), TUESDAY)
        timed = expander.materialize(to_minutes("08:30"), expander.expand("transfusion_2pc", 1))
        actions = scheduler.staff_timeline("p-1", timed)
        assert not [a for a in actions if a.is_unassigned]
        switch = [a for a in actions if a.type == ActionType.PC_SWITCH][0]
        assert switch.start_time == "10:45"

    def test_assignment_is_deterministic(self, expander):
        def run():
            scheduler = StaffScheduler(nurses("Bram", "Anna", "Cees"), TUESDAY)
            result = []
            for pid, start in [("p-1", "08:00"), ("p-2", "08:00"), ("p-3", "08:30")]:
                timed = expander.materialize(to_minutes(start), expander.expand("infliximab_5mg", 4))
                result.extend(a.staff for a in scheduler.staff_timeline(pid, timed))
            return result

        assert run() == run()

    def test_workload_distribution(self):
        scheduler = StaffScheduler(nurses("Anna", "Bram"), TUESDAY)
        scheduler.assign_for_setup("08:00", 15)
        distribution = scheduler.workload_distribution()
        assert distribution["Anna"] == {"setups": 1, "total_minutes": 15}
        assert distribution["Bram"] == {"setups": 0, "total_minutes": 0}
