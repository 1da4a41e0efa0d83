"""
Staff Scheduler.

Run-scoped allocator that hands each staff-performed action to a nurse.
It balances load across the day's roster, keeps every nurse inside their
patient and work-minute ceilings, and prefers the nurse who did the setup
for the rest of that patient's care.

The scheduler never touches Actions it did not create and never persists
anything; callers write the returned name into their own records.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from models import (
    Action, ActionType, DayOfWeek, StaffMember, SYSTEM_STAFF, NO_STAFF, to_label, to_minutes
)
from .config import ClinicConfig
from .constraints import ConstraintViolation, StaffConstraintChecker
from .protocols import TimedAction
from .state import StaffLoad, StaffRunState

logger = logging.getLogger(__name__)

UNASSIGNED = None  # explicit "nobody could take it" marker

SortKey = Callable[[StaffLoad], Tuple]


def setup_sort_key(load: StaffLoad) -> Tuple:
    """Least-loaded first: utilization, patients, minutes, then name."""
    return (load.utilization, load.patient_count, load.work_minutes, load.name)


def continuity_sort_key(preferred_staff: Optional[str]) -> SortKey:
    """
    Ordering for non-setup actions: the preferred nurse (the one who did the
    setup) wins whenever eligible, then the least minutes, then name.
    """
    def key(load: StaffLoad) -> Tuple:
        return (load.name != preferred_staff, load.work_minutes, load.name)
    return key


class StaffScheduler:
    """
    Assigns staff to actions for one day. One instance per planning run.
    """

    def __init__(
        self,
        staff_members: List[StaffMember],
        day: DayOfWeek,
        coordinator_name: Optional[str] = None,
        config: Optional[ClinicConfig] = None
    ):
        self.day = day
        self.coordinator_name = coordinator_name
        self.config = config or ClinicConfig.default()
        self.checker = StaffConstraintChecker(self.config)

        loads: Dict[str, StaffLoad] = {}
        for member in sorted(staff_members, key=lambda m: m.name):
            if member.name in loads:
                continue
            cap = self.config.coordinator_max_patients if member.name == coordinator_name else None
            loads[member.name] = StaffLoad.from_member(member, coordinator_cap=cap)

        if coordinator_name and coordinator_name not in loads:
            logger.warning(f"Coordinator {coordinator_name} is not a known staff member on {day.value}")

        self.state = StaffRunState(list(loads.values()))

    @classmethod
    def for_day(
        cls,
        all_staff: List[StaffMember],
        rostered_names: Optional[List[str]],
        day: DayOfWeek,
        coordinator_name: Optional[str] = None,
        config: Optional[ClinicConfig] = None
    ) -> "StaffScheduler":
        """
        Build a scheduler from the full staff list and the week-plan roster.
        Without a roster everybody who works on `day` is available. The
        coordinator joins the roster even when not listed in it.
        """
        if rostered_names:
            rostered = set(rostered_names)
            members = [s for s in all_staff if s.name in rostered]
        else:
            members = [s for s in all_staff if s.works_on(day)]

        if coordinator_name and all(s.name != coordinator_name for s in members):
            members.extend(s for s in all_staff if s.name == coordinator_name)

        return cls(members, day, coordinator_name, config)

    # --- Assignment ---

    def assign_for_setup(self, start_time: str, duration: int) -> Optional[str]:
        """Least-loaded eligible nurse for a setup, or UNASSIGNED."""
        start = to_minutes(start_time)
        return self._assign(
            ActionType.SETUP, start, duration,
            lambda load: self.checker.check_setup(load, start, duration),
            setup_sort_key,
        )

    def assign_for_action(
        self,
        action_type: ActionType,
        duration: int,
        start_time: str,
        preferred_staff: Optional[str] = None,
        exclude_staff: Optional[str] = None
    ) -> Optional[str]:
        """
        Nurse for a check, removal, flush, bag change or protocol check.
        `preferred_staff` is honoured while eligible; `exclude_staff` is never chosen.
        """
        if not action_type.needs_staff or action_type == ActionType.SETUP:
            raise ValueError(f"assign_for_action does not handle {action_type.value} actions")

        start = to_minutes(start_time)
        return self._assign(
            action_type, start, duration,
            lambda load: self.checker.check_action(load, action_type, start, duration, exclude_staff),
            continuity_sort_key(preferred_staff),
        )

    def register_existing_task(self, staff_name: str, start_time: str, duration: int, action_type: ActionType) -> None:
        """Book work that already exists (e.g. an earlier assignment), bypassing checks."""
        if staff_name not in self.state.loads:
            raise ValueError(f"Unknown staff member: {staff_name}")
        self.state.add_task(staff_name, to_minutes(start_time), duration, action_type)

    def staff_timeline(self, patient_id: str, timed_actions: List[TimedAction]) -> List[Action]:
        """
        Assign staff to every action of one patient and return the finished
        Actions. Unassigned actions keep staff=None.
        """
        actions: List[Action] = []
        setup_staff: Optional[str] = None

        for index, timed in enumerate(timed_actions, start=1):
            template = timed.template
            start_label = to_label(timed.start_minutes)

            if template.type == ActionType.INFUSION:
                staff = SYSTEM_STAFF
            elif template.type == ActionType.OBSERVATION:
                staff = NO_STAFF
            elif template.type == ActionType.SETUP:
                staff = self.assign_for_setup(start_label, template.work_minutes)
                if setup_staff is None:
                    setup_staff = staff
            elif template.type == ActionType.PROTOCOL_CHECK:
                # Second pair of eyes: never the nurse who prepared the setup
                staff = self.assign_for_action(
                    template.type, template.work_minutes, start_label, exclude_staff=setup_staff
                )
            else:
                staff = self.assign_for_action(
                    template.type, template.work_minutes, start_label, preferred_staff=setup_staff
                )

            actions.append(Action(
                id=f"{patient_id}-a{index:02d}",
                name=template.name,
                duration_minutes=template.duration_minutes,
                type=template.type,
                actual_duration_minutes=template.actual_duration_minutes,
                staff=staff,
                check_offset_minutes=template.check_offset_minutes,
                patient_id=patient_id,
                start_time=start_label,
            ))

        return actions

    # --- Diagnostics ---

    @property
    def unassigned_count(self) -> int:
        return len(self.state.failures)

    def workload_distribution(self) -> Dict[str, Dict[str, int]]:
        return self.state.get_statistics()["distribution"]

    def available_staff(self) -> List[str]:
        return sorted(self.state.loads)

    # --- Internals ---

    def _assign(
        self,
        action_type: ActionType,
        start: int,
        duration: int,
        check: Callable[[StaffLoad], Optional[ConstraintViolation]],
        sort_key: SortKey
    ) -> Optional[str]:
        eligible: List[StaffLoad] = []
        violations: List[ConstraintViolation] = []

        for load in self.state.loads.values():
            violation = check(load)
            if violation is None:
                eligible.append(load)
            else:
                violations.append(violation)

        if not eligible:
            self.state.record_failure(action_type, start, duration, violations)
            logger.info(f"No staff available for {action_type.value} at {to_label(start)} ({len(violations)} rejected)")
            return UNASSIGNED

        chosen = min(eligible, key=sort_key)
        self.state.add_task(chosen.name, start, duration, action_type)
        return chosen.name
