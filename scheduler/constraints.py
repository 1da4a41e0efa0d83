"""
Hard Constraint Validation Logic for staff assignment.

This module answers the binary question: "Can nurse X take this action at time Y?"
It enforces the headcount ceiling, the work-minute ceiling, the rule that a
nurse does one thing at a time, and preparation time between setups.
"""

from typing import Optional, TYPE_CHECKING
from dataclasses import dataclass

from models import ActionType, to_label
from .config import ClinicConfig

if TYPE_CHECKING:
    from .state import StaffLoad


@dataclass
class ConstraintViolation:
    """Detailed reason for rejection."""
    constraint_type: str  # e.g., "PatientCap", "WorkMinutes", "Overlap"
    reason: str
    staff: str
    action_type: ActionType
    start_time: str


class StaffConstraintChecker:
    """
    Validates hard constraints for a single staff member and a single action.
    """

    def __init__(self, config: ClinicConfig):
        self.config = config

    def check_setup(self, load: "StaffLoad", start: int, duration: int) -> Optional[ConstraintViolation]:
        """
        Master validation for setups. Returns None if valid, a violation otherwise.
        """
        # 1. Headcount (a setup is a new patient for this nurse)
        if load.patient_count + 1 > load.max_patients:
            return self._violation(
                "PatientCap",
                f"{load.name} already has {load.patient_count}/{load.max_patients} patients",
                load, ActionType.SETUP, start
            )

        violation = self._check_work_minutes(load, ActionType.SETUP, start, duration)
        if violation: return violation

        violation = self._check_overlap(load, ActionType.SETUP, start, duration)
        if violation: return violation

        # 2. Preparation time around every setup this nurse already holds,
        # in whatever order those were booked
        gaps = [abs(start - task.start_minutes) for task in load.tasks if task.action_type == ActionType.SETUP]
        gap = min(gaps, default=None)
        if gap is not None and gap < self.config.staff_preparation_minutes:
            return self._violation(
                "Preparation",
                f"{load.name} needs {self.config.staff_preparation_minutes} min between setups (gap {gap})",
                load, ActionType.SETUP, start
            )

        return None

    def check_action(
        self,
        load: "StaffLoad",
        action_type: ActionType,
        start: int,
        duration: int,
        exclude_staff: Optional[str] = None
    ) -> Optional[ConstraintViolation]:
        """Validation for checks, removals, flushes and bag changes."""
        if exclude_staff and load.name == exclude_staff:
            return self._violation("Excluded", f"{load.name} performed the setup", load, action_type, start)

        violation = self._check_work_minutes(load, action_type, start, duration)
        if violation: return violation

        return self._check_overlap(load, action_type, start, duration)

    def _check_work_minutes(self, load: "StaffLoad", action_type: ActionType, start: int, duration: int) -> Optional[ConstraintViolation]:
        if load.max_work_minutes is None:
            return None
        projected = load.work_minutes + duration
        if projected > load.max_work_minutes:
            return self._violation(
                "WorkMinutes",
                f"{load.name} would work {projected} min (max {load.max_work_minutes})",
                load, action_type, start
            )
        return None

    def _check_overlap(self, load: "StaffLoad", action_type: ActionType, start: int, duration: int) -> Optional[ConstraintViolation]:
        end = start + duration
        for task in load.tasks:
            # Standard Overlap Logic: StartA < EndB and StartB < EndA
            if start < task.end_minutes and task.start_minutes < end:
                return self._violation(
                    "Overlap",
                    f"{load.name} is busy with {task.action_type.value} {to_label(task.start_minutes)}-{to_label(task.end_minutes)}",
                    load, action_type, start
                )
        return None

    @staticmethod
    def _violation(kind: str, reason: str, load: "StaffLoad", action_type: ActionType, start: int) -> ConstraintViolation:
        return ConstraintViolation(kind, reason, load.name, action_type, to_label(start))
