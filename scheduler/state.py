"""
Staff Scheduler State Management.

This module acts as the 'Memory' of a single planning run.
It tracks:
1. Per-staff load (patients, minutes, booked tasks).
2. Assignment failures with their constraint violations.
3. Workload statistics for the final report.
"""

from typing import List, Dict, Any, Optional
from collections import defaultdict
from dataclasses import dataclass, field

from models import ActionType, StaffMember, to_label
from .constraints import ConstraintViolation


@dataclass
class StaffTask:
    """A block of time booked for one nurse."""
    staff: str
    start_minutes: int
    end_minutes: int
    action_type: ActionType


@dataclass
class StaffLoad:
    """Running totals for one nurse during a run."""
    name: str
    max_patients: int
    max_work_minutes: Optional[int] = None
    is_coordinator: bool = False
    patient_count: int = 0
    work_minutes: int = 0
    tasks: List[StaffTask] = field(default_factory=list)

    @classmethod
    def from_member(cls, member: StaffMember, coordinator_cap: Optional[int] = None) -> "StaffLoad":
        if coordinator_cap is not None:
            return cls(member.name, coordinator_cap, member.max_work_minutes, is_coordinator=True)
        return cls(member.name, member.max_patients, member.max_work_minutes)

    @property
    def utilization(self) -> float:
        if self.max_patients <= 0:
            return 1.0
        return self.patient_count / self.max_patients


@dataclass
class AssignmentFailure:
    """An action nobody could take."""
    action_type: ActionType
    start_time: str
    duration: int
    violations: List[ConstraintViolation] = field(default_factory=list)


class StaffRunState:
    """
    Maintains the mutable state of a Staff Scheduler run.
    """

    def __init__(self, loads: List[StaffLoad]):
        self.loads: Dict[str, StaffLoad] = {load.name: load for load in loads}
        self.failures: List[AssignmentFailure] = []

    def add_task(self, staff: str, start: int, duration: int, action_type: ActionType) -> None:
        """
        Commit an assignment. Updates the nurse's task list and counters.
        """
        load = self.loads[staff]
        load.tasks.append(StaffTask(staff, start, start + duration, action_type))
        load.work_minutes += duration

        if action_type == ActionType.SETUP:
            load.patient_count += 1

    def record_failure(self, action_type: ActionType, start: int, duration: int, violations: List[ConstraintViolation]) -> None:
        self.failures.append(AssignmentFailure(action_type, to_label(start), duration, list(violations)))

    # --- Reporting Methods ---

    def get_statistics(self) -> Dict[str, Any]:
        """Workload summary of the run."""
        distribution = {
            name: {"setups": load.patient_count, "total_minutes": load.work_minutes}
            for name, load in sorted(self.loads.items())
        }
        minutes = [load.work_minutes for load in self.loads.values()]
        return {
            "staff_count": len(self.loads),
            "distribution": distribution,
            "max_minutes": max(minutes) if minutes else 0,
            "min_minutes": min(minutes) if minutes else 0,
            "unassigned_count": len(self.failures),
        }

    def get_failure_report(self) -> List[Dict]:
        """
        Human-readable list of unassigned actions and the dominant reason.
        """
        report = []
        for failure in self.failures:
            summary = defaultdict(int)
            for v in failure.violations:
                summary[v.constraint_type] += 1

            report.append({
                "action_type": failure.action_type.value,
                "start_time": failure.start_time,
                "duration": failure.duration,
                "primary_failure_cause": max(summary, key=summary.get) if summary else "NoStaff",
                "violation_breakdown": dict(summary),
            })

        report.sort(key=lambda x: (x["start_time"], x["action_type"]))
        return report

    def clear(self) -> None:
        """Reset all counters (fresh trial with the same staff)."""
        for load in self.loads.values():
            load.patient_count = 0
            load.work_minutes = 0
            load.tasks.clear()
        self.failures.clear()
