"""
Schedule data models for the Day Planner.

This module defines the records the engine reads and the instructions it
produces:
patients with their action timelines, per-slot occupancy, and the
optimizer's result.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import date as date_type

from .clock import to_minutes
from .protocol import ActionType


SYSTEM_STAFF = "Systeem"   # infusion runs without a nurse
NO_STAFF = "Geen"          # observation needs nobody


def _validate_label(value: Optional[str]) -> Optional[str]:
    if value is not None:
        to_minutes(value)
    return value


class Action(BaseModel):
    """A materialized step of a patient's timeline."""
    id: str = Field(description="Unique identifier")
    name: str = Field(min_length=1)
    duration_minutes: int = Field(ge=0, description="Chair time")
    type: ActionType
    actual_duration_minutes: Optional[int] = Field(default=None, ge=0)
    staff: Optional[str] = Field(default=None, description="Assigned staff name, None when unassigned")
    check_offset_minutes: Optional[int] = Field(default=None, ge=0)
    patient_id: str
    start_time: Optional[str] = Field(default=None, description="Computed HH:MM start")

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, v):
        return _validate_label(v)

    @property
    def work_minutes(self) -> int:
        if self.actual_duration_minutes is not None:
            return self.actual_duration_minutes
        return self.duration_minutes

    @property
    def is_unassigned(self) -> bool:
        return self.type.needs_staff and self.staff is None


class Patient(BaseModel):
    """A patient booked for a treatment day."""
    id: str = Field(description="Unique identifier")
    name: str = Field(min_length=1)
    start_time: str = Field(description="HH:MM start of the first action")
    scheduled_date: date_type
    medication_id: str = Field(min_length=1)
    treatment_number: int = Field(ge=1)

    no_show: bool = Field(default=False)
    late_cancellation: bool = Field(default=False)
    medication_discarded: bool = Field(default=False)

    actions: List[Action] = Field(default_factory=list)

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, v):
        to_minutes(v)
        return v

    @property
    def is_active(self) -> bool:
        """No-shows and late cancellations do not occupy the floor."""
        return not (self.no_show or self.late_cancellation)

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    def with_timeline(self, start_time: str, actions: List[Action]) -> "Patient":
        """Return a copy whose start time and actions are replaced together."""
        return self.model_copy(update={"start_time": start_time, "actions": list(actions)})

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "p-001",
            "name": "Emma de Vries",
            "start_time": "08:30",
            "scheduled_date": "2026-10-20",
            "medication_id": "infliximab_5mg",
            "treatment_number": 4,
            "actions": []
        }
    })


class SlotOccupancy(BaseModel):
    """Derived occupancy of a single time slot."""
    time: str
    count: int = Field(default=0, ge=0)
    occupants: List[str] = Field(default_factory=list)
    within_capacity: bool = Field(default=True)


class OptimizationResult(BaseModel):
    """Outcome of a day rebalancing run."""
    new_start_times: Dict[str, str] = Field(
        default_factory=dict,
        description="patient id -> new start time, changed entries only"
    )
    moved_count: int = Field(default=0, ge=0)
    unresolved_count: int = Field(default=0, ge=0, description="Setups still above slot capacity")
    score: float = Field(default=0.0, ge=0.0, description="Final congestion score, lower is better")
    initial_score: float = Field(default=0.0, ge=0.0)
    iterations: int = Field(default=0, ge=0)
    iteration_cap_reached: bool = Field(default=False)
    skipped_patient_ids: List[str] = Field(default_factory=list, description="Unknown protocol, left in place")
    unassigned_staff_actions: int = Field(default=0, ge=0, description="Staff actions left unassigned in the final plan")
    message: str = Field(default="")


class PatientUpdate(BaseModel):
    """Instruction to replace one patient's start time and timeline together."""
    patient_id: str
    start_time: str
    actions: List[Action]

    @property
    def unassigned_actions(self) -> List[Action]:
        return [a for a in self.actions if a.is_unassigned]
