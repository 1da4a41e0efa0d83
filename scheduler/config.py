"""
Clinic configuration for the planning engine.

Every fixed constant of the infusion department lives here so that tests and
other clinics can run the engine with different opening hours, break windows
or capacities.
"""

from typing import List, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator

from models import to_minutes


class ClinicConfig(BaseModel):
    """Operating constants of the department."""

    # --- Operating Hours ---
    day_start: str = Field(default="08:00", description="First possible start")
    day_end: str = Field(default="16:00", description="End of the operating grid")
    closing_time: str = Field(default="16:30", description="Latest moment a treatment may end")
    slot_minutes: int = Field(default=30, ge=5, le=120, description="Width of a start slot")

    # --- Capacity ---
    max_concurrent_setups: int = Field(default=3, ge=1, description="Setups allowed per start slot")
    closing_buffer_minutes: int = Field(
        default=120,
        ge=0,
        description="No new setups within this many minutes of day_end"
    )
    break_windows: List[Tuple[str, str]] = Field(
        default_factory=lambda: [("10:00", "10:30"), ("12:00", "13:00")],
        description="Coffee and lunch breaks: no setups start inside them"
    )
    total_chairs: int = Field(default=14, ge=1, description="Patients that can be in the department at once")
    chair_slot_minutes: int = Field(default=15, ge=1, le=60, description="Width of a chair-load slot")

    # --- Staffing ---
    coordinator_max_patients: int = Field(default=5, ge=0)
    staff_preparation_minutes: int = Field(
        default=10,
        ge=0,
        description="Minimum gap between two setups by the same nurse"
    )

    # --- Protocol Constants ---
    setup_minutes: int = Field(default=15, ge=0)
    removal_minutes: int = Field(default=5, ge=0)
    check_minutes: int = Field(default=5, ge=0)
    flush_work_minutes: int = Field(default=2, ge=0)
    check_end_margin_minutes: int = Field(default=15, ge=0, description="No checks in the last minutes of an infusion")

    # --- Optimizer ---
    max_optimizer_iterations: int = Field(default=200, ge=1)

    @field_validator('day_start', 'day_end', 'closing_time')
    @classmethod
    def validate_label(cls, v):
        to_minutes(v)
        return v

    @field_validator('break_windows')
    @classmethod
    def validate_breaks(cls, v):
        for start, end in v:
            if to_minutes(end) <= to_minutes(start):
                raise ValueError(f"Break {start}-{end} must end after it starts")
        return v

    @model_validator(mode='after')
    def validate_hours(self):
        if self.day_end_minutes <= self.day_start_minutes:
            raise ValueError("day_end must be after day_start")
        if self.closing_minutes < self.day_end_minutes:
            raise ValueError("closing_time cannot be before day_end")
        return self

    @classmethod
    def default(cls) -> "ClinicConfig":
        return cls()

    @property
    def day_start_minutes(self) -> int:
        return to_minutes(self.day_start)

    @property
    def day_end_minutes(self) -> int:
        return to_minutes(self.day_end)

    @property
    def closing_minutes(self) -> int:
        return to_minutes(self.closing_time)

    @property
    def last_setup_minutes(self) -> int:
        """Latest slot a new setup may start in."""
        return self.day_end_minutes - self.closing_buffer_minutes

    def is_break(self, minutes: int) -> bool:
        return any(to_minutes(s) <= minutes < to_minutes(e) for s, e in self.break_windows)
