"""
Staff data models for the Day Planner.

This module defines the 'Supply' side of the planner: the nurses who perform
setups, checks and removals, and the weekdays they are rostered on.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict
from datetime import date


class DayOfWeek(str, Enum):
    """Clinic working days."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        """Weekend dates fall back to Monday; the clinic is closed then."""
        weekday = value.weekday()
        if weekday >= 5:
            return cls.MONDAY
        return list(cls)[weekday]


class StaffMember(BaseModel):
    """
    A nurse with a patient ceiling and an optional work-minute ceiling.
    """
    name: str = Field(min_length=1, description="Unique key")
    max_patients: int = Field(ge=0, description="Maximum number of patients (setups) per day")
    max_work_minutes: Optional[int] = Field(
        default=None,
        ge=0,
        description="Maximum total assigned work minutes for the day"
    )
    work_days: List[DayOfWeek] = Field(
        default_factory=list,
        description="Weekly roster. Empty means every day."
    )

    def works_on(self, day: DayOfWeek) -> bool:
        return not self.work_days or day in self.work_days

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "Yvonne",
            "max_patients": 8,
            "max_work_minutes": 360,
            "work_days": ["tuesday"]
        }
    })
