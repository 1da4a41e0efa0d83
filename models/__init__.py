"""
Data models package for the Day Planner.

This package exports the three pillars of the data architecture:
1. Reference (Medication, ProtocolVariant, ActionTemplate)
2. Supply (StaffMember, DayOfWeek)
3. Schedule (Patient, Action, SlotOccupancy, OptimizationResult)
"""

from .clock import (
    to_minutes,
    to_label,
    floor_to_slot
)

from .protocol import (
    ActionType,
    ActionTemplate,
    Medication,
    MedicationCategory,
    ProtocolVariant,
    VariantTiming
)

from .staff import (
    DayOfWeek,
    StaffMember
)

from .schedule import (
    Action,
    Patient,
    SlotOccupancy,
    OptimizationResult,
    PatientUpdate,
    SYSTEM_STAFF,
    NO_STAFF
)

__all__ = [
    # --- Time Helpers ---
    "to_minutes",
    "to_label",
    "floor_to_slot",

    # --- Reference Models ---
    "ActionType",
    "ActionTemplate",
    "Medication",
    "MedicationCategory",
    "ProtocolVariant",
    "VariantTiming",

    # --- Supply Models ---
    "DayOfWeek",
    "StaffMember",

    # --- Schedule Models ---
    "Action",
    "Patient",
    "SlotOccupancy",
    "OptimizationResult",
    "PatientUpdate",
    "SYSTEM_STAFF",
    "NO_STAFF",
]
