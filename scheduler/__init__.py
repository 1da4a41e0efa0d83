"""
Scheduling package for the Day Planner.

This package exports the engine in the order a planning run uses it:
1. Reference (ClinicConfig, load_catalog, ProtocolExpander)
2. Allocation (SetupCapacityTracker, ChairOccupancyTracker, StaffScheduler)
3. Rebalancing (DayPlanningOptimizer, rebalance_day, reassign_day, apply_updates)
4. Diagnostics (analytics functions)
"""

from .config import ClinicConfig
from .catalog import load_catalog
from .protocols import ProtocolExpander, ProtocolNotFoundError, TimedAction
from .capacity import ChairOccupancyTracker, SetupCapacityTracker
from .constraints import ConstraintViolation, StaffConstraintChecker
from .state import StaffRunState
from .staffing import StaffScheduler, UNASSIGNED
from .scoring import CongestionScorer
from .engine import DayPlanningOptimizer
from .rebalance import RebalanceOutcome, rebalance_day, reassign_day, apply_updates
from .analytics import (
    occupancy_by_time_slot,
    warnings,
    chair_load_by_time_slot,
    staff_utilization
)

__all__ = [
    # --- Reference ---
    "ClinicConfig",
    "load_catalog",
    "ProtocolExpander",
    "ProtocolNotFoundError",
    "TimedAction",

    # --- Allocation ---
    "SetupCapacityTracker",
    "ChairOccupancyTracker",
    "ConstraintViolation",
    "StaffConstraintChecker",
    "StaffRunState",
    "StaffScheduler",
    "UNASSIGNED",

    # --- Rebalancing ---
    "CongestionScorer",
    "DayPlanningOptimizer",
    "RebalanceOutcome",
    "rebalance_day",
    "reassign_day",
    "apply_updates",

    # --- Diagnostics ---
    "occupancy_by_time_slot",
    "warnings",
    "chair_load_by_time_slot",
    "staff_utilization",
]
