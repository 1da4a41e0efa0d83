"""
Rebalance Application.

Turns an optimizer result into concrete instructions: every patient that
moves, and every patient still waiting for a fully staffed timeline, gets a
start time and a freshly staffed action timeline, handed back as one batch.
Nothing here mutates the Patient records it receives; `apply_updates` builds
replacement records only once the whole batch is known to be valid.
"""

import logging
from datetime import date as date_type
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models import DayOfWeek, OptimizationResult, Patient, PatientUpdate, StaffMember
from .config import ClinicConfig
from .engine import DayPlanningOptimizer, staff_day
from .protocols import ProtocolExpander, ProtocolNotFoundError
from .staffing import StaffScheduler

logger = logging.getLogger(__name__)


class RebalanceOutcome(BaseModel):
    """Instructions produced by a rebalance or a full staff re-assignment."""
    result: Optional[OptimizationResult] = Field(default=None, description="Absent for a plain re-assignment")
    updates: List[PatientUpdate] = Field(default_factory=list)
    unassigned_count: int = Field(default=0, ge=0, description="Staff actions nobody could take")
    staff_statistics: Dict[str, Any] = Field(default_factory=dict)
    failure_report: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def changed_patient_ids(self) -> List[str]:
        return [u.patient_id for u in self.updates]


def rebalance_day(
    patients: List[Patient],
    staff: List[StaffMember],
    date: date_type,
    rostered_names: Optional[List[str]],
    coordinator: Optional[str],
    expander: ProtocolExpander,
    config: Optional[ClinicConfig] = None
) -> RebalanceOutcome:
    """
    Optimize the day, then rebuild the timelines that the new start times
    invalidate.

    Staffing goes through the optimizer's own model: staff already booked on
    patients that stay put is registered first, then moved patients and
    patients without a fully staffed timeline are fitted around it. The
    unassigned count therefore matches what the optimizer accepted.
    """
    config = config or expander.config
    optimizer = DayPlanningOptimizer(expander, config)
    result = optimizer.optimize(patients, staff, date, rostered_names, coordinator)

    scheduler, timelines = optimizer.staff_with_starts(
        patients, result.new_start_times, staff, date, rostered_names, coordinator
    )
    starts = {p.id: p.start_time for p in patients}
    updates = [
        PatientUpdate(patient_id=pid, start_time=result.new_start_times.get(pid, starts[pid]), actions=actions)
        for pid, actions in sorted(timelines.items())
    ]
    if not updates:
        logger.info(f"Every timeline on {date.isoformat()} stays as booked")
    return _outcome(scheduler, updates, result)


def reassign_day(
    patients: List[Patient],
    staff: List[StaffMember],
    date: date_type,
    rostered_names: Optional[List[str]],
    coordinator: Optional[str],
    expander: ProtocolExpander,
    config: Optional[ClinicConfig] = None
) -> RebalanceOutcome:
    """
    Rebuild every active patient's timeline and staffing from scratch, in
    start-time order. Start times are kept.
    """
    config = config or expander.config
    day = DayOfWeek.from_date(date)
    scheduler = StaffScheduler.for_day(staff, rostered_names, day, coordinator, config)

    placements = []
    for patient in patients:
        if not patient.is_active:
            continue
        try:
            templates = expander.expand(patient.medication_id, patient.treatment_number)
        except ProtocolNotFoundError as e:
            logger.warning(f"Keeping timeline of {patient.id}: {e}")
            continue
        placements.append((patient.id, patient.start_minutes, templates))

    timelines = staff_day(scheduler, expander, placements)
    starts = {p.id: p.start_time for p in patients}
    updates = [
        PatientUpdate(patient_id=pid, start_time=starts[pid], actions=actions)
        for pid, actions in sorted(timelines.items())
    ]
    logger.info(f"Re-assigned staff for {len(updates)} patients on {date.isoformat()}")
    return _outcome(scheduler, updates)


def apply_updates(patients: List[Patient], updates: List[PatientUpdate]) -> List[Patient]:
    """
    Return a new patient list with each update's start time and actions
    replacing the old ones. Raises ValueError (and changes nothing) when an
    update names an unknown patient or the same patient twice.
    """
    known = {p.id for p in patients}
    by_id: Dict[str, PatientUpdate] = {}
    for update in updates:
        if update.patient_id not in known:
            raise ValueError(f"Update for unknown patient {update.patient_id}")
        if update.patient_id in by_id:
            raise ValueError(f"Duplicate update for patient {update.patient_id}")
        by_id[update.patient_id] = update

    updated = []
    for patient in patients:
        update = by_id.get(patient.id)
        if update is None:
            updated.append(patient)
        else:
            updated.append(patient.with_timeline(update.start_time, update.actions))
    return updated


# --- Internals ---

def _outcome(
    scheduler: StaffScheduler,
    updates: List[PatientUpdate],
    result: Optional[OptimizationResult] = None
) -> RebalanceOutcome:
    unassigned = sum(len(u.unassigned_actions) for u in updates)
    if unassigned:
        logger.info(f"{unassigned} staff action(s) left unassigned")
    return RebalanceOutcome(
        result=result,
        updates=updates,
        unassigned_count=unassigned,
        staff_statistics=scheduler.state.get_statistics(),
        failure_report=scheduler.state.get_failure_report(),
    )
