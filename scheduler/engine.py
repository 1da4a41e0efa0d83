"""
The Day Planning Optimizer.

This module implements the core "Solver" logic for one treatment day.
It combines three strategies:
1. Congestion Scoring (Most Congested First) - attacks the worst slot before the rest.
2. Forward Slot Search - a crowded patient only ever moves later, never earlier,
   and never into a window where the department runs out of chairs.
3. Trial Staffing - a move is kept only if the day can still be staffed at
   least as well as before. Trials use the same staffing model as the final
   rebalance: work already booked on patients that stay put is registered
   first, and only moved or unstaffed patients are staffed around it.

The optimizer is read-only: it returns new start times and never touches the
Patient records it was given.
"""

import logging
from dataclasses import dataclass
from datetime import date as date_type
from typing import Dict, List, Optional, Tuple

from models import (
    Action, ActionTemplate, DayOfWeek, OptimizationResult, Patient, StaffMember,
    NO_STAFF, SYSTEM_STAFF, floor_to_slot, to_label, to_minutes
)
from .capacity import ChairOccupancyTracker, SetupCapacityTracker
from .config import ClinicConfig
from .protocols import ProtocolExpander, ProtocolNotFoundError
from .scoring import CongestionScorer
from .staffing import StaffScheduler

logger = logging.getLogger(__name__)


@dataclass
class PatientPlan:
    """An active patient as the optimizer sees it."""
    patient: Patient
    templates: Optional[List[ActionTemplate]]  # None when the protocol is unknown
    duration: int = 0

    @property
    def patient_id(self) -> str:
        return self.patient.id

    @property
    def is_movable(self) -> bool:
        return self.templates is not None

    def keeps_timeline(self, start: int) -> bool:
        """True when the patient's booked actions stay valid at `start`."""
        if not self.is_movable:
            return True
        patient = self.patient
        if start != patient.start_minutes or not patient.actions:
            return False
        return not any(a.is_unassigned for a in patient.actions)


def staff_day(
    scheduler: StaffScheduler,
    expander: ProtocolExpander,
    placements: List[Tuple[str, int, List[ActionTemplate]]]
) -> Dict[str, List[Action]]:
    """
    Materialize and staff every placement (patient id, start minute, templates)
    in start-time order, ties by patient id. Returns patient id -> actions.
    """
    timelines: Dict[str, List[Action]] = {}
    for patient_id, start, templates in sorted(placements, key=lambda p: (p[1], p[0])):
        timed = expander.materialize(start, templates)
        timelines[patient_id] = scheduler.staff_timeline(patient_id, timed)
    return timelines


def register_existing_actions(scheduler: StaffScheduler, patient: Patient) -> None:
    """Book a staying patient's already-assigned work on the scheduler."""
    known_staff = set(scheduler.available_staff())
    for action in patient.actions:
        if not action.type.needs_staff or action.staff in (None, SYSTEM_STAFF, NO_STAFF):
            continue
        if action.start_time is None or action.staff not in known_staff:
            logger.debug(f"Ignoring {action.id} of {patient.id}: no start time or staff not on today's roster")
            continue
        scheduler.register_existing_task(action.staff, action.start_time, action.work_minutes, action.type)


class DayPlanningOptimizer:
    """
    Main rebalancing engine.
    Ingests a day's patients and staff, outputs new start times for the
    patients that should move.
    """

    def __init__(self, expander: ProtocolExpander, config: Optional[ClinicConfig] = None):
        self.expander = expander
        self.config = config or expander.config
        self.scorer = CongestionScorer(self.config)

    def optimize(
        self,
        patients: List[Patient],
        staff: List[StaffMember],
        date: date_type,
        rostered_staff_names: Optional[List[str]] = None,
        coordinator_name: Optional[str] = None
    ) -> OptimizationResult:
        """
        Execute the rebalancing pipeline.
        """
        day = DayOfWeek.from_date(date)
        plans, skipped = self._build_plans(patients, date)
        logger.info(f"Optimizing {date.isoformat()}: {len(plans)} active patients, {len(skipped)} skipped")

        # 1. Current placement: setup slots and chair windows
        starts: Dict[str, int] = {pid: plan.patient.start_minutes for pid, plan in plans.items()}
        profile = self._slot_profile(plans, starts)
        setups = SetupCapacityTracker(self.config)
        for slot, pids in profile.items():
            for _ in pids:
                setups.add_setup(slot)
        chairs = ChairOccupancyTracker(self.config)
        for pid, plan in plans.items():
            chairs.add_patient(starts[pid], plan.duration)
        if chairs.peak_occupancy() > self.config.total_chairs:
            logger.warning(f"{chairs.peak_occupancy()} patients present at the peak, "
                           f"only {self.config.total_chairs} chairs")

        counts = dict(setups.setups_per_slot)
        initial_score = self.scorer.calculate_score(counts)
        score = initial_score
        unassigned = self._simulate(plans, starts, staff, day, rostered_staff_names, coordinator_name)
        logger.debug(f"Initial score {initial_score}, {unassigned} unassigned staff actions")

        # 2. Main Loop: one accepted move per iteration
        iterations = 0
        cap_reached = False
        while self.scorer.violating_slots(counts):
            if iterations >= self.config.max_optimizer_iterations:
                cap_reached = True
                logger.warning(f"Optimizer stopped after {iterations} iterations with score {score}")
                break
            iterations += 1

            move = self._find_move(plans, starts, profile, setups, chairs, score, unassigned,
                                   staff, day, rostered_staff_names, coordinator_name)
            if move is None:
                break

            patient_id, from_slot, to_slot, new_start, new_score, new_unassigned = move
            profile[from_slot].remove(patient_id)
            if not profile[from_slot]:
                del profile[from_slot]
            profile.setdefault(to_slot, []).append(patient_id)
            setups.remove_setup(from_slot)
            setups.add_setup(to_slot)
            duration = plans[patient_id].duration
            chairs.remove_patient(starts[patient_id], duration)
            chairs.add_patient(new_start, duration)

            counts = dict(setups.setups_per_slot)
            starts[patient_id] = new_start
            score, unassigned = new_score, new_unassigned
            logger.debug(f"Moved {patient_id} {from_slot} -> {to_slot} (score {score})")

        # 3. Report
        new_start_times = {
            pid: to_label(start)
            for pid, start in sorted(starts.items())
            if start != plans[pid].patient.start_minutes
        }
        unresolved = self.scorer.total_excess(counts)
        for slot, excess in self.scorer.violating_slots(counts):
            logger.info(f"Slot {slot} still has {excess} setup(s) above capacity")

        message = self._message(len(new_start_times), unresolved, cap_reached)
        logger.info(message)

        return OptimizationResult(
            new_start_times=new_start_times,
            moved_count=len(new_start_times),
            unresolved_count=unresolved,
            score=score,
            initial_score=initial_score,
            iterations=iterations,
            iteration_cap_reached=cap_reached,
            skipped_patient_ids=skipped,
            unassigned_staff_actions=unassigned,
            message=message,
        )

    def staff_with_starts(
        self,
        patients: List[Patient],
        new_start_times: Dict[str, str],
        staff: List[StaffMember],
        date: date_type,
        rostered_staff_names: Optional[List[str]] = None,
        coordinator_name: Optional[str] = None
    ) -> Tuple[StaffScheduler, Dict[str, List[Action]]]:
        """
        Staff the day with the given start times applied, exactly as the
        optimizer's trials do. Returns the scheduler (for its statistics)
        and the rebuilt timelines, patient id -> actions.
        """
        plans, _ = self._build_plans(patients, date)
        starts = {pid: plan.patient.start_minutes for pid, plan in plans.items()}
        for pid, start_time in new_start_times.items():
            if pid in starts:
                starts[pid] = to_minutes(start_time)
        day = DayOfWeek.from_date(date)
        return self._staff(plans, starts, staff, day, rostered_staff_names, coordinator_name)

    # --- Search ---

    def _find_move(self, plans, starts, profile, setups, chairs, score, unassigned,
                   staff, day, rostered_staff_names, coordinator_name):
        """
        First acceptable move, most congested slot first, candidates by
        patient id. Returns None when no slot yields a move.
        """
        counts = dict(setups.setups_per_slot)

        for slot, excess in self.scorer.violating_slots(counts):
            for patient_id in sorted(profile[slot]):
                plan = plans[patient_id]
                if not plan.is_movable:
                    continue

                # Chair windows are judged without the patient's own current window
                chairs.remove_patient(starts[patient_id], plan.duration)
                try:
                    candidate = setups.find_next_available_slot(slot)
                    while candidate is not None:
                        new_start = to_minutes(candidate)
                        if new_start + plan.duration > self.config.closing_minutes:
                            logger.debug(f"{patient_id} at {candidate} would end after {self.config.closing_time}")
                            break

                        new_score = self.scorer.score_after_move(counts, slot, candidate)
                        if not chairs.can_add_patient(new_start, plan.duration):
                            logger.debug(f"{patient_id} at {candidate} would exceed {self.config.total_chairs} chairs")
                        elif new_score < score:
                            trial = dict(starts)
                            trial[patient_id] = new_start
                            trial_unassigned = self._simulate(plans, trial, staff, day,
                                                              rostered_staff_names, coordinator_name)
                            if trial_unassigned <= unassigned:
                                return patient_id, slot, candidate, new_start, new_score, trial_unassigned
                            logger.debug(f"{patient_id} at {candidate} leaves {trial_unassigned} actions unstaffed")

                        candidate = setups.find_next_available_slot(candidate)
                finally:
                    chairs.add_patient(starts[patient_id], plan.duration)

                logger.info(f"No alternative slot for {patient_id} from {slot}")

        return None

    def _simulate(self, plans, starts, staff, day, rostered_staff_names, coordinator_name) -> int:
        """Staff the day on a throwaway scheduler; returns unassigned actions."""
        scheduler, _ = self._staff(plans, starts, staff, day, rostered_staff_names, coordinator_name)
        return scheduler.unassigned_count

    def _staff(
        self,
        plans: Dict[str, PatientPlan],
        starts: Dict[str, int],
        staff: List[StaffMember],
        day: DayOfWeek,
        rostered_staff_names: Optional[List[str]],
        coordinator_name: Optional[str]
    ) -> Tuple[StaffScheduler, Dict[str, List[Action]]]:
        """
        Book the existing work of patients that keep their timeline, then
        staff the moved and not-yet-staffed patients around it.
        """
        scheduler = StaffScheduler.for_day(staff, rostered_staff_names, day, coordinator_name, self.config)
        placements = []
        for pid, plan in plans.items():
            if plan.keeps_timeline(starts[pid]):
                register_existing_actions(scheduler, plan.patient)
            else:
                placements.append((pid, starts[pid], plan.templates))
        return scheduler, staff_day(scheduler, self.expander, placements)

    # --- Helpers ---

    def _build_plans(self, patients: List[Patient], date: date_type) -> Tuple[Dict[str, PatientPlan], List[str]]:
        plans: Dict[str, PatientPlan] = {}
        skipped: List[str] = []

        for patient in sorted(patients, key=lambda p: p.id):
            if not patient.is_active:
                continue
            if patient.scheduled_date != date:
                logger.debug(f"{patient.id} is scheduled on {patient.scheduled_date}, not {date}")
                continue
            try:
                templates = self.expander.expand(patient.medication_id, patient.treatment_number)
            except ProtocolNotFoundError as e:
                logger.warning(f"Skipping {patient.id}: {e}")
                skipped.append(patient.id)
                plans[patient.id] = PatientPlan(patient, None, self._booked_duration(patient))
                continue
            plans[patient.id] = PatientPlan(patient, templates, self.expander.total_duration(templates))

        return plans, skipped

    @staticmethod
    def _booked_duration(patient: Patient) -> int:
        """Chair time covered by a patient's existing timed actions."""
        ends = [to_minutes(a.start_time) + a.duration_minutes for a in patient.actions if a.start_time is not None]
        if not ends:
            return 0
        return max(0, max(ends) - patient.start_minutes)

    def _slot_profile(self, plans: Dict[str, PatientPlan], starts: Dict[str, int]) -> Dict[str, List[str]]:
        """Setup slot label -> patient ids, setup time floored to the slot grid."""
        profile: Dict[str, List[str]] = {}
        for pid, plan in plans.items():
            setup = starts[pid]
            if plan.is_movable:
                setup = self.expander.setup_minutes_for(setup, plan.templates)
            slot = to_label(floor_to_slot(setup, self.config.slot_minutes))
            profile.setdefault(slot, []).append(pid)
        return profile

    @staticmethod
    def _message(moved: int, unresolved: int, cap_reached: bool) -> str:
        parts = [f"Moved {moved} patient(s)"]
        if unresolved:
            parts.append(f"{unresolved} setup(s) could not be placed within capacity")
        else:
            parts.append("all slots within capacity")
        if cap_reached:
            parts.append("iteration limit reached")
        return "; ".join(parts)
