"""
Workload and Capacity Analytics.

Read-only diagnostics for dashboards: how many setups start in each slot,
how many chairs are occupied through the day, and how much of the available
nurse time is spent. Nothing here shares state with the optimizer.
"""

import logging
from typing import List, Optional

from models import NO_STAFF, SYSTEM_STAFF, Patient, SlotOccupancy, floor_to_slot, to_label, to_minutes
from .capacity import ChairOccupancyTracker
from .config import ClinicConfig
from .protocols import ProtocolExpander, ProtocolNotFoundError

logger = logging.getLogger(__name__)


def occupancy_by_time_slot(patients: List[Patient], config: Optional[ClinicConfig] = None) -> List[SlotOccupancy]:
    """
    Start-time occupancy on the slot grid, from day_start up to one hour
    before day_end. Start times between grid points count towards the slot
    they fall in; starts outside the grid are not reported.
    """
    cfg = config or ClinicConfig.default()
    slots = {}
    minute = cfg.day_start_minutes
    while minute < cfg.day_end_minutes - 60:
        label = to_label(minute)
        slots[label] = SlotOccupancy(time=label)
        minute += cfg.slot_minutes

    for patient in patients:
        if not patient.is_active:
            continue
        label = to_label(floor_to_slot(patient.start_minutes, cfg.slot_minutes))
        slot = slots.get(label)
        if slot is None:
            continue
        slot.count += 1
        slot.occupants.append(patient.name)
        slot.within_capacity = slot.count <= cfg.max_concurrent_setups

    return [slots[label] for label in sorted(slots)]


def warnings(
    patients: List[Patient],
    config: Optional[ClinicConfig] = None,
    expander: Optional[ProtocolExpander] = None
) -> List[str]:
    """
    One line per over-capacity setup slot. With an expander, also one line
    per chair-load slot where more patients are present than there are chairs.
    """
    cfg = config or ClinicConfig.default()
    lines = [
        f"{slot.time}: {slot.count} patients scheduled (max {cfg.max_concurrent_setups})"
        for slot in occupancy_by_time_slot(patients, cfg)
        if not slot.within_capacity
    ]
    if expander is not None:
        lines.extend(
            f"{slot.time}: {slot.count} patients in chairs (max {cfg.total_chairs} chairs)"
            for slot in chair_load_by_time_slot(patients, expander, cfg)
            if not slot.within_capacity
        )
    return lines


def chair_load_by_time_slot(
    patients: List[Patient],
    expander: ProtocolExpander,
    config: Optional[ClinicConfig] = None
) -> List[SlotOccupancy]:
    """
    Patients present in each chair slot of the operating day. A patient is
    present from their start time until their last action ends. A slot is
    over capacity when, at some minute inside it, more patients are present
    than there are chairs.
    """
    cfg = config or expander.config
    width = cfg.chair_slot_minutes
    slots: List[SlotOccupancy] = []
    for minute in range(cfg.day_start_minutes, cfg.day_end_minutes, width):
        slots.append(SlotOccupancy(time=to_label(minute)))

    chairs = ChairOccupancyTracker(cfg)
    for patient in patients:
        if not patient.is_active:
            continue
        end = _treatment_end(patient, expander)
        if end is None:
            continue
        start = patient.start_minutes
        chairs.add_patient(start, max(0, end - start))
        for slot in slots:
            slot_start = to_minutes(slot.time)
            if start < slot_start + width and end > slot_start:
                slot.count += 1
                slot.occupants.append(patient.name)

    for slot in slots:
        slot.within_capacity = _slot_peak(chairs, to_minutes(slot.time), width) <= cfg.total_chairs

    return slots


def staff_utilization(patients: List[Patient], staff_count: int, config: Optional[ClinicConfig] = None) -> float:
    """
    Percentage of available nurse minutes taken up by assigned nurse work.
    System and observation time are not nurse work.
    """
    cfg = config or ClinicConfig.default()
    available = staff_count * (cfg.day_end_minutes - cfg.day_start_minutes)
    if available <= 0:
        return 0.0

    worked = sum(
        action.work_minutes
        for patient in patients if patient.is_active
        for action in patient.actions
        if action.staff and action.staff not in (SYSTEM_STAFF, NO_STAFF)
    )
    return round(worked / available * 100, 1)


def _treatment_end(patient: Patient, expander: ProtocolExpander) -> Optional[int]:
    timed = [a for a in patient.actions if a.start_time is not None]
    if timed:
        return max(to_minutes(a.start_time) + a.duration_minutes for a in timed)
    if patient.actions:
        return patient.start_minutes + sum(
            a.duration_minutes for a in patient.actions if a.check_offset_minutes is None
        )
    try:
        templates = expander.expand(patient.medication_id, patient.treatment_number)
    except ProtocolNotFoundError as e:
        logger.warning(f"Leaving {patient.id} out of the chair load: {e}")
        return None
    return patient.start_minutes + expander.total_duration(templates)


def _slot_peak(tracker: ChairOccupancyTracker, slot_start: int, width: int) -> int:
    return max(tracker.occupancy.get(minute, 0) for minute in range(slot_start, slot_start + width))
