"""
Setup and Chair Capacity Trackers.

Counts how many setups (infusion starts) fall in each start slot so that no
slot asks for more simultaneous setups than there are hands to do them, and
how many patients sit in a chair at each minute of the day.
The trackers record; refusing an over-capacity placement is the caller's job.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from models import to_label, to_minutes
from .config import ClinicConfig

logger = logging.getLogger(__name__)


class SetupCapacityTracker:
    """Per-run mapping of slot label -> number of setups."""

    def __init__(self, config: Optional[ClinicConfig] = None):
        self.config = config or ClinicConfig.default()
        self.setups_per_slot: Dict[str, int] = defaultdict(int)

    @property
    def max_concurrent_setups(self) -> int:
        return self.config.max_concurrent_setups

    def can_add_setup(self, slot: str) -> bool:
        return self.setups_at(slot) < self.max_concurrent_setups

    def add_setup(self, slot: str) -> None:
        self.setups_per_slot[slot] += 1

    def remove_setup(self, slot: str) -> None:
        """Release one setup from a slot (a patient is moving away)."""
        current = self.setups_per_slot.get(slot, 0)
        if current <= 0:
            raise ValueError(f"No setup registered at {slot}")
        if current == 1:
            del self.setups_per_slot[slot]
        else:
            self.setups_per_slot[slot] = current - 1

    def setups_at(self, slot: str) -> int:
        return self.setups_per_slot.get(slot, 0)

    def find_next_available_slot(self, from_time: str) -> Optional[str]:
        """
        Walk forward in slot-sized steps from `from_time` (exclusive) and
        return the first slot with room, skipping breaks. Returns None once
        the closing buffer is reached.
        """
        cfg = self.config
        current = to_minutes(from_time)

        while current + cfg.slot_minutes <= cfg.last_setup_minutes:
            current += cfg.slot_minutes
            if cfg.is_break(current):
                continue

            slot = to_label(current)
            if self.can_add_setup(slot):
                return slot

        logger.debug(f"No setup slot available after {from_time}")
        return None

    def summary(self) -> List[Tuple[str, int]]:
        return sorted(self.setups_per_slot.items())

    def reset(self) -> None:
        self.setups_per_slot.clear()


class ChairOccupancyTracker:
    """
    Per-run mapping of minute -> patients in a chair. A patient occupies a
    chair from their start until their last action ends.
    """

    def __init__(self, config: Optional[ClinicConfig] = None):
        self.config = config or ClinicConfig.default()
        self.occupancy: Dict[int, int] = defaultdict(int)

    @property
    def total_chairs(self) -> int:
        return self.config.total_chairs

    def add_patient(self, start: int, duration: int) -> None:
        for minute in range(start, start + duration):
            self.occupancy[minute] += 1

    def remove_patient(self, start: int, duration: int) -> None:
        """Release a patient's window (they are moving elsewhere)."""
        window = range(start, start + duration)
        if any(self.occupancy.get(minute, 0) <= 0 for minute in window):
            raise ValueError(f"No patient registered from {to_label(start)} for {duration} min")
        for minute in window:
            self.occupancy[minute] -= 1
            if self.occupancy[minute] == 0:
                del self.occupancy[minute]

    def can_add_patient(self, start: int, duration: int) -> bool:
        return all(self.occupancy.get(minute, 0) < self.total_chairs for minute in range(start, start + duration))

    def peak_occupancy(self) -> int:
        return max(self.occupancy.values(), default=0)

    def occupancy_at(self, time: str) -> int:
        return self.occupancy.get(to_minutes(time), 0)

    def reset(self) -> None:
        self.occupancy.clear()
