"""
Congestion Scoring for the Day Planning Optimizer.

Unlike the hard staff constraints (binary Yes/No), this provides a gradient
over a whole day: how badly are the start slots overbooked?

Score = sum over slots of (excess setups)^2. Squaring makes one slot with
two extra setups worse than two slots with one extra each, so the optimizer
spreads the overflow. Zero means every slot is within capacity.
"""

from typing import Dict, List, Mapping, Tuple

from .config import ClinicConfig


class CongestionScorer:
    """
    Evaluates a day's setup-slot profile against the slot capacity.
    """

    def __init__(self, config: ClinicConfig, exponent: int = 2):
        self.config = config
        self.exponent = exponent

    @property
    def capacity(self) -> int:
        return self.config.max_concurrent_setups

    def slot_excess(self, count: int) -> int:
        return max(0, count - self.capacity)

    def calculate_score(self, counts: Mapping[str, int]) -> float:
        """Master scoring function. Lower is better, 0.0 is conflict-free."""
        return float(sum(self.slot_excess(c) ** self.exponent for c in counts.values()))

    def total_excess(self, counts: Mapping[str, int]) -> int:
        """Number of setups that do not fit their slot."""
        return sum(self.slot_excess(c) for c in counts.values())

    def violating_slots(self, counts: Mapping[str, int]) -> List[Tuple[str, int]]:
        """
        Over-capacity slots, most congested first; equal excess is ordered by
        time so the earliest crowd is handled first.
        """
        violations = [(slot, self.slot_excess(c)) for slot, c in counts.items() if self.slot_excess(c) > 0]
        violations.sort(key=lambda x: (-x[1], x[0]))
        return violations

    def score_after_move(self, counts: Dict[str, int], from_slot: str, to_slot: str) -> float:
        """Score of the profile if one setup moved between slots."""
        trial = dict(counts)
        trial[from_slot] = trial.get(from_slot, 0) - 1
        trial[to_slot] = trial.get(to_slot, 0) + 1
        return self.calculate_score(trial)
