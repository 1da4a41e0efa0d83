"""
Protocol Expander.

Turns a medication + treatment number into the ordered action templates of a
patient's day, and places those templates on the clock.

Two kinds of templates exist:
- sequential templates start when the previous sequential one ends;
- offset templates (checks, bag changes) start at their infusion's start plus
  the offset and never push the sequence forward.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from models import ActionTemplate, ActionType, Medication, ProtocolVariant
from .config import ClinicConfig

logger = logging.getLogger(__name__)


class ProtocolNotFoundError(LookupError):
    """Raised when a medication / treatment number combination is unknown."""

    def __init__(self, medication_id: str, treatment_number: int, reason: str):
        super().__init__(f"No protocol for {medication_id} #{treatment_number}: {reason}")
        self.medication_id = medication_id
        self.treatment_number = treatment_number


@dataclass(frozen=True)
class TimedAction:
    """A template placed on the clock, in minutes since midnight."""
    template: ActionTemplate
    start_minutes: int

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.template.duration_minutes

    @property
    def work_end_minutes(self) -> int:
        return self.start_minutes + self.template.work_minutes


class ProtocolExpander:
    """
    Pure lookup/expansion over a medication catalog.
    """

    def __init__(self, catalog: Dict[str, Medication], config: Optional[ClinicConfig] = None):
        self.catalog = catalog
        self.config = config or ClinicConfig.default()

    def medication(self, medication_id: str, treatment_number: int = 1) -> Medication:
        medication = self.catalog.get(medication_id)
        if medication is None:
            raise ProtocolNotFoundError(medication_id, treatment_number, "unknown medication")
        return medication

    def expand(self, medication_id: str, treatment_number: int) -> List[ActionTemplate]:
        """Ordered action templates for a treatment. Raises ProtocolNotFoundError."""
        medication = self.medication(medication_id, treatment_number)
        variant = medication.resolve_variant(treatment_number)
        if variant is None:
            raise ProtocolNotFoundError(
                medication_id, treatment_number,
                f"lowest defined treatment number is {min(v.treatment_number for v in medication.variants)}"
            )
        if variant.treatment_number != treatment_number:
            logger.debug(f"{medication_id} #{treatment_number} resolved to variant #{variant.treatment_number}")

        if variant.actions:
            return list(variant.actions)

        return self._expand_timing(medication, variant)

    def total_duration(self, templates: List[ActionTemplate]) -> int:
        """Chair time of a timeline, offset actions included."""
        timed = self.materialize(0, templates)
        if not timed:
            return 0
        return max(t.end_minutes for t in timed)

    def materialize(self, start_minutes: int, templates: List[ActionTemplate]) -> List[TimedAction]:
        """Place templates on the clock starting at the patient's start time."""
        timed: List[TimedAction] = []
        cursor = start_minutes
        anchor = start_minutes  # start of the most recent infusion

        for template in templates:
            if template.has_offset:
                timed.append(TimedAction(template, anchor + template.check_offset_minutes))
                continue

            if template.type == ActionType.INFUSION:
                anchor = cursor
            timed.append(TimedAction(template, cursor))
            cursor += template.duration_minutes

        return timed

    def setup_minutes_for(self, start_minutes: int, templates: List[ActionTemplate]) -> int:
        """Clock minute of the first setup, or the patient start when there is none."""
        for timed in self.materialize(start_minutes, templates):
            if timed.template.type == ActionType.SETUP:
                return timed.start_minutes
        return start_minutes

    # --- Timing-based expansion ---

    def _expand_timing(self, medication: Medication, variant: ProtocolVariant) -> List[ActionTemplate]:
        cfg = self.config
        timing = variant.timing
        actions: List[ActionTemplate] = []

        # Subcutaneous injections: a single nurse action and optional observation
        if timing.infusion_minutes == 0:
            actions.append(ActionTemplate(
                name=f"{medication.display_name} Toedienen (SC)",
                type=ActionType.SETUP,
                duration_minutes=timing.nurse_minutes or cfg.setup_minutes,
            ))
            if timing.observation_minutes > 0:
                actions.append(ActionTemplate(
                    name="Observatie", type=ActionType.OBSERVATION, duration_minutes=timing.observation_minutes
                ))
            return actions

        actions.append(ActionTemplate(name="Infuus Aanbrengen", type=ActionType.SETUP, duration_minutes=cfg.setup_minutes))
        actions.append(ActionTemplate(
            name=f"{medication.display_name} Loopt",
            type=ActionType.INFUSION,
            duration_minutes=timing.infusion_minutes,
        ))

        switch_offsets = self._pc_switch_offsets(medication, timing.infusion_minutes)
        actions.extend(self._checks(medication, timing.infusion_minutes, switch_offsets))
        for index, offset in enumerate(switch_offsets, start=1):
            actions.append(ActionTemplate(
                name=f"PC Wisselen {index}",
                type=ActionType.PC_SWITCH,
                duration_minutes=medication.pc_switch_duration,
                check_offset_minutes=offset,
            ))

        if timing.observation_minutes > 0:
            actions.append(ActionTemplate(
                name="Observatie", type=ActionType.OBSERVATION, duration_minutes=timing.observation_minutes
            ))
        if timing.flush_minutes > 0:
            actions.append(ActionTemplate(
                name="Spoelen",
                type=ActionType.FLUSH,
                duration_minutes=timing.flush_minutes,
                actual_duration_minutes=cfg.flush_work_minutes,
            ))
        actions.append(ActionTemplate(name="Infuus Afkoppelen", type=ActionType.REMOVAL, duration_minutes=cfg.removal_minutes))
        return actions

    def _pc_switch_offsets(self, medication: Medication, infusion_minutes: int) -> List[int]:
        interval = medication.pc_switch_interval
        if not interval or infusion_minutes <= interval:
            return []
        return [i * interval for i in range(1, infusion_minutes // interval + 1)]

    def _checks(self, medication: Medication, infusion_minutes: int, switch_offsets: List[int]) -> List[ActionTemplate]:
        interval = medication.check_interval
        if not medication.checks_enabled or not interval or infusion_minutes <= interval:
            return []

        duration = self.config.check_minutes
        switch_length = medication.pc_switch_duration or 0
        last_offset = infusion_minutes - self.config.check_end_margin_minutes

        checks: List[ActionTemplate] = []
        offset = interval
        while offset <= last_offset:
            # Skip checks that collide with a bag change
            clashes = any(offset < s + switch_length and s < offset + duration for s in switch_offsets)
            if not clashes:
                checks.append(ActionTemplate(
                    name=f"Check {len(checks) + 1}",
                    type=ActionType.CHECK,
                    duration_minutes=duration,
                    check_offset_minutes=offset,
                ))
            offset += interval
        return checks
