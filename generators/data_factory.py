"""
Simulated day generator for the Day Planner.
STRATEGY: seeded, weighted medication mix spread evenly over the start slots,
so every run with the same seed produces the same day.
"""

import logging
import random
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from models import DayOfWeek, Medication, Patient, StaffMember, to_label
from scheduler.catalog import load_catalog
from scheduler.config import ClinicConfig

logger = logging.getLogger(__name__)

PATIENT_NAMES = [
    "Emma de Vries", "Lucas van Dam", "Sophie Jansen", "Daan Bakker", "Mila Peters",
    "Noah Visser", "Lotte de Jong", "Sem Mulder", "Julia van Dijk", "Finn de Groot",
    "Saar Hendriks", "Max Vermeer", "Eva Smit", "Thijs Boer", "Lisa de Wit",
]

# Share of the day per medication group; the remainder goes to the rest of the catalog
MEDICATION_MIX: List[Tuple[float, List[str], Optional[int]]] = [
    (0.40, ["infliximab_5mg", "infliximab_10mg"], 4),
    (0.10, ["zoledroninezuur"], 1),
    (0.10, ["ocrelizumab_schema1", "ocrelizumab_schema3"], 1),
    (0.05, ["aderlating"], 1),
]

DEFAULT_STAFF: List[Dict[str, Any]] = [
    {"name": "Carla", "max_patients": 10, "work_days": ["monday", "thursday"]},
    {"name": "Merel", "max_patients": 10, "work_days": ["monday", "friday"]},
    {"name": "Irma", "max_patients": 8, "work_days": ["monday", "friday"]},
    {"name": "Henriette", "max_patients": 10, "work_days": ["tuesday"]},
    {"name": "Emmy", "max_patients": 10, "work_days": ["tuesday", "thursday"]},
    {"name": "Yvonne", "max_patients": 8, "max_work_minutes": 360, "work_days": ["tuesday"]},
    {"name": "Joyce", "max_patients": 10, "work_days": ["wednesday"]},
    {"name": "Suzan", "max_patients": 10, "work_days": ["wednesday"]},
    {"name": "Vera", "max_patients": 8, "work_days": ["wednesday"]},
    {"name": "Chayenne", "max_patients": 5, "work_days": ["thursday"]},
    {"name": "Serina", "max_patients": 3, "work_days": ["friday"]},
]


class DayGenerator:
    def __init__(
        self,
        seed: Optional[int] = None,
        catalog: Optional[Dict[str, Medication]] = None,
        config: Optional[ClinicConfig] = None
    ):
        self.rng = random.Random(seed)
        self.catalog = catalog or load_catalog()
        self.config = config or ClinicConfig.default()

    def start_slots(self) -> List[str]:
        """
        Slots a simulated patient may start in: after the first slot of the
        day, outside breaks, up to the closing buffer.
        """
        cfg = self.config
        slots = []
        minute = cfg.day_start_minutes + cfg.slot_minutes
        while minute <= cfg.last_setup_minutes:
            if not cfg.is_break(minute):
                slots.append(to_label(minute))
            minute += cfg.slot_minutes
        return slots

    def select_medication(self) -> Tuple[str, int]:
        """Weighted pick of (medication id, treatment number)."""
        roll = self.rng.random()
        threshold = 0.0
        for share, medication_ids, treatment_number in MEDICATION_MIX:
            threshold += share
            candidates = [m for m in medication_ids if m in self.catalog]
            if roll < threshold and candidates:
                return self.rng.choice(candidates), treatment_number

        # Rest of the catalog, infusions only
        covered = {m for _, ids, _ in MEDICATION_MIX for m in ids}
        rest = [
            med for med_id, med in sorted(self.catalog.items())
            if med_id not in covered and any(
                v.timing is None or v.timing.infusion_minutes > 0 for v in med.variants
            )
        ]
        medication = self.rng.choice(rest)
        variant = self.rng.choice(medication.variants)
        return medication.id, variant.treatment_number

    def generate(self, scheduled_date: date, count: int) -> List[Patient]:
        """
        Spread `count` patients evenly over the start slots, never more than
        the slot capacity. Fewer patients are returned when the day is full.
        """
        slots = self.start_slots()
        capacity = self.config.max_concurrent_setups
        if count > len(slots) * capacity:
            logger.warning(f"Requested {count} patients but only {len(slots) * capacity} setups fit")

        base, extra = divmod(count, len(slots))
        patients: List[Patient] = []
        used_names = set()

        for index, slot in enumerate(slots):
            in_slot = min(base + (1 if index < extra else 0), capacity)
            for _ in range(in_slot):
                if len(patients) >= count:
                    break
                medication_id, treatment_number = self.select_medication()
                raw = {
                    "id": f"p-{len(patients) + 1:03d}",
                    "name": self._unique_name(used_names),
                    "start_time": slot,
                    "scheduled_date": scheduled_date.isoformat(),
                    "medication_id": medication_id,
                    "treatment_number": treatment_number,
                }
                try:
                    patients.append(Patient.model_validate(raw))
                except ValidationError as e:
                    logger.warning(f"Skipping invalid simulated patient: {e.json()}")
                    continue

        logger.info(f"Generated {len(patients)} patients for {scheduled_date.isoformat()}")
        return patients

    def generate_staff(self) -> List[StaffMember]:
        """The department's standard roster."""
        return [StaffMember.model_validate(item) for item in DEFAULT_STAFF]

    def generate_day(self, scheduled_date: date, count: int) -> Dict[str, Any]:
        """A complete day file, in the shape the runner reads."""
        day = DayOfWeek.from_date(scheduled_date)
        staff = self.generate_staff()
        return {
            "date": scheduled_date.isoformat(),
            "coordinator": None,
            "rostered_staff": [s.name for s in staff if s.works_on(day)],
            "staff": [s.model_dump(mode='json') for s in staff],
            "patients": [p.model_dump(mode='json') for p in self.generate(scheduled_date, count)],
        }

    def _unique_name(self, used_names: set) -> str:
        name = self.rng.choice(PATIENT_NAMES)
        attempts = 0
        while name in used_names and attempts < 50:
            name = self.rng.choice(PATIENT_NAMES)
            attempts += 1
        if name in used_names:
            name = f"{name} {len(used_names) + 1}"
        used_names.add(name)
        return name
