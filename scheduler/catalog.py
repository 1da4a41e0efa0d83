"""
Protocol reference data for the infusion department.

Timing blocks per medication and treatment number (1=first, 2=2nd-3rd,
3=4th-6th, 4=7th+). Minutes: infusion, nurse, observation, flush.
"""

from typing import Dict, List

from models import Medication

_RAW_MEDICATIONS: List[dict] = [
    # === IMMUNOTHERAPY ===
    {
        "id": "abatacept", "name": "Abatacept", "display_name": "Abatacept", "category": "immunotherapy",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 30, "nurse_minutes": 30, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 30, "nurse_minutes": 20, "observation_minutes": 30, "flush_minutes": 5}},
        ],
    },
    {
        "id": "risankizumab", "name": "Risankizumab", "display_name": "Risankizumab", "category": "immunotherapy",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 120, "nurse_minutes": 30, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 60, "nurse_minutes": 20, "observation_minutes": 30, "flush_minutes": 5}},
        ],
    },
    {
        "id": "infliximab_5mg", "name": "Infliximab / Inflectra 5 mg", "display_name": "Infliximab 5mg",
        "category": "immunotherapy", "notes": "Opbouw 0-2-6 wkn; daarna 8-wekelijks",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 120, "nurse_minutes": 30, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 120, "nurse_minutes": 20, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 3, "timing": {"infusion_minutes": 60, "nurse_minutes": 20, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 4, "timing": {"infusion_minutes": 30, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    {
        "id": "infliximab_10mg", "name": "Infliximab / Inflectra 10 mg", "display_name": "Infliximab 10mg",
        "category": "immunotherapy",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 180, "nurse_minutes": 30, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 180, "nurse_minutes": 20, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 3, "timing": {"infusion_minutes": 90, "nurse_minutes": 20, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 4, "timing": {"infusion_minutes": 60, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    {
        "id": "rituximab_day15", "name": "Rituximab dag 15", "display_name": "Rituximab d15", "category": "immunotherapy",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 60, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    {
        "id": "tocilizumab_first", "name": "Tocilizumab", "display_name": "Tocilizumab", "category": "immunotherapy",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 60, "nurse_minutes": 30, "observation_minutes": 45, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 30, "nurse_minutes": 20, "observation_minutes": 45, "flush_minutes": 5}},
        ],
    },
    {
        "id": "vedolizumab_third_plus", "name": "Vedolizumab (3e+)", "display_name": "Vedolizumab",
        "category": "immunotherapy",
        "variants": [
            {"treatment_number": 3, "timing": {"infusion_minutes": 30, "nurse_minutes": 20, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 4, "timing": {"infusion_minutes": 30, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    {
        "id": "natalizumab_sc", "name": "Natalizumab SC", "display_name": "Natalizumab SC", "category": "immunotherapy",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 0, "nurse_minutes": 2, "observation_minutes": 60}},
            {"treatment_number": 7, "timing": {"infusion_minutes": 0, "nurse_minutes": 2}},
        ],
    },
    {
        "id": "ocrelizumab_schema1", "name": "Ocrelizumab schema 1", "display_name": "Ocrelizumab",
        "category": "immunotherapy", "check_interval": 60, "checks_enabled": True,
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 290, "nurse_minutes": 30, "observation_minutes": 60, "flush_minutes": 5}},
        ],
    },
    {
        "id": "ocrelizumab_schema3", "name": "Ocrelizumab schema 3", "display_name": "Ocrelizumab",
        "category": "immunotherapy", "check_interval": 60, "checks_enabled": True,
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 220, "nurse_minutes": 20, "observation_minutes": 60, "flush_minutes": 5}},
            {"treatment_number": 4, "timing": {"infusion_minutes": 220, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    # === TRANSFUSION ===
    {
        "id": "transfusion_1pc", "name": "Bloedtransfusie 1 PC", "display_name": "Transfusie 1PC",
        "category": "transfusion", "check_interval": 30, "checks_enabled": True,
        "pc_switch_interval": 120, "pc_switch_duration": 8,
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 90, "nurse_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 90, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    {
        "id": "transfusion_2pc", "name": "Bloedtransfusie 2 PC", "display_name": "Transfusie 2PC",
        "category": "transfusion", "check_interval": 30, "checks_enabled": True,
        "pc_switch_interval": 120, "pc_switch_duration": 8,
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 180, "nurse_minutes": 37, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 180, "nurse_minutes": 27, "flush_minutes": 5}},
        ],
    },
    # === IRON ===
    {
        "id": "monofer_1000mg", "name": "Monofer 1000 mg", "display_name": "Monofer 1000mg", "category": "iron",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 55, "nurse_minutes": 30, "observation_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 55, "nurse_minutes": 20, "observation_minutes": 30, "flush_minutes": 5}},
        ],
    },
    {
        "id": "ferinject_1000mg", "name": "Ferinject 1000 mg", "display_name": "Ferinject 1000mg", "category": "iron",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 60, "nurse_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 60, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    # === GENERAL INFUSIONS ===
    {
        "id": "immunoglobulin_standard", "name": "Immunoglobulinen", "display_name": "IVIG", "category": "infusion",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 170, "nurse_minutes": 30, "observation_minutes": 20, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 170, "nurse_minutes": 20, "observation_minutes": 20, "flush_minutes": 5}},
        ],
    },
    {
        "id": "methylprednisolon", "name": "Methylprednisolon", "display_name": "Methylprednisolon", "category": "infusion",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 60, "nurse_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 60, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    {
        "id": "ceftriaxon", "name": "Ceftriaxon", "display_name": "Ceftriaxon", "category": "infusion",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 50, "nurse_minutes": 20}},
        ],
    },
    {
        "id": "pamidronaat_60mg", "name": "Pamidronaat 60 mg", "display_name": "Pamidronaat 60mg", "category": "infusion",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 60, "nurse_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 60, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
    # === OTHER ===
    {
        "id": "aderlating", "name": "Aderlating", "display_name": "Aderlating", "category": "other",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 15, "nurse_minutes": 30}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 15, "nurse_minutes": 20}},
        ],
    },
    {
        "id": "zoledroninezuur", "name": "Zoledroninezuur (Zometa)", "display_name": "Zometa", "category": "other",
        "notes": "Jaarlijks; lab verplicht",
        "variants": [
            {"treatment_number": 1, "timing": {"infusion_minutes": 15, "nurse_minutes": 30, "flush_minutes": 5}},
            {"treatment_number": 2, "timing": {"infusion_minutes": 15, "nurse_minutes": 20, "flush_minutes": 5}},
        ],
    },
]


def load_catalog() -> Dict[str, Medication]:
    """Validate the built-in reference data into Medication models."""
    return {raw["id"]: Medication.model_validate(raw) for raw in _RAW_MEDICATIONS}
