#!/usr/bin/env python3
"""
Main Execution Script for the Infusion Day Planner.

Usage:
  # Rebalance a day file and write the new plan
  python run_scheduler.py --input day.json --output planned.json

  # Simulate a day of 30 patients first, then rebalance it
  python run_scheduler.py --simulate 30 --date 2026-10-20 --seed 7

  # Keep start times, only rebuild timelines and staffing
  python run_scheduler.py --input day.json --reassign
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).resolve().parent))

from generators.data_factory import DayGenerator
from models import Patient, StaffMember
from scheduler import (
    ClinicConfig, ProtocolExpander, load_catalog,
    rebalance_day, reassign_day, apply_updates,
    warnings, staff_utilization
)

logger = logging.getLogger("Main")


@dataclass
class DayInput:
    """Everything a planning run needs for one date."""
    date: date
    patients: List[Patient]
    staff: List[StaffMember]
    rostered_staff: List[str] = field(default_factory=list)
    coordinator: Optional[str] = None
    config: ClinicConfig = field(default_factory=ClinicConfig.default)


def parse_day(data: Dict[str, Any]) -> DayInput:
    """
    Build models from a day dictionary. Raises pydantic ValidationError or
    ValueError on bad records.
    """
    if "date" not in data:
        raise ValueError("Day file has no 'date'")
    return DayInput(
        date=date.fromisoformat(data["date"]),
        patients=[Patient.model_validate(item) for item in data.get("patients", [])],
        staff=[StaffMember.model_validate(item) for item in data.get("staff", [])],
        rostered_staff=list(data.get("rostered_staff") or []),
        coordinator=data.get("coordinator"),
        config=ClinicConfig.model_validate(data.get("config") or {}),
    )


def load_day_file(filename: Path) -> DayInput:
    with open(filename, 'r') as f:
        data = json.load(f)
    logger.info(f"Loading day file {filename}...")
    return parse_day(data)


def export_plan(filename: Path, day: DayInput, patients: List[Patient], outcome, day_warnings: List[str]) -> None:
    """Serialize the planned day for the front end."""
    data = {
        "date": day.date.isoformat(),
        "coordinator": day.coordinator,
        "result": outcome.result.model_dump(mode='json') if outcome.result else None,
        "patients": [p.model_dump(mode='json') for p in patients],
        "warnings": day_warnings,
        "staff_statistics": outcome.staff_statistics,
        "unassigned": outcome.failure_report,
    }
    with open(filename, 'w') as f:
        json.dump(data, f, indent=2)
    logger.info(f"Exported plan to {filename}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rebalance and staff an infusion day.")
    parser.add_argument("--input", help="Day file (JSON)")
    parser.add_argument("--output", default="planned_day.json", help="Where to write the planned day")
    parser.add_argument("--simulate", type=int, metavar="N", help="Generate N patients instead of reading --input")
    parser.add_argument("--date", default=None, help="Date for --simulate, YYYY-MM-DD (default: today)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for --simulate")
    parser.add_argument("--reassign", action="store_true", help="Keep start times, only rebuild staffing")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )

    # --- PHASE 1: DATA ACQUISITION (File vs. Simulation) ---
    try:
        if args.simulate is not None:
            target = date.fromisoformat(args.date) if args.date else date.today()
            day = parse_day(DayGenerator(seed=args.seed).generate_day(target, args.simulate))
        elif args.input:
            day = load_day_file(Path(args.input))
        else:
            logger.error("Nothing to plan: pass --input or --simulate")
            return 2
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read day file: {e}")
        return 1
    except (ValidationError, ValueError) as e:
        logger.error(f"Invalid day data: {e}")
        return 1

    logger.info(f"{len(day.patients)} patients, {len(day.staff)} staff on {day.date.isoformat()}")

    # --- PHASE 2: PLANNING ---
    expander = ProtocolExpander(load_catalog(), day.config)
    run = reassign_day if args.reassign else rebalance_day
    outcome = run(day.patients, day.staff, day.date, day.rostered_staff, day.coordinator, expander, day.config)
    planned = apply_updates(day.patients, outcome.updates)

    # --- PHASE 3: REPORTING ---
    day_warnings = warnings(planned, day.config, expander)
    staff_count = outcome.staff_statistics.get("staff_count") or len(day.rostered_staff) or len(day.staff)

    print("\n" + "=" * 50)
    print("DAY PLANNING REPORT")
    print("=" * 50)
    if outcome.result:
        result = outcome.result
        print(result.message)
        print(f"Score: {result.initial_score} -> {result.score} in {result.iterations} iteration(s)")
        for patient_id, start_time in result.new_start_times.items():
            print(f"  {patient_id} -> {start_time}")
        if result.skipped_patient_ids:
            print(f"Skipped (unknown protocol): {', '.join(result.skipped_patient_ids)}")
    print(f"Updated timelines: {len(outcome.updates)}")
    print(f"Unassigned staff actions: {outcome.unassigned_count}")
    print(f"Staff utilization: {staff_utilization(planned, staff_count, day.config)}%")

    for warning in day_warnings:
        print(f"WARNING {warning}")
    for failure in outcome.failure_report:
        print(f"UNASSIGNED {failure['action_type']} at {failure['start_time']}: {failure['primary_failure_cause']}")

    # --- PHASE 4: EXPORT ---
    export_plan(Path(args.output), day, planned, outcome, day_warnings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
