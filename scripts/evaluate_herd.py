"""
Run a DSS calculate from the command line.

Reads event batches from a JSON file shaped as
    {"registrations": [...], "w1": [...], "w2": [...], ...}
fuses them, scores every animal and prints a summary table (or the full
evaluation as JSON).

Usage:
    python scripts/evaluate_herd.py events.json [--rubric rubric.json] [--json out.json]
    python scripts/evaluate_herd.py --write-default-rubric rubric.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

sys.path.append(str(Path(__file__).resolve().parents[1]))

from scoring_engine import (  # noqa: E402
    HerdEvaluation,
    default_rubric,
    evaluate_herd,
    get_active_rubric,
    load_rubric,
    save_rubric,
)


def load_event_data(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise SystemExit(f"{path}: expected an object of event batches")
    return data


def print_summary(evaluation: HerdEvaluation) -> None:
    print("=" * 70)
    print(f"{'ID':<28} {'DSS':>6}  {'Class':<10} Cull reason")
    print("=" * 70)
    for animal in evaluation.animals:
        print(
            f"{animal.id:<28} {animal.dssmark:>6.1f}  "
            f"{animal.classification.value:<10} {animal.cull_reason or ''}"
        )

    report = evaluation.fusion
    print("-" * 70)
    print(f"Animals: {report.animal_count}   Records: {report.records_seen}   "
          f"Dropped: {report.records_dropped}   Ambiguous: {report.ambiguous_matches}")
    for name, count in evaluation.statistics.by_classification.items():
        print(f"  {name}: {count}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Fuse livestock event batches and score each animal")
    parser.add_argument("events", nargs="?", type=Path, help="JSON file of event batches")
    parser.add_argument("--rubric", type=Path, help="JSON rubric (default: DSS_RUBRIC_PATH or stock rubric)")
    parser.add_argument("--json", dest="json_out", type=Path, help="Write the full evaluation as JSON")
    parser.add_argument("--write-default-rubric", type=Path, help="Write the stock rubric and exit")
    args = parser.parse_args(argv)

    if args.write_default_rubric:
        path = save_rubric(default_rubric(), args.write_default_rubric)
        print(f"Wrote default rubric to {path}")
        return 0

    if args.events is None:
        parser.error("events file is required")

    rubric = load_rubric(args.rubric) if args.rubric else get_active_rubric()
    evaluation = evaluate_herd(load_event_data(args.events), rubric)

    if args.json_out:
        args.json_out.parent.mkdir(parents=True, exist_ok=True)
        args.json_out.write_text(evaluation.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        print(f"Wrote evaluation to {args.json_out}")

    print_summary(evaluation)
    return 0


if __name__ == "__main__":
    sys.exit(main())
