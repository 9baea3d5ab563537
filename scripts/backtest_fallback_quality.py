#!/usr/bin/env python3
"""
Sweep the deterministic fallback planner across percentiles, equipment sets,
splits and workout types, and report validator outcomes.
"""

import argparse
import json
import os
from collections import Counter
from datetime import datetime
import sys

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from liftplan.catalog import load_catalog, load_default_catalog
from liftplan.fallback_planner import build_fallback_plan, fallback_duration
from liftplan.models import EquipmentFilter, UserProfile, UserProgress, WorkoutContext, WorkoutFilters
from liftplan.plan_validator import validate_plan
from liftplan.prompt_strategies import PROMPT_STRATEGIES
from liftplan.templates import SPLIT_TEMPLATES


PERCENTILES = [0, 10, 30, 50, 80, 95]

EQUIPMENT_SETS = {
    "full_gym": ["barbell", "dumbbell", "machine", "cable", "bodyweight", "kettlebell", "smith-machine"],
    "barbell_only": ["barbell"],
    "home_dumbbell": ["dumbbell", "bodyweight"],
    "bodyweight_only": ["bodyweight"],
    "machines": ["machine", "cable"],
}


def _context_for(percentile, equipment, workout_type):
    progress = [UserProgress(exercise_id="squat", percentile_ranking=percentile)] if percentile else []
    return WorkoutContext(
        user_profile=UserProfile(body_weight=200),
        user_progress=progress,
        available_equipment=list(equipment),
        equipment_filter=EquipmentFilter(mode="custom", equipment=list(equipment)),
        workout_filters=WorkoutFilters(workout_type=workout_type),
    )


def run_backtest(catalog, splits=None, workout_types=None):
    splits = splits or list(SPLIT_TEMPLATES)
    workout_types = workout_types or list(PROMPT_STRATEGIES)

    results = []
    issue_counts = Counter()
    for workout_type in workout_types:
        strategy = PROMPT_STRATEGIES[workout_type]
        for equipment_name, equipment in EQUIPMENT_SETS.items():
            for percentile in PERCENTILES:
                for split in splits:
                    context = _context_for(percentile, equipment, workout_type)
                    plan = build_fallback_plan(
                        context,
                        catalog,
                        split=split,
                        require_primary_lift=strategy.requires_primary_lift,
                    )
                    validation = validate_plan(
                        plan, catalog, require_primary_lift=strategy.requires_primary_lift
                    )
                    for issue in validation.critical_issues + validation.feedback:
                        issue_counts[issue] += 1
                    results.append(
                        {
                            "workout_type": workout_type,
                            "equipment": equipment_name,
                            "percentile": percentile,
                            "split": split,
                            "exercise_ids": plan.exercise_ids(),
                            "duration_ok": plan.estimated_duration == fallback_duration(len(plan.exercises)),
                            "score": validation.score,
                            "is_valid": validation.is_valid,
                            "critical_issues": validation.critical_issues,
                            "feedback": validation.feedback,
                        }
                    )

    valid_count = sum(1 for result in results if result["is_valid"])
    return {
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "case_count": len(results),
        "valid_count": valid_count,
        "average_score": round(sum(r["score"] for r in results) / len(results), 1) if results else 0,
        "issue_counts": dict(issue_counts),
        "results": results,
    }


def write_reports(report, output_dir):
    os.makedirs(output_dir, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    json_path = os.path.join(output_dir, f"fallback_backtest_{stamp}.json")
    md_path = os.path.join(output_dir, f"fallback_backtest_{stamp}.md")

    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)

    lines = [
        "# Fallback Planner Backtest",
        "",
        f"- Generated at: {report['generated_at']}",
        f"- Cases: {report['case_count']}",
        f"- Valid plans: {report['valid_count']}",
        f"- Average score: {report['average_score']}",
        "",
        "## Issue Totals",
    ]
    if report["issue_counts"]:
        for issue, count in sorted(report["issue_counts"].items(), key=lambda item: (-item[1], item[0])):
            lines.append(f"- {issue}: {count}")
    else:
        lines.append("- No issues detected.")

    lines.append("")
    lines.append("## Invalid Cases")
    invalid = [result for result in report["results"] if not result["is_valid"]]
    for result in invalid[:40]:
        lines.append(
            f"- `{result['workout_type']}` | {result['equipment']} | p{result['percentile']} | "
            f"{result['split']} | score {result['score']} | {', '.join(result['critical_issues'])}"
        )
    if len(invalid) > 40:
        lines.append(f"- ... {len(invalid) - 40} more")
    if not invalid:
        lines.append("- None.")

    with open(md_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")

    return json_path, md_path


def parse_args():
    parser = argparse.ArgumentParser(description="Backtest fallback planner rule compliance.")
    parser.add_argument(
        "--catalog",
        type=str,
        default="",
        help="Optional catalog YAML path. Defaults to the packaged catalog.",
    )
    parser.add_argument(
        "--split",
        action="append",
        default=None,
        help="Restrict to one split (repeatable).",
    )
    parser.add_argument(
        "--workout-type",
        action="append",
        default=None,
        choices=sorted(PROMPT_STRATEGIES),
        help="Restrict to one workout type (repeatable).",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="output/backtest",
        help="Directory for markdown/json reports.",
    )
    return parser.parse_args()


def main():
    args = parse_args()
    catalog = load_catalog(args.catalog) if args.catalog else load_default_catalog()

    report = run_backtest(catalog, splits=args.split, workout_types=args.workout_type)
    json_path, md_path = write_reports(report, args.output_dir)

    print(
        f"Backtest complete. Cases: {report['case_count']} | Valid: {report['valid_count']} | "
        f"Average score: {report['average_score']}"
    )
    print(f"JSON report: {json_path}")
    print(f"Markdown report: {md_path}")


if __name__ == "__main__":
    main()
