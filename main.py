#!/usr/bin/env python3
"""
Workout Plan Generator
Main entry point for the command line tool.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

import yaml
from dotenv import load_dotenv

from liftplan.config import load_config
from liftplan.errors import CatalogError, ConfigError
from liftplan.generator import WorkoutPlanGenerator
from liftplan.models import GeneratedWorkout, WorkoutContext
from liftplan.plan_output import format_plan_markdown, save_plan
from liftplan.plan_validator import summarize_validation, validate_plan
from liftplan.prompt_strategies import get_prompt_strategy


def print_banner():
    """Print welcome banner."""
    banner = """
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║        WORKOUT PLAN GENERATOR                                ║
║        Powered by Claude AI                                  ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
    """
    print(banner)


def load_data_file(path):
    """Read a YAML or JSON file (JSON is valid YAML)."""
    if not os.path.exists(path):
        print(f"Error: {path} not found!")
        sys.exit(1)

    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate a workout plan from a training context file.")
    parser.add_argument("context", help="YAML or JSON file describing the user's profile, progress and history.")
    parser.add_argument("--split", default=None, help="Force a split (push, pull, legs, upper-body, ...).")
    parser.add_argument("--request", default=None, help="Free-text request passed to Claude.")
    parser.add_argument(
        "--previous",
        default=None,
        help="JSON file of a previous plan; the new plan will not repeat its exercise set.",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml.")
    parser.add_argument("--offline", action="store_true", help="Skip Claude and use the catalog planner.")
    parser.add_argument("--output", default=None, help="Output folder (defaults to config output.folder).")
    parser.add_argument(
        "--format",
        choices=["markdown", "json"],
        default=None,
        help="Output format (defaults to config output.format).",
    )
    parser.add_argument("--verbose", action="store_true", help="Show pipeline logging.")
    return parser.parse_args(argv)


def main(argv=None):
    """Main application flow."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print_banner()

    # Load environment variables
    load_dotenv()

    print("Loading configuration...")
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)

    print("\nInitializing components...")
    try:
        generator = WorkoutPlanGenerator.from_config(config)
    except CatalogError as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)

    if args.offline:
        generator.oracle = None
    if generator.oracle is None:
        api_key_env = config["claude"]["api_key_env"]
        print(f"  Claude disabled ({'--offline' if args.offline else api_key_env + ' not set'}); using the catalog planner.")

    context = WorkoutContext.from_dict(load_data_file(args.context))
    previous_plan = None
    if args.previous:
        previous_plan = GeneratedWorkout.from_dict(load_data_file(args.previous))

    print("\n🤖 Generating your workout plan...")
    workout = asyncio.run(
        generator.generate_plan(
            context,
            custom_request=args.request,
            split_override=args.split,
            previous_plan=previous_plan,
        )
    )

    strategy = get_prompt_strategy(context.workout_type or generator.default_workout_type)
    lookup = generator.catalog.with_custom_exercises(context.custom_exercises)
    validation = validate_plan(workout, lookup, require_primary_lift=strategy.requires_primary_lift)

    print("✓ Workout plan generated!\n")
    print(format_plan_markdown(workout, lookup))
    print(summarize_validation(validation))
    for issue in validation.critical_issues + validation.feedback:
        print(f"  - {issue}")

    output_config = config.get("output", {})
    output_format = args.format or output_config.get("format", "markdown")
    save_plan(
        workout,
        lookup,
        output_folder=args.output or output_config.get("folder", "output"),
        format=output_format,
    )

    if args.verbose:
        print(json.dumps(workout.to_dict(), indent=2))


if __name__ == "__main__":
    main()
