"""
Render and save generated plans.
"""

import json
import os
from datetime import datetime


def format_plan_markdown(workout, catalog):
    """Render a plan as markdown, one ### block per exercise."""
    lines = [f"# {workout.title}", ""]
    if workout.description:
        lines.extend([workout.description, ""])
    lines.append(f"**Difficulty:** {workout.difficulty}  ")
    lines.append(f"**Estimated duration:** {workout.estimated_duration} min")
    lines.append("")

    for index, exercise in enumerate(workout.exercises, start=1):
        lines.append(f"### {index}. {catalog.name_for(exercise.id)}")
        lines.append(f"- {exercise.sets} x {exercise.reps}")
        lines.append(f"- **Id:** {exercise.id}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def save_plan(workout, catalog, output_folder="output", format="markdown"):
    """
    Save the generated plan to a timestamped file.

    Args:
        workout: GeneratedWorkout to save
        catalog: ExerciseCatalog used for display names
        output_folder: Folder to save the plan
        format: File format (markdown or json)

    Returns:
        Path of the written file, or None when there is no plan
    """
    if not workout:
        print("No plan to save.")
        return None

    os.makedirs(output_folder, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if format == "json":
        filepath = os.path.join(output_folder, f"workout_plan_{timestamp}.json")
        content = json.dumps(workout.to_dict(), indent=2)
    else:
        filepath = os.path.join(output_folder, f"workout_plan_{timestamp}.md")
        content = format_plan_markdown(workout, catalog)

    with open(filepath, "w") as f:
        f.write(content)
    print(f"✓ Plan saved to: {filepath}")

    return filepath
