"""
Exercise registry.

All supported exercises are registered here.  Use get_exercise() to look up
an ExerciseDefinition by its key, or exercises_for_type() to get the ordered
exercise list of a workout.

Exercises are loaded from per-exercise YAML files in the bundled
``src/ppl_coach/exercises/`` directory at import time.  If no definition can
be loaded a RuntimeError is raised: the coach cannot start without them.

User overrides: place matching files in ``~/.ppl-coach/exercises/``.
"""

from .base import ExerciseDefinition


def _build_registry() -> dict[str, ExerciseDefinition]:
    from .loader import load_exercises_from_yaml

    loaded = load_exercises_from_yaml()
    if not loaded:
        raise RuntimeError(
            "ppl-coach: no exercise definitions could be loaded from YAML. "
            "Check that src/ppl_coach/exercises/*.yaml files are present and valid."
        )
    return loaded


EXERCISE_REGISTRY: dict[str, ExerciseDefinition] = _build_registry()


def get_exercise(key: str) -> ExerciseDefinition:
    """
    Return the ExerciseDefinition for the given key.

    Raises:
        ValueError: If key is not in the registry
    """
    if key not in EXERCISE_REGISTRY:
        valid = ", ".join(EXERCISE_REGISTRY)
        raise ValueError(f"Unknown exercise '{key}'. Valid keys: {valid}")
    return EXERCISE_REGISTRY[key]


def exercises_for_type(workout_type: str) -> list[ExerciseDefinition]:
    """Exercises of one workout type in training order ([] for "rest")."""
    matching = [ex for ex in EXERCISE_REGISTRY.values() if ex.category == workout_type]
    return sorted(matching, key=lambda ex: (ex.order, ex.key))
