"""
Exercise definitions for ppl-coach.

Each exercise is described by an ExerciseDefinition loaded from YAML.
"""

from .base import ExerciseDefinition
from .registry import EXERCISE_REGISTRY, exercises_for_type, get_exercise

__all__ = [
    "ExerciseDefinition",
    "EXERCISE_REGISTRY",
    "exercises_for_type",
    "get_exercise",
]
