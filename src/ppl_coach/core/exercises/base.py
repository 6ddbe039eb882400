"""
Base types for exercise definitions.

ExerciseDefinition describes one exercise the coach can put in a workout:
what it is called, how it is measured and which workout type it belongs to.
"""

from dataclasses import dataclass
from typing import Literal

Unit = Literal["reps", "seconds"]
Category = Literal["push", "pull", "legs"]


@dataclass(frozen=True)
class ExerciseDefinition:
    """
    Static configuration for one exercise.

    Immutable and loaded once at import time from the bundled YAML files.
    """

    key: str                  # e.g. "trx_pushup"; key of the session record
    name: str                 # e.g. "TRX PUSH-UP"
    unit: Unit                # "reps" | "seconds"
    instruction: str
    category: Category        # workout type this exercise is trained on
    order: int = 0            # position within its workout
    demo_id: str | None = None  # optional video reference

    def __post_init__(self) -> None:
        if self.unit not in ("reps", "seconds"):
            raise ValueError(f"Invalid unit for {self.key!r}: {self.unit!r}")
        if self.category not in ("push", "pull", "legs"):
            raise ValueError(f"Invalid category for {self.key!r}: {self.category!r}")
