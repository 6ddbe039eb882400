"""
YAML → ExerciseDefinition loader.

Loads exercise definitions from individual YAML files in the bundled
``src/ppl_coach/exercises/`` directory.  Each file (e.g. trx_row.yaml)
contains a flat exercise definition matching the ExerciseDefinition schema.

User overrides: place matching files in ``~/.ppl-coach/exercises/``.
A user file is deep-merged over the bundled definition, so only changed
keys need to be listed.  A user file whose stem does not match any bundled
file is treated as a new exercise and added to the registry.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()   # dict or None on failure
"""

from __future__ import annotations

import warnings
from pathlib import Path

from ..engine.config_loader import deep_merge, load_yaml_file, user_config_dir
from .base import ExerciseDefinition

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {
        "key",
        "name",
        "unit",
        "instruction",
        "category",
    }
)


def exercise_from_dict(d: dict) -> ExerciseDefinition:
    """Convert a raw dict (from YAML) to an ExerciseDefinition.

    Raises ValueError if any required field is absent or invalid.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"ExerciseDefinition missing fields: {sorted(missing)}")

    demo_id = d.get("demo_id")
    return ExerciseDefinition(
        key=str(d["key"]),
        name=str(d["name"]),
        unit=str(d["unit"]),  # type: ignore[arg-type]
        instruction=" ".join(str(d["instruction"]).split()),
        category=str(d["category"]),  # type: ignore[arg-type]
        order=int(d.get("order", 0)),
        demo_id=str(demo_id) if demo_id else None,
    )


def _get_bundled_exercises_dir() -> Path | None:
    """Return path to the bundled exercises/ data directory, or None if not found."""
    # loader.py lives at src/ppl_coach/core/exercises/loader.py
    # three levels up → src/ppl_coach/
    candidate = Path(__file__).parent.parent.parent / "exercises"
    return candidate if candidate.is_dir() else None


def _get_user_exercises_dir() -> Path | None:
    """Return ~/.ppl-coach/exercises/ if it exists, else None."""
    p = user_config_dir() / "exercises"
    return p if p.is_dir() else None


def _add(result: dict[str, ExerciseDefinition], raw: dict, label: str) -> None:
    try:
        ex = exercise_from_dict(raw)
    except ValueError as exc:
        warnings.warn(f"ppl-coach: skipping exercise '{label}': {exc}", stacklevel=3)
        return
    result[ex.key] = ex


def load_exercises_from_yaml() -> dict[str, ExerciseDefinition] | None:
    """Return {key: ExerciseDefinition} loaded from per-exercise YAML files.

    Loads each ``<key>.yaml`` from the bundled exercises/ directory.
    If a matching file exists in ``~/.ppl-coach/exercises/`` it is
    deep-merged over the bundled definition (user can override any field).
    User-only files (no bundled counterpart) are loaded as new exercises.

    Returns None (rather than raising) so the registry can report the failure.
    """
    bundled_dir = _get_bundled_exercises_dir()
    user_dir = _get_user_exercises_dir()

    if bundled_dir is None and user_dir is None:
        return None

    result: dict[str, ExerciseDefinition] = {}

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    for stem, bundled_path in stems.items():
        raw = load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = load_yaml_file(user_path)
                if user_raw:
                    raw = deep_merge(raw, user_raw)
        _add(result, raw, stem)

    for p in user_only:
        raw = load_yaml_file(p)
        if raw:
            _add(result, raw, p.stem)

    return result if result else None
