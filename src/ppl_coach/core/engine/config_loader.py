"""
YAML → dict config loader.

Loads model constants from coach.yaml (bundled with the package) and
optionally merges user overrides from ~/.ppl-coach/coach.yaml.

Usage:
    from ppl_coach.core.engine.config_loader import load_model_config
    cfg = load_model_config()
    rest = cfg.get("session", {}).get("rest_seconds", 90)

If the bundled YAML cannot be parsed, all lookups fall back to the Python
defaults from config.py (no crash).  If the user override file exists but has
parse errors, a warning is emitted and the file is ignored.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; warn and return {} on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"ppl-coach: ignoring {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def user_config_dir() -> Path:
    """Return ~/.ppl-coach (not guaranteed to exist)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".ppl-coach"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled coach.yaml, or None if not found."""
    ref = importlib.resources.files("ppl_coach").joinpath("coach.yaml")
    if ref.is_file():
        with importlib.resources.as_file(ref) as p:
            return p
    candidate = Path(__file__).parent.parent.parent / "coach.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.ppl-coach/coach.yaml if it exists, else None."""
    p = user_config_dir() / "coach.yaml"
    return p if p.exists() else None


def load_model_config() -> dict[str, Any]:
    """
    Load and merge model configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/ppl_coach/coach.yaml
    2. User override at ~/.ppl-coach/coach.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = deep_merge(config, load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = load_yaml_file(user)
        if user_cfg:
            config = deep_merge(config, user_cfg)

    return config
