"""Global configuration: constants, solver settings, logging level."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Interchange annotation schema
ANNOTATION_PREFIX = "#@"
FORMAT_NAME = "buildcheck"
FORMAT_VERSION = 1

# Geometric tolerances (inches / degrees)
DEFAULT_CONTACT_TOLERANCE = 1e-6
DEFAULT_ANGLE_TOLERANCE_DEG = 1.0
DEFAULT_MATCH_EPSILON = 1e-9

# Relative-orientation categories used when no annotation covers an overlap
ORIENTATION_PARALLEL = "parallel"
ORIENTATION_PERPENDICULAR = "perpendicular"
ORIENTATION_ANGLED = "angled"

# Annotation categories allowed by the default pair-rule registry
DEFAULT_ALLOWED_CATEGORIES = ("angled_joint", "cut")

# Environment variable prefix for settings overrides
ENV_PREFIX = "BUILDCHECK_"


class SolverSettings(BaseModel):
    """Tunable parameters for a solve run."""

    contact_tolerance: float = Field(default=DEFAULT_CONTACT_TOLERANCE, ge=0.0)
    """Crossings closer than this to a boundary count as contact, not intersection."""

    angle_tolerance: float = Field(default=DEFAULT_ANGLE_TOLERANCE_DEG, ge=0.0)
    """Degrees of slack when comparing relative orientations."""

    match_epsilon: float = Field(default=DEFAULT_MATCH_EPSILON, ge=0.0)
    """Slack added to the combined capture radius of two connection points."""

    require_all_points: bool = False
    """Flag every unmatched connection point, not only freestanding parts."""

    max_workers: int = Field(default=1, ge=1)
    """Thread-pool size for geometry pair tests. 1 runs sequentially."""

    log_level: str = "WARNING"


# Keys that may be overridden from the environment, with their coercions
_ENV_KEYS: dict[str, Any] = {
    "contact_tolerance": float,
    "angle_tolerance": float,
    "match_epsilon": float,
    "require_all_points": lambda v: v.strip().lower() in ("1", "true", "yes", "on"),
    "max_workers": int,
    "log_level": str,
}


def load_settings(config_path: str | Path | None = None) -> SolverSettings:
    """Load merged settings: defaults -> JSON file -> environment variables.

    Unreadable config files are logged and ignored; invalid values raise
    :class:`pydantic.ValidationError`.
    """
    data: dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if path.is_file():
            try:
                loaded = json.loads(path.read_text(encoding="utf-8"))
                if isinstance(loaded, dict):
                    data.update(loaded)
                else:
                    logger.warning("Ignoring non-object settings file %s", path)
            except (json.JSONDecodeError, OSError):
                logger.warning("Could not read settings file %s", path, exc_info=True)

    for key, coerce in _ENV_KEYS.items():
        env_val = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
        if env_val is not None:
            try:
                data[key] = coerce(env_val)
            except ValueError:
                logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, key.upper(), env_val)

    return SolverSettings.model_validate(data)


def configure_logging(settings: SolverSettings | None = None) -> None:
    """Apply the settings' log level to the ``buildcheck`` logger."""
    settings = settings or SolverSettings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        logger.warning("Unknown log level %r; keeping current level", settings.log_level)
        return
    logging.getLogger("buildcheck").setLevel(level)
