"""
Central configuration for planner tunables and shared constants.
"""

import logging
import os
from pathlib import Path

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("CHOMP_TRACE", "0")).lower() in ("1", "true", "yes", "on")

logger = logging.getLogger(__name__)

# Level used by the CLI when no verbosity flag is given
LOG_LEVEL_DEFAULT: str = os.getenv("CHOMP_LOG_LEVEL", "INFO").strip().upper()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


# Planning horizon and time step of the trajectory buffer (seconds).
# 3.0 s at 0.034 s gives 89 points.
PLANNING_HORIZON_S: float = _env_float("CHOMP_PLANNING_HORIZON_S", 3.0)
DISCRETIZATION_S: float = _env_float("CHOMP_DISCRETIZATION_S", 0.034)

# Group used when a request does not name one
DEFAULT_GROUP: str = os.getenv("CHOMP_DEFAULT_GROUP", "manipulator")

# Recovery escalation increments applied per failed attempt
RECOVERY_LEARNING_RATE_STEP: float = 0.02
RECOVERY_RIDGE_FACTOR_STEP: float = 0.002
RECOVERY_TIME_LIMIT_STEP_S: float = 5.0
RECOVERY_MAX_ITERATIONS_STEP: int = 50

# Finite difference rule length used for stencil padding
DIFF_RULE_LENGTH: int = 7

# Warm start (demonstration) data, stored in the user config directory by default.
_default_warm_start_dir = Path.home() / ".chomp_planner" / "average_datas"
WARM_START_DIR: str = os.getenv("CHOMP_WARM_START_DIR", str(_default_warm_start_dir))
DEMO_TYPE_DEFAULT: str = os.getenv("CHOMP_DEMO_TYPE", "head")


def warm_start_path(demo_type: str | None = None, directory: str | None = None) -> Path:
    """
    Resolve the warm start CSV for a demonstration type.

    Files follow the naming ``Pdtw_<demo_type>_forward_average.csv``.
    """
    demo = (demo_type or DEMO_TYPE_DEFAULT).strip()
    base = Path(directory or WARM_START_DIR)
    return base / f"Pdtw_{demo}_forward_average.csv"
