from __future__ import annotations

from exprpower.scenarios.workload import (
    constant_activity,
    stage_sweep,
    phased_activity,
)

__all__ = [
    "constant_activity",
    "stage_sweep",
    "phased_activity",
]
