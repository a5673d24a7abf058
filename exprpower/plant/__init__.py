from __future__ import annotations

from exprpower.plant.thermal import (
    ThermalParams,
    ThermalState,
    step_thermal,
    steady_state_temp,
)

__all__ = [
    "ThermalParams",
    "ThermalState",
    "step_thermal",
    "steady_state_temp",
]
