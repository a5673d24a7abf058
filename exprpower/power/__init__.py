from __future__ import annotations

from exprpower.power.getters import PowerGetters, register_power_stats
from exprpower.power.interfaces import (
    EvalResult,
    PMType,
    PowerKind,
    PowerSource,
    PowerStateSlot,
    getter_name,
    stat_name,
)
from exprpower.power.mathexpr_model import TEMPERATURE_VAR, LeafPowerEvaluator
from exprpower.power.power_model import PowerAggregator, ThermalProbeListener

__all__ = [
    "EvalResult",
    "LeafPowerEvaluator",
    "PMType",
    "PowerAggregator",
    "PowerGetters",
    "PowerKind",
    "PowerSource",
    "PowerStateSlot",
    "TEMPERATURE_VAR",
    "ThermalProbeListener",
    "getter_name",
    "register_power_stats",
    "stat_name",
]
