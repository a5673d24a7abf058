from __future__ import annotations

from exprpower.stats.dump import dump_stats
from exprpower.stats.registry import (
    Formula,
    Scalar,
    StatInfo,
    StatSample,
    StatsRegistry,
    Vector,
)

__all__ = [
    "StatsRegistry",
    "StatInfo",
    "StatSample",
    "Scalar",
    "Vector",
    "Formula",
    "dump_stats",
]
