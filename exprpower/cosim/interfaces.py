from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from ..power.interfaces import PowerStateSlot

# slots are used to enforce good interface hygiene, disables dynamic attribute creation.
@dataclass(frozen=True, slots=True)
class ChunkSummary:
    chunk_idx: int
    start_cycle: int
    end_cycle: int  # exclusive; [start_cycle, end_cycle)

@dataclass(frozen=True, slots=True)
class RunMetrics:
    total_cycles: int
    total_chunks: int
    start_time: str
    finish_time: str
    scenario_name: str
    total_energy_j: float = 0.0


# Workload interfaces

@dataclass(frozen=True, slots=True)
class ActivitySample:
    """
    Host activity for one chunk.

    slot selects the power state slot every model is queried in; stats are
    scalar statistic values written to the registry before the query.
    """
    slot: PowerStateSlot = PowerStateSlot.BASE
    stats: Mapping[str, float] = field(default_factory=dict)


# Time-series recording

@dataclass(frozen=True, slots=True)
class PowerSample:
    """
    Power of one model over one chunk.

    Recorded at each chunk boundary and written to power.json.
    """
    cycle: int              # First cycle of the chunk
    model: str              # Aggregator name
    slot: str               # Active slot key
    dynamic_w: float        # Dynamic power (W)
    static_w: float         # Static power (W)
    temp_c: float           # Temperature the power was evaluated at (°C)

    @property
    def total_w(self) -> float:
        return self.dynamic_w + self.static_w


@dataclass(frozen=True, slots=True)
class StatsRecord:
    """One statistics dump; None marks an invalid (failed) sample."""
    cycle: int
    values: Mapping[str, float | None]


# Run results

@dataclass(frozen=True, slots=True)
class RunResult:
    """
    Complete results from a simulation run.

    Attributes:
        metrics: Run-level metadata (timing, scenario name, counts).
        chunks: Per-chunk summaries with cycle ranges.
        power_samples: Per-chunk, per-model power samples.
        stat_records: Per-chunk statistics dumps.
    """
    metrics: RunMetrics
    chunks: list[ChunkSummary]
    power_samples: list[PowerSample]
    stat_records: list[StatsRecord]
