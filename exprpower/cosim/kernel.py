"""
Simulation kernel for exprpower.

PowerSimKernel is the central orchestrator of a power simulation. It manages:
- Time advancement in discrete chunks
- Applying host activity (scalar statistics, active slot) per chunk
- Querying every power model
- Sampling the statistics registry
- Stepping the thermal plant, which feeds temperature back to the models

Architecture:
```
    PowerSimKernel (Time Authority)
        |
        +-- Schedule (optional)
        |   |-- cycle -> ActivitySample
        |
        +-- PowerSystem
        |   |-- StatsRegistry
        |   |-- PowerAggregator[] -> LeafPowerEvaluator[]
        |
        +-- ThermalRunner (optional)
        |   |-- RC plant, notifies "thermalUpdate"
        |
        v
    RunResult:
        |-- RunMetrics (timing, scenario, energy)
        |-- ChunkSummary[] (cycle ranges)
        |-- PowerSample[] (per model, per chunk)
        |-- StatsRecord[] (statistics dumps)
```

Power for a chunk is always evaluated at the temperature published before
the chunk; the thermal step that follows affects the next chunk only.

Example usage:
    >>> from exprpower.config import SimConfig, load_system_config
    >>> from exprpower.power.builder import build_power_system
    >>> from exprpower.cosim.kernel import PowerSimKernel
    >>>
    >>> system = build_power_system(load_system_config("model.json"))
    >>> system.startup()
    >>> config = SimConfig.from_args(name="example", cycles=100, cycle_chunks=10)
    >>> result = PowerSimKernel(config=config, system=system).run()
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Callable, Optional

from ..config import SimConfig
from ..errors import UseBeforeBound
from ..power.builder import PowerSystem
from ..power.interfaces import PowerKind
from ..stats.dump import dump_stats
from ..stats.registry import Scalar
from .interfaces import (
    ActivitySample,
    ChunkSummary,
    PowerSample,
    RunMetrics,
    RunResult,
    StatsRecord,
)
from .thermal_runner import ThermalRunner

logger = logging.getLogger(__name__)

Schedule = Callable[[int], ActivitySample]


class PowerSimKernel:
    """
    Simulation kernel - the central orchestrator for exprpower.

    The kernel manages time advancement and coordinates all simulation
    components. Time is advanced in discrete "chunks" of cycles; each
    chunk boundary is a synchronization point between the host activity,
    the power models and the thermal plant.

    Attributes:
        _cfg: Simulation configuration (name, cycles, chunk size, dt).
        _system: Started power system.
        _schedule: Optional activity schedule; BASE slot with no
                   statistic updates when None.
        _thermal: Optional thermal runner.
    """

    def __init__(
        self,
        config: SimConfig,
        system: PowerSystem,
        schedule: Optional[Schedule] = None,
        thermal: Optional[ThermalRunner] = None,
    ) -> None:
        # ─────────────────────────────────────────────────────────────
        # Store configuration and components
        # ─────────────────────────────────────────────────────────────
        self._cfg = config
        self._system = system
        self._schedule = schedule
        self._thermal = thermal

    def _apply_activity(self, activity: ActivitySample) -> None:
        registry = self._system.registry
        for name, value in activity.stats.items():
            stat = registry.resolve(name)
            if not isinstance(stat, Scalar):
                raise ValueError(f"activity names unknown scalar statistic '{name}'")
            stat.set(value)

    def run(self) -> RunResult:
        """
        Run the simulation.

        For each chunk boundary:
        1. Apply the scheduled activity (scalar statistics, active slot)
        2. Query dynamic and static power of every model
        3. Sample the statistics registry
        4. Step the thermal plant with the total power (if configured)

        Returns:
            RunResult with metrics, chunks, power samples and stats dumps.

        Raises:
            UseBeforeBound: If the power system was not started.
            PowerModelError: Propagated from any failing model query.
        """
        if not self._system.started:
            raise UseBeforeBound("power system must be started before running")

        # ─────────────────────────────────────────────────────────────
        # Record simulation start time (wall clock)
        # ─────────────────────────────────────────────────────────────
        start_time = datetime.now(timezone.utc).isoformat()

        cycles = self._cfg.cycles
        step = self._cfg.cycle_chunks
        dt_s = self._cfg.dt_s

        chunks: list[ChunkSummary] = []
        power_samples: list[PowerSample] = []
        stat_records: list[StatsRecord] = []
        energy_terms: list[float] = []

        # Publish the initial plant temperature so models start from it
        if self._thermal is not None:
            self._thermal.publish()

        cur = 0
        idx = 0

        # ─────────────────────────────────────────────────────────────
        # Main simulation loop
        # ─────────────────────────────────────────────────────────────
        while cur < cycles:
            # nxt is exclusive: chunk covers [cur, nxt)
            nxt = min(cur + step, cycles)
            chunks.append(ChunkSummary(chunk_idx=idx, start_cycle=cur, end_cycle=nxt))

            activity = self._schedule(cur) if self._schedule is not None else ActivitySample()
            self._apply_activity(activity)

            # ─────────────────────────────────────────────────────────
            # Query every model in the active slot
            # ─────────────────────────────────────────────────────────
            total_w = 0.0
            for model in self._system.models:
                sample = PowerSample(
                    cycle=cur,
                    model=model.name,
                    slot=activity.slot.value,
                    dynamic_w=model.get_power(activity.slot, PowerKind.DYNAMIC),
                    static_w=model.get_power(activity.slot, PowerKind.STATIC),
                    temp_c=self._thermal.temp_c if self._thermal is not None
                    else model.ambient_temp_c,
                )
                power_samples.append(sample)
                total_w += sample.total_w

            # Chunk duration scales with its cycle share of a full chunk
            chunk_dt = dt_s * (nxt - cur) / step
            energy_terms.append(total_w * chunk_dt)

            stat_records.append(StatsRecord(cycle=cur, values=dump_stats(self._system.registry)))

            # ─────────────────────────────────────────────────────────
            # Step the thermal plant; affects the next chunk only
            # ─────────────────────────────────────────────────────────
            if self._thermal is not None:
                self._thermal.step(total_w, chunk_dt)

            logger.debug("chunk %d [%d, %d): slot=%s P=%.6f W",
                         idx, cur, nxt, activity.slot.value, total_w)

            cur = nxt
            idx += 1

        finish_time = datetime.now(timezone.utc).isoformat()
        metrics = RunMetrics(
            total_cycles=cycles,
            total_chunks=len(chunks),
            start_time=start_time,
            finish_time=finish_time,
            scenario_name=self._cfg.name,
            total_energy_j=math.fsum(energy_terms),
        )

        # Validate that metrics are serializable (fail-fast check)
        _ = asdict(metrics)

        logger.info("run '%s' finished: %d chunks, %.6f J",
                    self._cfg.name, len(chunks), metrics.total_energy_j)

        return RunResult(
            metrics=metrics,
            chunks=chunks,
            power_samples=power_samples,
            stat_records=stat_records,
        )
