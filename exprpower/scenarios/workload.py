from __future__ import annotations

from typing import Callable, Mapping, Sequence

from exprpower.config import WorkloadPhase
from exprpower.cosim.interfaces import ActivitySample
from exprpower.power.interfaces import PowerStateSlot

# Type alias for schedule functions
Schedule = Callable[[int], ActivitySample]


def constant_activity(
    slot: PowerStateSlot | str = PowerStateSlot.BASE,
    stats: Mapping[str, float] | None = None,
) -> Schedule:
    """
    Constant slot and statistic values for the whole run.

    Args:
        slot: Active power state slot
        stats: Scalar statistic values applied every chunk

    Returns:
        Schedule function: cycle -> ActivitySample
    """
    sample = ActivitySample(slot=PowerStateSlot.parse(slot), stats=dict(stats or {}))

    def schedule(cycle: int) -> ActivitySample:
        return sample
    return schedule


def stage_sweep(
    cycles_per_stage: int,
    stages: int = 8,
    stats: Mapping[str, float] | None = None,
) -> Schedule:
    """
    Walk through stage_0 .. stage_{stages-1}, cycles_per_stage cycles
    each, wrapping around.

    Useful for checking that every stage slot is wired to a formula.
    """
    if cycles_per_stage <= 0:
        raise ValueError("cycles_per_stage must be > 0")
    if not 1 <= stages <= 8:
        raise ValueError("stages must be in [1, 8]")
    fixed = dict(stats or {})

    def schedule(cycle: int) -> ActivitySample:
        idx = (cycle // cycles_per_stage) % stages
        return ActivitySample(slot=PowerStateSlot.stage(idx), stats=fixed)
    return schedule


def phased_activity(phases: Sequence[WorkloadPhase]) -> Schedule:
    """
    Piecewise activity from workload phases ordered by until_cycle.

    A phase applies while cycle < until_cycle; past the last bound the
    last phase is held. With no phases the schedule is BASE with no
    statistic updates.
    """
    phases = tuple(phases)
    bounds = [p.until_cycle for p in phases]
    if bounds != sorted(bounds):
        raise ValueError("phases must be ordered by until_cycle")
    samples = [ActivitySample(slot=p.slot, stats=dict(p.stats)) for p in phases]

    def schedule(cycle: int) -> ActivitySample:
        if not samples:
            return ActivitySample()
        for bound, sample in zip(bounds, samples):
            if cycle < bound:
                return sample
        return samples[-1]
    return schedule
