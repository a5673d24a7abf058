from __future__ import annotations

import pytest

from exprpower.config import WorkloadPhase
from exprpower.cosim.interfaces import ActivitySample
from exprpower.power import PowerStateSlot
from exprpower.scenarios import constant_activity, phased_activity, stage_sweep


def test_constant_activity():
    schedule = constant_activity("gc", {"system.cpu.issue_rate": 0.5})
    for cycle in (0, 10, 1000):
        sample = schedule(cycle)
        assert sample.slot is PowerStateSlot.GC
        assert sample.stats == {"system.cpu.issue_rate": 0.5}


def test_stage_sweep_wraps():
    schedule = stage_sweep(cycles_per_stage=10, stages=3)
    slots = [schedule(c).slot for c in (0, 9, 10, 25, 30, 45)]
    assert slots == [
        PowerStateSlot.STAGE_0,
        PowerStateSlot.STAGE_0,
        PowerStateSlot.STAGE_1,
        PowerStateSlot.STAGE_2,
        PowerStateSlot.STAGE_0,
        PowerStateSlot.STAGE_1,
    ]


@pytest.mark.parametrize("kwargs", [{"cycles_per_stage": 0}, {"cycles_per_stage": 5, "stages": 9}])
def test_stage_sweep_validation(kwargs):
    with pytest.raises(ValueError):
        stage_sweep(**kwargs)


def test_phased_activity():
    schedule = phased_activity([
        WorkloadPhase(until_cycle=50, slot=PowerStateSlot.BASE, stats={"a": 1.0}),
        WorkloadPhase(until_cycle=80, slot=PowerStateSlot.GC),
    ])
    assert schedule(0).slot is PowerStateSlot.BASE
    assert schedule(49).stats == {"a": 1.0}
    assert schedule(50).slot is PowerStateSlot.GC
    # Last phase is held past its bound
    assert schedule(500).slot is PowerStateSlot.GC


def test_phased_activity_empty_is_base():
    assert phased_activity([])(7) == ActivitySample()


def test_phased_activity_rejects_unordered():
    with pytest.raises(ValueError):
        phased_activity([
            WorkloadPhase(until_cycle=80, slot=PowerStateSlot.BASE),
            WorkloadPhase(until_cycle=50, slot=PowerStateSlot.GC),
        ])
