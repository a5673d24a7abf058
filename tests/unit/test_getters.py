from __future__ import annotations

import pytest

from exprpower.power import (
    EvalResult,
    PMType,
    PowerGetters,
    PowerKind,
    PowerStateSlot,
    getter_name,
    stat_name,
)


class RecordingSource(PowerGetters):
    """Encodes the queried slot and kind in the returned value."""

    def __init__(self) -> None:
        self.calls = []

    def get_power(self, slot, kind):
        self.calls.append((slot, kind))
        index = list(PowerStateSlot).index(slot)
        return index + (0.5 if kind is PowerKind.STATIC else 0.0)


EXPECTED_GETTERS = [
    "getDynamicPower", "getDynamicPowerGc",
    *[f"getDynamicPower_{i}" for i in range(8)],
    "getStaticPower", "getStaticPowerGc",
    *[f"getStaticPower_{i}" for i in range(8)],
]


def test_twenty_getters_exist():
    for name in EXPECTED_GETTERS:
        assert callable(getattr(PowerGetters, name)), name
    assert len(EXPECTED_GETTERS) == 20


def test_getters_route_to_get_power():
    src = RecordingSource()
    assert src.getDynamicPower() == 0.0
    assert src.getStaticPowerGc() == 1.5
    assert src.getDynamicPower_0() == 2.0
    assert src.getStaticPower_7() == 9.5
    assert src.calls == [
        (PowerStateSlot.BASE, PowerKind.DYNAMIC),
        (PowerStateSlot.GC, PowerKind.STATIC),
        (PowerStateSlot.STAGE_0, PowerKind.DYNAMIC),
        (PowerStateSlot.STAGE_7, PowerKind.STATIC),
    ]


def test_getter_metadata():
    assert PowerGetters.getStaticPower_3.__name__ == "getStaticPower_3"
    assert PowerGetters.getDynamicPowerGc.__doc__ == "Dynamic power (W) during gc."


def test_mixin_requires_get_power():
    with pytest.raises(AttributeError, match="get_power"):
        PowerGetters().getDynamicPower()


@pytest.mark.parametrize(
    "slot, kind, getter, stat",
    [
        (PowerStateSlot.BASE, PowerKind.DYNAMIC, "getDynamicPower", "dynamic_energy"),
        (PowerStateSlot.GC, PowerKind.STATIC, "getStaticPowerGc", "static_energy_gc"),
        (PowerStateSlot.STAGE_3, PowerKind.DYNAMIC, "getDynamicPower_3", "dynamic_energy_3"),
    ],
)
def test_naming_contract(slot, kind, getter, stat):
    assert getter_name(slot, kind) == getter
    assert stat_name(slot, kind) == stat


@pytest.mark.parametrize(
    "key, slot",
    [
        ("base", PowerStateSlot.BASE),
        ("GC", PowerStateSlot.GC),
        ("STAGE_4", PowerStateSlot.STAGE_4),
        ("stage_6", PowerStateSlot.STAGE_6),
        (2, PowerStateSlot.STAGE_2),
        ("7", PowerStateSlot.STAGE_7),
        (PowerStateSlot.STAGE_1, PowerStateSlot.STAGE_1),
    ],
)
def test_slot_parse(key, slot):
    assert PowerStateSlot.parse(key) is slot


@pytest.mark.parametrize("key", ["stage_8", 8, "-1", "idle"])
def test_slot_parse_rejects(key):
    with pytest.raises(ValueError):
        PowerStateSlot.parse(key)


def test_pm_type_includes():
    assert PMType.ALL.includes(PowerKind.DYNAMIC)
    assert PMType.ALL.includes(PowerKind.STATIC)
    assert PMType.STATIC.includes(PowerKind.STATIC)
    assert not PMType.STATIC.includes(PowerKind.DYNAMIC)
    assert not PMType.DYNAMIC.includes(PowerKind.STATIC)


def test_eval_result_unpacks():
    value, failed = EvalResult(1.5)
    assert (value, failed) == (1.5, False)
