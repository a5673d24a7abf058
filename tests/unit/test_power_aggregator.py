from __future__ import annotations

import logging

import pytest

from exprpower.errors import (
    DuplicateRegistration,
    EvaluationError,
    PowerModelError,
    UseBeforeBound,
)
from exprpower.power import (
    LeafPowerEvaluator,
    PMType,
    PowerAggregator,
    PowerKind,
    PowerStateSlot,
)
from exprpower.power.power_model import THERMAL_PROBE_POINT
from exprpower.probe import ProbeManager
from exprpower.stats import StatsRegistry

BASE = PowerStateSlot.BASE
GC = PowerStateSlot.GC
DYN = PowerKind.DYNAMIC
STAT = PowerKind.STATIC


@pytest.fixture
def registry() -> StatsRegistry:
    reg = StatsRegistry()
    reg.scalar("system.cpu.issue_rate", value=2.0)
    reg.scalar("system.cpu.zero", value=0.0)
    reg.finalize()
    return reg


def _leaf(registry, slot, *, dynamic="", static="", started=True, **constants):
    pm = LeafPowerEvaluator(
        f"system.cpu.power_model.{slot.value}",
        registry,
        dynamic={slot: dynamic},
        static={slot: static},
        constants=constants,
    )
    if started:
        pm.startup()
    return pm


@pytest.fixture
def bound_model(registry) -> PowerAggregator:
    model = PowerAggregator("system.cpu.power_model", ambient_temp_c=30.0)
    model.register_state(BASE, _leaf(registry, BASE, dynamic="0.5 * issue_rate", static="k * temp", k=2.0))
    model.register_state(GC, _leaf(registry, GC, dynamic="3", static="0.1"))
    model.bind()
    return model


def test_get_power_delegates_to_slot(bound_model):
    assert bound_model.get_power(BASE, DYN) == 1.0
    assert bound_model.get_power(GC, DYN) == 3.0
    assert bound_model.getDynamicPowerGc() == 3.0
    assert bound_model.getStaticPowerGc() == pytest.approx(0.1)


def test_unregistered_slot_is_zero(bound_model):
    assert bound_model.get_power(PowerStateSlot.STAGE_5, DYN) == 0.0
    assert bound_model.getStaticPower_5() == 0.0


def test_register_seeds_ambient_temperature(bound_model):
    assert bound_model.states[BASE].temperature == 30.0
    assert bound_model.getStaticPower() == 60.0


def test_queries_before_bind(registry):
    model = PowerAggregator("pm")
    model.register_state(BASE, _leaf(registry, BASE, dynamic="1"))
    assert not model.is_bound
    with pytest.raises(UseBeforeBound):
        model.get_power(BASE, DYN)
    with pytest.raises(UseBeforeBound):
        model.on_temperature_update(40.0)


def test_duplicate_slot(registry):
    model = PowerAggregator("pm")
    model.register_state(BASE, _leaf(registry, BASE))
    with pytest.raises(DuplicateRegistration):
        model.register_state(BASE, _leaf(registry, BASE))


def test_unstarted_evaluator_rejected(registry):
    model = PowerAggregator("pm")
    with pytest.raises(UseBeforeBound):
        model.register_state(BASE, _leaf(registry, BASE, started=False))


def test_bind_exactly_once(bound_model, registry):
    with pytest.raises(PowerModelError):
        bound_model.bind()
    with pytest.raises(PowerModelError):
        bound_model.register_state(PowerStateSlot.STAGE_0, _leaf(registry, PowerStateSlot.STAGE_0))


def test_expected_slots(registry):
    model = PowerAggregator("pm", expected_slots=["base", "gc"])
    with pytest.raises(PowerModelError, match="not expected"):
        model.register_state(PowerStateSlot.STAGE_1, _leaf(registry, PowerStateSlot.STAGE_1))
    model.register_state(BASE, _leaf(registry, BASE))
    with pytest.raises(PowerModelError, match="gc"):
        model.bind()
    model.register_state(GC, _leaf(registry, GC))
    model.bind()
    assert model.is_bound


def test_pm_type_filters_kind(registry):
    model = PowerAggregator("pm", pm_type=PMType.STATIC)
    model.register_state(BASE, _leaf(registry, BASE, dynamic="5", static="2"))
    model.bind()
    assert model.getDynamicPower() == 0.0
    assert model.getStaticPower() == 2.0


def test_temperature_broadcast(bound_model):
    bound_model.on_temperature_update(45.0)
    first = bound_model.getStaticPower()
    bound_model.on_temperature_update(60.0)
    second = bound_model.getStaticPower()
    assert (first, second) == (90.0, 120.0)
    assert all(leaf.temperature == 60.0 for leaf in bound_model.states.values())


def test_thermal_probe_reaches_evaluators(bound_model):
    manager = ProbeManager("system.cpu")
    bound_model.reg_probe_points(manager)
    point = manager.add_point(THERMAL_PROBE_POINT)
    point.notify(55.0)
    assert bound_model.states[BASE].temperature == 55.0
    assert bound_model.getStaticPower() == 110.0


def test_strict_errors_propagate(registry):
    model = PowerAggregator("pm")
    model.register_state(BASE, _leaf(registry, BASE, dynamic="issue_rate / zero"))
    model.bind()
    with pytest.raises(EvaluationError):
        model.getDynamicPower()


def test_residency_power(bound_model):
    # 0.25 * 1.0 + 0.75 * 3.0
    assert bound_model.residency_power(DYN, {BASE: 0.25, GC: 0.75}) == pytest.approx(2.5)


def test_residency_skips_zero_weights(registry):
    model = PowerAggregator("pm")
    model.register_state(BASE, _leaf(registry, BASE, dynamic="2"))
    model.register_state(GC, _leaf(registry, GC, dynamic="issue_rate / zero"))
    model.bind()
    assert model.residency_power(DYN, {"base": 1.0, "gc": 0.0}) == 2.0


def test_residency_rejects_negative(bound_model):
    with pytest.raises(ValueError):
        bound_model.residency_power(DYN, {BASE: 1.5, GC: -0.5})


def test_residency_warns_on_unattributed_time(bound_model, caplog):
    with caplog.at_level(logging.WARNING, logger="exprpower.power.power_model"):
        value = bound_model.residency_power(DYN, {BASE: 0.5})
    assert value == 0.5
    assert any("not attributed" in r.getMessage() for r in caplog.records)


def test_reg_stats():
    reg = StatsRegistry()
    reg.scalar("system.cpu.issue_rate", value=2.0)
    model = PowerAggregator("system.cpu.power_model")
    model.reg_stats(reg)
    reg.finalize()
    leaf = LeafPowerEvaluator("system.cpu.power_model.base", reg, dynamic={"base": "issue_rate"})
    leaf.startup()
    model.register_state(BASE, leaf)
    model.bind()

    stat = reg.resolve("system.cpu.power_model.dynamic_energy")
    assert stat.desc == "Dynamic energy for this power state (J)"
    assert stat.sample().value == 2.0
    assert reg.resolve("system.cpu.power_model.static_energy_3").sample().value == 0.0


def test_empty_name_rejected():
    with pytest.raises(ValueError):
        PowerAggregator("")
