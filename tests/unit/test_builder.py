from __future__ import annotations

import pytest

from exprpower.config import SystemConfig
from exprpower.errors import PowerModelError, UnresolvedVariable
from exprpower.power import PowerStateSlot
from exprpower.power.builder import build_power_system


def _config(dynamic="0.5 * issue_rate * voltage^2"):
    return SystemConfig.from_dict({
        "stats": {"system.cpu.issue_rate": 2.0},
        "models": [
            {
                "name": "system.cpu.power_model",
                "ambient_temp_c": 40.0,
                "states": {
                    "base": {
                        "constants": {"voltage": 1.0},
                        "dynamic": {"base": dynamic},
                        "static": {"base": "0.01 * temp"},
                    },
                    "gc": {"dynamic": {"gc": "0.25"}},
                },
            },
            {
                "name": "system.l2.power_model",
                "pm_type": "static",
                "states": {"base": {"static": {"base": "0.2"}}},
            },
        ],
    })


def test_build_then_startup():
    system = build_power_system(_config())
    assert not system.started
    assert "system.cpu.issue_rate" in system.registry
    assert "system.cpu.power_model.dynamic_energy" in system.registry
    assert "system.cpu.power_model.base.dynamic_energy" in system.registry
    assert set(system.leaves) == {
        ("system.cpu.power_model", PowerStateSlot.BASE),
        ("system.cpu.power_model", PowerStateSlot.GC),
        ("system.l2.power_model", PowerStateSlot.BASE),
    }

    system.startup()

    assert system.started
    assert system.registry.finalized
    cpu = system.model("system.cpu.power_model")
    assert cpu.getDynamicPower() == 1.0
    assert cpu.getDynamicPowerGc() == 0.25
    assert cpu.getStaticPower() == pytest.approx(0.4)
    l2 = system.model("system.l2.power_model")
    assert l2.getStaticPower() == pytest.approx(0.2)
    assert l2.getDynamicPower() == 0.0


def test_leaf_statistics_resolve_under_owner():
    system = build_power_system(_config())
    leaf = system.leaves[("system.cpu.power_model", PowerStateSlot.BASE)]
    assert leaf.name == "system.cpu.power_model.base"
    assert leaf.stat_prefix == "system.cpu."


def test_startup_twice_rejected():
    system = build_power_system(_config())
    system.startup()
    with pytest.raises(PowerModelError):
        system.startup()


def test_startup_fails_on_unknown_statistic():
    system = build_power_system(_config(dynamic="issue_rate * missing"))
    with pytest.raises(UnresolvedVariable) as excinfo:
        system.startup()
    assert excinfo.value.variable == "missing"
    assert not system.started


def test_thermal_probe_wired():
    system = build_power_system(_config())
    system.startup()
    system.probe_manager.add_point("thermalUpdate").notify(80.0)
    assert system.model("system.cpu.power_model").getStaticPower() == pytest.approx(0.8)


def test_unknown_model_lookup():
    system = build_power_system(_config())
    with pytest.raises(KeyError):
        system.model("system.gpu.power_model")
