from __future__ import annotations

import json
from pathlib import Path

import pytest

from exprpower.config import (
    LeafModelConfig,
    SimConfig,
    SystemConfig,
    ThermalConfig,
    load_system_config,
)
from exprpower.power import PMType, PowerStateSlot


def _model_dict(**overrides):
    data = {
        "stats": {"system.cpu.issue_rate": 0.5},
        "thermal": {"ambient_c": 25.0, "r_th_c_per_w": 2.0, "c_th_j_per_c": 5.0},
        "models": [
            {
                "name": "system.cpu.power_model",
                "pm_type": "ALL",
                "states": {
                    "base": {
                        "constants": {"voltage": 1.0},
                        "dynamic": {"base": "0.5 * issue_rate * voltage^2"},
                        "static": {"base": "0.01 * temp"},
                    },
                    "stage_2": {"dynamic": {"2": "1.0"}},
                },
            }
        ],
        "workload": [
            {"until_cycle": 50, "slot": "base", "stats": {"system.cpu.issue_rate": 1.0}},
            {"until_cycle": 80, "slot": "stage_2"},
        ],
    }
    data.update(overrides)
    return data


def test_sim_config_from_args():
    cfg = SimConfig.from_args(name="run 1", cycles=100, cycle_chunks=10, dt_s=0.05, out_dir="out")
    assert cfg.cycles == 100
    assert cfg.dt_s == 0.05
    assert cfg.out_dir == Path("out")


def test_sim_config_default_out_dir():
    cfg = SimConfig.from_args(name="my run!", cycles=10, cycle_chunks=5)
    assert cfg.out_dir.parent == Path("artifacts/runs")
    assert cfg.out_dir.name.endswith("_my_run")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "", "cycles": 10, "cycle_chunks": 1},
        {"name": "x", "cycles": -1, "cycle_chunks": 1},
        {"name": "x", "cycles": 10, "cycle_chunks": 0},
        {"name": "x", "cycles": 10, "cycle_chunks": 1, "dt_s": 0.0},
    ],
)
def test_sim_config_validation(kwargs):
    with pytest.raises(ValueError):
        SimConfig.from_args(**kwargs)


def test_system_config_from_dict():
    cfg = SystemConfig.from_dict(_model_dict())
    assert cfg.stats == {"system.cpu.issue_rate": 0.5}
    assert cfg.thermal == ThermalConfig(25.0, 2.0, 5.0)

    (model,) = cfg.models
    assert model.pm_type is PMType.ALL
    assert model.ambient_temp_c == 25.0
    assert set(model.states) == {PowerStateSlot.BASE, PowerStateSlot.STAGE_2}
    base = model.states[PowerStateSlot.BASE]
    assert base.dynamic[PowerStateSlot.BASE] == "0.5 * issue_rate * voltage^2"
    assert base.constants == {"voltage": 1.0}
    assert model.states[PowerStateSlot.STAGE_2].dynamic == {PowerStateSlot.STAGE_2: "1.0"}

    assert [p.until_cycle for p in cfg.workload] == [50, 80]
    assert cfg.workload[1].slot is PowerStateSlot.STAGE_2
    assert cfg.workload[1].stats == {}


def test_thermal_optional():
    data = _model_dict()
    del data["thermal"]
    assert SystemConfig.from_dict(data).thermal is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"models": []},
        {"models": [{"name": "a", "states": {}}, {"name": "a", "states": {}}]},
        {"models": [{"states": {}}]},
        {"models": [{"name": "a", "pm_type": "some", "states": {}}]},
        {"models": [{"name": "a", "states": {"idle": {}}}]},
        {"thermal": {"ambient_c": 25.0, "r_th": 1.0}},
        {"thermal": {"r_th_c_per_w": 0.0}},
        {"workload": [{"until_cycle": 80}, {"until_cycle": 50}]},
        {"workload": [{"slot": "base"}]},
    ],
)
def test_system_config_rejects(overrides):
    with pytest.raises(ValueError):
        SystemConfig.from_dict(_model_dict(**overrides))


def test_leaf_config_rejects_unknown_keys():
    with pytest.raises(ValueError, match="unknown power state keys"):
        LeafModelConfig.from_dict({"dynamic": {}, "leakage": {}})
    with pytest.raises(ValueError):
        LeafModelConfig.from_dict({"dynamic": {"base": 1.0}})


def test_load_system_config(tmp_path):
    path = tmp_path / "model.json"
    path.write_text(json.dumps(_model_dict()), encoding="utf-8")
    cfg = load_system_config(path)
    assert cfg.models[0].name == "system.cpu.power_model"

    bad = tmp_path / "list.json"
    bad.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_system_config(bad)
