from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from .power.interfaces import PMType, PowerStateSlot


def _clean_path_name(path_name: str) -> str:
    # Remove unsafe characters from directory name
    cleaned = [c if (c.isalnum() or c in ("-", "_")) else "_" for c in path_name]
    return "".join(cleaned).strip("_")


# slots are used to enforce good interface hygiene, disables dynamic attribute creation.
@dataclass(frozen=True, slots=True)
class SimConfig:
    """
    SimConfig

    Definitions and configuration for a simulation run

    Params:
    - name (str) : simulation name
    - cycles (int) : total number of cycles to run simulation for
    - cycle_chunks (int) : number of cycles that occur per simulation step
    - dt_s (float) : simulated seconds per chunk (thermal integration step)
    - out_dir (str|None) : output directory for simulation artifacts
                           default: artifacts/runs/<timestamp>_<name>
    """
    name: str
    cycles: int
    cycle_chunks: int
    dt_s: float
    out_dir: Path

    @staticmethod
    def from_args(
        *,
        name: str,
        cycles: int,
        cycle_chunks: int,
        dt_s: float = 0.1,
        out_dir: str | Path | None = None,
    ) -> "SimConfig":
        if not isinstance(name, str) or not name:
            raise ValueError("name must be a non-empty string")
        if cycles < 0:
            raise ValueError("cycles must be >= 0")
        if cycle_chunks <= 0:
            raise ValueError("cycle_chunks must be > 0")
        if dt_s <= 0:
            raise ValueError("dt_s must be > 0")

        if out_dir is not None:
            out_dir = Path(out_dir)
        else:
            # artifacts/runs/<UTC YYYYmmdd_HHMMSS>_<scenario>
            ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            clean_name = _clean_path_name(name) or "scenario"
            out_dir = Path("artifacts").joinpath(f"runs/{ts}_{clean_name}")

        return SimConfig(
            name=name,
            cycles=int(cycles),
            cycle_chunks=int(cycle_chunks),
            dt_s=float(dt_s),
            out_dir=out_dir,
        )


@dataclass(frozen=True, slots=True)
class ThermalConfig:
    """
    Defaults for the first-order thermal RC plant.
    """
    ambient_c: float = 25.0              # Ambient temperature (°C)
    r_th_c_per_w: float = 2.0            # Thermal resistance (°C/W)
    c_th_j_per_c: float = 5.0            # Thermal capacitance (J/°C)
    initial_c: float | None = None       # Initial temperature, ambient if None

    def __post_init__(self) -> None:
        if self.r_th_c_per_w <= 0.0:
            raise ValueError("r_th_c_per_w must be > 0")
        if self.c_th_j_per_c <= 0.0:
            raise ValueError("c_th_j_per_c must be > 0")


@dataclass(frozen=True, slots=True)
class LeafModelConfig:
    """
    Formulas and constants of one power state.

    dynamic/static map slot keys ("base", "gc", "stage_0".."stage_7") to
    formula text; absent slots contribute zero power.
    """
    dynamic: Mapping[PowerStateSlot, str] = field(default_factory=dict)
    static: Mapping[PowerStateSlot, str] = field(default_factory=dict)
    constants: Mapping[str, float] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "LeafModelConfig":
        unknown = set(data) - {"dynamic", "static", "constants"}
        if unknown:
            raise ValueError(f"unknown power state keys: {sorted(unknown)}")
        return LeafModelConfig(
            dynamic=_slot_table(data.get("dynamic", {})),
            static=_slot_table(data.get("static", {})),
            constants={str(k): float(v) for k, v in data.get("constants", {}).items()},
        )


def _slot_table(raw: Mapping[str, str]) -> dict[PowerStateSlot, str]:
    table: dict[PowerStateSlot, str] = {}
    for key, text in raw.items():
        if not isinstance(text, str):
            raise ValueError(f"formula for slot '{key}' must be a string")
        table[PowerStateSlot.parse(key)] = text
    return table


@dataclass(frozen=True, slots=True)
class PowerModelConfig:
    """
    One component's power model: a leaf model per power state slot.

    Leaf models are named <name>.<slot>, so with the usual
    <owner>.power_model naming their statistics resolve under <owner>.
    """
    name: str
    states: Mapping[PowerStateSlot, LeafModelConfig]
    ambient_temp_c: float = 25.0
    pm_type: PMType = PMType.ALL

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "PowerModelConfig":
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("power model name must be a non-empty string")
        states = {
            PowerStateSlot.parse(key): LeafModelConfig.from_dict(leaf)
            for key, leaf in data.get("states", {}).items()
        }
        return PowerModelConfig(
            name=name,
            states=states,
            ambient_temp_c=float(data.get("ambient_temp_c", 25.0)),
            pm_type=PMType(str(data.get("pm_type", "all")).lower()),
        )


@dataclass(frozen=True, slots=True)
class WorkloadPhase:
    """
    A span of the workload: until `until_cycle` (exclusive) the component
    sits in `slot` and the listed scalar statistics hold the given values.
    """
    until_cycle: int
    slot: PowerStateSlot
    stats: Mapping[str, float] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "WorkloadPhase":
        if "until_cycle" not in data:
            raise ValueError("workload phase requires 'until_cycle'")
        return WorkloadPhase(
            until_cycle=int(data["until_cycle"]),
            slot=PowerStateSlot.parse(data.get("slot", "base")),
            stats={str(k): float(v) for k, v in data.get("stats", {}).items()},
        )


@dataclass(frozen=True, slots=True)
class SystemConfig:
    """
    Everything needed to build and drive a power simulation.

    Params:
    - stats : scalar statistics provided by the host, with initial values
    - models : power models to build
    - thermal : thermal plant parameters (None disables thermal feedback)
    - workload : ordered workload phases (empty means always BASE)
    """
    stats: Mapping[str, float]
    models: tuple[PowerModelConfig, ...]
    thermal: ThermalConfig | None = None
    workload: tuple[WorkloadPhase, ...] = ()

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "SystemConfig":
        models = tuple(PowerModelConfig.from_dict(m) for m in data.get("models", []))
        if not models:
            raise ValueError("at least one power model is required")
        names = [m.name for m in models]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate power model names: {names}")

        thermal = data.get("thermal")
        try:
            thermal_cfg = ThermalConfig(**thermal) if thermal is not None else None
        except TypeError as e:
            raise ValueError(f"invalid thermal section: {e}") from None

        workload = tuple(WorkloadPhase.from_dict(p) for p in data.get("workload", []))
        bounds = [p.until_cycle for p in workload]
        if bounds != sorted(bounds):
            raise ValueError("workload phases must be ordered by until_cycle")

        return SystemConfig(
            stats={str(k): float(v) for k, v in data.get("stats", {}).items()},
            models=models,
            thermal=thermal_cfg,
            workload=workload,
        )


def load_system_config(path: str | Path) -> SystemConfig:
    """Load a SystemConfig from a JSON model file."""
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level JSON value must be an object")
    return SystemConfig.from_dict(data)
