"""
Plotting utilities for exprpower simulation artifacts.

Plots can be generated directly from RunResult objects or from artifact
files on disk.

Requires matplotlib: pip install exprpower[plot]
"""

from __future__ import annotations

import json
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Sequence

if TYPE_CHECKING:
    from .interfaces import RunResult


def check_matplotlib_available() -> bool:
    """Check if matplotlib is available."""
    try:
        import matplotlib  # noqa: F401
        return True
    except ImportError:
        return False


def _require_matplotlib() -> None:
    if not check_matplotlib_available():
        raise RuntimeError(
            "matplotlib not installed. Install with: pip install exprpower[plot]"
        )


def _draw(samples: Sequence[Mapping[str, Any]], title: str, output_path: Path, show: bool) -> None:
    import matplotlib.pyplot as plt

    if not samples:
        raise ValueError("No power samples to plot")

    per_model: dict[str, tuple[list[int], list[float], list[float]]] = defaultdict(
        lambda: ([], [], [])
    )
    temps: dict[int, float] = {}
    slots: dict[int, str] = {}
    for s in samples:
        cycles, dyn, stat = per_model[s["model"]]
        cycles.append(s["cycle"])
        dyn.append(s["dynamic_w"])
        stat.append(s["static_w"])
        temps.setdefault(s["cycle"], s["temp_c"])
        slots.setdefault(s["cycle"], s["slot"])

    fig, axes = plt.subplots(3, 1, figsize=(10, 7.5), sharex=True)

    # Panel 1: Power per model
    ax1 = axes[0]
    for model, (cycles, dyn, stat) in per_model.items():
        ax1.plot(cycles, dyn, linewidth=1.5, label=f"{model} dynamic")
        ax1.plot(cycles, stat, linewidth=1.5, linestyle="--", label=f"{model} static")
    ax1.set_ylabel("Power (W)")
    ax1.grid(True, alpha=0.3)
    ax1.legend(loc="upper left", fontsize="small")

    # Panel 2: Temperature
    ax2 = axes[1]
    t_cycles = sorted(temps)
    ax2.plot(t_cycles, [temps[c] for c in t_cycles], "r-", linewidth=1.5, label="Temperature")
    ax2.set_ylabel("Temperature (°C)", color="r")
    ax2.tick_params(axis="y", labelcolor="r")
    ax2.grid(True, alpha=0.3)
    ax2.legend(loc="upper left")

    # Panel 3: Active slot
    ax3 = axes[2]
    slot_names = sorted(set(slots.values()))
    ax3.step(t_cycles, [slot_names.index(slots[c]) for c in t_cycles], where="post",
             color="tab:purple", linewidth=2)
    ax3.set_yticks(range(len(slot_names)))
    ax3.set_yticklabels(slot_names)
    ax3.set_ylabel("Active slot")
    ax3.set_xlabel("Cycle")
    ax3.grid(True, alpha=0.3)

    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()

    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    print(f"Plot saved to: {output_path}")

    if show:
        plt.show()

    plt.close(fig)


def plot_simulation_results(
    result: "RunResult",
    output_path: Path | str | None = None,
    show: bool = False,
    title: str | None = None,
) -> None:
    """
    Generate a 3-panel plot of a run: power per model, temperature and
    active slot over cycles.

    Args:
        result: RunResult from a simulation run.
        output_path: Path to save the figure; 'simulation_plot.png' if None.
        show: If True, display the plot interactively.
        title: Optional title for the figure.

    Raises:
        RuntimeError: If matplotlib is not installed.
    """
    _require_matplotlib()

    if title is None:
        title = (f"exprpower: {result.metrics.scenario_name} "
                 f"({result.metrics.total_cycles} cycles)")
    samples = [
        {"cycle": s.cycle, "model": s.model, "slot": s.slot,
         "dynamic_w": s.dynamic_w, "static_w": s.static_w, "temp_c": s.temp_c}
        for s in result.power_samples
    ]
    _draw(samples, title, Path(output_path or "simulation_plot.png"), show)


def plot_from_artifacts(
    artifact_dir: Path | str,
    output_path: Path | str | None = None,
    show: bool = False,
) -> None:
    """
    Generate a plot from metrics.json and power.json in artifact_dir.

    Output defaults to artifact_dir/plot.png.

    Raises:
        RuntimeError: If matplotlib is not installed.
        FileNotFoundError: If required artifact files are missing.
    """
    _require_matplotlib()

    artifact_dir = Path(artifact_dir)
    metrics_path = artifact_dir / "metrics.json"
    power_path = artifact_dir / "power.json"
    for path in (metrics_path, power_path):
        if not path.exists():
            raise FileNotFoundError(f"{path.name} not found in {artifact_dir}")

    run_info = json.loads(metrics_path.read_text(encoding="utf-8")).get("run", {})
    samples = json.loads(power_path.read_text(encoding="utf-8")).get("samples", [])

    scenario = run_info.get("scenario_name", "unknown")
    total_cycles = run_info.get("total_cycles", 0)
    _draw(
        samples,
        f"exprpower: {scenario} ({total_cycles} cycles)",
        Path(output_path) if output_path is not None else artifact_dir / "plot.png",
        show,
    )
