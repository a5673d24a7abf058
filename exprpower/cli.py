"""
Command-line interface for exprpower.

Loads a JSON model file, builds and starts the power models, drives them
through the file's workload and writes run artifacts.

Usage:
    # Basic run
    exprpower --config model.json --name smoke --cycles 100 --cycle-chunks 10

    # With plot (requires matplotlib)
    exprpower --config model.json --cycles 500 --plot

Entry points:
    - exprpower: Direct CLI command (from pyproject.toml)
    - python -m exprpower.cli: Module execution
"""

from __future__ import annotations

import argparse
import logging
import sys

from .config import SimConfig, load_system_config
from .cosim.kernel import PowerSimKernel
from .cosim.metrics import write_run_artifacts
from .cosim.thermal_runner import ThermalRunner
from .errors import PowerModelError
from .plant import ThermalParams
from .power.builder import build_power_system
from .scenarios import phased_activity

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="exprpower",
        description="exprpower: expression-driven power models with thermal feedback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  exprpower --config sim/cpu_model.json --cycles 100
      Run the model file's workload for 100 cycles

  exprpower --config sim/cpu_model.json --cycles 500 --plot
      Also write plot.png (requires matplotlib)
""",
    )

    # ─────────────────────────────────────────────────────────────────
    # Model and simulation parameters
    # ─────────────────────────────────────────────────────────────────
    p.add_argument(
        "--config",
        type=str,
        required=True,
        help="JSON model file (statistics, models, thermal, workload)",
    )
    p.add_argument(
        "--name",
        type=str,
        default="default",
        help="Scenario name for artifact directory (default: %(default)s)",
    )
    p.add_argument(
        "--cycles",
        type=int,
        default=100,
        help="Total cycles to simulate (>= 0) (default: %(default)s)",
    )
    p.add_argument(
        "--cycle-chunks",
        type=int,
        default=10,
        help="Cycles per chunk (> 0) (default: %(default)s)",
    )
    p.add_argument(
        "--dt",
        type=float,
        default=0.1,
        help="Simulated seconds per chunk (> 0) (default: %(default)s)",
    )
    p.add_argument(
        "--out-dir",
        type=str,
        default=None,
        help="Output directory (default: artifacts/runs/<timestamp>_<name>)",
    )

    # ─────────────────────────────────────────────────────────────────
    # Output options
    # ─────────────────────────────────────────────────────────────────
    p.add_argument(
        "--plot",
        action="store_true",
        help="Write plot.png into the output directory",
    )
    p.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: %(default)s)",
    )

    return p


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code: 0 for success, 2 for a fatal power-model or
        configuration error.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = SimConfig.from_args(
            name=args.name,
            cycles=args.cycles,
            cycle_chunks=args.cycle_chunks,
            dt_s=args.dt,
            out_dir=args.out_dir,
        )
        system_cfg = load_system_config(args.config)

        # ─────────────────────────────────────────────────────────────
        # Build, wire the thermal plant, then bind
        # ─────────────────────────────────────────────────────────────
        system = build_power_system(system_cfg)
        thermal = None
        if system_cfg.thermal is not None:
            t = system_cfg.thermal
            thermal = ThermalRunner(
                ThermalParams(
                    ambient_c=t.ambient_c,
                    r_th_c_per_w=t.r_th_c_per_w,
                    c_th_j_per_c=t.c_th_j_per_c,
                ),
                system.probe_manager,
                initial_temp_c=t.initial_c,
            )
        system.startup()

        kernel = PowerSimKernel(
            config,
            system,
            schedule=phased_activity(system_cfg.workload),
            thermal=thermal,
        )
        result = kernel.run()
    except (PowerModelError, ValueError, OSError) as e:
        logger.debug("fatal error", exc_info=True)
        print(f"fatal: {e}", file=sys.stderr)
        return 2

    # ─────────────────────────────────────────────────────────────────
    # Write artifacts to disk
    # ─────────────────────────────────────────────────────────────────
    write_run_artifacts(
        out_path=config.out_dir,
        metrics=result.metrics,
        chunks=result.chunks,
        power_samples=result.power_samples,
        stat_records=result.stat_records,
    )
    metrics_file = config.out_dir / "metrics.json"

    if args.plot and result.power_samples:
        from .cosim.plotting import check_matplotlib_available, plot_simulation_results

        if check_matplotlib_available():
            plot_simulation_results(result, output_path=config.out_dir / "plot.png")
        else:
            print("matplotlib not installed; skipping plot", file=sys.stderr)

    # ─────────────────────────────────────────────────────────────────
    # Print summary to stdout
    # ─────────────────────────────────────────────────────────────────
    print(f"{result.metrics.scenario_name}: ", end="")
    print(f"cycles={result.metrics.total_cycles} ", end="")
    print(f"chunks={result.metrics.total_chunks} ", end="")
    print(f"energy={result.metrics.total_energy_j:.6g}J", end="")
    if thermal is not None:
        print(f" temp={thermal.temp_c:.2f}C", end="")
    print(f" -> {metrics_file}")

    return 0


# Allow module execution: python -m exprpower.cli
if __name__ == "__main__":
    sys.exit(main())
