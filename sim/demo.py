#!/usr/bin/env python3
"""
exprpower Demonstration Script.

Builds the CPU/L2 model in sim/cpu_model.json and shows:

1. Expression-driven power
   - Dynamic power from host statistics (issue rate, gc activity)
   - Static power from the `temp` variable (leakage above ambient)

2. Thermal feedback
   - RC plant integrates total power each chunk
   - New temperature reaches every model through the thermal probe

3. Power state slots
   - Workload alternates between the base and gc slots
   - Optional stage sweep over the stage_N slots

4. Artifact Generation
   - metrics.json, power.json, stats.jsonl
   - plot.png (optional)

Usage:
    python sim/demo.py --cycles 400 --plot
    python sim/demo.py --stage-sweep 20

Output:
    Artifacts are written to artifacts/runs/<timestamp>_demo/
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from exprpower.config import SimConfig, load_system_config
from exprpower.cosim.kernel import PowerSimKernel
from exprpower.cosim.metrics import write_run_artifacts
from exprpower.cosim.thermal_runner import ThermalRunner
from exprpower.errors import PowerModelError
from exprpower.plant import ThermalParams, steady_state_temp
from exprpower.power.builder import build_power_system
from exprpower.scenarios import phased_activity, stage_sweep

DEFAULT_MODEL = Path(__file__).with_name("cpu_model.json")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="exprpower demo: expression power models with thermal feedback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--model", type=str, default=str(DEFAULT_MODEL),
                        help="JSON model file (default: %(default)s)")
    parser.add_argument("--cycles", type=int, default=400,
                        help="Total cycles to simulate (default: %(default)s)")
    parser.add_argument("--cycle-chunks", type=int, default=10,
                        help="Cycles per chunk (default: %(default)s)")
    parser.add_argument("--dt", type=float, default=0.1,
                        help="Simulated seconds per chunk (default: %(default)s)")
    parser.add_argument("--stage-sweep", type=int, default=0, metavar="CYCLES",
                        help="Sweep stage_N slots, CYCLES per stage, instead of the model workload")
    parser.add_argument("--out-dir", type=str, default=None,
                        help="Output directory (default: artifacts/runs/<timestamp>_demo)")
    parser.add_argument("--plot", action="store_true",
                        help="Generate plot.png (requires matplotlib)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable INFO logging")
    return parser.parse_args()


def run_demo(args: argparse.Namespace) -> int:
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("exprpower Demo: expression power models with thermal feedback")
    print("=" * 70)
    print()

    system_cfg = load_system_config(args.model)
    config = SimConfig.from_args(
        name="demo",
        cycles=args.cycles,
        cycle_chunks=args.cycle_chunks,
        dt_s=args.dt,
        out_dir=args.out_dir,
    )

    print("Configuration:")
    print(f"  Model file:     {args.model}")
    print(f"  Models:         {', '.join(m.name for m in system_cfg.models)}")
    print(f"  Cycles:         {args.cycles}")
    print(f"  Chunk size:     {args.cycle_chunks}")
    print()

    system = build_power_system(system_cfg)
    thermal_cfg = system_cfg.thermal
    thermal = None
    if thermal_cfg is not None:
        params = ThermalParams(
            ambient_c=thermal_cfg.ambient_c,
            r_th_c_per_w=thermal_cfg.r_th_c_per_w,
            c_th_j_per_c=thermal_cfg.c_th_j_per_c,
        )
        thermal = ThermalRunner(params, system.probe_manager, initial_temp_c=thermal_cfg.initial_c)
        tau_s = params.r_th_c_per_w * params.c_th_j_per_c
        print(f"  Thermal τ = {tau_s:.1f}s ({tau_s / args.dt:.0f} chunks at {args.dt}s/chunk)")
        print()

    system.startup()

    if args.stage_sweep > 0:
        schedule = stage_sweep(args.stage_sweep)
    else:
        schedule = phased_activity(system_cfg.workload)

    result = PowerSimKernel(config, system, schedule=schedule, thermal=thermal).run()

    write_run_artifacts(
        out_path=config.out_dir,
        metrics=result.metrics,
        chunks=result.chunks,
        power_samples=result.power_samples,
        stat_records=result.stat_records,
    )

    print("Results:")
    print(f"  Chunks:         {result.metrics.total_chunks}")
    print(f"  Total energy:   {result.metrics.total_energy_j:.4f} J")
    if thermal is not None and result.power_samples:
        last_cycle = result.power_samples[-1].cycle
        last_power = sum(s.total_w for s in result.power_samples if s.cycle == last_cycle)
        print(f"  Final temp:     {thermal.temp_c:.2f} °C "
              f"(steady state at last power: {steady_state_temp(last_power, thermal.params):.2f} °C)")
    print(f"  Artifacts:      {config.out_dir}")

    if args.plot:
        from exprpower.cosim.plotting import check_matplotlib_available, plot_simulation_results

        if check_matplotlib_available():
            plot_simulation_results(result, output_path=config.out_dir / "plot.png")
        else:
            print("  matplotlib not installed; skipping plot")

    return 0


def main() -> int:
    args = parse_args()
    try:
        return run_demo(args)
    except PowerModelError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
