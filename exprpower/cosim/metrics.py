"""
Artifact writing for exprpower simulation runs.

Artifact files produced:
- metrics.json: Run metadata and chunk summaries
- power.json: Per-chunk, per-model power samples
- stats.jsonl: One statistics dump per chunk

Example artifact directory structure:
```
artifacts/runs/20240115_120000_example/
├── metrics.json       # Run metadata
├── power.json         # Power history
├── stats.jsonl        # Statistics dumps
└── plot.png           # Optional, with --plot
```
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path

from .interfaces import ChunkSummary, PowerSample, RunMetrics, StatsRecord

logger = logging.getLogger(__name__)


def write_run_artifacts(
    *,
    out_path: Path,
    metrics: RunMetrics,
    chunks: list[ChunkSummary],
    power_samples: list[PowerSample] | None = None,
    stat_records: list[StatsRecord] | None = None,
) -> None:
    """
    Write all simulation artifacts to disk.

    metrics.json is always written; the other files only when their data
    is provided and non-empty.

    Args:
        out_path: Output directory, created with parents if missing.
        metrics: Run-level metrics.
        chunks: Chunk summaries, written as part of metrics.json.
        power_samples: Optional power samples for power.json.
        stat_records: Optional statistics dumps for stats.jsonl.
    """
    out_path = Path(out_path)
    out_path.mkdir(parents=True, exist_ok=True)

    _write_metrics_json(out_path, metrics, chunks)

    if power_samples:
        _write_power_json(out_path, power_samples)

    if stat_records:
        _write_stats_jsonl(out_path, stat_records)

    logger.info("artifacts written to %s", out_path)


def _write_metrics_json(
    out_path: Path,
    metrics: RunMetrics,
    chunks: list[ChunkSummary],
) -> None:
    """
    Schema:
    {
        "run": {
            "total_cycles": int,
            "total_chunks": int,
            "start_time": str (ISO 8601),
            "finish_time": str (ISO 8601),
            "scenario_name": str,
            "total_energy_j": float
        },
        "chunks": [{"chunk_idx": int, "start_cycle": int, "end_cycle": int}, ...]
    }
    """
    payload = {
        "run": asdict(metrics),
        "chunks": [asdict(c) for c in chunks],
    }
    (out_path / "metrics.json").write_text(
        json.dumps(payload, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )


def _write_power_json(out_path: Path, power_samples: list[PowerSample]) -> None:
    # {"samples": [{"cycle", "model", "slot", "dynamic_w", "static_w", "temp_c"}, ...]}
    payload = {"samples": [asdict(s) for s in power_samples]}
    (out_path / "power.json").write_text(
        json.dumps(payload, indent=2) + "\n",
        encoding="utf-8",
    )


def _write_stats_jsonl(out_path: Path, stat_records: list[StatsRecord]) -> None:
    """
    One line per dump: {"cycle": int, "stats": {name: float | null}}.

    Invalid samples are written as null.
    """
    stats_path = out_path / "stats.jsonl"
    with stats_path.open("w", encoding="utf-8") as f:
        for record in stat_records:
            json.dump({"cycle": record.cycle, "stats": dict(record.values)}, f, sort_keys=True)
            f.write("\n")
