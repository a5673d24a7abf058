from __future__ import annotations

from .registry import StatsRegistry


def dump_stats(
    registry: StatsRegistry,
    prefix: str | None = None,
) -> dict[str, float | None]:
    """
    Sample every statistic in the registry.

    Invalid samples (e.g. a power formula whose tolerant evaluation
    failed, or a detached statistic) are reported as None so consumers
    never mistake them for a true zero.

    Args:
        registry: Registry to sample.
        prefix: If given, only statistics whose name starts with it.

    Returns:
        Mapping of statistic name -> value (or None when invalid), in
        registration order.
    """
    out: dict[str, float | None] = {}
    for name, info in registry.items():
        if prefix is not None and not name.startswith(prefix):
            continue
        sample = info.sample()
        out[name] = sample.value if sample.valid else None
    return out
