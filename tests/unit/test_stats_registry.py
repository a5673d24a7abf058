from __future__ import annotations

import pytest

from exprpower.errors import DuplicateRegistration, StatsRegistryError
from exprpower.power.interfaces import EvalResult
from exprpower.stats import StatSample, StatsRegistry, dump_stats


@pytest.fixture
def registry() -> StatsRegistry:
    reg = StatsRegistry()
    reg.scalar("system.cpu.ipc", "Instructions per cycle", 1.5)
    reg.vector("system.cpu.misses", 4, "Misses per bank")
    return reg


def test_scalar_resolve_and_sample(registry):
    stat = registry.resolve("system.cpu.ipc")
    assert stat is not None
    assert stat.sample() == StatSample(1.5, True)
    stat.set(2.0)
    stat.inc(0.5)
    assert stat.value() == 2.5


def test_resolve_unknown_returns_none(registry):
    assert registry.resolve("system.cpu.nope") is None
    assert "system.cpu.ipc" in registry
    assert "system.cpu.nope" not in registry


def test_vector_reads_total(registry):
    vec = registry.resolve("system.cpu.misses")
    vec[0] = 1.0
    vec[3] = 2.5
    assert len(vec) == 4
    assert vec.sample().value == 3.5


def test_duplicate_registration(registry):
    with pytest.raises(DuplicateRegistration):
        registry.scalar("system.cpu.ipc")


def test_register_after_finalize_fails(registry):
    registry.finalize()
    with pytest.raises(StatsRegistryError):
        registry.scalar("system.cpu.late")


def test_finalize_is_idempotent(registry):
    registry.finalize()
    registry.finalize()
    assert registry.finalized


def test_values_change_after_finalize(registry):
    stat = registry.resolve("system.cpu.ipc")
    registry.finalize()
    stat.set(3.0)
    assert registry.resolve("system.cpu.ipc").sample().value == 3.0


def test_remove_detaches_existing_handles(registry):
    handle = registry.resolve("system.cpu.ipc")
    removed = registry.remove("system.cpu.ipc")
    assert removed is handle
    assert not handle.attached
    assert handle.sample() == StatSample(0.0, False)
    assert registry.resolve("system.cpu.ipc") is None
    with pytest.raises(KeyError):
        registry.remove("system.cpu.ipc")


def test_formula_plain_and_eval_result():
    reg = StatsRegistry()
    reg.formula("plain", lambda: 4)
    reg.formula("ok", lambda: EvalResult(2.0, False))
    reg.formula("failed", lambda: EvalResult(0.0, True))
    assert reg.resolve("plain").sample() == StatSample(4.0, True)
    assert reg.resolve("ok").sample() == StatSample(2.0, True)
    assert reg.resolve("failed").sample() == StatSample(0.0, False)


def test_iteration_in_registration_order(registry):
    registry.scalar("system.l2.hits")
    assert list(registry) == ["system.cpu.ipc", "system.cpu.misses", "system.l2.hits"]
    assert len(registry) == 3
    assert [name for name, _ in registry.items()] == list(registry)


def test_dump_marks_invalid_as_none(registry):
    registry.formula("system.cpu.power", lambda: EvalResult(0.0, True))
    dump = dump_stats(registry)
    assert dump == {
        "system.cpu.ipc": 1.5,
        "system.cpu.misses": 0.0,
        "system.cpu.power": None,
    }


def test_dump_prefix_filter(registry):
    registry.scalar("system.l2.hits", value=7.0)
    assert dump_stats(registry, prefix="system.l2.") == {"system.l2.hits": 7.0}
