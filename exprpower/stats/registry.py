"""
Runtime statistics registry.

Statistics are named, live numeric counters owned by the host simulation.
They are registered during setup, after which the registry is finalized:
its name layout is fixed and it can be resolved by fully-qualified name.
Values keep changing during the run; only the set of names is frozen.

Three kinds of statistic are supported:
- Scalar:  a single settable value
- Vector:  a fixed number of bins, read as their total
- Formula: a callback evaluated on every read; the callback may return a
           float or an EvalResult, in which case a failed result turns
           into an invalid sample

Every statistic is read through sample(), which returns a StatSample
(value, valid). Removing a statistic detaches it: handles that were
resolved earlier report an invalid sample from then on.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterator

from ..errors import DuplicateRegistration, StatsRegistryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatSample:
    """A single read of a statistic."""
    value: float
    valid: bool = True


# Formula callbacks may hand back anything with .value/.failed (EvalResult)
FormulaFn = Callable[[], object]


class StatInfo:
    """Base class for registered statistics."""

    def __init__(self, name: str, desc: str = "") -> None:
        if not name:
            raise ValueError("statistic name must be a non-empty string")
        self.name = name
        self.desc = desc
        self._attached = True

    @property
    def attached(self) -> bool:
        """False once the statistic has been removed from its registry."""
        return self._attached

    def detach(self) -> None:
        self._attached = False

    def sample(self) -> StatSample:
        if not self._attached:
            return StatSample(0.0, valid=False)
        return self._read()

    def _read(self) -> StatSample:
        raise NotImplementedError


class Scalar(StatInfo):
    """A single settable value."""

    def __init__(self, name: str, desc: str = "", value: float = 0.0) -> None:
        super().__init__(name, desc)
        self._value = float(value)

    def set(self, value: float) -> None:
        self._value = float(value)

    def inc(self, delta: float = 1.0) -> None:
        self._value += delta

    def value(self) -> float:
        return self._value

    def _read(self) -> StatSample:
        return StatSample(self._value)


class Vector(StatInfo):
    """A fixed-size vector of bins, read as the sum of its bins."""

    def __init__(self, name: str, size: int, desc: str = "") -> None:
        super().__init__(name, desc)
        if size <= 0:
            raise ValueError("vector size must be > 0")
        self._bins = [0.0] * size

    def __len__(self) -> int:
        return len(self._bins)

    def __getitem__(self, idx: int) -> float:
        return self._bins[idx]

    def __setitem__(self, idx: int, value: float) -> None:
        self._bins[idx] = float(value)

    def total(self) -> float:
        return math.fsum(self._bins)

    def _read(self) -> StatSample:
        return StatSample(self.total())


class Formula(StatInfo):
    """A statistic computed by a callback on every read."""

    def __init__(self, name: str, fn: FormulaFn, desc: str = "") -> None:
        super().__init__(name, desc)
        self._fn = fn

    def _read(self) -> StatSample:
        result = self._fn()
        failed = getattr(result, "failed", None)
        if failed is not None:
            # EvalResult from a tolerant evaluation
            return StatSample(float(result.value), valid=not failed)
        return StatSample(float(result))


class StatsRegistry:
    """
    Name -> statistic table with a one-way finalize step.

    Example:
        >>> reg = StatsRegistry()
        >>> ipc = reg.scalar("system.cpu.ipc", "Instructions per cycle")
        >>> reg.finalize()
        >>> ipc.set(1.5)
        >>> reg.resolve("system.cpu.ipc").sample().value
        1.5
    """

    def __init__(self) -> None:
        self._stats: dict[str, StatInfo] = {}
        self._finalized = False

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    def register(self, info: StatInfo) -> StatInfo:
        if self._finalized:
            raise StatsRegistryError(
                f"cannot register '{info.name}': registry is finalized"
            )
        if info.name in self._stats:
            raise DuplicateRegistration(f"statistic '{info.name}' already registered")
        self._stats[info.name] = info
        return info

    def scalar(self, name: str, desc: str = "", value: float = 0.0) -> Scalar:
        stat = Scalar(name, desc, value)
        self.register(stat)
        return stat

    def vector(self, name: str, size: int, desc: str = "") -> Vector:
        stat = Vector(name, size, desc)
        self.register(stat)
        return stat

    def formula(self, name: str, fn: FormulaFn, desc: str = "") -> Formula:
        stat = Formula(name, fn, desc)
        self.register(stat)
        return stat

    def finalize(self) -> None:
        """Freeze the name layout. Calling it again is a no-op."""
        if not self._finalized:
            self._finalized = True
            logger.info("statistics registry finalized with %d stats", len(self._stats))

    @property
    def finalized(self) -> bool:
        return self._finalized

    # ─────────────────────────────────────────────────────────────────
    # Lookup
    # ─────────────────────────────────────────────────────────────────

    def resolve(self, name: str) -> StatInfo | None:
        """Look up a statistic by fully-qualified name."""
        return self._stats.get(name)

    def remove(self, name: str) -> StatInfo:
        """
        Remove a statistic and detach it.

        Raises:
            KeyError: If no statistic has that name.
        """
        info = self._stats.pop(name)
        info.detach()
        logger.debug("statistic '%s' removed", name)
        return info

    def __contains__(self, name: object) -> bool:
        return name in self._stats

    def __iter__(self) -> Iterator[str]:
        return iter(self._stats)

    def __len__(self) -> int:
        return len(self._stats)

    def items(self) -> Iterator[tuple[str, StatInfo]]:
        return iter(self._stats.items())
