from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Protocol


class PowerStateSlot(Enum):
    """
    One of the 10 evaluation slots of a power model.

    Each slot carries a dynamic and a static expression. The suffixes are
    the stable naming contract used by the getters (getDynamicPower_3)
    and by registered statistics (dynamic_energy_3).
    """
    BASE = "base"
    GC = "gc"
    STAGE_0 = "stage_0"
    STAGE_1 = "stage_1"
    STAGE_2 = "stage_2"
    STAGE_3 = "stage_3"
    STAGE_4 = "stage_4"
    STAGE_5 = "stage_5"
    STAGE_6 = "stage_6"
    STAGE_7 = "stage_7"

    @property
    def getter_suffix(self) -> str:
        if self is PowerStateSlot.BASE:
            return ""
        if self is PowerStateSlot.GC:
            return "Gc"
        return "_" + self.value[-1]

    @property
    def stat_suffix(self) -> str:
        if self is PowerStateSlot.BASE:
            return ""
        if self is PowerStateSlot.GC:
            return "_gc"
        return "_" + self.value[-1]

    @property
    def label(self) -> str:
        """Human-readable slot name used in stat descriptions."""
        if self is PowerStateSlot.BASE:
            return ""
        if self is PowerStateSlot.GC:
            return " during gc"
        return f" during stage {self.value[-1]}"

    @classmethod
    def stage(cls, idx: int) -> "PowerStateSlot":
        if not 0 <= idx <= 7:
            raise ValueError(f"stage index must be in [0, 7], got {idx}")
        return cls(f"stage_{idx}")

    @classmethod
    def parse(cls, key: "str | int | PowerStateSlot") -> "PowerStateSlot":
        """
        Accept a slot, its value ("stage_3"), its enum name ("STAGE_3")
        or a bare stage number (3 or "3").
        """
        if isinstance(key, PowerStateSlot):
            return key
        if isinstance(key, int):
            return cls.stage(key)
        text = str(key).strip().lower()
        if text.isdigit():
            return cls.stage(int(text))
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"unknown power state slot '{key}'") from None


class PowerKind(Enum):
    DYNAMIC = "dynamic"
    STATIC = "static"


class PMType(Enum):
    """Which power components a model reports."""
    ALL = "all"
    STATIC = "static"
    DYNAMIC = "dynamic"

    def includes(self, kind: PowerKind) -> bool:
        return self is PMType.ALL or self.value == kind.value


@dataclass(frozen=True, slots=True)
class EvalResult:
    """
    Outcome of a tolerant evaluation.

    failed=True means a variable could not be resolved or the formula hit
    an arithmetic domain error; value is then 0.0 and must not be trusted
    as a true zero.
    """
    value: float
    failed: bool = False

    def __iter__(self) -> Iterator[float | bool]:
        # Allows: value, failed = evaluator.evaluate_tolerant(...)
        yield self.value
        yield self.failed


class PowerSource(Protocol):
    """
    Anything that answers power queries per slot and kind.

    Implemented by LeafPowerEvaluator and PowerAggregator.
    """

    def get_power(self, slot: PowerStateSlot, kind: PowerKind) -> float:
        ...


def getter_name(slot: PowerStateSlot, kind: PowerKind) -> str:
    """Boundary getter name, e.g. getDynamicPowerGc or getStaticPower_3."""
    prefix = "getDynamicPower" if kind is PowerKind.DYNAMIC else "getStaticPower"
    return prefix + slot.getter_suffix


def stat_name(slot: PowerStateSlot, kind: PowerKind) -> str:
    """Statistic leaf name, e.g. dynamic_energy_gc or static_energy_3."""
    return f"{kind.value}_energy{slot.stat_suffix}"


def all_slot_kinds() -> Iterator[tuple[PowerStateSlot, PowerKind]]:
    for slot in PowerStateSlot:
        for kind in PowerKind:
            yield slot, kind
