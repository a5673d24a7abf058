"""
Boundary adapter for the 20-getter naming contract.

Internally every power query goes through a single get_power(slot, kind).
External consumers that expect one accessor per slot and kind
(getDynamicPower, getDynamicPowerGc, getDynamicPower_0 .. _7 and the
getStaticPower equivalents) get them from the PowerGetters mixin, whose
methods are generated from the slot/kind enums.
"""

from __future__ import annotations

from typing import Callable

from .interfaces import (
    PowerKind,
    PowerStateSlot,
    all_slot_kinds,
    getter_name,
    stat_name,
)
from ..stats.registry import Formula, StatsRegistry


def _make_getter(slot: PowerStateSlot, kind: PowerKind) -> Callable[..., float]:
    def getter(self) -> float:
        return self.get_power(slot, kind)

    getter.__name__ = getter_name(slot, kind)
    getter.__qualname__ = f"PowerGetters.{getter.__name__}"
    getter.__doc__ = f"{kind.value.capitalize()} power (W){slot.label}."
    return getter


class PowerGetters:
    """
    Mixin generating getDynamicPower*/getStaticPower* from get_power().

    Classes using it must implement the PowerSource protocol, i.e. provide
    get_power(slot, kind) -> float; the mixin itself defines no fallback.
    """

    __slots__ = ()


for _slot, _kind in all_slot_kinds():
    setattr(PowerGetters, getter_name(_slot, _kind), _make_getter(_slot, _kind))
del _slot, _kind


def register_power_stats(
    registry: StatsRegistry,
    name: str,
    query: Callable[[PowerStateSlot, PowerKind], object],
    subject: str,
) -> list[Formula]:
    """
    Register the 20 power statistics of a model.

    Creates <name>.dynamic_energy, <name>.static_energy_gc,
    <name>.dynamic_energy_3, ... as formula statistics backed by query.

    Args:
        registry: Registry to register into (must not be finalized).
        name: Model name used as the statistic prefix.
        query: Callback (slot, kind) -> float or EvalResult.
        subject: Wording for descriptions ("this object", "this power state").

    Returns:
        The registered formulas in slot/kind order.
    """
    formulas = []
    for slot, kind in all_slot_kinds():
        desc = f"{kind.value.capitalize()} energy{slot.label} for {subject} (J)"
        formulas.append(
            registry.formula(
                f"{name}.{stat_name(slot, kind)}",
                lambda s=slot, k=kind: query(s, k),
                desc,
            )
        )
    return formulas
