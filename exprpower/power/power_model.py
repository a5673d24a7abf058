"""
Power model facade for one simulated component.

A PowerAggregator holds one LeafPowerEvaluator per power state slot of the
component it governs, answers power queries by delegating to the evaluator
of the requested slot, and distributes thermal updates to every evaluator.

Lifecycle:
```
    Unbound --register_state()* --> Unbound --bind()--> Bound
```
Queries and thermal updates are only accepted once Bound. The bind step
happens exactly once, after every evaluator has been started.

Thermal feedback:
```
    ThermalRunner --notify("thermalUpdate", T)--> ThermalProbeListener
        --> PowerAggregator.on_temperature_update(T)
            --> LeafPowerEvaluator.set_temperature(T)   (every state)
```
"""

from __future__ import annotations

import logging
import math
from types import MappingProxyType
from typing import Iterable, Mapping

from ..errors import DuplicateRegistration, PowerModelError, UseBeforeBound
from ..probe import ProbeListener, ProbeManager
from ..stats.registry import StatsRegistry
from .getters import PowerGetters, register_power_stats
from .interfaces import PMType, PowerKind, PowerStateSlot
from .mathexpr_model import LeafPowerEvaluator

logger = logging.getLogger(__name__)

THERMAL_PROBE_POINT = "thermalUpdate"


class ThermalProbeListener(ProbeListener[float]):
    """Forwards thermal probe notifications to a PowerAggregator."""

    def __init__(self, aggregator: "PowerAggregator", manager: ProbeManager,
                 point_name: str = THERMAL_PROBE_POINT) -> None:
        self.aggregator = aggregator
        super().__init__(manager, point_name)

    def notify(self, arg: float) -> None:
        self.aggregator.on_temperature_update(arg)


class PowerAggregator(PowerGetters):
    """
    Per-component power model backed by one evaluator per power state.

    Attributes:
        name: Model name (statistics are registered under it).
        pm_type: Which components are reported (ALL, STATIC, DYNAMIC).
        ambient_temp_c: Temperature seeded into evaluators at registration;
                        overwritten by thermal updates.
    """

    def __init__(
        self,
        name: str,
        *,
        expected_slots: Iterable[PowerStateSlot] | None = None,
        ambient_temp_c: float = 25.0,
        pm_type: PMType = PMType.ALL,
    ) -> None:
        if not name:
            raise ValueError("name must be a non-empty string")
        self.name = name
        self.pm_type = pm_type
        self.ambient_temp_c = float(ambient_temp_c)
        self._expected = (
            frozenset(PowerStateSlot.parse(s) for s in expected_slots)
            if expected_slots is not None
            else None
        )
        self._states: dict[PowerStateSlot, LeafPowerEvaluator] = {}
        self._bound = False
        self._thermal_listener: ThermalProbeListener | None = None

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    @property
    def is_bound(self) -> bool:
        return self._bound

    @property
    def states(self) -> Mapping[PowerStateSlot, LeafPowerEvaluator]:
        return MappingProxyType(self._states)

    def register_state(self, slot: PowerStateSlot, evaluator: LeafPowerEvaluator) -> None:
        """
        Associate an evaluator with a power state slot.

        Raises:
            DuplicateRegistration: The slot already has an evaluator.
            UseBeforeBound: The evaluator has not been started.
            PowerModelError: Already bound, or slot not expected.
        """
        slot = PowerStateSlot.parse(slot)
        if self._bound:
            raise PowerModelError(f"{self.name}: cannot register {slot.value} after bind()")
        if slot in self._states:
            raise DuplicateRegistration(
                f"{self.name}: slot {slot.value} already has evaluator "
                f"{self._states[slot].name}"
            )
        if self._expected is not None and slot not in self._expected:
            raise PowerModelError(f"{self.name}: slot {slot.value} is not expected")
        if not evaluator.started:
            raise UseBeforeBound(
                f"{self.name}: evaluator {evaluator.name} has not been started"
            )

        evaluator.set_temperature(self.ambient_temp_c)
        self._states[slot] = evaluator

    def bind(self) -> None:
        """
        Complete the bind sequence (Unbound -> Bound), exactly once.

        Raises:
            PowerModelError: Already bound, or expected slots are missing.
        """
        if self._bound:
            raise PowerModelError(f"{self.name}: already bound")
        if self._expected is not None:
            missing = self._expected - self._states.keys()
            if missing:
                names = ", ".join(sorted(s.value for s in missing))
                raise PowerModelError(f"{self.name}: missing evaluators for {names}")
        self._bound = True
        logger.info("%s: bound with %d power states", self.name, len(self._states))

    def _require_bound(self, what: str) -> None:
        if not self._bound:
            raise UseBeforeBound(f"{self.name}: {what} before bind()")

    def reg_probe_points(self, manager: ProbeManager) -> None:
        """Listen for temperature updates on the manager's thermal probe."""
        self._thermal_listener = ThermalProbeListener(self, manager)

    def reg_stats(self, registry: StatsRegistry) -> None:
        register_power_stats(registry, self.name, self.get_power, "this power state")

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    def get_power(self, slot: PowerStateSlot, kind: PowerKind) -> float:
        """
        Power (W) of the given kind while the component is in `slot`.

        Returns 0.0 when the model type excludes `kind` or when no
        evaluator is registered for `slot`.

        Raises:
            UseBeforeBound: If called before bind().
        """
        self._require_bound("power query")
        if not self.pm_type.includes(kind):
            return 0.0
        evaluator = self._states.get(PowerStateSlot.parse(slot))
        if evaluator is None:
            return 0.0
        return evaluator.evaluate_strict(slot, kind)

    def residency_power(
        self,
        kind: PowerKind,
        residency: Mapping[PowerStateSlot, float],
    ) -> float:
        """
        Residency-weighted power across several power states.

        Only slots with a positive weight are evaluated, so a state the
        component never visited cannot fail on statistics it lacks.

        Args:
            kind: Dynamic or static.
            residency: Fraction of time spent in each slot.

        Raises:
            ValueError: On negative weights.
        """
        self._require_bound("power query")
        weights = {PowerStateSlot.parse(s): float(w) for s, w in residency.items()}
        if any(w < 0.0 for w in weights.values()):
            raise ValueError("residency weights must be >= 0")

        total_w = math.fsum(weights.values())
        if total_w < 1.0 - 1e-9:
            logger.warning(
                "%s: %.3f of residency is not attributed to any power state; "
                "power figures might be wrong",
                self.name, 1.0 - total_w,
            )

        return math.fsum(
            w * self.get_power(slot, kind) for slot, w in weights.items() if w > 0.0
        )

    # ─────────────────────────────────────────────────────────────────
    # Thermal feedback
    # ─────────────────────────────────────────────────────────────────

    def on_temperature_update(self, value: float) -> None:
        """Broadcast a temperature sample to every owned evaluator."""
        self._require_bound("thermal update")
        for evaluator in self._states.values():
            evaluator.set_temperature(value)

    def __repr__(self) -> str:
        state = "bound" if self._bound else "unbound"
        return f"PowerAggregator({self.name!r}, {state}, states={len(self._states)})"
