"""
Expression-driven leaf power model.

A LeafPowerEvaluator owns 20 power formulas (dynamic/static for each of
the 10 power state slots) and evaluates them against live values.

Variable resolution order:
```
    temp            -> live temperature (set by thermal updates)
    <constant>      -> named constant from the model configuration
    <anything else> -> statistic <stat_prefix><name> in the registry
```

Statistic bindings are established exactly once by startup(), after the
registry has been finalized. The binding table is read-only from then on,
so the evaluation path never mutates shared state apart from reading the
current temperature.

Two failure policies are offered:
- evaluate_strict(): unresolved variables and arithmetic domain errors
  raise (fatal configuration error).
- evaluate_tolerant(): the same failures produce EvalResult(0.0, True).
  Used by the statistics callbacks registered in reg_stats(), which may be
  sampled before every variable is bindable.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, Union

from ..errors import EvaluationError, PowerModelError, UnresolvedVariable, UseBeforeBound
from ..expr.mathexpr import Expression
from ..stats.registry import StatInfo, StatsRegistry
from .getters import PowerGetters, register_power_stats
from .interfaces import EvalResult, PowerKind, PowerStateSlot, all_slot_kinds

logger = logging.getLogger(__name__)

# Automatic variable bound to the live temperature (Celsius)
TEMPERATURE_VAR = "temp"

SlotKey = Union[PowerStateSlot, str, int]
ExprLike = Union[Expression, str, None]


def default_stat_prefix(name: str) -> str:
    """
    Derive the statistics prefix from a model name.

    Models are named like <owner>.power_model.<state>, so the owner's
    statistics live under everything but the last two components:
    "system.cpu.power_model.base" -> "system.cpu.".
    """
    parts = name.split(".")
    if len(parts) <= 2:
        return ""
    return ".".join(parts[:-2]) + "."


def _as_expression(value: ExprLike) -> Expression:
    if value is None:
        return Expression()
    if isinstance(value, Expression):
        return value
    return Expression(value)


class LeafPowerEvaluator(PowerGetters):
    """
    Power model for one power state of a simulated component.

    Example:
        >>> reg = StatsRegistry()
        >>> rate = reg.scalar("system.cpu.issue_rate", value=2.0)
        >>> reg.finalize()
        >>> pm = LeafPowerEvaluator(
        ...     "system.cpu.power_model.base", reg,
        ...     dynamic={"base": "0.5 * issue_rate * voltage^2"},
        ...     constants={"voltage": 1.0},
        ... )
        >>> pm.startup()
        >>> pm.getDynamicPower()
        1.0
    """

    def __init__(
        self,
        name: str,
        registry: StatsRegistry,
        *,
        dynamic: Mapping[SlotKey, ExprLike] | None = None,
        static: Mapping[SlotKey, ExprLike] | None = None,
        constants: Mapping[str, float] | None = None,
        stat_prefix: str | None = None,
        temperature: float = 0.0,
    ) -> None:
        if not name:
            raise ValueError("name must be a non-empty string")
        self._name = name
        self._registry = registry
        self._stat_prefix = default_stat_prefix(name) if stat_prefix is None else stat_prefix

        constants = dict(constants or {})
        if TEMPERATURE_VAR in constants:
            raise ValueError(f"'{TEMPERATURE_VAR}' is reserved for the live temperature")
        self._constants: Mapping[str, float] = MappingProxyType(
            {k: float(v) for k, v in constants.items()}
        )

        # All 20 expressions are always present; absent ones are empty
        self._exprs: dict[tuple[PowerStateSlot, PowerKind], Expression] = {
            key: Expression() for key in all_slot_kinds()
        }
        for kind, table in ((PowerKind.DYNAMIC, dynamic), (PowerKind.STATIC, static)):
            for slot_key, expr in (table or {}).items():
                self._exprs[(PowerStateSlot.parse(slot_key), kind)] = _as_expression(expr)

        self._temp = float(temperature)
        self._stats_map: Mapping[str, StatInfo] = MappingProxyType({})
        self._started = False

    # ─────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def stat_prefix(self) -> str:
        return self._stat_prefix

    @property
    def temperature(self) -> float:
        return self._temp

    @property
    def started(self) -> bool:
        return self._started

    @property
    def constants(self) -> Mapping[str, float]:
        return self._constants

    def expression(self, slot: SlotKey, kind: PowerKind) -> Expression:
        return self._exprs[(PowerStateSlot.parse(slot), kind)]

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    def statistic_names(self) -> tuple[str, ...]:
        """Variables of all 20 expressions that must resolve to statistics."""
        names: dict[str, None] = {}
        for expr in self._exprs.values():
            for var in expr.variables():
                if var != TEMPERATURE_VAR and var not in self._constants:
                    names[var] = None
        return tuple(names)

    def startup(self) -> None:
        """
        Bind every statistic referenced by any expression.

        Idempotent: later calls are no-ops.

        Raises:
            UseBeforeBound: If the statistics registry is not finalized.
            UnresolvedVariable: If a referenced statistic does not exist.
        """
        if self._started:
            logger.debug("%s: startup() already done", self._name)
            return
        if not self._registry.finalized:
            raise UseBeforeBound(
                f"{self._name}: startup() requires a finalized statistics registry"
            )

        table: dict[str, StatInfo] = {}
        for var in self.statistic_names():
            info = self._registry.resolve(self._stat_prefix + var)
            if info is None:
                raise UnresolvedVariable(
                    var,
                    self._name,
                    f"no statistic '{self._stat_prefix + var}' for expression "
                    f"'{self._first_expression_using(var)}'",
                )
            table[var] = info

        self._stats_map = MappingProxyType(table)
        self._started = True
        logger.debug("%s: bound %d statistics", self._name, len(table))

    def _first_expression_using(self, var: str) -> Expression:
        for expr in self._exprs.values():
            if var in expr.variables():
                return expr
        raise KeyError(var)

    def reg_stats(self, registry: StatsRegistry | None = None) -> None:
        """Register the 20 power statistics, sampled via the tolerant path."""
        register_power_stats(
            registry if registry is not None else self._registry,
            self._name,
            self.evaluate_tolerant,
            "this object",
        )

    # ─────────────────────────────────────────────────────────────────
    # Variable resolution
    # ─────────────────────────────────────────────────────────────────

    def set_temperature(self, value: float) -> None:
        """Overwrite the live temperature (Celsius). No validation."""
        self._temp = value

    def lookup_statistic_value(self, name: str) -> float:
        """
        Current value of the statistic bound to a variable name.

        Raises:
            UnresolvedVariable: If the statistic is missing, was removed,
                                or has no valid value right now.
        """
        info = self._stats_map.get(name)
        if info is None:
            if not self._started:
                raise UnresolvedVariable(name, self._name, "statistics not bound yet")
            # Diagnostic query for a name outside the startup table
            info = self._registry.resolve(self._stat_prefix + name)
            if info is None:
                raise UnresolvedVariable(
                    name, self._name, f"no statistic '{self._stat_prefix + name}'"
                )

        sample = info.sample()
        if not sample.valid:
            detail = "statistic removed" if not info.attached else "statistic unavailable"
            raise UnresolvedVariable(name, self._name, detail)
        return sample.value

    def _resolve(self, name: str) -> float:
        if name == TEMPERATURE_VAR:
            return self._temp
        const = self._constants.get(name)
        if const is not None:
            return const
        return self.lookup_statistic_value(name)

    # ─────────────────────────────────────────────────────────────────
    # Evaluation
    # ─────────────────────────────────────────────────────────────────

    def evaluate_strict(self, slot: SlotKey, kind: PowerKind) -> float:
        """
        Evaluate one expression; any failure is fatal.

        Raises:
            UnresolvedVariable: A variable could not be resolved.
            EvaluationError: Arithmetic domain error in the formula.
        """
        expr = self.expression(slot, kind)
        try:
            return expr.eval(self._resolve)
        except EvaluationError as e:
            raise EvaluationError(
                f"{self._name}: failed to evaluate '{expr}': {e}"
            ) from e

    def evaluate_tolerant(self, slot: SlotKey, kind: PowerKind) -> EvalResult:
        """
        Evaluate one expression, reporting failure instead of raising.

        Returns:
            EvalResult(value, False) on success, EvalResult(0.0, True) if a
            variable could not be resolved, the formula is ill-defined, or a
            statistic it reads failed to sample (e.g. an unbound aggregator).
        """
        expr = self.expression(slot, kind)
        try:
            return EvalResult(expr.eval(self._resolve), failed=False)
        except PowerModelError as e:
            logger.warning("%s: evaluation of '%s' failed: %s", self._name, expr, e)
            return EvalResult(0.0, failed=True)

    def get_power(self, slot: PowerStateSlot, kind: PowerKind) -> float:
        return self.evaluate_strict(slot, kind)

    def __repr__(self) -> str:
        return f"LeafPowerEvaluator({self._name!r}, started={self._started})"
