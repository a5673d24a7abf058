"""
Error taxonomy for exprpower.

Every exception derived from PowerModelError is fatal: it signals a
configuration or usage bug and is expected to propagate up to the driver
(the CLI reports it and exits non-zero). The only recoverable path is
LeafPowerEvaluator.evaluate_tolerant(), which converts UnresolvedVariable
and EvaluationError into a flagged zero.
"""

from __future__ import annotations


class PowerModelError(RuntimeError):
    """Base class for fatal power-model errors."""


class ExpressionSyntaxError(PowerModelError, ValueError):
    """A power formula could not be parsed."""

    def __init__(self, message: str, text: str, position: int) -> None:
        super().__init__(f"{message} at position {position} in '{text}'")
        self.text = text
        self.position = position


class UnresolvedVariable(PowerModelError):
    """A variable in an expression has no value source."""

    def __init__(self, variable: str, owner: str, detail: str = "") -> None:
        message = f"{owner}: failed to resolve variable '{variable}'"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.variable = variable
        self.owner = owner


class EvaluationError(PowerModelError):
    """Arithmetic domain error (division by zero, overflow, NaN, ...)."""


class DuplicateRegistration(PowerModelError):
    """A slot or statistic name was registered twice."""


class UseBeforeBound(PowerModelError):
    """An operation was issued before its bind/startup sequence completed."""


class StatsRegistryError(PowerModelError):
    """The statistics registry was mutated after finalization."""
