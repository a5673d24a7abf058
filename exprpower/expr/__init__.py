from __future__ import annotations

from exprpower.expr.mathexpr import Expression, Resolver

__all__ = ["Expression", "Resolver"]
