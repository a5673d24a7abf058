"""
exprpower: Expression-driven power models for simulated hardware blocks.

Features:
- Arithmetic power formulas bound to live simulation statistics
- 20 expressions per leaf model (dynamic/static x base, gc, stage 0..7)
- Strict (fatal) and tolerant (flagged) evaluation policies
- Per-component aggregation with thermal probe feedback
- Chunked simulation kernel with a first-order thermal RC plant
- JSON/JSONL run artifacts
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
