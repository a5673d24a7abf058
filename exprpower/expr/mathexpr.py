"""
Arithmetic expressions for power formulas.

A power formula is a small arithmetic expression over named variables,
numeric literals, and a fixed set of operators and functions, e.g.:

    0.5 * issue_rate * voltage^2 + 0.001 * dcache.overall_misses

Grammar (lowest to highest precedence):
```
    comparison := additive [("<" | "<=" | ">" | ">=" | "==" | "!=") additive]
    additive   := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("-" | "+") unary | power
    power      := primary ["^" unary]              (right-associative)
    primary    := NUMBER | NAME "(" args ")" | NAME | "(" comparison ")"
```

Comparisons evaluate to 1.0 or 0.0. Variable names may contain dots so
that statistic paths can be referenced directly. An empty formula is
valid: it has no variables and evaluates to 0.0 without consulting the
resolver.

Evaluation is a post-order walk of the tree. Every intermediate value is
checked for finiteness; division by zero, math domain errors, overflow
and NaN/Inf all raise EvaluationError instead of propagating silently.
"""

from __future__ import annotations

import math
import operator
import re
from dataclasses import dataclass
from typing import Callable, Iterator, Union

from ..errors import EvaluationError, ExpressionSyntaxError

# Resolver callback: variable name -> current value
Resolver = Callable[[str], float]


# ─────────────────────────────────────────────────────────────────────────────
# Syntax tree
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Number:
    value: float


@dataclass(frozen=True, slots=True)
class Variable:
    name: str


@dataclass(frozen=True, slots=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True, slots=True)
class Call:
    func: str
    args: tuple["Node", ...]


Node = Union[Number, Variable, UnaryOp, BinaryOp, Call]


_BINARY_OPS: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "^": math.pow,
    "<": lambda a, b: float(a < b),
    "<=": lambda a, b: float(a <= b),
    ">": lambda a, b: float(a > b),
    ">=": lambda a, b: float(a >= b),
    "==": lambda a, b: float(a == b),
    "!=": lambda a, b: float(a != b),
}

_COMPARISON_OPS = frozenset({"<", "<=", ">", ">=", "==", "!="})

# name -> (callable, min arity, max arity or None for variadic)
_FUNCTIONS: dict[str, tuple[Callable[..., float], int, int | None]] = {
    "min": (lambda *a: min(a), 1, None),
    "max": (lambda *a: max(a), 1, None),
    "abs": (abs, 1, 1),
    "sqrt": (math.sqrt, 1, 1),
    "exp": (math.exp, 1, 1),
    "log": (math.log, 1, 1),
    "pow": (math.pow, 2, 2),
}


# ─────────────────────────────────────────────────────────────────────────────
# Tokenizer
# ─────────────────────────────────────────────────────────────────────────────

_TOKEN_RE = re.compile(
    r"""
      (?P<number>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)
    | (?P<name>[A-Za-z_][A-Za-z0-9_.]*)
    | (?P<op><=|>=|==|!=|[-+*/^<>(),])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str       # "number", "name", "op" or "end"
    text: str
    pos: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    n = len(text)
    while pos < n:
        if text[pos].isspace():
            pos += 1
            continue
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise ExpressionSyntaxError(
                f"unexpected character '{text[pos]}'", text, pos
            )
        kind = m.lastgroup or "op"
        tokens.append(_Token(kind, m.group(kind), pos))
        pos = m.end()
    tokens.append(_Token("end", "", n))
    return tokens


# ─────────────────────────────────────────────────────────────────────────────
# Parser
# ─────────────────────────────────────────────────────────────────────────────


class _Parser:
    """Recursive-descent parser producing a Node tree."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = _tokenize(text)
        self._idx = 0

    def parse(self) -> Node:
        node = self._comparison()
        tok = self._peek()
        if tok.kind != "end":
            raise self._error(f"unexpected token '{tok.text}'", tok)
        return node

    def _peek(self) -> _Token:
        return self._tokens[self._idx]

    def _advance(self) -> _Token:
        tok = self._tokens[self._idx]
        self._idx += 1
        return tok

    def _accept(self, *ops: str) -> _Token | None:
        tok = self._peek()
        if tok.kind == "op" and tok.text in ops:
            return self._advance()
        return None

    def _expect(self, op: str) -> _Token:
        tok = self._accept(op)
        if tok is None:
            found = self._peek()
            what = found.text or "end of expression"
            raise self._error(f"expected '{op}' but found '{what}'", found)
        return tok

    def _error(self, message: str, tok: _Token) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(message, self._text, tok.pos)

    def _comparison(self) -> Node:
        left = self._additive()
        tok = self._accept(*_COMPARISON_OPS)
        if tok is None:
            return left
        right = self._additive()
        nxt = self._peek()
        if nxt.kind == "op" and nxt.text in _COMPARISON_OPS:
            raise self._error("chained comparisons are not supported", nxt)
        return BinaryOp(tok.text, left, right)

    def _additive(self) -> Node:
        node = self._term()
        while (tok := self._accept("+", "-")) is not None:
            node = BinaryOp(tok.text, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while (tok := self._accept("*", "/")) is not None:
            node = BinaryOp(tok.text, node, self._unary())
        return node

    def _unary(self) -> Node:
        if self._accept("-") is not None:
            return UnaryOp("-", self._unary())
        if self._accept("+") is not None:
            return self._unary()
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._accept("^") is not None:
            # Exponent goes through unary so that 2^-1 and a^b^c both work
            return BinaryOp("^", base, self._unary())
        return base

    def _primary(self) -> Node:
        tok = self._advance()
        if tok.kind == "number":
            return Number(float(tok.text))
        if tok.kind == "name":
            if self._accept("(") is not None:
                return self._call(tok)
            return Variable(tok.text)
        if tok.kind == "op" and tok.text == "(":
            node = self._comparison()
            self._expect(")")
            return node
        what = tok.text or "end of expression"
        raise self._error(f"unexpected token '{what}'", tok)

    def _call(self, name_tok: _Token) -> Node:
        if name_tok.text not in _FUNCTIONS:
            raise self._error(f"unknown function '{name_tok.text}'", name_tok)
        args: list[Node] = []
        if self._accept(")") is None:
            args.append(self._comparison())
            while self._accept(",") is not None:
                args.append(self._comparison())
            self._expect(")")

        _, min_args, max_args = _FUNCTIONS[name_tok.text]
        if len(args) < min_args or (max_args is not None and len(args) > max_args):
            raise self._error(
                f"wrong number of arguments ({len(args)}) for '{name_tok.text}'",
                name_tok,
            )
        return Call(name_tok.text, tuple(args))


# ─────────────────────────────────────────────────────────────────────────────
# Evaluation
# ─────────────────────────────────────────────────────────────────────────────


def _finite(value: float, what: str) -> float:
    if not math.isfinite(value):
        raise EvaluationError(f"non-finite value {value!r} from {what}")
    return value


def _eval(node: Node, resolve: Resolver) -> float:
    if isinstance(node, Number):
        return _finite(node.value, f"literal {node.value!r}")

    if isinstance(node, Variable):
        return _finite(float(resolve(node.name)), f"variable '{node.name}'")

    if isinstance(node, UnaryOp):
        return _finite(-_eval(node.operand, resolve), "negation")

    if isinstance(node, BinaryOp):
        left = _eval(node.left, resolve)
        right = _eval(node.right, resolve)
        try:
            value = _BINARY_OPS[node.op](left, right)
        except ZeroDivisionError:
            raise EvaluationError(f"division by zero in '{left} {node.op} {right}'") from None
        except (ValueError, OverflowError) as e:
            raise EvaluationError(f"'{left} {node.op} {right}': {e}") from None
        return _finite(value, f"'{left} {node.op} {right}'")

    func, _, _ = _FUNCTIONS[node.func]
    args = [_eval(a, resolve) for a in node.args]
    try:
        value = float(func(*args))
    except (ValueError, OverflowError) as e:
        raise EvaluationError(f"{node.func}{tuple(args)}: {e}") from None
    return _finite(value, f"{node.func}{tuple(args)}")


def _walk_variables(node: Node) -> Iterator[str]:
    if isinstance(node, Variable):
        yield node.name
    elif isinstance(node, UnaryOp):
        yield from _walk_variables(node.operand)
    elif isinstance(node, BinaryOp):
        yield from _walk_variables(node.left)
        yield from _walk_variables(node.right)
    elif isinstance(node, Call):
        for arg in node.args:
            yield from _walk_variables(arg)


class Expression:
    """
    An immutable, parsed power formula.

    Example:
        >>> e = Expression("k * temp")
        >>> e.variables()
        ('k', 'temp')
        >>> e.eval({"k": 2.0, "temp": 45.0}.__getitem__)
        90.0
    """

    __slots__ = ("_text", "_root", "_variables")

    def __init__(self, text: str = "") -> None:
        if not isinstance(text, str):
            raise TypeError(f"expression text must be str, got {type(text).__name__}")
        self._text = text.strip()
        self._root: Node | None = _Parser(self._text).parse() if self._text else None
        names = _walk_variables(self._root) if self._root is not None else ()
        try:
            # dict.fromkeys keeps first-appearance order while de-duplicating
            self._variables: tuple[str, ...] = tuple(dict.fromkeys(names))
        except RecursionError:
            raise ExpressionSyntaxError(
                "formula too deeply nested", self._text, 0
            ) from None

    @property
    def text(self) -> str:
        return self._text

    @property
    def root(self) -> Node | None:
        return self._root

    @property
    def is_empty(self) -> bool:
        return self._root is None

    def variables(self) -> tuple[str, ...]:
        """Distinct free variable names in first-appearance order."""
        return self._variables

    def eval(self, resolve: Resolver) -> float:
        """
        Evaluate the formula.

        Args:
            resolve: Callback mapping a variable name to its current value.
                     Exceptions it raises propagate unchanged.

        Returns:
            The finite value of the formula (0.0 for the empty expression).

        Raises:
            EvaluationError: On any arithmetic domain error or non-finite value.
        """
        if self._root is None:
            return 0.0
        try:
            return _eval(self._root, resolve)
        except RecursionError:
            raise EvaluationError(f"formula too deeply nested: '{self._text[:40]}...'") from None

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Expression({self._text!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expression):
            return NotImplemented
        return self._root == other._root

    def __hash__(self) -> int:
        return hash(self._root)
