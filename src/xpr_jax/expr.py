"""Expression node protocol, undef placeholders and the evaluation scope."""

from __future__ import annotations

import io
from collections import deque
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, TextIO

from .errors import XprArityError, XprUnboundPlaceholderError, XprUnsupportedError

if TYPE_CHECKING:  # pragma: no cover
    from .values import Value


class Signature(str, Enum):
    SCALAR = "Scalar"
    BOOLEAN = "Boolean"
    VECTOR = "Vector"
    MATRIX = "Matrix"
    TENSOR = "Tensor"
    LIST = "List"
    MISSING = "Missing"
    NUMERIC = "Numeric"
    ANY = "Any"
    UNDEF = "Undef"

    def accepts(self, other: "Signature") -> bool:
        """Whether a node declaring ``other`` may feed a slot requiring ``self``."""
        if self in _OPEN_SIGNATURES or other in _OPEN_SIGNATURES:
            return True
        if self == other:
            return True
        if self == Signature.NUMERIC:
            return other in _NUMERIC_SIGNATURES
        if other == Signature.NUMERIC:
            return self in _NUMERIC_SIGNATURES
        return False


_OPEN_SIGNATURES = frozenset({Signature.ANY, Signature.UNDEF, Signature.MISSING})
_NUMERIC_SIGNATURES = frozenset({Signature.SCALAR, Signature.VECTOR, Signature.MATRIX, Signature.TENSOR})
LIST_LIKE_SIGNATURES = frozenset({Signature.LIST, Signature.VECTOR})


class Scope:
    """Ordered queue of pending arguments consumed by undef placeholders."""

    def __init__(self, args: Iterable["Expr"] = ()) -> None:
        self._queue: deque[Expr] = deque(args)

    def push(self, expr: "Expr") -> None:
        self._queue.append(expr)

    def pop(self) -> "Expr":
        if not self._queue:
            raise XprArityError("Undef placeholder needs an argument but the scope is empty")
        return self._queue.popleft()

    def empty(self) -> bool:
        return not self._queue

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return f"Scope({list(self._queue)!r})"


class Expr:
    """Base node of an expression tree.

    Children live in ``args`` and are held by reference, so one subexpression
    may be shared by several parents. Nodes are treated as immutable except
    for ``set_param``, which swaps a single slot in place.
    """

    def __init__(self, args: Sequence["Expr"] = ()) -> None:
        self.args: list[Expr] = list(args)

    # -- binding -------------------------------------------------------------

    def _check_index(self, i: int) -> None:
        if not 0 <= i < len(self.args):
            raise XprArityError(
                f"{self.type_name()} has {len(self.args)} argument(s); index {i} is out of range"
            )

    def param(self, i: int, scope: Scope | None = None) -> "Expr":
        """Argument ``i``, or the scope front when that slot is an undef placeholder."""
        self._check_index(i)
        arg = self.args[i]
        if scope is not None and is_undef(arg):
            return scope.pop()
        return arg

    def evaluate_param(self, i: int, scope: Scope | None) -> "Value":
        """Evaluate argument ``i`` after binding it through ``param``.

        An argument taken from the scope is a complete expression of its own
        and is evaluated against a fresh scope, so only undef slots written in
        this tree consume the caller's arguments.
        """
        return self.evaluate_bound(i, self.param(i, scope), scope)

    def evaluate_bound(self, i: int, arg: "Expr", scope: Scope | None) -> "Value":
        """Evaluate ``arg``, previously obtained from ``param(i, scope)``."""
        if scope is not None and is_undef(self.args[i]):
            return arg.evaluate(Scope())
        return arg.evaluate(scope)

    def set_param(self, i: int, expr: "Expr") -> None:
        self._check_index(i)
        if not isinstance(expr, Expr):
            raise TypeError(f"argument {i} must be an Expr, got {type(expr).__name__}")
        if expr is not self.args[i]:
            self.args[i] = expr

    # -- protocol ------------------------------------------------------------

    @classmethod
    def class_name(cls) -> str:
        return cls.__name__

    def type_name(self) -> str:
        return self.class_name()

    def evaluate(self, scope: Scope) -> "Value":
        raise XprUnsupportedError(f"{self.type_name()} does not implement evaluate()")

    def optimise(self) -> "Expr":
        return self

    def clone_with(self, args: Sequence["Expr"]) -> "Expr":
        raise XprUnsupportedError(f"{self.type_name()} does not implement clone_with()")

    def return_signature(self) -> Signature:
        return Signature.ANY

    def countable(self) -> bool:
        return False

    def count(self) -> int:
        raise XprUnsupportedError(f"{self.type_name()} cannot report its count statically")

    def arity(self) -> int:
        return len(self.args)

    def placeholder_count(self) -> int:
        """Placeholders this subtree will consume from a scope when evaluated."""
        return sum(arg.placeholder_count() for arg in self.args)

    def is_closed(self) -> bool:
        return self.placeholder_count() == 0

    def eval(self, *args):
        from .engine import evaluate

        return evaluate(self, *args)

    # -- rendering -----------------------------------------------------------

    def print_args(self, stream: TextIO, render: str = "print") -> None:
        for idx, arg in enumerate(self.args):
            if idx:
                stream.write(", ")
            getattr(arg, render)(stream)

    def print(self, stream: TextIO) -> None:
        stream.write(f"{self.type_name()}(")
        self.print_args(stream)
        stream.write(")")

    def as_code(self, stream: TextIO) -> None:
        raise XprUnsupportedError(f"{self.type_name()} does not implement as_code()")

    def to_code(self) -> str:
        out = io.StringIO()
        self.as_code(out)
        return out.getvalue()

    def __str__(self) -> str:
        out = io.StringIO()
        self.print(out)
        return out.getvalue()

    def __repr__(self) -> str:
        return str(self)


class Undef(Expr):
    """Placeholder bound from the scope at evaluation time."""

    def evaluate(self, scope: Scope) -> "Value":
        raise XprUnboundPlaceholderError("Undef placeholder evaluated without a bound argument")

    def clone_with(self, args: Sequence[Expr]) -> Expr:
        if args:
            raise XprArityError("Undef takes no arguments")
        return Undef()

    def return_signature(self) -> Signature:
        return Signature.UNDEF

    def placeholder_count(self) -> int:
        return 1

    def print(self, stream: TextIO) -> None:
        stream.write("Undef()")

    def as_code(self, stream: TextIO) -> None:
        stream.write("xpr.undef()")


def undef() -> Undef:
    return Undef()


def is_undef(expr: object) -> bool:
    return isinstance(expr, Undef)
