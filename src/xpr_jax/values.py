"""Value leaves of the expression tree and coercion of Python data."""

from __future__ import annotations

import numbers
from collections.abc import Sequence
from typing import ClassVar, TextIO

import jax.numpy as jnp

from . import linalg
from .errors import XprArityError, XprMissingValueError, XprTypeMismatchError
from .expr import Expr, Scope, Signature


def _format_number(value: float) -> str:
    return repr(float(value))


class Value(Expr):
    """Terminal node holding concrete data; evaluates to itself."""

    def evaluate(self, scope: Scope | None) -> "Value":
        return self

    def clone_with(self, args: Sequence[Expr]) -> Expr:
        if args:
            raise XprArityError(f"{self.type_name()} takes no arguments")
        return self

    def is_missing(self) -> bool:
        return False

    def list_like(self) -> bool:
        return False

    def elements(self) -> list["Value"]:
        raise XprTypeMismatchError(f"{self.type_name()} is not a list-like value")

    def _key(self) -> object:
        return id(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._key()))


class Scalar(Value):
    def __init__(self, value: numbers.Real) -> None:
        super().__init__()
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise XprTypeMismatchError(f"Scalar requires a real number, got {type(value).__name__}")
        self.value = float(value)

    def return_signature(self) -> Signature:
        return Signature.SCALAR

    def _key(self) -> object:
        return self.value

    def __float__(self) -> float:
        return self.value

    def print(self, stream: TextIO) -> None:
        stream.write(f"Scalar({_format_number(self.value)})")

    def as_code(self, stream: TextIO) -> None:
        stream.write(f"xpr.scalar({_format_number(self.value)})")


class Boolean(Value):
    def __init__(self, value: bool) -> None:
        super().__init__()
        self.value = bool(value)

    def return_signature(self) -> Signature:
        return Signature.BOOLEAN

    def _key(self) -> object:
        return self.value

    def __bool__(self) -> bool:
        return self.value

    def print(self, stream: TextIO) -> None:
        stream.write(f"Boolean({self.value})")

    def as_code(self, stream: TextIO) -> None:
        stream.write(f"xpr.boolean({self.value})")


class Missing(Value):
    """Three-valued "no definite result" datum; propagates through operators."""

    def return_signature(self) -> Signature:
        return Signature.MISSING

    def is_missing(self) -> bool:
        return True

    def _key(self) -> object:
        return None

    def __bool__(self) -> bool:
        raise XprMissingValueError("Missing value has no truth value")

    def __float__(self) -> float:
        raise XprMissingValueError("Missing value has no numeric value")

    def print(self, stream: TextIO) -> None:
        stream.write("Missing()")

    def as_code(self, stream: TextIO) -> None:
        stream.write("xpr.missing()")


class ArrayValue(Value):
    """Value wrapping a dense ``linalg.Tensor`` payload."""

    RANK: ClassVar[int | None] = None
    SIGNATURE: ClassVar[Signature] = Signature.TENSOR

    def __init__(self, payload: linalg.Tensor) -> None:
        super().__init__()
        if not isinstance(payload, linalg.Tensor):
            raise XprTypeMismatchError(f"{self.class_name()} requires a tensor payload")
        if self.RANK is not None and payload.rank != self.RANK:
            raise XprTypeMismatchError(
                f"{self.class_name()} requires a rank-{self.RANK} payload, got rank {payload.rank}"
            )
        self.payload = payload

    @property
    def shape(self) -> tuple[int, ...]:
        return self.payload.shape

    def to_array(self) -> jnp.ndarray:
        return self.payload.to_array()

    def return_signature(self) -> Signature:
        return self.SIGNATURE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return type(self) is type(other) and self.payload == other.payload

    __hash__ = None

    def _nested(self) -> str:
        return repr(self.to_array().tolist())

    def print(self, stream: TextIO) -> None:
        stream.write(f"{self.class_name()}({self._nested()})")

    def as_code(self, stream: TextIO) -> None:
        stream.write(f"xpr.{self.class_name().lower()}({self._nested()})")


class Vector(ArrayValue):
    RANK = 1
    SIGNATURE = Signature.VECTOR

    def list_like(self) -> bool:
        return True

    def arity(self) -> int:
        return self.payload.size

    def countable(self) -> bool:
        return True

    def count(self) -> int:
        return self.payload.size

    def elements(self) -> list[Value]:
        return [Scalar(float(x)) for x in self.payload.data.tolist()]


class Matrix(ArrayValue):
    RANK = 2
    SIGNATURE = Signature.MATRIX

    def __init__(self, payload: linalg.Tensor) -> None:
        if isinstance(payload, linalg.Tensor) and payload.rank == 2 and not isinstance(payload, linalg.Matrix):
            payload = linalg.Matrix(payload.data, payload.shape)
        super().__init__(payload)


class Tensor(ArrayValue):
    SIGNATURE = Signature.TENSOR


class List(Value):
    """Variadic ordered sequence; items may be unevaluated expressions."""

    def return_signature(self) -> Signature:
        return Signature.LIST

    def evaluate(self, scope: Scope | None) -> Value:
        items = [self.evaluate_param(i, scope) for i in range(len(self.args))]
        if all(item is arg for item, arg in zip(items, self.args)):
            return self
        return List(items)

    def optimise(self) -> Expr:
        items = [arg.optimise() for arg in self.args]
        if all(item is arg for item, arg in zip(items, self.args)):
            return self
        return List(items)

    def clone_with(self, args: Sequence[Expr]) -> Expr:
        return List(args)

    def list_like(self) -> bool:
        return True

    def countable(self) -> bool:
        return True

    def count(self) -> int:
        return len(self.args)

    def elements(self) -> list[Value]:
        out: list[Value] = []
        for idx, item in enumerate(self.args):
            if not isinstance(item, Value):
                raise XprTypeMismatchError(f"List element {idx} has not been evaluated")
            out.append(item)
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if type(other) is not List or len(self.args) != len(other.args):
            return False
        return all(a is b or a == b for a, b in zip(self.args, other.args))

    __hash__ = None

    def as_code(self, stream: TextIO) -> None:
        stream.write("xpr.list_(")
        self.print_args(stream, render="as_code")
        stream.write(")")


def scalar(value: numbers.Real) -> Scalar:
    return Scalar(value)


def boolean(value: bool) -> Boolean:
    return Boolean(value)


def missing() -> Missing:
    return Missing()


def vector(values) -> Vector:
    arr = jnp.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise XprTypeMismatchError(f"vector() requires a rank-1 sequence, got rank {arr.ndim}")
    return Vector(linalg.Tensor.from_array(arr))


def matrix(rows) -> Matrix:
    return Matrix(linalg.Matrix.from_array(jnp.asarray(rows, dtype=float)))


def tensor(values) -> Tensor:
    return Tensor(linalg.Tensor.from_array(jnp.asarray(values, dtype=float)))


def list_(*items) -> List:
    return List([as_expr(item) for item in items])


def from_array(array) -> Value:
    arr = jnp.asarray(array)
    if arr.ndim == 0:
        if arr.dtype == jnp.bool_:
            return Boolean(bool(arr))
        return Scalar(float(arr))
    if arr.ndim == 1:
        return Vector(linalg.Tensor.from_array(arr))
    if arr.ndim == 2:
        return Matrix(linalg.Matrix.from_array(arr))
    return Tensor(linalg.Tensor.from_array(arr))


def as_expr(value: object) -> Expr:
    """Coerce Python data into an expression node."""
    if isinstance(value, Expr):
        return value
    if isinstance(value, bool):
        return Boolean(value)
    if isinstance(value, numbers.Real):
        return Scalar(value)
    if isinstance(value, linalg.Tensor):
        if value.rank == 1:
            return Vector(value)
        if value.rank == 2:
            return Matrix(value)
        return Tensor(value)
    if isinstance(value, (list, tuple)):
        return List([as_expr(item) for item in value])
    if hasattr(value, "shape") and hasattr(value, "dtype"):
        return from_array(value)
    raise TypeError(f"Cannot build an expression from {type(value).__name__}")
