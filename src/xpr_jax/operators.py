"""Arithmetic, comparison and logical operator nodes.

Arithmetic operators work on scalars with plain float arithmetic and on
vector/matrix/tensor payloads through (optionally jitted) ``jax.numpy``
kernels, broadcasting a scalar against an array. A missing operand makes the
result missing. Scalar division by zero, the square root of a negative
scalar and an overflowing scalar ``exp`` also produce a missing result; the
array kernels follow IEEE semantics instead.
"""

from __future__ import annotations

import math
import operator
import os
from typing import Callable, Final

import jax
import jax.numpy as jnp

from . import linalg
from .errors import XprTypeMismatchError
from .expr import Expr, Scope, Signature, is_undef
from .function import Function
from .values import ArrayValue, Boolean, Missing, Scalar, Value

_USE_JITTED_BASE_OPS: Final[bool] = os.environ.get("XPR_JAX_DISABLE_JITTED_BASE_OPS", "0") != "1"

_PASSTHROUGH_NUMERIC: Final[frozenset[Signature]] = frozenset(
    {Signature.SCALAR, Signature.VECTOR, Signature.MATRIX, Signature.TENSOR, Signature.NUMERIC}
)


def _scalar_div(w: float, x: float) -> Value:
    if x == 0:
        return Missing()
    return Scalar(w / x)


_SCALAR_BINARY_OPS: Final[dict[str, Callable[[float, float], Value]]] = {
    "add": lambda w, x: Scalar(w + x),
    "sub": lambda w, x: Scalar(w - x),
    "prod": lambda w, x: Scalar(w * x),
    "div": _scalar_div,
    "min_": lambda w, x: Scalar(min(w, x)),
    "max_": lambda w, x: Scalar(max(w, x)),
}

_ARRAY_BINARY_OPS: Final[dict[str, Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]]] = {
    "add": jnp.add,
    "sub": jnp.subtract,
    "prod": jnp.multiply,
    "div": jnp.true_divide,
    "min_": jnp.minimum,
    "max_": jnp.maximum,
}


def _scalar_sqrt(x: float) -> Value:
    if x < 0:
        return Missing()
    return Scalar(math.sqrt(x))


def _scalar_exp(x: float) -> Value:
    try:
        return Scalar(math.exp(x))
    except OverflowError:
        return Missing()


_SCALAR_UNARY_OPS: Final[dict[str, Callable[[float], Value]]] = {
    "neg": lambda x: Scalar(-x),
    "abs_": lambda x: Scalar(abs(x)),
    "sqrt": _scalar_sqrt,
    "exp": _scalar_exp,
}

_ARRAY_UNARY_OPS: Final[dict[str, Callable[[jnp.ndarray], jnp.ndarray]]] = {
    "neg": jnp.negative,
    "abs_": jnp.abs,
    "sqrt": jnp.sqrt,
    "exp": jnp.exp,
}

_COMPARISONS: Final[dict[str, Callable[[float, float], bool]]] = {
    "greater": operator.gt,
    "greater_equal": operator.ge,
    "less": operator.lt,
    "less_equal": operator.le,
}

_JITTED_UNARY_OPS: dict[str, Callable[[jnp.ndarray], jnp.ndarray]] = {}
_JITTED_BINARY_OPS: dict[str, Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]] = {}


def _jitted_unary_kernel(op: str) -> Callable[[jnp.ndarray], jnp.ndarray]:
    fn = _JITTED_UNARY_OPS.get(op)
    if fn is None:
        fn = jax.jit(_ARRAY_UNARY_OPS[op])
        _JITTED_UNARY_OPS[op] = fn
    return fn


def _jitted_binary_kernel(op: str) -> Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]:
    fn = _JITTED_BINARY_OPS.get(op)
    if fn is None:
        fn = jax.jit(_ARRAY_BINARY_OPS[op])
        _JITTED_BINARY_OPS[op] = fn
    return fn


def _unary_kernel(op: str) -> Callable[[jnp.ndarray], jnp.ndarray]:
    if _USE_JITTED_BASE_OPS:
        return _jitted_unary_kernel(op)
    return _ARRAY_UNARY_OPS[op]


def _binary_kernel(op: str) -> Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]:
    if _USE_JITTED_BASE_OPS:
        return _jitted_binary_kernel(op)
    return _ARRAY_BINARY_OPS[op]


def _array_operand(value: Value, *, where: str) -> jnp.ndarray:
    if isinstance(value, Scalar):
        return jnp.asarray(value.value, dtype=float)
    if isinstance(value, ArrayValue):
        return value.to_array()
    raise XprTypeMismatchError(f"{where} requires scalar or array operands, got {value.type_name()}")


def _wrap_like(template: ArrayValue, array: jnp.ndarray) -> Value:
    return type(template)(linalg.Tensor.from_array(array))


def _is_number(expr: Expr, value: float) -> bool:
    return isinstance(expr, Scalar) and expr.value == value


def _passes_through(expr: Expr, signatures: frozenset[Signature] = _PASSTHROUGH_NUMERIC) -> bool:
    return not is_undef(expr) and expr.return_signature() in signatures


class BinaryOperator(Function):
    ARITY = 2
    SYMBOL = ""

    def evaluate(self, scope: Scope | None) -> Value:
        left = self.evaluate_param(0, scope)
        right = self.evaluate_param(1, scope)
        if left.is_missing() or right.is_missing():
            return Missing()
        return self.combine(left, right)

    def combine(self, left: Value, right: Value) -> Value:
        raise NotImplementedError

    def print(self, stream) -> None:
        stream.write("(")
        self.args[0].print(stream)
        stream.write(f" {self.SYMBOL} ")
        self.args[1].print(stream)
        stream.write(")")


class ArithmeticOperator(BinaryOperator):
    RESULT = Signature.NUMERIC
    OPERAND_SIGNATURES = (Signature.NUMERIC, Signature.NUMERIC)

    def combine(self, left: Value, right: Value) -> Value:
        if isinstance(left, Scalar) and isinstance(right, Scalar):
            return _SCALAR_BINARY_OPS[self.NAME](left.value, right.value)
        w = _array_operand(left, where=self.NAME)
        x = _array_operand(right, where=self.NAME)
        if isinstance(left, ArrayValue) and isinstance(right, ArrayValue) and left.shape != right.shape:
            raise XprTypeMismatchError(
                f"{self.NAME} operands have mismatched shapes {left.shape} and {right.shape}"
            )
        template = left if isinstance(left, ArrayValue) else right
        return _wrap_like(template, _binary_kernel(self.NAME)(w, x))


class Add(ArithmeticOperator):
    NAME = "add"
    SYMBOL = "+"

    def rewrite(self) -> Expr:
        left, right = self.args
        if _is_number(left, 0) and _passes_through(right):
            return right
        if _is_number(right, 0) and _passes_through(left):
            return left
        return self


class Sub(ArithmeticOperator):
    NAME = "sub"
    SYMBOL = "-"

    def rewrite(self) -> Expr:
        left, right = self.args
        if _is_number(right, 0) and _passes_through(left):
            return left
        return self


class Prod(ArithmeticOperator):
    NAME = "prod"
    SYMBOL = "*"

    def rewrite(self) -> Expr:
        left, right = self.args
        if _is_number(left, 1) and _passes_through(right):
            return right
        if _is_number(right, 1) and _passes_through(left):
            return left
        return self


class Div(ArithmeticOperator):
    NAME = "div"
    SYMBOL = "/"

    def rewrite(self) -> Expr:
        left, right = self.args
        if _is_number(right, 1) and _passes_through(left):
            return left
        return self


class Min(ArithmeticOperator):
    NAME = "min_"
    SYMBOL = "min"


class Max(ArithmeticOperator):
    NAME = "max_"
    SYMBOL = "max"


class Comparison(BinaryOperator):
    RESULT = Signature.BOOLEAN
    OPERAND_SIGNATURES = (Signature.SCALAR, Signature.SCALAR)

    def combine(self, left: Value, right: Value) -> Value:
        if not (isinstance(left, Scalar) and isinstance(right, Scalar)):
            raise XprTypeMismatchError(
                f"{self.NAME} compares scalars, got {left.type_name()} and {right.type_name()}"
            )
        return Boolean(_COMPARISONS[self.NAME](left.value, right.value))


class Greater(Comparison):
    NAME = "greater"
    SYMBOL = ">"


class GreaterEqual(Comparison):
    NAME = "greater_equal"
    SYMBOL = ">="


class Less(Comparison):
    NAME = "less"
    SYMBOL = "<"


class LessEqual(Comparison):
    NAME = "less_equal"
    SYMBOL = "<="


class Equal(BinaryOperator):
    """Structural equality of any two values."""

    NAME = "equal"
    SYMBOL = "=="
    RESULT = Signature.BOOLEAN

    def combine(self, left: Value, right: Value) -> Value:
        return Boolean(left == right)


class NotEqual(BinaryOperator):
    NAME = "not_equal"
    SYMBOL = "!="
    RESULT = Signature.BOOLEAN

    def combine(self, left: Value, right: Value) -> Value:
        return Boolean(left != right)


class LogicalOperator(BinaryOperator):
    """Kleene three-valued connective: a decisive operand wins over a missing one."""

    RESULT = Signature.BOOLEAN
    OPERAND_SIGNATURES = (Signature.BOOLEAN, Signature.BOOLEAN)
    DECISIVE = False

    def _check(self, value: Value) -> Value:
        if not (value.is_missing() or isinstance(value, Boolean)):
            raise XprTypeMismatchError(f"{self.NAME} requires boolean operands, got {value.type_name()}")
        return value

    def evaluate(self, scope: Scope | None) -> Value:
        left = self._check(self.evaluate_param(0, scope))
        right = self._check(self.evaluate_param(1, scope))
        operands = (left, right)
        if any(isinstance(v, Boolean) and v.value == self.DECISIVE for v in operands):
            return Boolean(self.DECISIVE)
        if any(v.is_missing() for v in operands):
            return Missing()
        return Boolean(not self.DECISIVE)


class And(LogicalOperator):
    NAME = "and_"
    SYMBOL = "and"
    DECISIVE = False


class Or(LogicalOperator):
    NAME = "or_"
    SYMBOL = "or"
    DECISIVE = True


class UnaryOperator(Function):
    ARITY = 1
    RESULT = Signature.NUMERIC
    OPERAND_SIGNATURES = (Signature.NUMERIC,)

    def evaluate(self, scope: Scope | None) -> Value:
        value = self.evaluate_param(0, scope)
        if value.is_missing():
            return value
        if isinstance(value, Scalar):
            return _SCALAR_UNARY_OPS[self.NAME](value.value)
        if isinstance(value, ArrayValue):
            return _wrap_like(value, _unary_kernel(self.NAME)(value.to_array()))
        raise XprTypeMismatchError(f"{self.NAME} requires a scalar or array operand, got {value.type_name()}")


class Neg(UnaryOperator):
    NAME = "neg"

    def rewrite(self) -> Expr:
        inner = self.args[0]
        if isinstance(inner, Neg) and _passes_through(inner.args[0]):
            return inner.args[0]
        return self


class Abs(UnaryOperator):
    NAME = "abs_"


class Sqrt(UnaryOperator):
    NAME = "sqrt"


class Exp(UnaryOperator):
    NAME = "exp"


class Not(Function):
    NAME = "not_"
    ARITY = 1
    RESULT = Signature.BOOLEAN
    OPERAND_SIGNATURES = (Signature.BOOLEAN,)

    def evaluate(self, scope: Scope | None) -> Value:
        value = self.evaluate_param(0, scope)
        if value.is_missing():
            return value
        if not isinstance(value, Boolean):
            raise XprTypeMismatchError(f"not_ requires a boolean operand, got {value.type_name()}")
        return Boolean(not value.value)

    def rewrite(self) -> Expr:
        inner = self.args[0]
        if isinstance(inner, Not) and _passes_through(inner.args[0], frozenset({Signature.BOOLEAN})):
            return inner.args[0]
        return self


def add(left: object, right: object) -> Add:
    return Add(left, right)


def sub(left: object, right: object) -> Sub:
    return Sub(left, right)


def prod(left: object, right: object) -> Prod:
    return Prod(left, right)


def div(left: object, right: object) -> Div:
    return Div(left, right)


def min_(left: object, right: object) -> Min:
    return Min(left, right)


def max_(left: object, right: object) -> Max:
    return Max(left, right)


def greater(left: object, right: object) -> Greater:
    return Greater(left, right)


def greater_equal(left: object, right: object) -> GreaterEqual:
    return GreaterEqual(left, right)


def less(left: object, right: object) -> Less:
    return Less(left, right)


def less_equal(left: object, right: object) -> LessEqual:
    return LessEqual(left, right)


def equal(left: object, right: object) -> Equal:
    return Equal(left, right)


def not_equal(left: object, right: object) -> NotEqual:
    return NotEqual(left, right)


def and_(left: object, right: object) -> And:
    return And(left, right)


def or_(left: object, right: object) -> Or:
    return Or(left, right)


def neg(value: object) -> Neg:
    return Neg(value)


def abs_(value: object) -> Abs:
    return Abs(value)


def sqrt(value: object) -> Sqrt:
    return Sqrt(value)


def exp(value: object) -> Exp:
    return Exp(value)


def not_(value: object) -> Not:
    return Not(value)
