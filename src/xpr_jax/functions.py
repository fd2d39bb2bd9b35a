"""List built-ins: counting, zipping, mapping, folding, filtering, indexing, branching."""

from __future__ import annotations

from typing import Final

from .engine import apply
from .errors import XprArityError, XprMissingValueError, XprTypeMismatchError
from .expr import LIST_LIKE_SIGNATURES, Scope, Signature
from .function import Function, require_list_like
from .values import Boolean, List, Missing, Scalar, Value

_LIST_LIKE: Final = LIST_LIKE_SIGNATURES


class Count(Function):
    """Number of top-level elements of a list-like argument, as a scalar."""

    NAME = "count"
    ARITY = 1
    RESULT = Signature.SCALAR
    OPERAND_SIGNATURES = (_LIST_LIKE,)

    def evaluate(self, scope: Scope | None) -> Value:
        arg = self.param(0, scope)
        if arg.countable() and arg.is_closed():
            return Scalar(arg.count())
        value = self.evaluate_bound(0, arg, scope)
        if value.is_missing():
            return value
        require_list_like(self, 0, value)
        return Scalar(value.arity())


class ZipWith(Function):
    """Pairwise application of ``f`` over two lists of equal length."""

    NAME = "zip_with"
    ARITY = 3
    RESULT = Signature.LIST
    OPERAND_SIGNATURES = (Signature.ANY, _LIST_LIKE, _LIST_LIKE)
    FUNCTION_SLOTS = frozenset({0})

    def evaluate(self, scope: Scope | None) -> Value:
        fn = self.param(0, scope)
        l0 = self.evaluate_param(1, scope)
        l1 = self.evaluate_param(2, scope)
        if l0.is_missing() or l1.is_missing():
            return Missing()
        e0 = require_list_like(self, 1, l0)
        e1 = require_list_like(self, 2, l1)
        if len(e0) != len(e1):
            raise XprTypeMismatchError(
                f"zip_with lists have different lengths: {len(e0)} and {len(e1)}"
            )
        return List([apply(fn, a, b) for a, b in zip(e0, e1)])

    # the result has one element per pair, whatever f computes
    def countable(self) -> bool:
        l0, l1 = self.args[1], self.args[2]
        return l0.countable() and l1.countable() and l0.count() == l1.count()

    def count(self) -> int:
        return self.args[1].count()


class Map(Function):
    NAME = "map_"
    ARITY = 2
    RESULT = Signature.LIST
    OPERAND_SIGNATURES = (Signature.ANY, _LIST_LIKE)
    FUNCTION_SLOTS = frozenset({0})

    def evaluate(self, scope: Scope | None) -> Value:
        fn = self.param(0, scope)
        items = self.evaluate_param(1, scope)
        if items.is_missing():
            return items
        return List([apply(fn, item) for item in require_list_like(self, 1, items)])

    def countable(self) -> bool:
        return self.args[1].countable()

    def count(self) -> int:
        return self.args[1].count()


class Reduce(Function):
    """Left fold of ``f`` over a list; an empty list has no definite result."""

    NAME = "reduce_"
    ARITY = 2
    OPERAND_SIGNATURES = (Signature.ANY, _LIST_LIKE)
    FUNCTION_SLOTS = frozenset({0})

    def evaluate(self, scope: Scope | None) -> Value:
        fn = self.param(0, scope)
        items = self.evaluate_param(1, scope)
        if items.is_missing():
            return items
        elements = require_list_like(self, 1, items)
        if not elements:
            return Missing()
        acc = elements[0]
        for item in elements[1:]:
            acc = apply(fn, acc, item)
        return acc


class Filter(Function):
    NAME = "filter_"
    ARITY = 2
    RESULT = Signature.LIST
    OPERAND_SIGNATURES = (Signature.ANY, _LIST_LIKE)
    FUNCTION_SLOTS = frozenset({0})

    def evaluate(self, scope: Scope | None) -> Value:
        pred = self.param(0, scope)
        items = self.evaluate_param(1, scope)
        if items.is_missing():
            return items
        kept: list[Value] = []
        for idx, item in enumerate(require_list_like(self, 1, items)):
            verdict = apply(pred, item)
            if verdict.is_missing():
                raise XprMissingValueError(f"filter_ predicate is missing for element {idx}")
            if not isinstance(verdict, Boolean):
                raise XprTypeMismatchError(
                    f"filter_ predicate must produce Boolean, got {verdict.type_name()}"
                )
            if verdict.value:
                kept.append(item)
        return List(kept)


class Take(Function):
    NAME = "take"
    ARITY = 2
    OPERAND_SIGNATURES = (Signature.SCALAR, _LIST_LIKE)

    def evaluate(self, scope: Scope | None) -> Value:
        index = self.evaluate_param(0, scope)
        items = self.evaluate_param(1, scope)
        if index.is_missing() or items.is_missing():
            return Missing()
        if not isinstance(index, Scalar) or not index.value.is_integer():
            raise XprTypeMismatchError(f"take index must be an integral scalar, got {index}")
        elements = require_list_like(self, 1, items)
        i = int(index.value)
        if not 0 <= i < len(elements):
            raise XprArityError(f"take index {i} out of range for {len(elements)} element(s)")
        return elements[i]


class IfElse(Function):
    """Evaluates exactly one branch; the other branch's placeholders are still consumed."""

    NAME = "if_else"
    ARITY = 3
    OPERAND_SIGNATURES = (Signature.BOOLEAN, Signature.ANY, Signature.ANY)

    def evaluate(self, scope: Scope | None) -> Value:
        cond = self.evaluate_param(0, scope)
        if cond.is_missing():
            raise XprMissingValueError("if_else condition is missing")
        if not isinstance(cond, Boolean):
            raise XprTypeMismatchError(f"if_else condition must be Boolean, got {cond.type_name()}")
        if cond.value:
            result = self.evaluate_param(1, scope)
            self.skip_param(2, scope)
            return result
        self.skip_param(1, scope)
        return self.evaluate_param(2, scope)


def count(expr: object) -> Count:
    return Count(expr)


def zip_with(f: object, l0: object, l1: object) -> ZipWith:
    return ZipWith(f, l0, l1)


def map_(f: object, items: object) -> Map:
    return Map(f, items)


def reduce_(f: object, items: object) -> Reduce:
    return Reduce(f, items)


def filter_(pred: object, items: object) -> Filter:
    return Filter(pred, items)


def take(index: object, items: object) -> Take:
    return Take(index, items)


def if_else(cond: object, if_true: object, if_false: object) -> IfElse:
    return IfElse(cond, if_true, if_false)
