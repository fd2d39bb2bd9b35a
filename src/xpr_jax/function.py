"""Function nodes: arity validation, operand binding, rewriting and rendering."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import ClassVar, Final, TextIO, Union

from .errors import XprArityError, XprRuntimeError, XprTypeMismatchError
from .expr import Expr, Scope, Signature, is_undef
from .values import Value, as_expr

logger = logging.getLogger("xpr_jax.function")

_USE_CONSTANT_FOLDING: Final[bool] = os.environ.get("XPR_JAX_DISABLE_CONSTANT_FOLDING", "0") != "1"

OperandSignature = Union[Signature, frozenset]


def _accepts(required: OperandSignature, actual: Signature) -> bool:
    if isinstance(required, Signature):
        return required.accepts(actual)
    return any(option.accepts(actual) for option in required)


def _describe(required: OperandSignature) -> str:
    if isinstance(required, Signature):
        return required.value
    return " or ".join(sorted(option.value for option in required))


class Function(Expr):
    """Named operation over an ordered argument list.

    Subclasses declare ``NAME`` (the constructor rendered by ``as_code``),
    ``ARITY`` (``None`` for variadic), ``RESULT`` and optionally the
    signatures their operands must be compatible with. Slots listed in
    ``FUNCTION_SLOTS`` hold function operands: placeholders inside them are
    that function's own parameters, not arguments of the enclosing tree.
    """

    NAME: ClassVar[str] = ""
    ARITY: ClassVar[int | None] = None
    RESULT: ClassVar[Signature] = Signature.ANY
    OPERAND_SIGNATURES: ClassVar[tuple[OperandSignature, ...]] = ()
    FUNCTION_SLOTS: ClassVar[frozenset[int]] = frozenset()

    def __init__(self, *args: object) -> None:
        exprs = [as_expr(arg) for arg in args]
        self._check_arity(len(exprs))
        super().__init__(exprs)
        self._check_signatures()

    def _check_arity(self, count: int) -> None:
        if self.ARITY is not None and count != self.ARITY:
            raise XprArityError(f"{self.NAME} expects {self.ARITY} argument(s), got {count}")

    def _check_signatures(self) -> None:
        for idx, required in enumerate(self.OPERAND_SIGNATURES):
            if idx in self.FUNCTION_SLOTS:
                continue
            actual = self.args[idx].return_signature()
            if not _accepts(required, actual):
                raise XprTypeMismatchError(
                    f"{self.NAME} argument {idx} must be {_describe(required)}, got {actual.value}"
                )

    def return_signature(self) -> Signature:
        return self.RESULT

    def _slot_placeholders(self, i: int) -> int:
        arg = self.args[i]
        if i in self.FUNCTION_SLOTS:
            return 1 if is_undef(arg) else 0
        return arg.placeholder_count()

    def placeholder_count(self) -> int:
        return sum(self._slot_placeholders(i) for i in range(len(self.args)))

    def skip_param(self, i: int, scope: Scope | None) -> None:
        """Consume the placeholders of an argument that will not be evaluated."""
        self._check_index(i)
        if scope is None:
            return
        for _ in range(self._slot_placeholders(i)):
            scope.pop()

    def clone_with(self, args: Sequence[Expr]) -> Expr:
        self._check_arity(len(args))
        return type(self)(*args)

    def rewrite(self) -> Expr:
        """Variant-specific structural simplification of an optimised node."""
        return self

    def _foldable(self) -> bool:
        return all(isinstance(arg, Value) for arg in self.args) and self.is_closed()

    def optimise(self) -> Expr:
        args = [arg.optimise() for arg in self.args]
        node: Expr = self
        if any(new is not old for new, old in zip(args, self.args)):
            node = self.clone_with(args)

        rewritten = node.rewrite()
        if rewritten is not node:
            logger.debug("rewrote %s into %s", node, rewritten)
            return rewritten

        if _USE_CONSTANT_FOLDING and node._foldable():
            try:
                folded = node.evaluate(Scope())
            except XprRuntimeError as exc:
                # left for evaluation, which may never reach this node
                logger.debug("not folding %s: %s", node, exc)
                return node
            logger.debug("folded %s into %s", node, folded)
            return folded
        return node

    def as_code(self, stream: TextIO) -> None:
        stream.write(f"xpr.{self.NAME}(")
        self.print_args(stream, render="as_code")
        stream.write(")")


def require_list_like(node: Function, i: int, value: Value) -> list[Value]:
    if not value.list_like():
        raise XprTypeMismatchError(
            f"{node.NAME} argument {i} must be list-like, got {value.type_name()}"
        )
    return value.elements()
