"""Driver entry points: bind arguments, optimise and evaluate a tree.

Arguments fill the tree's undef placeholders strictly in the order a
depth-first, left-to-right evaluation reaches them. Callers must supply them
in that order and in exactly that number.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import Final, overload

from .errors import XprArityError
from .expr import Expr, Scope
from .values import Value, as_expr

logger = logging.getLogger("xpr_jax.engine")

_USE_OPTIMISE: Final[bool] = os.environ.get("XPR_JAX_DISABLE_OPTIMISE", "0") != "1"


def _seed_scope(args: Sequence[object]) -> Scope:
    if len(args) == 1 and isinstance(args[0], (list, tuple)):
        args = args[0]
    return Scope(as_expr(arg) for arg in args)


def _run(tree: Expr, scope: Scope) -> Value:
    result = tree.evaluate(scope)
    if not scope.empty():
        raise XprArityError(
            f"Scope not fully consumed: {len(scope)} argument(s) left after evaluating {tree}"
        )
    return result


@overload
def evaluate(tree: object) -> Value:
    ...


@overload
def evaluate(tree: object, args: list[object] | tuple[object, ...]) -> Value:
    ...


@overload
def evaluate(tree: object, *args: object) -> Value:
    ...


def evaluate(tree: object, *args: object) -> Value:
    """Optimise ``tree`` and evaluate it with ``args`` bound to its placeholders.

    ``evaluate(tree, [a, b])`` is the argument-list form of
    ``evaluate(tree, a, b)``. A single Python list or tuple is therefore
    always read as the argument list; to bind one list value, pass
    ``list_(a, b)`` or wrap it as ``[[a, b]]``.
    """
    root = as_expr(tree)
    scope = _seed_scope(args)
    logger.debug("evaluating %s with %d argument(s)", root, len(scope))
    if _USE_OPTIMISE:
        root = root.optimise()
    return _run(root, scope)


def apply(fn: Expr, *args: object) -> Value:
    """Evaluate an already-built function tree against ``args`` without optimising it."""
    return _run(fn, _seed_scope(args))
