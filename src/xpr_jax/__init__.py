"""xpr-jax public API."""

from .engine import apply, evaluate
from .errors import (
    XprArityError,
    XprError,
    XprMissingValueError,
    XprRuntimeError,
    XprTypeMismatchError,
    XprUnboundPlaceholderError,
    XprUnsupportedError,
)
from .expr import Expr, Scope, Signature, Undef, is_undef, undef
from .function import Function
from .functions import (
    Count,
    Filter,
    IfElse,
    Map,
    Reduce,
    Take,
    ZipWith,
    count,
    filter_,
    if_else,
    map_,
    reduce_,
    take,
    zip_with,
)
from .operators import (
    abs_,
    add,
    and_,
    div,
    equal,
    exp,
    greater,
    greater_equal,
    less,
    less_equal,
    max_,
    min_,
    neg,
    not_,
    not_equal,
    or_,
    prod,
    sqrt,
    sub,
)
from .values import (
    Boolean,
    List,
    Matrix,
    Missing,
    Scalar,
    Tensor,
    Value,
    Vector,
    as_expr,
    boolean,
    list_,
    matrix,
    missing,
    scalar,
    tensor,
    vector,
)

__all__ = [
    "evaluate",
    "apply",
    "Expr",
    "Scope",
    "Signature",
    "Undef",
    "undef",
    "is_undef",
    "Function",
    "Value",
    "Scalar",
    "Boolean",
    "Missing",
    "Vector",
    "Matrix",
    "Tensor",
    "List",
    "as_expr",
    "scalar",
    "boolean",
    "missing",
    "vector",
    "matrix",
    "tensor",
    "list_",
    "Count",
    "ZipWith",
    "Map",
    "Reduce",
    "Filter",
    "Take",
    "IfElse",
    "count",
    "zip_with",
    "map_",
    "reduce_",
    "filter_",
    "take",
    "if_else",
    "add",
    "sub",
    "prod",
    "div",
    "min_",
    "max_",
    "greater",
    "greater_equal",
    "less",
    "less_equal",
    "equal",
    "not_equal",
    "and_",
    "or_",
    "neg",
    "abs_",
    "sqrt",
    "exp",
    "not_",
    "XprError",
    "XprRuntimeError",
    "XprArityError",
    "XprTypeMismatchError",
    "XprMissingValueError",
    "XprUnboundPlaceholderError",
    "XprUnsupportedError",
]
