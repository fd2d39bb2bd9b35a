"""Structured error types for expression construction and evaluation."""

from __future__ import annotations


class XprError(Exception):
    """Base class for structured xpr-jax errors."""


class XprRuntimeError(XprError):
    """Generic failure while building, rewriting or evaluating a tree."""


class XprArityError(XprRuntimeError):
    """Argument count mismatch: construction, scope binding or indexing."""


class XprTypeMismatchError(XprRuntimeError):
    """Operand kind or shape is incompatible with the operation."""


class XprMissingValueError(XprRuntimeError):
    """A missing value reached an operation that needs a definite result."""


class XprUnboundPlaceholderError(XprRuntimeError):
    """An undef placeholder was evaluated without being bound."""


class XprUnsupportedError(XprRuntimeError, NotImplementedError):
    """Operation is not implemented for this expression variant."""
