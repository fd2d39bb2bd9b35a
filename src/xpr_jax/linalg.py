"""Dense column-major numeric payloads carried by array values.

Payloads store a flat, contiguous ``jax.numpy`` buffer in column-major
(Fortran) order together with a shape. They are meant to be handed in bulk to
``jnp`` kernels; ``element`` exists for inspection and tests.

The stream codec writes the rank, each dimension and a size-prefixed blob of
raw element bytes, all in native byte order and width. Streams are therefore
not portable between architectures with different endianness.
"""

from __future__ import annotations

import math
import operator
import struct
from collections.abc import Sequence
from typing import BinaryIO, Final

import jax.numpy as jnp
import numpy as np

_SIZE_FORMAT: Final[str] = "@Q"
_SIZE_BYTES: Final[int] = struct.calcsize(_SIZE_FORMAT)


def flatten(shape: Sequence[int]) -> int:
    """Number of elements held by a payload of the given shape."""
    return math.prod(shape)


def _as_shape(shape: Sequence[int]) -> tuple[int, ...]:
    dims: list[int] = []
    for dim in shape:
        try:
            dim = operator.index(dim)
        except TypeError:
            raise ValueError(f"Tensor dimensions must be integers, got {dim!r}") from None
        if dim < 0:
            raise ValueError("Tensor dimensions must be non-negative")
        dims.append(dim)
    return tuple(dims)


def _column_major(array: jnp.ndarray) -> jnp.ndarray:
    return jnp.ravel(jnp.transpose(array))


def _write_size(stream: BinaryIO, value: int) -> None:
    stream.write(struct.pack(_SIZE_FORMAT, value))


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    raw = stream.read(size)
    if raw is None or len(raw) != size:
        raise ValueError("Truncated tensor stream")
    return raw


def _read_size(stream: BinaryIO) -> int:
    return struct.unpack(_SIZE_FORMAT, _read_exact(stream, _SIZE_BYTES))[0]


class Tensor:
    """Dense tensor in column-major storage order."""

    __slots__ = ("_data", "_shape")

    def __init__(self, data, shape: Sequence[int]) -> None:
        dims = _as_shape(shape)
        flat = jnp.ravel(jnp.asarray(data))
        if flat.size != flatten(dims):
            raise ValueError(
                f"Tensor buffer holds {flat.size} elements but shape {list(dims)} needs {flatten(dims)}"
            )
        self._data = flat
        self._shape = dims

    @classmethod
    def empty(cls, shape: Sequence[int], dtype=None) -> "Tensor":
        """Payload of the given shape with unspecified contents."""
        dims = _as_shape(shape)
        return cls(jnp.empty(flatten(dims), dtype=dtype), dims)

    @classmethod
    def zeros(cls, shape: Sequence[int], dtype=None) -> "Tensor":
        dims = _as_shape(shape)
        return cls(jnp.zeros(flatten(dims), dtype=dtype), dims)

    @classmethod
    def full(cls, shape: Sequence[int], value, dtype=None) -> "Tensor":
        dims = _as_shape(shape)
        return cls(jnp.full(flatten(dims), value, dtype=dtype), dims)

    @classmethod
    def from_array(cls, array) -> "Tensor":
        """Build a payload from a (row-major) nested sequence or array."""
        arr = jnp.asarray(array)
        return cls(_column_major(arr), arr.shape)

    @classmethod
    def decode(cls, stream: BinaryIO, dtype="float32") -> "Tensor":
        rank = _read_size(stream)
        shape = tuple(_read_size(stream) for _ in range(rank))
        nbytes = _read_size(stream)
        blob = _read_exact(stream, nbytes)
        data = np.frombuffer(blob, dtype=np.dtype(dtype))
        return cls(jnp.asarray(data), shape)

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def rank(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return int(self._data.size)

    @property
    def dtype(self):
        return self._data.dtype

    @property
    def data(self) -> jnp.ndarray:
        """Flat column-major buffer."""
        return self._data

    def to_array(self) -> jnp.ndarray:
        """Shaped view of the buffer with the usual row-major indexing."""
        return jnp.transpose(jnp.reshape(self._data, self._shape[::-1]))

    def zero(self) -> "Tensor":
        return type(self)(jnp.zeros_like(self._data), self._shape)

    def fill(self, value) -> "Tensor":
        return type(self)(jnp.full_like(self._data, value), self._shape)

    def resize(self, shape: Sequence[int]) -> "Tensor":
        """Reshape keeping the buffer when sizes agree, otherwise start from zeros."""
        dims = _as_shape(shape)
        if flatten(dims) == self.size:
            return type(self)(self._data, dims)
        return type(self)(jnp.zeros(flatten(dims), dtype=self.dtype), dims)

    def linear_index(self, indices: Sequence[int]) -> int:
        if len(indices) != len(self._shape):
            raise ValueError(
                f"Tensor of rank {len(self._shape)} indexed with {len(indices)} indices"
            )
        idx = 0
        stride = 1
        for axis, (raw, dim) in enumerate(zip(indices, self._shape)):
            i = operator.index(raw)
            if not 0 <= i < dim:
                raise IndexError(f"Index {i} out of bounds for axis {axis} with size {dim}")
            idx += i * stride
            stride *= dim
        return idx

    def element(self, indices: Sequence[int]) -> jnp.ndarray:
        return self._data[self.linear_index(indices)]

    def encode(self, stream: BinaryIO) -> None:
        _write_size(stream, len(self._shape))
        for dim in self._shape:
            _write_size(stream, dim)
        blob = np.asarray(self._data).tobytes()
        _write_size(stream, len(blob))
        stream.write(blob)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return self._shape == other._shape and bool(jnp.array_equal(self._data, other._data))

    __hash__ = None

    def __repr__(self) -> str:
        dims = ",".join(str(d) for d in self._shape)
        values = ",".join(str(v) for v in np.asarray(self._data).tolist())
        return f"{type(self).__name__}(shape=[{dims}],array=[{values}])"


class Matrix(Tensor):
    """Rank-2 tensor."""

    __slots__ = ()

    def __init__(self, data, shape: Sequence[int]) -> None:
        if len(shape) != 2:
            raise ValueError(f"Matrix shape must have two dimensions, got {list(shape)}")
        super().__init__(data, shape)

    @classmethod
    def from_array(cls, array) -> "Matrix":
        arr = jnp.asarray(array)
        if arr.ndim != 2:
            raise ValueError(f"Matrix requires a rank-2 array, got rank {arr.ndim}")
        return cls(_column_major(arr), arr.shape)

    @property
    def rows(self) -> int:
        return self._shape[0]

    @property
    def cols(self) -> int:
        return self._shape[1]

    def resize(self, rows: int, cols: int) -> "Matrix":
        return super().resize((rows, cols))
