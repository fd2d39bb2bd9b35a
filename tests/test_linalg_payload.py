from __future__ import annotations

import importlib.util
import io
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for payload tests")
class TensorLayoutTests(unittest.TestCase):
    def test_storage_is_column_major(self) -> None:
        from xpr_jax.linalg import Tensor

        t = Tensor.from_array([[1, 2, 3], [4, 5, 6]])
        self.assertEqual(t.shape, (2, 3))
        self.assertEqual(t.rank, 2)
        self.assertEqual(t.size, 6)
        self.assertEqual(t.data.tolist(), [1, 4, 2, 5, 3, 6])
        self.assertEqual(int(t.element((1, 2))), 6)
        self.assertEqual(int(t.element((0, 1))), 2)
        self.assertEqual(t.linear_index((1, 2)), 5)
        self.assertEqual(t.to_array().tolist(), [[1, 2, 3], [4, 5, 6]])

    def test_index_errors(self) -> None:
        from xpr_jax.linalg import Tensor

        t = Tensor.from_array([[1, 2, 3], [4, 5, 6]])
        with self.assertRaises(IndexError):
            t.element((2, 0))
        with self.assertRaises(IndexError):
            t.linear_index((0, -1))
        with self.assertRaises(ValueError):
            t.element((0,))

    def test_shape_must_match_buffer(self) -> None:
        from xpr_jax.linalg import Tensor

        with self.assertRaises(ValueError):
            Tensor([1, 2, 3], (2, 2))
        with self.assertRaises(ValueError):
            Tensor([], (-1,))

    def test_flatten(self) -> None:
        from xpr_jax.linalg import flatten

        self.assertEqual(flatten((2, 3, 4)), 24)
        self.assertEqual(flatten(()), 1)
        self.assertEqual(flatten((5, 0)), 0)

    def test_constructors_and_fills(self) -> None:
        from xpr_jax.linalg import Tensor

        zeros = Tensor.zeros((2, 3))
        self.assertEqual(zeros.shape, (2, 3))
        self.assertEqual(zeros.data.tolist(), [0.0] * 6)

        sevens = Tensor.full((2, 2), 7.0)
        self.assertEqual(sevens.data.tolist(), [7.0] * 4)

        empty = Tensor.empty((3, 1))
        self.assertEqual((empty.shape, empty.size), ((3, 1), 3))

        filled = zeros.fill(3.0)
        self.assertEqual(filled.data.tolist(), [3.0] * 6)
        self.assertEqual(zeros.data.tolist(), [0.0] * 6)
        self.assertEqual(filled.zero(), zeros)

    def test_resize(self) -> None:
        from xpr_jax.linalg import Tensor

        t = Tensor.from_array([[1.0, 2.0], [3.0, 4.0]])
        same_size = t.resize((4,))
        self.assertEqual(same_size.shape, (4,))
        self.assertEqual(same_size.data.tolist(), t.data.tolist())

        grown = t.resize((3, 2))
        self.assertEqual(grown.shape, (3, 2))
        self.assertEqual(grown.data.tolist(), [0.0] * 6)

    def test_equality_and_repr(self) -> None:
        from xpr_jax.linalg import Tensor

        a = Tensor.from_array([[1.0, 2.0], [3.0, 4.0]])
        b = Tensor([1.0, 3.0, 2.0, 4.0], (2, 2))
        self.assertEqual(a, b)
        self.assertNotEqual(a, b.resize((4,)))
        self.assertEqual(repr(a), "Tensor(shape=[2,2],array=[1.0,3.0,2.0,4.0])")


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for payload tests")
class MatrixPayloadTests(unittest.TestCase):
    def test_rows_and_cols(self) -> None:
        from xpr_jax.linalg import Matrix

        m = Matrix.from_array([[1, 2, 3], [4, 5, 6]])
        self.assertEqual((m.rows, m.cols), (2, 3))
        self.assertEqual(int(m.element((1, 0))), 4)

    def test_matrix_resize_takes_rows_and_cols(self) -> None:
        from xpr_jax.linalg import Matrix

        m = Matrix.from_array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        reshaped = m.resize(3, 2)
        self.assertIsInstance(reshaped, Matrix)
        self.assertEqual((reshaped.rows, reshaped.cols), (3, 2))
        self.assertEqual(reshaped.data.tolist(), m.data.tolist())
        self.assertEqual(m.resize(1, 1).data.tolist(), [0.0])

    def test_matrix_requires_rank_two(self) -> None:
        from xpr_jax.linalg import Matrix

        with self.assertRaises(ValueError):
            Matrix.from_array([1, 2, 3])
        with self.assertRaises(ValueError):
            Matrix([1, 2, 3, 4], (4,))

    def test_matrix_value_carries_matrix_payload(self) -> None:
        from xpr_jax import linalg, matrix

        value = matrix([[1, 2], [3, 4]])
        self.assertIsInstance(value.payload, linalg.Matrix)
        self.assertEqual(value.shape, (2, 2))


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for payload tests")
class TensorStreamTests(unittest.TestCase):
    def test_encode_then_decode_restores_payload(self) -> None:
        import jax.numpy as jnp

        from xpr_jax.linalg import Tensor

        t = Tensor.from_array(jnp.asarray([[1, 2, 3], [4, 5, 6]], dtype=jnp.float32))
        buf = io.BytesIO()
        t.encode(buf)
        buf.seek(0)
        out = Tensor.decode(buf)
        self.assertEqual(out, t)
        self.assertEqual(out.shape, (2, 3))
        self.assertEqual(buf.read(), b"")

    def test_several_payloads_share_a_stream(self) -> None:
        import jax.numpy as jnp

        from xpr_jax.linalg import Tensor

        first = Tensor.from_array(jnp.asarray([1, 2], dtype=jnp.float32))
        second = Tensor.from_array(jnp.asarray([[5]], dtype=jnp.float32))
        buf = io.BytesIO()
        first.encode(buf)
        second.encode(buf)
        buf.seek(0)
        self.assertEqual(Tensor.decode(buf), first)
        self.assertEqual(Tensor.decode(buf), second)

    def test_truncated_stream_raises(self) -> None:
        import jax.numpy as jnp

        from xpr_jax.linalg import Tensor

        buf = io.BytesIO()
        Tensor.from_array(jnp.asarray([1, 2, 3], dtype=jnp.float32)).encode(buf)
        data = buf.getvalue()
        for cut in (0, 4, len(data) - 1):
            with self.subTest(cut=cut):
                with self.assertRaisesRegex(ValueError, "Truncated"):
                    Tensor.decode(io.BytesIO(data[:cut]))


if __name__ == "__main__":
    unittest.main()
