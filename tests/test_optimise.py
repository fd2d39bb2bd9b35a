from __future__ import annotations

import importlib.util
import unittest
from unittest import mock


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for optimiser tests")
class ConstantFoldingTests(unittest.TestCase):
    def test_closed_tree_folds_to_a_value(self) -> None:
        from xpr_jax import Scalar, add, prod

        out = add(1, prod(2, 3)).optimise()
        self.assertIsInstance(out, Scalar)
        self.assertEqual(out.value, 7.0)

    def test_optimise_leaves_the_input_tree_untouched(self) -> None:
        from xpr_jax import add, prod
        from xpr_jax.operators import Prod

        tree = add(1, prod(2, 3))
        before = str(tree)
        tree.optimise()
        self.assertIsInstance(tree.args[1], Prod)
        self.assertEqual(str(tree), before)

    def test_open_tree_folds_only_closed_subtrees(self) -> None:
        from xpr_jax import Scalar, add, is_undef, prod, undef

        tree = add(undef(), prod(2, 3))
        out = tree.optimise()
        self.assertIsNot(out, tree)
        self.assertTrue(is_undef(out.args[0]))
        self.assertIsInstance(out.args[1], Scalar)
        self.assertEqual(out.args[1].value, 6.0)

    def test_optimise_is_idempotent(self) -> None:
        from xpr_jax import add, count, list_, prod, undef

        for tree in (add(undef(), prod(2, 3)), count(list_(undef(), 1)), prod(undef(), undef())):
            with self.subTest(tree=str(tree)):
                once = tree.optimise()
                self.assertIs(once.optimise(), once)

    def test_unchanged_tree_optimises_to_itself(self) -> None:
        from xpr_jax import prod, undef

        tree = prod(undef(), undef())
        self.assertIs(tree.optimise(), tree)

    def test_folding_can_be_disabled(self) -> None:
        from xpr_jax import add
        from xpr_jax.operators import Add

        with mock.patch("xpr_jax.function._USE_CONSTANT_FOLDING", False):
            self.assertIsInstance(add(1, 2).optimise(), Add)

    def test_driver_can_skip_the_optimise_pass(self) -> None:
        from xpr_jax import add, evaluate, prod

        with mock.patch("xpr_jax.engine._USE_OPTIMISE", False):
            with self.assertNoLogs("xpr_jax.function", level="DEBUG"):
                out = evaluate(add(1, prod(2, 3)))
        self.assertEqual(out.value, 7.0)

    def test_failing_closed_subtree_is_left_for_evaluation(self) -> None:
        from xpr_jax import Scope, XprArityError, boolean, evaluate, if_else, list_, take, undef
        from xpr_jax.functions import Take

        tree = if_else(undef(), take(5, list_(1)), 0)
        optimised = tree.optimise()
        self.assertIsInstance(optimised.args[1], Take)

        plain = tree.evaluate(Scope([boolean(False)]))
        self.assertEqual(optimised.evaluate(Scope([boolean(False)])), plain)
        self.assertEqual(evaluate(tree, False).value, 0.0)
        with self.assertRaises(XprArityError):
            evaluate(tree, True)

    def test_folding_is_logged(self) -> None:
        from xpr_jax import add

        with self.assertLogs("xpr_jax.function", level="DEBUG") as logs:
            add(1, 2).optimise()
        self.assertTrue(any("folded" in line for line in logs.output))

    def test_optimised_and_plain_evaluation_agree(self) -> None:
        from xpr_jax import Scope, add, neg, prod, scalar, sub, undef

        tree = sub(prod(undef(), add(2, 0)), neg(neg(undef())))
        plain = tree.evaluate(Scope([scalar(3), scalar(4)]))
        optimised = tree.optimise().evaluate(Scope([scalar(3), scalar(4)]))
        self.assertEqual(plain, optimised)
        self.assertEqual(plain.value, 2.0)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for optimiser tests")
class RewriteTests(unittest.TestCase):
    def test_identity_elements_are_removed(self) -> None:
        from xpr_jax import add, div, prod, sub, undef

        for build in (
            lambda x: add(x, 0),
            lambda x: add(0, x),
            lambda x: sub(x, 0),
            lambda x: prod(x, 1),
            lambda x: prod(1, x),
            lambda x: div(x, 1),
        ):
            inner = prod(undef(), undef())
            tree = build(inner)
            with self.subTest(tree=str(tree)):
                self.assertIs(tree.optimise(), inner)

    def test_double_negation_is_removed(self) -> None:
        from xpr_jax import greater, neg, not_, prod, undef

        inner = prod(undef(), 2)
        self.assertIs(neg(neg(inner)).optimise(), inner)

        cond = greater(undef(), 1)
        self.assertIs(not_(not_(cond)).optimise(), cond)

    def test_rewrites_never_expose_a_bare_placeholder(self) -> None:
        from xpr_jax import add, evaluate, neg, not_, undef
        from xpr_jax.operators import Add, Neg, Not

        self.assertIsInstance(add(undef(), 0).optimise(), Add)
        self.assertIsInstance(neg(neg(undef())).optimise(), Neg)
        self.assertIsInstance(not_(not_(undef())).optimise(), Not)
        self.assertEqual(evaluate(add(undef(), 0), 5).value, 5.0)

    def test_rewrites_require_a_numeric_operand(self) -> None:
        from xpr_jax import add, take, undef
        from xpr_jax.operators import Add

        self.assertIsInstance(add(take(undef(), undef()), 0).optimise(), Add)

    def test_rewrites_are_logged(self) -> None:
        from xpr_jax import add, prod, undef

        with self.assertLogs("xpr_jax.function", level="DEBUG") as logs:
            add(prod(undef(), undef()), 0).optimise()
        self.assertTrue(any("rewrote" in line for line in logs.output))


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for optimiser tests")
class CloneWithTests(unittest.TestCase):
    def test_function_clone_uses_new_arguments(self) -> None:
        from xpr_jax import add, evaluate, scalar
        from xpr_jax.operators import Add

        tree = add(1, 2)
        clone = tree.clone_with([scalar(3), scalar(4)])
        self.assertIsInstance(clone, Add)
        self.assertIsNot(clone, tree)
        self.assertEqual(evaluate(clone).value, 7.0)
        self.assertEqual(evaluate(tree).value, 3.0)

    def test_function_clone_checks_arity(self) -> None:
        from xpr_jax import XprArityError, add, scalar

        with self.assertRaises(XprArityError):
            add(1, 2).clone_with([scalar(1)])

    def test_function_clone_checks_operand_kinds(self) -> None:
        from xpr_jax import XprTypeMismatchError, add, list_

        with self.assertRaises(XprTypeMismatchError):
            add(1, 2).clone_with([list_(1), list_(2)])

    def test_base_expr_does_not_support_cloning(self) -> None:
        from xpr_jax import Expr, XprUnsupportedError

        with self.assertRaises(XprUnsupportedError):
            Expr().clone_with([])
        with self.assertRaises(NotImplementedError):
            Expr().clone_with([])

    def test_leaf_clones(self) -> None:
        from xpr_jax import XprArityError, is_undef, list_, scalar, undef

        placeholder = undef()
        copy = placeholder.clone_with([])
        self.assertTrue(is_undef(copy))
        self.assertIsNot(copy, placeholder)

        value = scalar(1)
        self.assertIs(value.clone_with([]), value)
        with self.assertRaises(XprArityError):
            value.clone_with([scalar(2)])

        self.assertEqual(list_(1).clone_with([scalar(5), scalar(6)]), list_(5, 6))


if __name__ == "__main__":
    unittest.main()
