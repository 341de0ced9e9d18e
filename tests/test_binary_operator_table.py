from __future__ import annotations

import importlib.util
import math
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for binary operator tests")
class ScalarBinaryTests(unittest.TestCase):
    def _apply(self, op, left, right):
        from stacko.binary import apply_binary

        return apply_binary(op, left, right)

    def test_integer_arithmetic_follows_floor_semantics(self) -> None:
        cases = [
            ("+", 1, 2, 3),
            ("-", 1, 5, -4),
            ("*", 6, 7, 42),
            ("/", 7, 2, 3),
            ("/", -7, 2, -4),
            ("%", -7, 3, 2),
            ("**", 2, 10, 1024),
            ("**", 2, -1, 0.5),
        ]
        for op, left, right, want in cases:
            with self.subTest(op=op, left=left, right=right):
                got = self._apply(op, left, right)
                self.assertEqual(got, want)
                self.assertIs(type(got), type(want))

    def test_mixed_numeric_promotes_to_float(self) -> None:
        self.assertEqual(self._apply("/", 7.0, 2), 3.5)
        self.assertEqual(self._apply("+", 1, 0.5), 1.5)
        self.assertEqual(self._apply("%", 7.5, 2), 1.5)

    def test_division_by_zero(self) -> None:
        from stacko.errors import ArithmeticFaultError

        with self.assertRaises(ArithmeticFaultError):
            self._apply("/", 1, 0)
        with self.assertRaises(ArithmeticFaultError):
            self._apply("%", 1, 0)
        self.assertEqual(self._apply("/", 1.0, 0), math.inf)
        self.assertEqual(self._apply("/", -1, 0.0), -math.inf)
        self.assertTrue(math.isnan(self._apply("/", 0.0, 0)))

    def test_complex_power_is_arithmetic_fault(self) -> None:
        from stacko.errors import ArithmeticFaultError

        with self.assertRaises(ArithmeticFaultError):
            self._apply("**", -8.0, 0.5)

    def test_comparisons(self) -> None:
        self.assertIs(self._apply("<", 1, 2), True)
        self.assertIs(self._apply(">=", 2, 2.0), True)
        self.assertEqual(self._apply("<=>", 1, 2), -1)
        self.assertEqual(self._apply("<=>", 2, 2), 0)
        self.assertEqual(self._apply("<=>", 3.5, 2), 1)

    def test_equality_respects_kinds(self) -> None:
        self.assertIs(self._apply("==", 1, 1.0), True)
        self.assertIs(self._apply("==", True, 1), False)
        self.assertIs(self._apply("!=", 1, '"1"'), True)
        self.assertIs(self._apply("==", True, True), True)

    def test_bitwise_integers_and_logical_booleans(self) -> None:
        self.assertEqual(self._apply("&", 6, 3), 2)
        self.assertEqual(self._apply("|", 6, 3), 7)
        self.assertEqual(self._apply("^", 6, 3), 5)
        self.assertEqual(self._apply("<<", 1, 4), 16)
        self.assertEqual(self._apply(">>", 16, 2), 4)
        self.assertEqual(self._apply("<<", 16, -2), 4)
        self.assertIs(self._apply("&", True, False), False)
        self.assertIs(self._apply("|", True, False), True)
        self.assertIs(self._apply("^", True, True), False)

    def test_undefined_pairs_are_type_mismatch(self) -> None:
        from stacko.errors import TypeMismatchError

        for op, left, right in [
            ("&", True, 1),
            ("+", '"a"', 1),
            ("+", True, 1),
            ("x", 1, 2),
            ("<", 1, '"a"'),
            ("<<", 1.0, 2),
        ]:
            with self.subTest(op=op, left=left, right=right):
                with self.assertRaises(TypeMismatchError):
                    self._apply(op, left, right)

    def test_supports_reports_table_membership(self) -> None:
        from stacko.binary import supports

        self.assertTrue(supports("+", 1, 2))
        self.assertFalse(supports("x", 1, 2))


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for binary operator tests")
class StringToggleTests(unittest.TestCase):
    def _apply(self, op, left, right):
        from stacko.binary import apply_binary

        return apply_binary(op, left, right)

    def test_concatenation_keeps_one_quote_layer(self) -> None:
        self.assertEqual(self._apply("+", '"a"', '"b"'), '"ab"')
        self.assertEqual(self._apply("+", '"a b"', '"c"'), '"a bc"')

    def test_repetition(self) -> None:
        from stacko.errors import ArithmeticFaultError

        self.assertEqual(self._apply("*", '"ab"', 3), '"ababab"')
        with self.assertRaises(ArithmeticFaultError):
            self._apply("*", '"ab"', -1)

    def test_string_comparison_is_lexicographic(self) -> None:
        self.assertIs(self._apply("==", '"a"', '"a"'), True)
        self.assertIs(self._apply("<", '"a"', '"b"'), True)
        self.assertEqual(self._apply("<=>", '"b"', '"a"'), 1)

    def test_unquoted_text_gains_a_layer(self) -> None:
        from stacko.values import DeferredToken

        self.assertEqual(self._apply("+", DeferredToken("+"), DeferredToken("-")), '+""-')


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for binary operator tests")
class VectorMatrixBinaryTests(unittest.TestCase):
    def _apply(self, op, left, right):
        from stacko.binary import apply_binary

        return apply_binary(op, left, right)

    def _vec(self, *items):
        from stacko.values import Vector

        return Vector.of(list(items))

    def _mat(self, *rows):
        from stacko.values import Matrix

        return Matrix.of([list(row) for row in rows])

    def test_vector_rules(self) -> None:
        a = self._vec(1, 2, 3)
        b = self._vec(4, 5, 6)
        self.assertEqual(self._apply("*", a, b), 32)
        self.assertEqual(self._apply("+", a, b).tolist(), [5, 7, 9])
        self.assertEqual(self._apply("-", b, a).tolist(), [3, 3, 3])
        self.assertEqual(self._apply("x", self._vec(1, 0, 0), self._vec(0, 1, 0)).tolist(), [0, 0, 1])
        self.assertIs(self._apply("==", a, self._vec(1, 2, 3)), True)
        self.assertIs(self._apply("!=", a, b), True)

    def test_vector_dimension_mismatches(self) -> None:
        from stacko.errors import DimensionMismatchError

        short = self._vec(1, 2)
        long = self._vec(1, 2, 3)
        for op in ("+", "-", "*", "x"):
            with self.subTest(op=op):
                with self.assertRaises(DimensionMismatchError):
                    self._apply(op, short, long)
        with self.assertRaises(DimensionMismatchError):
            self._apply("x", short, short)

    def test_vector_scaling(self) -> None:
        v = self._vec(1, 2, 3)
        self.assertEqual(self._apply("*", v, 2).tolist(), [2, 4, 6])
        self.assertEqual(self._apply("*", 2, v).tolist(), [2, 4, 6])
        self.assertEqual(self._apply("/", v, 2).tolist(), [0, 1, 1])
        self.assertEqual(self._apply("/", v, 2.0).tolist(), [0.5, 1.0, 1.5])

    def test_matrix_products(self) -> None:
        a = self._mat((1, 2), (3, 4))
        b = self._mat((5, 6), (7, 8))
        self.assertEqual(self._apply("*", a, b).tolist(), [[19, 22], [43, 50]])
        self.assertEqual(self._apply("+", a, b).tolist(), [[6, 8], [10, 12]])
        self.assertEqual(self._apply("-", b, a).tolist(), [[4, 4], [4, 4]])
        product = self._apply("*", a, self._vec(1, 1))
        self.assertEqual(product.tolist(), [3, 7])
        self.assertEqual(self._apply("*", a, 2).tolist(), [[2, 4], [6, 8]])
        self.assertEqual(self._apply("**", a, 2).tolist(), [[7, 10], [15, 22]])

    def test_matrix_inverse_power(self) -> None:
        got = self._apply("**", self._mat((1, 2), (3, 4)), -1).tolist()
        want = [[-2.0, 1.0], [1.5, -0.5]]
        for got_row, want_row in zip(got, want):
            for g, w in zip(got_row, want_row):
                self.assertAlmostEqual(g, w)

    def test_matrix_failures(self) -> None:
        from stacko.errors import ArithmeticFaultError, DimensionMismatchError, TypeMismatchError

        square = self._mat((1, 2), (3, 4))
        wide = self._mat((1, 2, 3), (4, 5, 6))
        with self.assertRaises(DimensionMismatchError):
            self._apply("+", square, wide)
        with self.assertRaises(DimensionMismatchError):
            self._apply("*", wide, square)
        with self.assertRaises(DimensionMismatchError):
            self._apply("*", square, self._vec(1, 2, 3))
        with self.assertRaises(DimensionMismatchError):
            self._apply("**", wide, 2)
        with self.assertRaises(ArithmeticFaultError):
            self._apply("**", self._mat((1, 2), (2, 4)), -1)
        with self.assertRaises(TypeMismatchError):
            self._apply("+", square, self._vec(1, 2))
        with self.assertRaises(TypeMismatchError):
            self._apply("x", square, square)

    def test_integer_overflow_is_arithmetic_fault(self) -> None:
        from stacko.errors import ArithmeticFaultError
        from stacko.values import ARRAY_INT_MAX

        half = ARRAY_INT_MAX // 2 + 1
        cases = [
            ("+", self._vec(half, 1), self._vec(half, 1)),
            ("-", self._vec(-half, 0), self._vec(half + 1, 0)),
            ("*", self._vec(half, 0), self._vec(2, 0)),
            ("*", self._vec(half), 2),
            ("*", self._mat((half, 0), (0, 1)), self._mat((2, 0), (0, 1))),
            ("+", self._mat((half,)), self._mat((half,))),
            ("*", self._mat((half, 1), (0, 1)), self._vec(2, 0)),
            ("**", self._mat((half, 0), (0, 1)), 2),
        ]
        for op, left, right in cases:
            with self.subTest(op=op, left=left, right=right):
                with self.assertRaises(ArithmeticFaultError):
                    self._apply(op, left, right)

    def test_integer_results_at_the_storage_limit_are_exact(self) -> None:
        from stacko.values import ARRAY_INT_MAX

        half = ARRAY_INT_MAX // 2
        self.assertEqual(self._apply("+", self._vec(half), self._vec(half + 1)).tolist(), [ARRAY_INT_MAX])
        self.assertEqual(self._apply("**", self._mat((2, 0), (0, 1)), 10).tolist(), [[1024, 0], [0, 1]])
        # float vectors are not bounded by integer storage
        self.assertEqual(self._apply("*", self._vec(1.0), float(ARRAY_INT_MAX)).tolist(), [float(ARRAY_INT_MAX)])


if __name__ == "__main__":
    unittest.main()
