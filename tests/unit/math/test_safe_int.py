"""Tests for SafeInt checked arithmetic."""

import pytest

from exchange.safe_int import (
    UINT256_MAX,
    DivisionByZero,
    S,
    SafeInt,
    SafeIntError,
    Uint256Overflow,
    Underflow,
)


class TestSafeIntConstruction:
    """Tests for SafeInt construction."""

    def test_from_int(self):
        assert SafeInt(42).value == 42

    def test_from_safeint(self):
        assert SafeInt(SafeInt(42)).value == 42

    def test_from_large(self):
        """Products of two 1e18-scale reserves are held exactly."""
        s = S(10**18 * 10**4) * S(5 * 10**18)
        assert s.value == 5 * 10**40

    def test_rejects_non_int(self):
        with pytest.raises(TypeError):
            SafeInt("42")  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            SafeInt(3.14)  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            SafeInt(True)

    def test_alias_s(self):
        assert S is SafeInt


class TestSafeIntArithmetic:
    """Tests for SafeInt operators."""

    def test_add_and_mul_mixed(self):
        assert (S(10) + 5).value == 15
        assert (5 + S(10)).value == 15
        assert (S(6) * 7).value == 42
        assert (7 * S(6)).value == 42

    def test_sub(self):
        assert (S(10) - 4).value == 6
        assert (10 - S(4)).value == 6

    def test_sub_underflow_raises(self):
        with pytest.raises(Underflow):
            S(4) - 10
        with pytest.raises(Underflow):
            4 - S(10)

    def test_floordiv_truncates(self):
        assert (S(7) // 2).value == 3
        assert (7 // S(2)).value == 3

    def test_division_by_zero_raises(self):
        with pytest.raises(DivisionByZero):
            S(7) // 0
        with pytest.raises(DivisionByZero):
            7 // S(0)

    def test_errors_are_arithmetic_errors(self):
        assert issubclass(SafeIntError, ArithmeticError)
        assert issubclass(DivisionByZero, SafeIntError)

    def test_pow10(self):
        assert S(41).pow10(10).value == 410_000_000_000
        assert S(41).pow10(0).value == 41
        with pytest.raises(ValueError):
            S(41).pow10(-1)


class TestSafeIntComparison:
    """Tests for comparisons and conversions."""

    def test_compare_with_int(self):
        assert S(5) == 5
        assert S(5) < 6
        assert S(5) <= 5
        assert S(5) > 4
        assert S(5) >= 5

    def test_bool_and_int(self):
        assert not S(0)
        assert S(1)
        assert int(S(9)) == 9

    def test_to_uint256_bounds(self):
        assert S(UINT256_MAX).to_uint256() == UINT256_MAX
        with pytest.raises(Uint256Overflow):
            S(UINT256_MAX + 1).to_uint256()
        with pytest.raises(Uint256Overflow):
            S(-1).to_uint256()

    def test_is_uint256(self):
        assert S(0).is_uint256()
        assert not S(UINT256_MAX + 1).is_uint256()
