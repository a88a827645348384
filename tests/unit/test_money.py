"""Unit tests for yen rounding and numeric input normalization"""

from decimal import Decimal

import pytest

from care_finance.domain.money import basis_points_to_rate, normalize_numeric_input, round_yen


def test_round_yen_half_up():
    """Halves round toward positive infinity, not to even"""
    assert round_yen(2.5) == 3
    assert round_yen(3.5) == 4
    assert round_yen(-2.5) == -2
    assert round_yen(Decimal("0.5")) == 1
    assert round_yen(1198.8) == 1199


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("¥1,234,567", 1234567),
        ("１２３", 123),
        ("１２３円", 123),
        ("￥５，０００", 5000),
        ("abc", 0),
        ("", 0),
        (None, 0),
        ("-500", -500),
        ("－１，０００", -1000),
        ("12.5", 13),
        ("1,000 yen (tax incl.)", 1000),
    ],
)
def test_normalize_numeric_input(raw, expected):
    assert normalize_numeric_input(raw) == expected


def test_normalize_numbers_pass_through():
    assert normalize_numeric_input(42) == 42
    assert normalize_numeric_input(2.5) == 3
    assert normalize_numeric_input(Decimal("10.4")) == 10


def test_normalize_non_finite_and_bool():
    assert normalize_numeric_input(float("nan")) == 0
    assert normalize_numeric_input(float("inf")) == 0
    assert normalize_numeric_input(True) == 0


@pytest.mark.parametrize("raw", ["¥1,234,567", "１２３円", "abc", "-7.5", 99, 0.4, None])
def test_normalize_is_idempotent(raw):
    once = normalize_numeric_input(raw)
    assert normalize_numeric_input(once) == once


def test_basis_points_to_rate():
    assert basis_points_to_rate(8000) == 0.8
    assert basis_points_to_rate(70) == 0.007
