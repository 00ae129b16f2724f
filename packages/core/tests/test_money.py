"""Tests for money helpers."""

from __future__ import annotations

import pytest
from pricebook.money import cents, clamp_percent, format_currency


class TestCents:
    @pytest.mark.parametrize("value, expected", [(70.5375, 70.54), (2.675, 2.68), (0.005, 0.01), (10, 10.0), (1.234, 1.23)])
    def test_half_up(self, value, expected):
        assert cents(value) == expected


class TestClampPercent:
    @pytest.mark.parametrize(
        "value, expected",
        [(10, 10.0), ("8.25", 8.25), (-1, 0.0), (101, 100.0), ("x", 0.0), (None, 0.0), (float("nan"), 0.0)],
    )
    def test_clamps(self, value, expected):
        assert clamp_percent(value) == expected

    def test_unbounded(self):
        assert clamp_percent(250, upper=None) == 250.0
        assert clamp_percent(float("inf"), upper=None) == 0.0

    @pytest.mark.parametrize("value", [True, False])
    def test_booleans_are_not_percentages(self, value):
        assert clamp_percent(value) == 0.0
        assert clamp_percent(value, upper=None) == 0.0

    def test_infinity(self):
        assert clamp_percent(float("inf")) == 100.0
        assert clamp_percent("inf") == 100.0


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(0) == "$0.00"
