"""
Unit tests for forwards.py - Forward Pricing Module
"""

from datetime import date, datetime

import pytest
import numpy as np
from numpy.testing import assert_allclose

from hedgebook.pricing.forwards import (
    cost_of_carry,
    forward_components,
    forward_price,
    tenor_to_years,
    year_fraction,
)


class TestYearFraction:
    """Tests for year_fraction function."""

    def test_actual_365_25(self):
        """One calendar year of 365 days is 365/365.25 years."""
        t = year_fraction(date(2026, 1, 1), date(2025, 1, 1))
        assert_allclose(t, 365 / 365.25)

    def test_past_maturity_clamps_to_zero(self):
        """A maturity before the valuation date is treated as matured."""
        assert year_fraction(date(2024, 6, 30), date(2025, 1, 1)) == 0.0

    def test_accepts_strings_and_datetimes(self):
        t = year_fraction('2025-07-02', datetime(2025, 1, 1, 15, 30))
        assert_allclose(t, 182 / 365.25)


class TestTenorToYears:
    """Tests for tenor_to_years function."""

    @pytest.mark.parametrize('tenor,expected', [
        ('0D', 0.0),
        ('7D', 7 / 365.25),
        ('2W', 2 / 52.18),
        ('3M', 0.25),
        ('1Y', 1.0),
        (' 6m ', 0.5),
    ])
    def test_units(self, tenor, expected):
        assert_allclose(tenor_to_years(tenor), expected)

    @pytest.mark.parametrize('tenor', ['', 'M', '3Q', '-1M', '1.5Y'])
    def test_invalid_raises(self, tenor):
        with pytest.raises(ValueError, match="Invalid tenor"):
            tenor_to_years(tenor)


class TestForwardPrice:
    """Tests for cost_of_carry and forward_price."""

    def test_commodity_carry(self):
        """b = r + storage - convenience."""
        assert_allclose(cost_of_carry(0.04, 0.05, 0.02), 0.07)

    def test_forward_formula(self):
        assert_allclose(forward_price(100.0, 0.07, 0.5), 100.0 * np.exp(0.035))

    def test_zero_time_is_spot(self):
        """T <= 0 returns spot rather than extrapolating."""
        assert forward_price(75.0, 0.07, 0.0) == 75.0
        assert forward_price(75.0, 0.07, -1.0) == 75.0

    def test_negative_carry_backwardation(self):
        """Convenience yield above financing puts the forward below spot."""
        assert forward_price(100.0, cost_of_carry(0.02, 0.0, 0.08), 1.0) < 100.0


class TestForwardComponents:
    """Tests for forward_components function."""

    def test_basis_is_forward_minus_spot(self):
        result = forward_components(80.0, 0.04, 0.05, 0.02, 1.0)

        assert_allclose(result['forward_price'], 80.0 * np.exp(0.07))
        assert_allclose(result['basis'], result['forward_price'] - 80.0)
        assert_allclose(result['basis_pct'], result['basis'] / 80.0 * 100)
        assert_allclose(result['cost_of_carry'], 0.07)

    def test_matured_components(self):
        result = forward_components(80.0, 0.04, 0.05, 0.02, -0.5)

        assert result['forward_price'] == 80.0
        assert result['basis'] == 0.0
        assert result['time_to_maturity'] == 0.0
