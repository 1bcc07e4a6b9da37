"""
Unit tests for vanilla.py - Vanilla Option Pricing Module

Tests cover:
- Garman-Kohlhagen and Black-76 reference values
- Put-call parity
- Degenerate inputs (zero vol / zero time)
- Greeks signs and finite-difference checks
- Implied volatility round trip
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from hedgebook.pricing.forwards import forward_price
from hedgebook.pricing.vanilla import (
    black76,
    black76_from_spot,
    garman_kohlhagen,
    generalized_black_scholes,
    greeks,
    implied_volatility,
    intrinsic_value,
    norm_cdf,
)


class TestNormCdf:
    """Tests for norm_cdf function."""

    def test_reference_points(self):
        assert_allclose(norm_cdf(0.0), 0.5)
        assert_allclose(norm_cdf(1.645), 0.95002, atol=1e-5)
        assert_allclose(norm_cdf(-1.96) + norm_cdf(1.96), 1.0)


class TestGarmanKohlhagen:
    """Tests for garman_kohlhagen function."""

    def test_reference_value(self):
        """Haug's reference FX call: S=1.56, K=1.60, T=0.5, rd=6%, rf=8%, vol=12% -> 0.0291."""
        price = garman_kohlhagen('call', 1.56, 1.60, 0.06, 0.08, 0.12, 0.5)
        assert_allclose(price, 0.0291, atol=1e-4)

    def test_put_call_parity(self):
        """call - put = (F - K) * exp(-rd * T)."""
        s, k, rd, rf, vol, t = 1.10, 1.12, 0.05, 0.03, 0.10, 0.75
        call = garman_kohlhagen('call', s, k, rd, rf, vol, t)
        put = garman_kohlhagen('put', s, k, rd, rf, vol, t)
        fwd = forward_price(s, rd - rf, t)

        assert_allclose(call - put, (fwd - k) * np.exp(-rd * t), rtol=1e-10)

    def test_zero_time_returns_intrinsic(self):
        """T = 0 with positive vol is pure intrinsic value."""
        assert garman_kohlhagen('call', 100.0, 90.0, 0.05, 0.02, 0.3, 0.0) == 10.0

    def test_zero_vol_returns_intrinsic(self):
        """vol = 0 with T = 1 matches intrinsic, not NaN."""
        price = garman_kohlhagen('put', 100.0, 90.0, 0.05, 0.02, 0.0, 1.0)

        assert price == intrinsic_value('put', 100.0, 90.0)
        assert not np.isnan(price)

    def test_non_negative(self):
        """Deep out-of-the-money options never go negative."""
        assert garman_kohlhagen('call', 1.0, 3.0, 0.05, 0.0, 0.05, 0.1) >= 0.0

    def test_invalid_option_type_raises(self):
        with pytest.raises(ValueError, match="option_type"):
            garman_kohlhagen('straddle', 1.0, 1.0, 0.05, 0.0, 0.1, 1.0)

    def test_non_positive_strike_raises(self):
        with pytest.raises(ValueError, match="Strike must be positive"):
            garman_kohlhagen('call', 1.0, 0.0, 0.05, 0.0, 0.1, 1.0)


class TestBlack76:
    """Tests for black76 and black76_from_spot."""

    def test_reference_value(self):
        """Haug's reference: F=19, K=19, T=0.75, r=10%, vol=28% -> 1.7011 for either side."""
        call = black76('call', 19.0, 19.0, 0.10, 0.28, 0.75)
        put = black76('put', 19.0, 19.0, 0.10, 0.28, 0.75)

        assert_allclose(call, 1.7011, atol=1e-4)
        assert_allclose(put, call, rtol=1e-10)

    def test_put_call_parity(self):
        f, k, r, vol, t = 80.0, 75.0, 0.04, 0.35, 1.25
        call = black76('call', f, k, r, vol, t)
        put = black76('put', f, k, r, vol, t)

        assert_allclose(call - put, (f - k) * np.exp(-r * t), rtol=1e-10)

    def test_degenerate_uses_forward_intrinsic(self):
        assert black76('call', 110.0, 100.0, 0.05, 0.0, 1.0) == 10.0

    def test_from_spot_matches_forward(self):
        """black76_from_spot is black76 on S * exp(b * T)."""
        s, k, r, b, vol, t = 75.0, 80.0, 0.04, 0.07, 0.35, 0.5
        direct = black76('call', forward_price(s, b, t), k, r, vol, t)

        assert_allclose(black76_from_spot('call', s, k, r, b, vol, t), direct, rtol=1e-12)


class TestGreeks:
    """Tests for greeks function."""

    def test_signs(self):
        """Call delta in (0, 1), put delta in (-1, 0), gamma and vega positive."""
        call = greeks('call', 100.0, 100.0, 0.05, 0.02, 0.2, 1.0)
        put = greeks('put', 100.0, 100.0, 0.05, 0.02, 0.2, 1.0)

        assert 0 < call['delta'] < 1
        assert -1 < put['delta'] < 0
        assert call['gamma'] > 0 and call['vega'] > 0
        assert_allclose(call['gamma'], put['gamma'])
        assert call['rho'] > 0 > put['rho']

    def test_delta_matches_finite_difference(self):
        args = (100.0, 0.05, 0.02, 0.2, 1.0)
        h = 1e-4

        up = generalized_black_scholes('call', 100.0 + h, *args)
        down = generalized_black_scholes('call', 100.0 - h, *args)

        assert_allclose(greeks('call', 100.0, *args)['delta'], (up - down) / (2 * h), rtol=1e-5)

    def test_vega_per_vol_point(self):
        """Vega is the price change for a one-point (0.01) vol move."""
        base = generalized_black_scholes('put', 100.0, 95.0, 0.05, 0.02, 0.20, 0.5)
        bumped = generalized_black_scholes('put', 100.0, 95.0, 0.05, 0.02, 0.21, 0.5)

        assert_allclose(greeks('put', 100.0, 95.0, 0.05, 0.02, 0.20, 0.5)['vega'], bumped - base, rtol=1e-2)

    def test_degenerate_all_zero(self):
        result = greeks('call', 100.0, 100.0, 0.05, 0.02, 0.0, 1.0)
        assert all(v == 0.0 for v in result.values())


class TestImpliedVolatility:
    """Tests for implied_volatility function."""

    @pytest.mark.parametrize('option_type', ['call', 'put'])
    def test_round_trip(self, option_type):
        """Solving for vol from a model price recovers the input vol."""
        price = generalized_black_scholes(option_type, 1.10, 1.08, 0.05, 0.02, 0.145, 0.8)
        vol = implied_volatility(option_type, price, 1.10, 1.08, 0.05, 0.02, 0.8)

        assert_allclose(vol, 0.145, rtol=1e-6)

    def test_below_range_returns_lower_bound(self):
        assert implied_volatility('call', 0.0, 100.0, 150.0, 0.05, 0.05, 0.1) == 0.01

    def test_expired_raises(self):
        with pytest.raises(ValueError, match="expiry"):
            implied_volatility('call', 1.0, 100.0, 100.0, 0.05, 0.05, 0.0)
