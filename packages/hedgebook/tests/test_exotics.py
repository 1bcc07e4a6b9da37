"""
Unit tests for exotics.py - Exotic Option Pricing Module

Tests cover:
- Single-barrier reference values and in/out parity
- Barrier touched at inception
- Double-barrier parity and bounds
- Digital prices bounded by the discounted payout and reproducible by seed
- Finite-difference Greeks for barriers and digitals
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from hedgebook.pricing.exotics import (
    barrier_greeks,
    barrier_price,
    digital_greeks,
    digital_price,
    double_barrier_price,
    finite_difference_greeks,
    single_barrier_price,
)
from hedgebook.pricing.vanilla import generalized_black_scholes, greeks

# Haug's barrier table inputs: S=100, r=8%, b=4%, T=0.5, vol=25%, rebate=3
S, R, B, T, VOL, REBATE = 100.0, 0.08, 0.04, 0.5, 0.25, 3.0


class TestSingleBarrier:
    """Tests for single_barrier_price function."""

    @pytest.mark.parametrize('option_type,direction,strike,barrier,expected', [
        ('call', 'knock_out', 90.0, 95.0, 9.0246),
        ('call', 'knock_out', 100.0, 95.0, 6.7924),
        ('call', 'knock_in', 90.0, 95.0, 7.7627),
        ('put', 'knock_out', 90.0, 105.0, 3.7760),
        ('put', 'knock_in', 100.0, 105.0, 3.3721),
    ])
    def test_reference_values(self, option_type, direction, strike, barrier, expected):
        """Matches Haug's published barrier table."""
        price = single_barrier_price(
            option_type, direction, S, strike, barrier, R, B, VOL, T, rebate=REBATE
        )
        assert_allclose(price, expected, atol=1e-3)

    @pytest.mark.parametrize('option_type,barrier', [
        ('call', 90.0), ('call', 115.0), ('put', 85.0), ('put', 110.0),
    ])
    def test_in_out_parity(self, option_type, barrier):
        """Without rebate, knock-in + knock-out = vanilla."""
        strike = 100.0
        ko = single_barrier_price(option_type, 'knock_out', S, strike, barrier, R, B, VOL, T)
        ki = single_barrier_price(option_type, 'knock_in', S, strike, barrier, R, B, VOL, T)
        vanilla = generalized_black_scholes(option_type, S, strike, R, B, VOL, T)

        assert_allclose(ko + ki, vanilla, rtol=1e-8)

    def test_barrier_at_spot_counts_as_touched(self):
        """Knock-out pays only the rebate, knock-in is the vanilla."""
        ko = single_barrier_price('call', 'knock_out', S, 100.0, S, R, B, VOL, T, rebate=2.0)
        ki = single_barrier_price('call', 'knock_in', S, 100.0, S, R, B, VOL, T)

        assert ko == 2.0
        assert_allclose(ki, generalized_black_scholes('call', S, 100.0, R, B, VOL, T))

    def test_degenerate_inputs(self):
        """With no time left a knock-out is intrinsic and a knock-in is worthless."""
        assert single_barrier_price('call', 'knock_out', S, 90.0, 80.0, R, B, VOL, 0.0) == 10.0
        assert single_barrier_price('call', 'knock_in', S, 90.0, 80.0, R, B, VOL, 0.0) == 0.0

    def test_non_positive_barrier_raises(self):
        with pytest.raises(ValueError, match="Barrier must be positive"):
            single_barrier_price('call', 'knock_out', S, 100.0, 0.0, R, B, VOL, T)


class TestDoubleBarrier:
    """Tests for double_barrier_price function."""

    @pytest.mark.parametrize('option_type', ['call', 'put'])
    def test_in_out_parity(self, option_type):
        ko = double_barrier_price(option_type, 'knock_out', S, 100.0, 80.0, 120.0, R, B, VOL, T)
        ki = double_barrier_price(option_type, 'knock_in', S, 100.0, 80.0, 120.0, R, B, VOL, T)
        vanilla = generalized_black_scholes(option_type, S, 100.0, R, B, VOL, T)

        assert_allclose(ko + ki, vanilla, rtol=1e-8)

    @pytest.mark.parametrize('option_type', ['call', 'put'])
    def test_knock_out_cheaper_than_vanilla(self, option_type):
        ko = double_barrier_price(option_type, 'knock_out', S, 100.0, 80.0, 120.0, R, B, VOL, T)
        vanilla = generalized_black_scholes(option_type, S, 100.0, R, B, VOL, T)

        assert 0.0 < ko < vanilla

    def test_wide_barriers_approach_vanilla(self):
        """Barriers far from spot barely knock anything out."""
        ko = double_barrier_price('call', 'knock_out', S, 100.0, 1.0, 10000.0, R, B, VOL, T)
        vanilla = generalized_black_scholes('call', S, 100.0, R, B, VOL, T)

        assert_allclose(ko, vanilla, rtol=1e-4)

    def test_spot_outside_barriers(self):
        """Already knocked: knock-out worthless, knock-in is the vanilla."""
        ko = double_barrier_price('call', 'knock_out', S, 100.0, 110.0, 130.0, R, B, VOL, T)
        ki = double_barrier_price('call', 'knock_in', S, 100.0, 110.0, 130.0, R, B, VOL, T)

        assert ko == 0.0
        assert_allclose(ki, generalized_black_scholes('call', S, 100.0, R, B, VOL, T))

    def test_barrier_price_dispatches_on_second_barrier(self):
        single = barrier_price('put', 'knock_out', S, 100.0, 90.0, R, B, VOL, T)
        double = barrier_price('put', 'knock_out', S, 100.0, 90.0, R, B, VOL, T, second_barrier=130.0)

        assert_allclose(single, single_barrier_price('put', 'knock_out', S, 100.0, 90.0, R, B, VOL, T))
        assert_allclose(double, double_barrier_price('put', 'knock_out', S, 100.0, 90.0, 130.0, R, B, VOL, T))


class TestDigital:
    """Tests for digital_price function."""

    @pytest.mark.parametrize('digital_type,second', [
        ('one_touch', None), ('no_touch', None), ('range', 120.0),
    ])
    def test_bounded_by_discounted_payout(self, digital_type, second):
        price = digital_price(
            digital_type, S, 110.0, R, B, VOL, T,
            second_barrier=second, payout=10.0, n_paths=2000, n_steps=50,
        )
        assert 0.0 <= price <= 10.0 * np.exp(-R * T) + 1e-12

    def test_touch_and_no_touch_sum_to_discounted_payout(self):
        """Same seed, same paths: one-touch + no-touch = e^(-rT) * payout."""
        kwargs = dict(n_paths=2000, n_steps=50, seed=3)
        touch = digital_price('one_touch', S, 90.0, R, B, VOL, T, **kwargs)
        no_touch = digital_price('no_touch', S, 90.0, R, B, VOL, T, **kwargs)

        assert_allclose(touch + no_touch, np.exp(-R * T), rtol=1e-12)

    def test_reproducible_for_seed(self):
        a = digital_price('one_touch', S, 115.0, R, B, VOL, T, n_paths=1000, n_steps=20, seed=5)
        b = digital_price('one_touch', S, 115.0, R, B, VOL, T, n_paths=1000, n_steps=20, seed=5)

        assert a == b

    def test_far_barrier_rarely_touched(self):
        price = digital_price('one_touch', S, 400.0, R, B, VOL, T, n_paths=2000, n_steps=50)
        assert price < 0.01

    def test_range_needs_second_barrier(self):
        with pytest.raises(ValueError, match="second barrier"):
            digital_price('range', S, 90.0, R, B, VOL, T)

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown digital type"):
            digital_price('double_touch', S, 90.0, R, B, VOL, T)


class TestExoticGreeks:
    """Tests for barrier_greeks, digital_greeks and finite_difference_greeks."""

    GREEKS = ('delta', 'gamma', 'theta', 'vega', 'rho')

    def test_matches_closed_form_for_vanilla(self):
        def price(s, r, b, v, t):
            return generalized_black_scholes('put', s, 95.0, r, b, v, t)

        bumped = finite_difference_greeks(price, S, R, B, VOL, T)
        exact = greeks('put', S, 95.0, R, B, VOL, T)

        for name in self.GREEKS:
            assert_allclose(bumped[name], exact[name], rtol=1e-3, err_msg=name)

    def test_far_knock_out_behaves_like_vanilla(self):
        """An up-and-out barrier at 3x spot is practically never reached."""
        knock_out = barrier_greeks('call', 'knock_out', S, 100.0, 300.0, R, B, VOL, T)
        vanilla = greeks('call', S, 100.0, R, B, VOL, T)

        for name in ('delta', 'gamma', 'vega', 'rho'):
            assert_allclose(knock_out[name], vanilla[name], rtol=1e-3, err_msg=name)
        assert_allclose(knock_out['theta'], vanilla['theta'], rtol=1e-2)

    @pytest.mark.parametrize('option_type,barrier', [('call', 90.0), ('put', 110.0)])
    def test_in_out_greeks_sum_to_vanilla(self, option_type, barrier):
        knock_in = barrier_greeks(option_type, 'knock_in', S, 100.0, barrier, R, B, VOL, T)
        knock_out = barrier_greeks(option_type, 'knock_out', S, 100.0, barrier, R, B, VOL, T)
        vanilla = greeks(option_type, S, 100.0, R, B, VOL, T)

        for name in ('delta', 'gamma', 'vega', 'rho'):
            assert_allclose(knock_in[name] + knock_out[name], vanilla[name], rtol=1e-3, atol=1e-6, err_msg=name)

    def test_down_and_out_call_delta_exceeds_vanilla(self):
        """Moving away from a down barrier also lowers the knock-out probability."""
        knock_out = barrier_greeks('call', 'knock_out', S, 100.0, 95.0, R, B, VOL, T)

        assert knock_out['delta'] > greeks('call', S, 100.0, R, B, VOL, T)['delta']

    def test_double_barrier_dispatch(self):
        result = barrier_greeks(
            'call', 'knock_out', S, 100.0, 80.0, R, B, VOL, T, second_barrier=130.0
        )

        assert all(np.isfinite(result[name]) for name in self.GREEKS)
        assert result['vega'] < greeks('call', S, 100.0, R, B, VOL, T)['vega']

    def test_digital_touch_directions(self):
        kwargs = dict(n_paths=4000, n_steps=50, seed=3)
        touch = digital_greeks('one_touch', S, 110.0, R, B, VOL, T, **kwargs)
        no_touch = digital_greeks('no_touch', S, 110.0, R, B, VOL, T, **kwargs)

        assert touch['delta'] > 0
        assert touch['vega'] > 0
        assert no_touch['delta'] < 0
        assert no_touch['vega'] < 0

    def test_digital_greeks_reproducible(self):
        kwargs = dict(second_barrier=110.0, n_paths=2000, n_steps=20, seed=5)

        first = digital_greeks('range', S, 90.0, R, B, VOL, T, **kwargs)
        second = digital_greeks('range', S, 90.0, R, B, VOL, T, **kwargs)

        assert first == second
        assert all(np.isfinite(first[name]) for name in self.GREEKS)

    def test_degenerate_inputs_are_zero(self):
        expired = barrier_greeks('put', 'knock_in', S, 100.0, 90.0, R, B, VOL, 0.0)
        flat = digital_greeks('one_touch', S, 110.0, R, B, 0.0, T)

        assert set(expired.values()) == {0.0}
        assert set(flat.values()) == {0.0}
