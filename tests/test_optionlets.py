import numpy as np
import pytest
import QuantLib as ql

from optionlet_stripper.errors import InvalidInputError
from optionlet_stripper.instruments import CapFloorSpec
from optionlet_stripper.optionlets import (
    SpreadedOptionletVolatility,
    StrippedOptionletAdapter,
    StrippedOptionlets,
)
from optionlet_stripper.quotes import MarketQuote

from conftest import SMILE, STRIKES, make_upstream


class TestStrippedOptionlets:
    def test_laid_on_cap_schedule(self, upstream, index):
        cap = CapFloorSpec(ql.CapFloor.Cap, "5Y", index, 0.03).build()
        assert upstream.optionlet_maturities() == len(cap) == 9
        assert upstream.optionlet_fixing_dates() == [c.fixing_date for c in cap.floating_leg()]
        assert upstream.optionlet_payment_dates() == [c.payment_date for c in cap.floating_leg()]
        times = upstream.optionlet_fixing_times()
        assert all(a < b for a, b in zip(times[:-1], times[1:]))
        assert upstream.optionlet_strikes(3) == STRIKES
        assert upstream.optionlet_volatilities(3) == SMILE

    def test_atm_optionlet_rates_match_cap_forwards(self, upstream, index):
        cap = CapFloorSpec(ql.CapFloor.Cap, "5Y", index, 0.03).build()
        assert upstream.atm_optionlet_rates() == pytest.approx(cap.forward_rates(), rel=1e-12)

    def test_matrix_shape_mismatch(self, index):
        with pytest.raises(InvalidInputError, match="shape"):
            StrippedOptionlets.from_cap_schedule(index, "5Y", STRIKES, [SMILE] * 8)

    def test_non_increasing_strikes(self, index, evaluation_date):
        d = index.fixingCalendar().advance(evaluation_date, 6, ql.Months)
        with pytest.raises(InvalidInputError, match="non increasing strikes"):
            StrippedOptionlets(index, evaluation_date, [d], [d], [0.5], [[0.02, 0.01]], [[0.2, 0.2]])

    def test_mismatched_vectors(self, index, evaluation_date):
        d = index.fixingCalendar().advance(evaluation_date, 6, ql.Months)
        with pytest.raises(InvalidInputError, match="mismatch"):
            StrippedOptionlets(index, evaluation_date, [d], [d], [0.5], [[0.01, 0.02]], [[0.2]])

    def test_set_volatilities_bumps_version(self, upstream):
        v0 = upstream.version
        upstream.set_optionlet_volatilities(0, SMILE)
        assert upstream.version == v0
        upstream.set_optionlet_volatilities(0, [v + 0.01 for v in SMILE])
        assert upstream.version == v0 + 1
        assert upstream.optionlet_volatilities(0)[2] == pytest.approx(0.21)

    def test_accessors_return_copies(self, upstream):
        upstream.optionlet_strikes(0).append(0.5)
        assert upstream.optionlet_strikes(0) == STRIKES

    def test_curve_quote_move_bumps_version(self, evaluation_date):
        rate = ql.SimpleQuote(0.02)
        curve = ql.FlatForward(evaluation_date, ql.QuoteHandle(rate), ql.Actual365Fixed())
        grid = make_upstream(ql.Euribor6M(ql.YieldTermStructureHandle(curve)))
        v0 = grid.version
        before = grid.atm_optionlet_rates()
        rate.setValue(0.03)
        assert grid.version > v0
        after = grid.atm_optionlet_rates()
        assert after[0] == pytest.approx(before[0] + 0.01, abs=1e-3)


class TestApplyAdjustments:
    def test_inserts_in_strike_order(self, upstream):
        strikes, vols = upstream.apply_adjustments([(0, 0.025, 0.5), (0, 0.005, 0.6), (2, 0.07, 0.7)])
        assert strikes[0] == [0.005, 0.01, 0.02, 0.025, 0.03, 0.04, 0.05]
        assert vols[0] == [0.6, 0.30, 0.24, 0.5, 0.20, 0.19, 0.20]
        assert strikes[2][-1] == 0.07 and vols[2][-1] == 0.7
        assert strikes[1] == STRIKES

    def test_existing_strike_is_replaced(self, upstream):
        strikes, vols = upstream.apply_adjustments([(4, 0.03, 0.33)])
        assert strikes[4] == STRIKES
        assert vols[4][2] == 0.33

    def test_upstream_untouched(self, upstream):
        upstream.apply_adjustments([(0, 0.025, 0.5)])
        assert upstream.optionlet_strikes(0) == STRIKES
        assert upstream.optionlet_volatilities(0) == SMILE


class TestAdapter:
    def test_interpolates_in_strike(self, upstream):
        t = upstream.optionlet_fixing_times()[2]
        adapter = StrippedOptionletAdapter(upstream)
        assert adapter.volatility(t, 0.03) == pytest.approx(0.20)
        assert adapter.volatility(t, 0.025) == pytest.approx(0.22)
        # flat beyond the strike range
        assert adapter.volatility(t, 0.0) == pytest.approx(0.30)
        assert adapter.volatility(t, 0.09) == pytest.approx(0.20)

    def test_interpolates_in_time(self, grid_factory):
        rows = [[0.10 + 0.01 * i] * len(STRIKES) for i in range(9)]
        grid = grid_factory(rows)
        times = grid.optionlet_fixing_times()
        adapter = StrippedOptionletAdapter(grid)
        t = 0.5 * (times[3] + times[4])
        assert adapter.volatility(t, 0.03) == pytest.approx(0.135)
        assert adapter.volatility(0.0, 0.03) == pytest.approx(0.10)
        assert adapter.volatility(times[-1] + 5.0, 0.03) == pytest.approx(0.18)

    def test_spreaded_surface(self, upstream):
        spread = MarketQuote(0.015)
        surface = SpreadedOptionletVolatility(StrippedOptionletAdapter(upstream), spread)
        t = upstream.optionlet_fixing_times()[5]
        base = StrippedOptionletAdapter(upstream).volatility(t, 0.035)
        assert surface.volatility(t, 0.035) == pytest.approx(base + 0.015)
        v0 = surface.version
        spread.set_value(-0.01)
        assert surface.version > v0
        assert surface.volatility(t, 0.035) == pytest.approx(base - 0.01)
        assert np.isclose(surface.time_from_reference(upstream.optionlet_fixing_dates()[5]), t)
