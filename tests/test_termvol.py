import pytest
import QuantLib as ql

from optionlet_stripper.errors import InvalidInputError
from optionlet_stripper.quotes import MarketQuote
from optionlet_stripper.termvol import TermVolatilityCurve


def years(*ns):
    return [ql.Period(n, ql.Years) for n in ns]


@pytest.fixture
def curve(evaluation_date):
    return TermVolatilityCurve(
        evaluation_date, ql.TARGET(), ql.Following, years(1, 2, 5), [0.20, 0.22, 0.25], ql.Actual365Fixed()
    )


class TestInterpolation:
    def test_reproduces_knots(self, curve):
        for t, v in zip(curve.option_times(), [0.20, 0.22, 0.25]):
            assert curve.volatility(t) == pytest.approx(v, abs=1e-14)

    def test_scenario_three_tenors(self, curve):
        t2 = curve.time_from_reference(curve.option_date_from_tenor(ql.Period(2, ql.Years)))
        t3 = curve.time_from_reference(curve.option_date_from_tenor(ql.Period(3, ql.Years)))
        assert curve.volatility_at(t2) == pytest.approx(0.22, abs=1e-14)
        v3 = curve.volatility_at(t3)
        assert 0.22 < v3 < 0.25

    def test_flat_outside_range(self, curve):
        times = curve.option_times()
        assert curve.volatility(0.0) == pytest.approx(0.20)
        assert curve.volatility(times[-1] + 10.0) == pytest.approx(0.25)

    def test_single_tenor_is_flat(self, evaluation_date):
        c = TermVolatilityCurve(evaluation_date, ql.TARGET(), ql.Following, years(2), [0.3])
        assert c.volatility(0.5) == 0.3
        assert c.volatility(7.0) == 0.3

    def test_strike_is_ignored(self, curve):
        t = curve.option_times()[1]
        assert curve.volatility(t, 0.01) == curve.volatility(t, 0.05)

    def test_accepts_string_tenors(self, evaluation_date):
        c = TermVolatilityCurve(evaluation_date, ql.TARGET(), ql.Following, ["1Y", "18M", "2Y"], [0.2, 0.21, 0.22])
        assert [str(p) for p in c.option_tenors] == [str(p) for p in (ql.Period("1Y"), ql.Period("18M"), ql.Period("2Y"))]

    def test_max_date_is_last_option_date(self, curve):
        assert curve.max_date() == curve.option_dates()[-1]


class TestValidation:
    def test_empty_tenors(self, evaluation_date):
        with pytest.raises(InvalidInputError, match="empty"):
            TermVolatilityCurve(evaluation_date, ql.TARGET(), ql.Following, [], [])

    def test_mismatched_lengths(self, evaluation_date):
        with pytest.raises(InvalidInputError, match="mismatch"):
            TermVolatilityCurve(evaluation_date, ql.TARGET(), ql.Following, years(1, 2), [0.2])

    def test_non_increasing_tenors(self, evaluation_date):
        with pytest.raises(InvalidInputError, match="non increasing"):
            TermVolatilityCurve(evaluation_date, ql.TARGET(), ql.Following, years(1, 3, 2), [0.2, 0.2, 0.2])

    def test_repeated_tenor(self, evaluation_date):
        with pytest.raises(InvalidInputError):
            TermVolatilityCurve(
                evaluation_date, ql.TARGET(), ql.Following,
                [ql.Period(12, ql.Months), ql.Period(1, ql.Years)], [0.2, 0.2],
            )

    def test_non_positive_first_tenor(self, evaluation_date):
        with pytest.raises(InvalidInputError, match="first option tenor"):
            TermVolatilityCurve(
                evaluation_date, ql.TARGET(), ql.Following, [ql.Period(0, ql.Days), ql.Period(1, ql.Years)], [0.2, 0.2]
            )

    def test_invalid_input_is_a_value_error(self, evaluation_date):
        with pytest.raises(ValueError):
            TermVolatilityCurve(evaluation_date, ql.TARGET(), ql.Following, [], [])


class TestLiveQuotes:
    def test_quote_change_rebuilds_curve(self, evaluation_date):
        quotes = [MarketQuote(v) for v in (0.20, 0.22, 0.25)]
        c = TermVolatilityCurve(evaluation_date, ql.TARGET(), ql.Following, years(1, 2, 5), quotes)
        t = c.option_times()[1]
        assert c.volatility(t) == pytest.approx(0.22)
        v0 = c.version

        quotes[1].set_value(0.24)
        assert c.version > v0
        assert c.volatility(t) == pytest.approx(0.24)

    def test_repeated_reads_are_stable(self, curve):
        t = curve.option_times()[0] + 0.3
        assert curve.volatility(t) == curve.volatility(t)
        assert curve.is_calculated()


class TestReferenceDate:
    def test_fixed_reference_ignores_evaluation_date(self, curve, evaluation_date):
        dates = curve.option_dates()
        ql.Settings.instance().evaluationDate = evaluation_date + ql.Period(1, ql.Months)
        assert curve.reference_date() == evaluation_date
        assert curve.option_dates() == dates

    def test_moving_reference_follows_evaluation_date(self, evaluation_date):
        cal = ql.TARGET()
        c = TermVolatilityCurve(2, cal, ql.Following, years(1, 2, 5), [0.20, 0.22, 0.25])
        assert c.moving
        assert c.reference_date() == cal.advance(evaluation_date, 2, ql.Days)
        first = c.option_dates()[0]
        v0 = c.version

        new_date = cal.advance(evaluation_date, 1, ql.Months)
        ql.Settings.instance().evaluationDate = new_date
        assert c.version > v0
        assert c.reference_date() == cal.advance(new_date, 2, ql.Days)
        assert c.option_dates()[0] > first
        assert c.volatility(c.option_times()[1]) == pytest.approx(0.22, abs=1e-14)
