import pytest

from optionlet_stripper.errors import ResultUnavailableError
from optionlet_stripper.lazy import LazyObject
from optionlet_stripper.quotes import MarketQuote


class Doubler(LazyObject):
    def __init__(self, quote):
        super().__init__()
        self.quote = quote
        self.runs = 0
        self.value = None

    def _dependencies(self):
        return (self.quote,)

    def perform_calculations(self):
        self.runs += 1
        self.value = 2.0 * self.quote.value


class TestMarketQuote:
    def test_version_moves_only_on_change(self):
        q = MarketQuote(0.2)
        v0 = q.version
        q.set_value(0.2)
        assert q.version == v0
        q.set_value(0.25)
        assert q.version == v0 + 1
        assert q.value == 0.25

    def test_empty_quote_is_unavailable(self):
        q = MarketQuote()
        assert not q.is_valid()
        with pytest.raises(ResultUnavailableError):
            q.value

    def test_reset(self):
        q = MarketQuote(1.0)
        q.reset()
        assert not q.is_valid()


class TestLazyObject:
    def test_calculates_once_until_dependency_moves(self):
        q = MarketQuote(1.0)
        d = Doubler(q)
        d.calculate()
        d.calculate()
        assert d.runs == 1
        assert d.value == 2.0

        q.set_value(3.0)
        assert not d.is_calculated()
        d.calculate()
        assert d.runs == 2
        assert d.value == 6.0

    def test_update_forces_recalculation(self):
        d = Doubler(MarketQuote(1.0))
        d.calculate()
        d.update()
        d.calculate()
        assert d.runs == 2

    def test_version_is_monotone_and_chains(self):
        q = MarketQuote(1.0)
        d = Doubler(q)
        v0 = d.version
        q.set_value(2.0)
        v1 = d.version
        d.update()
        assert v0 < v1 < d.version

    def test_failed_calculation_stays_stale(self):
        q = MarketQuote()
        d = Doubler(q)
        with pytest.raises(ResultUnavailableError):
            d.calculate()
        assert not d.is_calculated()
        q.set_value(1.5)
        d.calculate()
        assert d.value == 3.0
