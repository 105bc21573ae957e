"""At-the-money cap/floor term volatility curve.

The curve interpolates the market volatilities of a set of caps/floors of
given length with a natural cubic spline in option time.
"""

import logging
import math

import numpy as np
import QuantLib as ql
from scipy.interpolate import CubicSpline

from .errors import InvalidInputError
from .lazy import LazyObject
from .quotes import MarketQuote
from .utils import DateUtils, ordinal

logger = logging.getLogger(__name__)


class TermVolatilityCurve(LazyObject):
    """Cap/floor at-the-money term-volatility curve.

    Parameters
    ----------
    reference : QuantLib.Date or int
        A date fixes the reference date. An integer is a number of settlement
        days: the reference date then floats with the evaluation date.
    calendar : QuantLib.Calendar
    bdc : int
        Business day convention used to roll option dates.
    option_tenors : list
        ``ql.Period`` objects (or strings such as ``'1Y'``), strictly increasing.
    vols : list
        Either plain numbers (fixed market data) or ``MarketQuote`` objects
        (live market data).
    day_counter : QuantLib.DayCounter
    """

    def __init__(self, reference, calendar, bdc, option_tenors, vols, day_counter=None):
        super().__init__()
        self.calendar = calendar
        self.business_day_convention = bdc
        self.day_counter = ql.Actual365Fixed() if day_counter is None else day_counter

        if isinstance(reference, ql.Date):
            self.moving = False
            self._settlement_days = None
            self._reference_date = reference
            self._evaluation_date = None
        else:
            self.moving = True
            self._settlement_days = int(reference)
            self._evaluation_date = ql.Settings.instance().evaluationDate
            self._reference_date = self._moving_reference_date()

        self._option_tenors = [DateUtils.ensure_period(p) for p in option_tenors]
        self._quotes = [v if isinstance(v, MarketQuote) else MarketQuote(v) for v in vols]
        self._check_inputs()

        self._option_dates = []
        self._option_times = []
        self._initialize_option_dates_and_times()

        self._vols = np.zeros(len(self._quotes))
        self._interpolation = None

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    def _check_inputs(self):
        tenors = self._option_tenors
        if not tenors:
            raise InvalidInputError("empty option tenor vector")
        if len(tenors) != len(self._quotes):
            raise InvalidInputError(
                f"mismatch between number of option tenors ({len(tenors)}) "
                f"and number of volatilities ({len(self._quotes)})"
            )
        if not ql.Period(0, ql.Days) < tenors[0]:
            raise InvalidInputError(f"non-positive first option tenor: {tenors[0]}")
        for i in range(1, len(tenors)):
            if not tenors[i - 1] < tenors[i]:
                raise InvalidInputError(
                    f"non increasing option tenor: {ordinal(i)} is {tenors[i - 1]}, "
                    f"{ordinal(i + 1)} is {tenors[i]}"
                )

    def _moving_reference_date(self):
        return self.calendar.advance(
            ql.Settings.instance().evaluationDate, self._settlement_days, ql.Days
        )

    def _initialize_option_dates_and_times(self):
        self._option_dates = [self.option_date_from_tenor(p) for p in self._option_tenors]
        self._option_times = [self.time_from_reference(d) for d in self._option_dates]

    def _sync(self):
        if not self.moving:
            return
        d = ql.Settings.instance().evaluationDate
        if d != self._evaluation_date:
            self._evaluation_date = d
            self._reference_date = self._moving_reference_date()
            self._initialize_option_dates_and_times()
            self.update()

    # ------------------------------------------------------------------
    # LazyObject interface
    # ------------------------------------------------------------------
    def _dependencies(self):
        return self._quotes

    def perform_calculations(self):
        self._vols = np.array([q.value for q in self._quotes], dtype=float)
        times = np.asarray(self._option_times, dtype=float)
        if len(times) > 1:
            self._interpolation = CubicSpline(times, self._vols, bc_type="natural", extrapolate=False)
        else:
            self._interpolation = None
        logger.debug("ATM curve rebuilt on %d tenors (reference %s)", len(times), self._reference_date)

    # ------------------------------------------------------------------
    # Term structure interface
    # ------------------------------------------------------------------
    def reference_date(self):
        self._sync()
        return self._reference_date

    def option_date_from_tenor(self, tenor):
        return self.calendar.advance(self._reference_date, tenor, self.business_day_convention)

    def time_from_reference(self, date):
        return self.day_counter.yearFraction(self._reference_date, date)

    def max_date(self):
        self.calculate()
        return self.option_date_from_tenor(self._option_tenors[-1])

    def min_strike(self):
        return -math.inf

    def max_strike(self):
        return math.inf

    @property
    def option_tenors(self):
        return list(self._option_tenors)

    def option_dates(self):
        self.calculate()
        return list(self._option_dates)

    def option_times(self):
        self.calculate()
        return list(self._option_times)

    def quotes(self):
        """The market quotes behind the curve (live or wrapped constants)."""
        return list(self._quotes)

    def volatilities(self):
        self.calculate()
        return self._vols.tolist()

    def volatility(self, t, strike=None):
        """ATM volatility for option time ``t`` (strike is ignored)."""
        self.calculate()
        t = float(t)
        if self._interpolation is None:
            return float(self._vols[0])
        t_min, t_max = self._option_times[0], self._option_times[-1]
        if t <= t_min:
            return float(self._vols[0])
        if t >= t_max:
            return float(self._vols[-1])
        return float(self._interpolation(t))

    def volatility_at(self, t):
        return self.volatility(t)

    def __repr__(self):
        tenors = ", ".join(str(p) for p in self._option_tenors)
        return f"TermVolatilityCurve([{tenors}], moving={self.moving})"
