"""Optionlet (caplet/floorlet) volatility grids and surfaces.

``StrippedOptionlets`` is the upstream per-expiry strike/volatility grid.
``StrippedOptionletAdapter`` turns any grid source into a surface that can be
queried by (time, strike); the flat and spreaded sources feed the pricing
engines.
"""

import bisect
import logging

import numpy as np
import QuantLib as ql

from .errors import InvalidInputError
from .instruments import CapFloorSpec
from .utils import DateUtils, ordinal

logger = logging.getLogger(__name__)


def _check_grid(i, strikes, vols):
    if len(strikes) != len(vols):
        raise InvalidInputError(
            f"{ordinal(i + 1)} optionlet: mismatch between number of strikes "
            f"({len(strikes)}) and number of volatilities ({len(vols)})"
        )
    if not strikes:
        raise InvalidInputError(f"{ordinal(i + 1)} optionlet: empty strike vector")
    for k in range(1, len(strikes)):
        if not strikes[k - 1] < strikes[k]:
            raise InvalidInputError(
                f"{ordinal(i + 1)} optionlet: non increasing strikes "
                f"{strikes[k - 1]} and {strikes[k]}"
            )


class StrippedOptionlets:
    """Upstream optionlet volatility grid.

    Parameters
    ----------
    ibor_index : QuantLib.IborIndex
        Index whose forwarding curve prices the optionlets.
    reference_date : QuantLib.Date
        Origin of the fixing times.
    fixing_dates, payment_dates : list[QuantLib.Date]
    accrual_periods : list[float]
    strikes : list[list[float]]
        One strictly increasing strike list per fixing date.
    vols : list[list[float]]
        Matching volatilities.
    day_counter : QuantLib.DayCounter
    volatility_type : int
        ``ql.ShiftedLognormal`` or ``ql.Normal``.
    displacement : float
    """

    def __init__(self, ibor_index, reference_date, fixing_dates, payment_dates, accrual_periods,
                 strikes, vols, day_counter=None, volatility_type=ql.ShiftedLognormal,
                 displacement=0.0):
        n = len(fixing_dates)
        if n == 0:
            raise InvalidInputError("empty optionlet fixing date vector")
        for name, seq in (("payment dates", payment_dates), ("accrual periods", accrual_periods),
                          ("strike vectors", strikes), ("volatility vectors", vols)):
            if len(seq) != n:
                raise InvalidInputError(
                    f"mismatch between number of fixing dates ({n}) and number of {name} ({len(seq)})"
                )

        self.ibor_index = ibor_index
        self.day_counter = ql.Actual365Fixed() if day_counter is None else day_counter
        self.volatility_type = volatility_type
        self.displacement = float(displacement)
        self._reference_date = reference_date
        self._fixing_dates = list(fixing_dates)
        self._payment_dates = list(payment_dates)
        self._accrual_periods = [float(a) for a in accrual_periods]
        self._fixing_times = [self.day_counter.yearFraction(reference_date, d) for d in fixing_dates]

        self._strikes = []
        self._vols = []
        for i in range(n):
            k = [float(x) for x in strikes[i]]
            v = [float(x) for x in vols[i]]
            _check_grid(i, k, v)
            self._strikes.append(k)
            self._vols.append(v)
        self._version = 0

        # relinking the forwarding curve, or moving its quotes, changes the ATM rates
        self._curve_observer = ql.Observer(self._bump)
        self._curve_observer.registerWith(ibor_index.forwardingTermStructure())

    @classmethod
    def from_cap_schedule(cls, ibor_index, max_tenor, strikes, vol_matrix, **kwargs):
        """Lay the optionlets on the schedule of the longest cap.

        ``vol_matrix`` has one row per optionlet (first caplet excluded) and
        one column per strike; the same strikes are used for every expiry.
        """
        cap = CapFloorSpec(ql.CapFloor.Cap, DateUtils.ensure_period(max_tenor), ibor_index,
                           strike=0.0).build()
        caplets = cap.floating_leg()
        vol_matrix = np.asarray(vol_matrix, dtype=float)
        if vol_matrix.ndim != 2 or vol_matrix.shape != (len(caplets), len(strikes)):
            raise InvalidInputError(
                f"volatility matrix shape {vol_matrix.shape} does not match "
                f"{len(caplets)} optionlets x {len(strikes)} strikes"
            )
        return cls(
            ibor_index,
            cap.reference_date,
            [c.fixing_date for c in caplets],
            [c.payment_date for c in caplets],
            [c.accrual_period for c in caplets],
            [list(strikes) for _ in caplets],
            vol_matrix.tolist(),
            **kwargs,
        )

    @property
    def version(self):
        return self._version

    def _bump(self):
        self._version += 1

    def reference_date(self):
        return self._reference_date

    def optionlet_fixing_dates(self):
        return list(self._fixing_dates)

    def optionlet_payment_dates(self):
        return list(self._payment_dates)

    def optionlet_accrual_periods(self):
        return list(self._accrual_periods)

    def optionlet_fixing_times(self):
        return list(self._fixing_times)

    def optionlet_maturities(self):
        return len(self._fixing_dates)

    def atm_optionlet_rates(self):
        """Forward rates over each optionlet accrual period."""
        curve = self.ibor_index.forwardingTermStructure().currentLink()
        dc = self.ibor_index.dayCounter()
        rates = []
        for fixing, payment in zip(self._fixing_dates, self._payment_dates):
            start = self.ibor_index.valueDate(fixing)
            tau = dc.yearFraction(start, payment)
            rates.append((curve.discount(start) / curve.discount(payment) - 1.0) / tau)
        return rates

    def optionlet_strikes(self, i):
        return list(self._strikes[i])

    def optionlet_volatilities(self, i):
        return list(self._vols[i])

    def set_optionlet_volatilities(self, i, vols):
        """Replace the volatilities of the ``i``-th expiry."""
        vols = [float(v) for v in vols]
        _check_grid(i, self._strikes[i], vols)
        if vols != self._vols[i]:
            self._vols[i] = vols
            self._version += 1

    def apply_adjustments(self, adjustments):
        """Merge ``(expiry_index, strike, vol)`` points into copies of the grids.

        Each point goes to its binary-search position so the strikes stay
        strictly increasing; a strike already on the grid has its volatility
        replaced. The grids held by this object are left untouched.

        Returns
        -------
        (strikes, vols) : tuple of list[list[float]]
        """
        strikes = [list(k) for k in self._strikes]
        vols = [list(v) for v in self._vols]
        adjustments = list(adjustments)
        for i, strike, vol in adjustments:
            row_k, row_v = strikes[i], vols[i]
            pos = bisect.bisect_left(row_k, strike)
            if pos < len(row_k) and row_k[pos] == strike:
                row_v[pos] = float(vol)
            else:
                row_k.insert(pos, float(strike))
                row_v.insert(pos, float(vol))
        logger.debug("merged %d adjusted points into %d expiries", len(adjustments), len(strikes))
        return strikes, vols


class StrippedOptionletAdapter:
    """Volatility surface over a grid source.

    Linear in strike inside each expiry, then linear in time across expiries;
    flat outside both ranges.
    """

    def __init__(self, source):
        self.source = source

    @property
    def version(self):
        return self.source.version

    @property
    def day_counter(self):
        return self.source.day_counter

    def reference_date(self):
        return self.source.reference_date()

    def time_from_reference(self, date):
        return self.day_counter.yearFraction(self.reference_date(), date)

    def smile(self, i):
        return self.source.optionlet_strikes(i), self.source.optionlet_volatilities(i)

    def volatility(self, t, strike):
        times = self.source.optionlet_fixing_times()
        per_expiry = []
        for i in range(len(times)):
            strikes, vols = self.smile(i)
            per_expiry.append(np.interp(strike, strikes, vols))
        return float(np.interp(t, times, per_expiry))


class ConstantOptionletVolatility:
    """One volatility for every time and strike (flat-volatility pricing)."""

    version = 0

    def __init__(self, vol, reference_date, day_counter):
        self.vol = float(vol)
        self._reference_date = reference_date
        self.day_counter = day_counter

    def reference_date(self):
        return self._reference_date

    def time_from_reference(self, date):
        return self.day_counter.yearFraction(self._reference_date, date)

    def volatility(self, t, strike):
        return self.vol


class SpreadedOptionletVolatility:
    """Base surface plus a quoted spread, flat across strike and time."""

    def __init__(self, base, spread):
        self.base = base
        self.spread = spread

    @property
    def version(self):
        return self.base.version + self.spread.version

    @property
    def day_counter(self):
        return self.base.day_counter

    def reference_date(self):
        return self.base.reference_date()

    def time_from_reference(self, date):
        return self.base.time_from_reference(date)

    def volatility(self, t, strike):
        return self.base.volatility(t, strike) + self.spread.value
