from dataclasses import dataclass, field

import QuantLib as ql

from .errors import InvalidInputError, ResultUnavailableError
from .utils import DateUtils


@dataclass(frozen=True)
class Caplet:
    """One period of a cap/floor floating leg."""

    fixing_date: ql.Date
    accrual_start: ql.Date
    accrual_end: ql.Date
    payment_date: ql.Date
    accrual_period: float


@dataclass
class CapFloorSpec:
    """Specification of a cap/floor on an Ibor index.

    The schedule follows the index conventions: it starts at the index value
    date of the evaluation date (plus ``forward_start``), ends ``tenor``
    later and rolls with the index tenor, fixing calendar, business day
    convention and end-of-month flag.

    Notes
    -----
    - ``strike=None`` means at-the-money: the strike is set to the ATM rate
      of the leg on the index forwarding curve when the cap is built.
    - With a zero ``forward_start`` the first caplet is excluded, since its
      rate fixes (or has fixed) today.
    """

    cap_floor_type: int
    tenor: object  # QuantLib Period or string like "5Y"
    ibor_index: object
    strike: float = None
    forward_start: object = field(default_factory=lambda: ql.Period(0, ql.Days))
    nominal: float = 1.0

    # ---------------------------------------------------------------------
    # QuantLib objects
    # ---------------------------------------------------------------------
    def ql_schedule(self):
        idx = self.ibor_index
        calendar = idx.fixingCalendar()
        bdc = idx.businessDayConvention()
        reference = calendar.adjust(ql.Settings.instance().evaluationDate)
        start = idx.valueDate(reference)
        forward_start = DateUtils.ensure_period(self.forward_start)
        if forward_start.length() != 0:
            start = calendar.advance(start, forward_start, bdc)
        end = start + DateUtils.ensure_period(self.tenor)
        return ql.Schedule(
            start,
            end,
            idx.tenor(),
            calendar,
            bdc,
            bdc,
            ql.DateGeneration.Forward,
            bool(idx.endOfMonth()),
        )

    def caplets(self):
        idx = self.ibor_index
        dc = idx.dayCounter()
        dates = list(self.ql_schedule())
        leg = []
        for start, end in zip(dates[:-1], dates[1:]):
            leg.append(
                Caplet(
                    fixing_date=idx.fixingDate(start),
                    accrual_start=start,
                    accrual_end=end,
                    payment_date=end,
                    accrual_period=float(dc.yearFraction(start, end)),
                )
            )
        if DateUtils.ensure_period(self.forward_start).length() == 0:
            leg = leg[1:]
        return leg

    def build(self):
        """Return a :class:`CapFloor`, resolving an ATM strike if needed."""
        cap = CapFloor(self.cap_floor_type, self.caplets(), self.ibor_index, 0.0, self.nominal)
        strike = cap.atm_rate() if self.strike is None else float(self.strike)
        return CapFloor(self.cap_floor_type, cap.floating_leg(), self.ibor_index, strike, self.nominal)


class CapFloor:
    """A built cap/floor: caplets, strike and an optional pricing engine."""

    def __init__(self, cap_floor_type, caplets, ibor_index, strike, nominal=1.0):
        if not caplets:
            raise InvalidInputError("cap/floor with no caplets")
        self.type = cap_floor_type
        self.ibor_index = ibor_index
        self.strike = float(strike)
        self.nominal = float(nominal)
        self.reference_date = ql.Settings.instance().evaluationDate
        self._caplets = list(caplets)
        self._engine = None

    def floating_leg(self):
        return list(self._caplets)

    def last_fixing_date(self):
        return self._caplets[-1].fixing_date

    def forwarding_curve(self):
        return self.ibor_index.forwardingTermStructure().currentLink()

    def forward_rates(self, curve=None):
        """Simple forward rate over each accrual period."""
        if curve is None:
            curve = self.forwarding_curve()
        return [
            (curve.discount(c.accrual_start) / curve.discount(c.accrual_end) - 1.0) / c.accrual_period
            for c in self._caplets
        ]

    def atm_rate(self, curve=None):
        """Strike making the cap and floor worth the same: sum(tau*D*F) / sum(tau*D)."""
        if curve is None:
            curve = self.forwarding_curve()
        fwd = self.forward_rates(curve)
        num = 0.0
        den = 0.0
        for c, f in zip(self._caplets, fwd):
            w = c.accrual_period * curve.discount(c.payment_date)
            num += w * f
            den += w
        return num / den

    def set_pricing_engine(self, engine):
        self._engine = engine

    def npv(self):
        if self._engine is None:
            raise ResultUnavailableError("no pricing engine set")
        return self._engine.price(self)

    def __len__(self):
        return len(self._caplets)
