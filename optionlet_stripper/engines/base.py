import abc
import math

import QuantLib as ql


class PricingEngine(abc.ABC):
    """Abstract interface for cap/floor engines.

    An engine sums caplet values priced off a volatility source, i.e. any
    object exposing ``volatility(t, strike)``, ``time_from_reference(date)``
    and ``reference_date()``. Discounting uses ``discount_curve`` when given,
    else the forwarding curve of the cap's index.
    """

    def __init__(self, vol_source, discount_curve=None):
        self.vol_source = vol_source
        self.discount_curve = discount_curve

    @abc.abstractmethod
    def caplet_value(self, forward, strike, std_dev, is_cap):
        """Undiscounted value of a unit-accrual caplet/floorlet."""
        raise NotImplementedError

    def _curve(self, cap):
        if self.discount_curve is None:
            return cap.forwarding_curve()
        return self.discount_curve.currentLink()

    def price(self, cap):
        curve = self._curve(cap)
        today = curve.referenceDate()
        reference = self.vol_source.reference_date()
        is_cap = cap.type == ql.CapFloor.Cap
        forwards = cap.forward_rates()

        total = 0.0
        for c, fwd in zip(cap.floating_leg(), forwards):
            if c.payment_date <= today:
                continue
            std_dev = 0.0
            if c.fixing_date > reference:
                t = self.vol_source.time_from_reference(c.fixing_date)
                vol = self.vol_source.volatility(t, cap.strike)
                if vol > 0.0 and t > 0.0:
                    std_dev = vol * math.sqrt(t)
            value = self.caplet_value(fwd, cap.strike, std_dev, is_cap)
            total += curve.discount(c.payment_date) * c.accrual_period * value
        return cap.nominal * total
