import math

from scipy.stats import norm

from .base import PricingEngine


def black_formula(forward, strike, std_dev, is_call=True, displacement=0.0):
    """Undiscounted (shifted) Black-76 value."""
    f = forward + displacement
    k = strike + displacement
    sign = 1.0 if is_call else -1.0
    if std_dev <= 0.0 or k <= 0.0 or f <= 0.0:
        return max(sign * (forward - strike), 0.0)
    d1 = math.log(f / k) / std_dev + 0.5 * std_dev
    d2 = d1 - std_dev
    return sign * (f * norm.cdf(sign * d1) - k * norm.cdf(sign * d2))


class BlackCapFloorEngine(PricingEngine):
    """Shifted-lognormal caplet pricing.

    Notes
    -----
    A non-positive standard deviation (expired fixing or a spread pushing the
    volatility below zero) prices at intrinsic value, which keeps the cap
    price monotonic in volatility.
    """

    def __init__(self, vol_source, discount_curve=None, displacement=0.0):
        super().__init__(vol_source, discount_curve)
        self.displacement = float(displacement)

    def caplet_value(self, forward, strike, std_dev, is_cap):
        return black_formula(forward, strike, std_dev, is_cap, self.displacement)
