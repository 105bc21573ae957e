from scipy.stats import norm

from .base import PricingEngine


def bachelier_formula(forward, strike, std_dev, is_call=True):
    """Undiscounted normal (Bachelier) value."""
    sign = 1.0 if is_call else -1.0
    if std_dev <= 0.0:
        return max(sign * (forward - strike), 0.0)
    d = sign * (forward - strike) / std_dev
    return sign * (forward - strike) * norm.cdf(d) + std_dev * norm.pdf(d)


class BachelierCapFloorEngine(PricingEngine):
    """Normal-volatility caplet pricing (volatilities in absolute rate terms)."""

    def caplet_value(self, forward, strike, std_dev, is_cap):
        return bachelier_formula(forward, strike, std_dev, is_cap)
