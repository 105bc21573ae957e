import QuantLib as ql

from ..errors import InvalidInputError
from .bachelier import BachelierCapFloorEngine, bachelier_formula
from .base import PricingEngine
from .black import BlackCapFloorEngine, black_formula


def make_engine(volatility_type, vol_source, discount_curve=None, displacement=0.0):
    """Engine matching a QuantLib volatility type."""
    if volatility_type == ql.Normal:
        return BachelierCapFloorEngine(vol_source, discount_curve)
    if volatility_type == ql.ShiftedLognormal:
        return BlackCapFloorEngine(vol_source, discount_curve, displacement)
    raise InvalidInputError(f"unknown volatility type: {volatility_type}")
