"""ATM optionlet volatility stripper (QuantLib).

This package provides:
- Market loaders (forwarding curve, ATM cap term vols, optionlet grids)
- An at-the-money cap term volatility curve (natural cubic spline)
- Manual Black / Bachelier cap-floor engines
- A spread calibration (Brent) and the ATM optionlet stripper that merges
  the calibrated volatilities into the upstream strike grids

Caches are invalidated through version stamps rather than observers: every
market object exposes a monotonically increasing ``version``.
"""

from .config import StripperConfig, configure_logging
from .errors import (
    ConvergenceFailure,
    InvalidInputError,
    MismatchedConventionError,
    ResultUnavailableError,
    StrippingError,
)
from .quotes import MarketQuote
from .termvol import TermVolatilityCurve
from .instruments import CapFloor, CapFloorSpec, Caplet
from .optionlets import (
    ConstantOptionletVolatility,
    SpreadedOptionletVolatility,
    StrippedOptionletAdapter,
    StrippedOptionlets,
)
from .solvers import BrentSolver
from .calibration import SpreadObjectiveFunction, implied_spread
from .stripper import AtmOptionletStripper, CalibrationTarget, StrippingResult
from .market import MarketLoader
