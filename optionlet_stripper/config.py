import logging
import sys

import QuantLib as ql

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level=logging.INFO, stream=None):
    """Install a single stream handler on the package logger.

    Calling it twice replaces the previous handler instead of stacking a
    second one.
    """
    logger = logging.getLogger("optionlet_stripper")
    for handler in list(logger.handlers):
        if getattr(handler, "_optionlet_stripper", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._optionlet_stripper = True
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


class StripperConfig:
    """Central configuration object.

    All numerical knobs of the ATM stripping pass live here so that a run can
    be reproduced from a config snapshot.

    Parameters
    ----------
    val_date : QuantLib.Date
        Evaluation date for QuantLib.
    volatility_type : int
        ``ql.ShiftedLognormal`` (Black) or ``ql.Normal`` (Bachelier).
    displacement : float
        Shift applied to forwards and strikes for shifted-lognormal pricing.

    Notes
    -----
    The spread bracket defaults to +/-1000bp around a 1bp initial guess.
    A target price outside what the bracket can reach is a hard failure.
    """

    def __init__(self, val_date=None, volatility_type=ql.ShiftedLognormal, displacement=0.0):
        self.val_date = val_date
        self.volatility_type = volatility_type
        self.displacement = float(displacement)

        # ----------------
        # Root finder (Brent)
        # ----------------
        self.accuracy = 1.0e-6
        self.max_evaluations = 10000
        self.spread_guess = 1.0e-4
        self.min_spread = -0.10
        self.max_spread = 0.10

        # ----------------
        # Global flags
        # ----------------
        self.log_level = logging.INFO

    def apply_global_settings(self):
        """Set the QuantLib evaluation date and configure logging."""
        if self.val_date is not None:
            ql.Settings.instance().evaluationDate = self.val_date
        configure_logging(self.log_level)

    def snapshot(self):
        """Return the JSON-serialisable knobs (reproducibility)."""
        d = {}
        for k, v in self.__dict__.items():
            if k == "val_date":
                d[k] = None if v is None else v.ISO()
            elif k == "volatility_type":
                d[k] = "Normal" if v == ql.Normal else "ShiftedLognormal"
            elif isinstance(v, (int, float, str, bool)):
                d[k] = v
        return d
