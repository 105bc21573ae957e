"""ATM optionlet stripper.

Extends an upstream optionlet grid with volatilities stripped from the
at-the-money cap term volatilities of a ``TermVolatilityCurve``:

1. one ATM cap per curve tenor, priced flat at the curve volatility, gives a
   target (strike, price);
2. a Brent solve finds the spread over the upstream surface that reprices
   each cap to its target;
3. the spread-adjusted volatility at the ATM strike is merged into every
   upstream expiry covered by the cap.
"""

import logging
from dataclasses import dataclass

import pandas as pd
import QuantLib as ql

from .calibration import implied_spread
from .config import StripperConfig
from .engines import make_engine
from .errors import MismatchedConventionError
from .instruments import CapFloorSpec
from .lazy import LazyObject
from .optionlets import ConstantOptionletVolatility, StrippedOptionletAdapter
from .utils import same_day_counter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationTarget:
    """ATM cap quoted on the term curve: what the spread must reproduce."""

    tenor: ql.Period
    option_time: float
    atm_vol: float
    atm_strike: float
    atm_price: float


@dataclass(frozen=True)
class StrippingResult:
    """Everything produced by one successful stripping pass."""

    targets: tuple
    spreads: tuple
    fixing_dates: tuple
    payment_dates: tuple
    accrual_periods: tuple
    fixing_times: tuple
    atm_optionlet_rates: tuple
    strikes: tuple
    vols: tuple


class AtmOptionletStripper(LazyObject):
    """Strip optionlet volatilities from ATM cap term volatilities.

    Parameters
    ----------
    stripper : StrippedOptionlets
        Upstream per-expiry strike/volatility grid. Never mutated.
    atm_curve : TermVolatilityCurve
        ATM cap term volatilities; must share the upstream day counter.
    cfg : StripperConfig, optional
        Solver guess, bracket, accuracy and evaluation budget.

    Raises
    ------
    MismatchedConventionError
        If the two day counters differ.
    """

    def __init__(self, stripper, atm_curve, cfg=None):
        super().__init__()
        if not same_day_counter(stripper.day_counter, atm_curve.day_counter):
            raise MismatchedConventionError(
                f"different day counters provided: {stripper.day_counter.name()} "
                f"vs {atm_curve.day_counter.name()}"
            )
        self.stripper = stripper
        self.atm_curve = atm_curve
        self.cfg = cfg or StripperConfig()
        self._result = None
        self._evaluation_date = ql.Settings.instance().evaluationDate

    # ------------------------------------------------------------------
    # LazyObject interface
    # ------------------------------------------------------------------
    def _dependencies(self):
        return (self.stripper, self.atm_curve)

    def _sync(self):
        # the reference caps start at the index value date of the evaluation date
        d = ql.Settings.instance().evaluationDate
        if d != self._evaluation_date:
            self._evaluation_date = d
            self.update()

    def perform_calculations(self):
        self._result = None
        s1 = self.stripper

        targets, caps = self._calibration_targets()

        spreads = []
        for target, cap in zip(targets, caps):
            spreads.append(implied_spread(s1, cap, target.atm_price, self.cfg))

        adapter = StrippedOptionletAdapter(s1)
        fixing_dates = s1.optionlet_fixing_dates()
        fixing_times = s1.optionlet_fixing_times()
        adjustments = []
        for target, cap, spread in zip(targets, caps, spreads):
            last_fixing = cap.last_fixing_date()
            for i, fixing in enumerate(fixing_dates):
                if fixing <= last_fixing:
                    unadjusted = adapter.volatility(fixing_times[i], target.atm_strike)
                    adjustments.append((i, target.atm_strike, unadjusted + spread))
        strikes, vols = s1.apply_adjustments(adjustments)

        self._result = StrippingResult(
            targets=tuple(targets),
            spreads=tuple(spreads),
            fixing_dates=tuple(fixing_dates),
            payment_dates=tuple(s1.optionlet_payment_dates()),
            accrual_periods=tuple(s1.optionlet_accrual_periods()),
            fixing_times=tuple(fixing_times),
            atm_optionlet_rates=tuple(s1.atm_optionlet_rates()),
            strikes=tuple(tuple(k) for k in strikes),
            vols=tuple(tuple(v) for v in vols),
        )
        logger.info(
            "stripped %d ATM tenors into %d optionlet expiries (%d points)",
            len(targets), len(fixing_dates), len(adjustments),
        )

    def _calibration_targets(self):
        curve = self.atm_curve
        index = self.stripper.ibor_index
        tenors = curve.option_tenors
        times = curve.option_times()

        targets = []
        caps = []
        for tenor, t in zip(tenors, times):
            atm_vol = curve.volatility(t)
            cap = CapFloorSpec(ql.CapFloor.Cap, tenor, index).build()
            flat = ConstantOptionletVolatility(atm_vol, curve.reference_date(), curve.day_counter)
            cap.set_pricing_engine(
                make_engine(self.stripper.volatility_type, flat, displacement=self.stripper.displacement)
            )
            target = CalibrationTarget(tenor, float(t), float(atm_vol), cap.strike, cap.npv())
            logger.debug(
                "%s: atm vol %.6f strike %.6f price %.8f",
                tenor, target.atm_vol, target.atm_strike, target.atm_price,
            )
            targets.append(target)
            caps.append(cap)
        return targets, caps

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    def result(self):
        self.calculate()
        return self._result

    @property
    def last_result(self):
        """Result of the last successful pass, without triggering one."""
        return self._result

    def spreads_vol(self):
        return list(self.result().spreads)

    def atm_cap_floor_strikes(self):
        return [t.atm_strike for t in self.result().targets]

    def atm_cap_floor_prices(self):
        return [t.atm_price for t in self.result().targets]

    def calibration_targets(self):
        return list(self.result().targets)

    def to_frame(self):
        """One row per ATM tenor."""
        res = self.result()
        rows = []
        for target, spread in zip(res.targets, res.spreads):
            rows.append({
                "tenor": str(target.tenor),
                "option_time": target.option_time,
                "atm_vol": target.atm_vol,
                "atm_strike": target.atm_strike,
                "atm_price": target.atm_price,
                "spread": spread,
            })
        return pd.DataFrame(rows)

    # ------------------------------------------------------------------
    # Grid source interface (usable by StrippedOptionletAdapter)
    # ------------------------------------------------------------------
    @property
    def ibor_index(self):
        return self.stripper.ibor_index

    @property
    def day_counter(self):
        return self.stripper.day_counter

    @property
    def volatility_type(self):
        return self.stripper.volatility_type

    @property
    def displacement(self):
        return self.stripper.displacement

    def reference_date(self):
        return self.stripper.reference_date()

    def optionlet_fixing_dates(self):
        return list(self.result().fixing_dates)

    def optionlet_payment_dates(self):
        return list(self.result().payment_dates)

    def optionlet_accrual_periods(self):
        return list(self.result().accrual_periods)

    def optionlet_fixing_times(self):
        return list(self.result().fixing_times)

    def atm_optionlet_rates(self):
        return list(self.result().atm_optionlet_rates)

    def optionlet_maturities(self):
        return len(self.result().fixing_dates)

    def optionlet_strikes(self, i):
        return list(self.result().strikes[i])

    def optionlet_volatilities(self, i):
        return list(self.result().vols[i])
