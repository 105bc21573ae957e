import logging

import pandas as pd
import QuantLib as ql

from .errors import InvalidInputError
from .optionlets import StrippedOptionlets
from .quotes import MarketQuote
from .termvol import TermVolatilityCurve
from .utils import DateUtils

logger = logging.getLogger(__name__)


def _find_column(df, *keys):
    return next((c for c in df.columns if any(k in c.lower() for k in keys)), None)


class MarketLoader:
    """Load market inputs (forwarding curve, ATM cap vols, optionlet grid).

    The loader is intentionally permissive regarding column names so that
    exports from different market data systems can be used as they are.
    """

    def __init__(self, cfg):
        self.cfg = cfg
        if cfg.val_date is not None:
            ql.Settings.instance().evaluationDate = cfg.val_date

    def load_curve(self, path, day_count=None, calendar=None, allow_extrapolation=True):
        """Load a discount curve from a CSV and return a relinkable handle.

        The CSV is expected to contain at least a date column (e.g. 'date')
        and a discount factor column (e.g. 'discount_factor'). The evaluation
        date is always added with DF = 1.0.
        """
        day_count = day_count or ql.Actual365Fixed()
        calendar = calendar or ql.TARGET()
        val_date = ql.Settings.instance().evaluationDate

        df = pd.read_csv(path)
        col_date = _find_column(df, "date", "data", "vertice")
        col_df = _find_column(df, "discount", "fator", "df")
        if col_date is None or col_df is None:
            raise InvalidInputError(
                "curve CSV must contain a date column and a discount factor column"
            )

        df[col_date] = pd.to_datetime(df[col_date])
        df = df.sort_values(col_date)

        dates = [val_date]
        dfs = [1.0]
        for _, row in df.iterrows():
            d = DateUtils.to_ql_date(row[col_date].date())
            if d <= val_date:
                continue
            dates.append(d)
            dfs.append(float(row[col_df]))

        curve = ql.DiscountCurve(dates, dfs, day_count, calendar)
        if allow_extrapolation:
            curve.enableExtrapolation()
        logger.info("loaded curve with %d nodes from %s", len(dates), path)
        return ql.RelinkableYieldTermStructureHandle(curve)

    @staticmethod
    def make_index(tenor, curve_handle):
        """Euribor index of the given tenor forwarding on ``curve_handle``."""
        return ql.Euribor(DateUtils.ensure_period(tenor), curve_handle)

    def load_atm_vols(self, path, settlement_days=0, calendar=None,
                      bdc=ql.Following, day_counter=None):
        """Load ATM cap term vols (columns: tenor, vol) into a moving curve.

        Volatilities may be given in percent (values above 1 are divided by
        100). Each vol becomes a live ``MarketQuote``.
        """
        df = pd.read_csv(path)
        col_tenor = _find_column(df, "tenor", "expiry", "maturity")
        col_vol = _find_column(df, "vol")
        if col_tenor is None or col_vol is None:
            raise InvalidInputError("ATM vol CSV must contain a tenor column and a vol column")

        tenors = []
        quotes = []
        for _, row in df.iterrows():
            if pd.isna(row[col_vol]):
                continue
            vol = float(row[col_vol])
            if vol > 1.0:
                vol /= 100.0
            tenors.append(DateUtils.parse_period(row[col_tenor]))
            quotes.append(MarketQuote(vol))

        return TermVolatilityCurve(
            settlement_days,
            calendar or ql.TARGET(),
            bdc,
            tenors,
            quotes,
            day_counter or ql.Actual365Fixed(),
        )

    def load_optionlet_grid(self, path, ibor_index, day_counter=None):
        """Load an optionlet vol matrix (rows: accrual start, columns: strikes in %).

        The first column labels each optionlet by its accrual start offset
        (e.g. '6M', '12M', ...). The optionlets are laid on the schedule of a
        cap running up to the last label plus the index tenor.
        """
        df = pd.read_csv(path)
        if df.empty or len(df.columns) < 2:
            raise InvalidInputError(f"optionlet grid CSV {path} is empty")
        df = df.set_index(df.columns[0])

        strikes = [float(str(c).strip().replace("%", "")) / 100.0 for c in df.columns]
        max_tenor = DateUtils.parse_period(df.index[-1]) + ibor_index.tenor()
        vols = df.values.astype(float)
        if vols.max() > 1.0:
            vols = vols / 100.0

        return StrippedOptionlets.from_cap_schedule(
            ibor_index,
            max_tenor,
            strikes,
            vols,
            day_counter=day_counter or ql.Actual365Fixed(),
            volatility_type=self.cfg.volatility_type,
            displacement=self.cfg.displacement,
        )
