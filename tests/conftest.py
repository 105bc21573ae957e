import os
import sys

import pytest
import QuantLib as ql

# Allow running tests without installing the package.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from optionlet_stripper import StrippedOptionlets, TermVolatilityCurve  # noqa: E402

VAL_DATE = ql.Date(10, 9, 2025)
STRIKES = [0.01, 0.02, 0.03, 0.04, 0.05]
SMILE = [0.30, 0.24, 0.20, 0.19, 0.20]


@pytest.fixture(autouse=True)
def evaluation_date():
    settings = ql.Settings.instance()
    previous = settings.evaluationDate
    settings.evaluationDate = VAL_DATE
    yield VAL_DATE
    settings.evaluationDate = previous


@pytest.fixture
def curve_handle(evaluation_date):
    """Upward sloping zero curve (2% -> 4%), so every cap has its own ATM strike."""
    dates = [evaluation_date + ql.Period(n, ql.Years) for n in (0, 1, 2, 3, 5, 10)]
    zeros = [0.020, 0.022, 0.025, 0.028, 0.033, 0.040]
    curve = ql.ZeroCurve(dates, zeros, ql.Actual365Fixed())
    curve.enableExtrapolation()
    return ql.YieldTermStructureHandle(curve)


@pytest.fixture
def index(curve_handle):
    return ql.Euribor6M(curve_handle)


def make_upstream(index, vols=None, day_counter=None):
    """5Y grid of 9 optionlets on the shared strikes."""
    rows = vols if vols is not None else [SMILE] * 9
    return StrippedOptionlets.from_cap_schedule(
        index, ql.Period(5, ql.Years), STRIKES, rows,
        day_counter=day_counter or ql.Actual365Fixed(),
    )


@pytest.fixture
def upstream(index):
    return make_upstream(index)


@pytest.fixture
def atm_curve(evaluation_date):
    return TermVolatilityCurve(
        evaluation_date,
        ql.TARGET(),
        ql.Following,
        [ql.Period(n, ql.Years) for n in (1, 2, 3, 5)],
        [0.21, 0.215, 0.21, 0.20],
        ql.Actual365Fixed(),
    )


@pytest.fixture
def grid_factory(index):
    """Build upstream grids with custom vols or day counters."""
    def build(vols=None, day_counter=None):
        return make_upstream(index, vols, day_counter)
    return build
