import logging

from .engines import make_engine
from .optionlets import SpreadedOptionletVolatility, StrippedOptionletAdapter
from .quotes import MarketQuote
from .solvers import BrentSolver

logger = logging.getLogger(__name__)


class SpreadObjectiveFunction:
    """Pricing error of a cap under ``base surface + spread`` volatilities.

    The base surface is the upstream stripper seen through a
    ``StrippedOptionletAdapter``; the spread is a single quote shared by
    every caplet. The instance is callable: ``f(spread) = npv - target``.

    Notes
    -----
    The cap's pricing engine is replaced at construction; the cap is owned by
    the caller, who should not price it elsewhere while solving.
    """

    def __init__(self, stripper, cap, target_value):
        self.cap = cap
        self._target_value = float(target_value)

        # implausible value, so that the first call always reprices
        self._spread_quote = MarketQuote(-1.0)

        spreaded = SpreadedOptionletVolatility(StrippedOptionletAdapter(stripper), self._spread_quote)
        engine = make_engine(stripper.volatility_type, spreaded, displacement=stripper.displacement)
        cap.set_pricing_engine(engine)

    @property
    def spread(self):
        return self._spread_quote.value

    @property
    def target_value(self):
        return self._target_value

    def __call__(self, spread):
        if spread != self._spread_quote.value:
            self._spread_quote.set_value(spread)
        return self.cap.npv() - self._target_value


def implied_spread(stripper, cap, target_value, cfg):
    """Solve the volatility spread repricing ``cap`` to ``target_value``.

    Raises
    ------
    ConvergenceFailure
        If the bracket in ``cfg`` does not contain the spread or the
        evaluation budget runs out.
    """
    f = SpreadObjectiveFunction(stripper, cap, target_value)
    solver = BrentSolver(cfg.max_evaluations)
    root = solver.solve(f, cfg.accuracy, cfg.spread_guess, cfg.min_spread, cfg.max_spread)
    logger.debug("spread %.6f after %d evaluations", root, solver.evaluations)
    return root
