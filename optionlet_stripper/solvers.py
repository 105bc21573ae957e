import logging

from scipy import optimize

from .errors import ConvergenceFailure, InvalidInputError

logger = logging.getLogger(__name__)


class _BudgetExhausted(Exception):
    pass


class BrentSolver:
    """Bracketed 1-D root finder (Brent's method) with an evaluation budget.

    ``solve`` evaluates both ends of the bracket first and fails fast when
    they do not straddle a sign change; the search itself is delegated to
    ``scipy.optimize.brentq`` on the half of the bracket that the guess
    leaves the root in. Each distinct point counts once against
    ``max_evaluations``: the bracket ends and the guess are cached, so
    brentq re-reading them is free.
    """

    def __init__(self, max_evaluations=100):
        self.max_evaluations = int(max_evaluations)
        self.evaluations = 0

    def set_max_evaluations(self, n):
        self.max_evaluations = int(n)

    def solve(self, f, accuracy, guess, x_min, x_max):
        if not x_min < x_max:
            raise InvalidInputError(f"invalid range: x_min ({x_min}) >= x_max ({x_max})")
        if not x_min <= guess <= x_max:
            raise InvalidInputError(f"guess ({guess}) outside range [{x_min}, {x_max}]")
        if accuracy <= 0.0:
            raise InvalidInputError(f"accuracy ({accuracy}) must be positive")

        self.evaluations = 0
        known = {}

        def counted(x):
            if x in known:
                return known[x]
            if self.evaluations >= self.max_evaluations:
                raise _BudgetExhausted()
            self.evaluations += 1
            known[x] = fx = f(x)
            return fx

        try:
            f_min = counted(x_min)
            if f_min == 0.0:
                return x_min
            f_max = counted(x_max)
            if f_max == 0.0:
                return x_max
            if f_min * f_max > 0.0:
                raise ConvergenceFailure(
                    f"root not bracketed: f[{x_min}, {x_max}] -> [{f_min:.6e}, {f_max:.6e}]",
                    evaluations=self.evaluations,
                )
            # the guess is the first iterate and narrows the bracket handed to brentq
            f_guess = counted(guess)
            if f_guess == 0.0:
                return float(guess)
            lo, hi = (x_min, guess) if f_min * f_guess < 0.0 else (guess, x_max)
            root, info = optimize.brentq(
                counted, lo, hi, xtol=accuracy, maxiter=self.max_evaluations,
                full_output=True, disp=False,
            )
        except _BudgetExhausted:
            raise ConvergenceFailure(
                f"maximum number of function evaluations ({self.max_evaluations}) exceeded",
                evaluations=self.evaluations,
            ) from None

        if not info.converged:
            raise ConvergenceFailure(
                f"Brent solver did not converge: {info.flag}", evaluations=self.evaluations
            )
        logger.debug("root %.8f found in %d evaluations", root, self.evaluations)
        return float(root)
