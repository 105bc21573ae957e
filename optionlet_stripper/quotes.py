from .errors import ResultUnavailableError


class MarketQuote:
    """A live scalar market value with a monotonically increasing version.

    Dependents remember the last version they saw and recompute when it moves;
    there are no observer callbacks.
    """

    def __init__(self, value=None):
        self._value = None if value is None else float(value)
        self._version = 0

    @property
    def version(self):
        return self._version

    @property
    def value(self):
        if self._value is None:
            raise ResultUnavailableError("quote has no value")
        return self._value

    def is_valid(self):
        return self._value is not None

    def set_value(self, value):
        """Set a new value; the version only moves when the value changes."""
        value = None if value is None else float(value)
        if value != self._value:
            self._value = value
            self._version += 1
        return self._value

    def reset(self):
        self.set_value(None)

    def __repr__(self):
        return f"MarketQuote({self._value!r}, version={self._version})"
