import abc


class LazyObject(abc.ABC):
    """Cache-with-generation-counter base class.

    Subclasses list the objects they depend on in ``_dependencies()``; each
    must expose an integer ``version`` that never decreases. ``calculate()``
    compares the current stamps with the ones stored after the last successful
    run and calls ``perform_calculations()`` only when they differ.

    A failed calculation leaves the object stale, so the next read retries.
    """

    def __init__(self):
        self._generation = 0
        self._seen = None

    @abc.abstractmethod
    def _dependencies(self):
        raise NotImplementedError

    @abc.abstractmethod
    def perform_calculations(self):
        raise NotImplementedError

    def _sync(self):
        """Hook run before every stamp; may call ``update()``."""

    def _stamp(self):
        self._sync()
        return (self._generation,) + tuple(d.version for d in self._dependencies())

    @property
    def version(self):
        """Own generation plus the versions of every dependency."""
        self._sync()
        return self._generation + sum(d.version for d in self._dependencies())

    def is_calculated(self):
        return self._seen is not None and self._seen == self._stamp()

    def update(self):
        """Invalidate explicitly (for changes no version stamp can see)."""
        self._generation += 1

    def calculate(self):
        stamp = self._stamp()
        if self._seen == stamp:
            return
        self._seen = None
        self.perform_calculations()
        self._seen = stamp
