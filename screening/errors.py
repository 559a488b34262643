"""Exceptions raised by the screening pipeline."""


class ScreeningError(Exception):
    """Base class for screening pipeline errors."""


class PersistenceError(ScreeningError):
    """The application store could not read or write screening state."""
