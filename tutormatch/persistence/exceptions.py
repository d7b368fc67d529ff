"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can catch
database problems with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""


class DatabaseConnectionError(PersistenceError):
    """Database initialization or connection failed."""


class RecordNotFoundError(PersistenceError):
    """A record that must exist was not found.

    Optional lookups return None instead.
    """


class PersistFailure(PersistenceError):
    """A bulk notification write failed as a whole.

    Run-level: nothing from the batch is stored and no email is sent for it.
    """
