# src/rhosocial/sphinxql/errors.py
"""Exceptions raised by the SphinxQL connection layer."""

from typing import Optional


class DatabaseError(Exception):
    """Base class for all errors raised by this package."""
    pass


class ConnectionError(DatabaseError):
    """Raised on connection misuse or on any failure reported by the native client.

    Errors that originate in the native client carry the client's error code
    and description, both as attributes and in the message::

        Unable to connect. Error 2003: Can't connect to MySQL server on '127.0.0.1'

    Errors raised for misuse (querying a closed connection, for example)
    carry the plain message only, and ``code``/``description`` are None.
    """

    def __init__(self, message: str, code: Optional[int] = None, description: Optional[str] = None):
        self.message = message
        self.code = code
        self.description = description
        if code is None:
            super().__init__(message)
        else:
            super().__init__(f"{message}. Error {code}: {description}")

    @classmethod
    def from_native(cls, message: str, error: BaseException) -> 'ConnectionError':
        """Build a ConnectionError from a PyMySQL exception.

        PyMySQL errors carry ``(errno, errmsg)`` in ``args``. Errors raised by the
        driver itself without a server error number report code 0, which is what
        the client library reports when no error number is available.

        Args:
            message: What was being attempted
            error: The driver exception

        Returns:
            ConnectionError: Error with the native code and description attached
        """
        args = getattr(error, 'args', ())
        if len(args) >= 2 and isinstance(args[0], int):
            return cls(message, args[0], str(args[1]))
        if len(args) == 1 and isinstance(args[0], int):
            return cls(message, args[0], "")
        return cls(message, 0, str(error))
