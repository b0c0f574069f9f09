from typing import Optional


class FlightClubError(Exception):
    """Base class for errors raised by flightclub itself."""


class ConfigurationError(FlightClubError):
    """Invalid command line configuration, raised before any network call."""


class QueryError(FlightClubError):
    """
    Wraps a failure while fetching query results.
    Attributes:
        message (str): A human-readable error message.
        original_exception (Exception, optional): The exception that triggered this one.
    """

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def __str__(self):
        if self.original_exception:
            return f"{self.message} (Caused by: {self.original_exception})"
        return self.message

    def __repr__(self):
        return f"{self.__class__.__name__}(message={self.message!r}, original_exception={self.original_exception!r})"


class UnsupportedTypeError(FlightClubError):
    """Raised when a column holds an Arrow type that has no text rendering."""

    def __init__(self, type_name: str):
        super().__init__(f"unsupported arrow type {type_name!r}")
        self.type_name = type_name
