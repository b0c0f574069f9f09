from core.config import CLIConfig, parse_headers
from core.errors import ConfigurationError, FlightClubError, QueryError, UnsupportedTypeError
from core.timings import Timings, format_duration

__all__ = [
    "CLIConfig",
    "parse_headers",
    "ConfigurationError",
    "FlightClubError",
    "QueryError",
    "UnsupportedTypeError",
    "Timings",
    "format_duration",
]
