"""
CLIConfig holds everything one flightclub invocation needs, populated by the
command line parser. Environment fallbacks:

    FLIGHT_CLUB_TOKEN     bearer token when --token is not given
    FLIGHT_CLUB_HEADERS   extra headers, "key=value;key2=value2"

Example:
{
    'url': 'https://iox.example.com',
    'db': 'telemetry',
    'token': 's3cr3t',
    'headers': {'x-tenant': 'acme'},
    'gen_trace_id': False,
    'skip_warmup': False,
    'output': None,
}
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional

from core.errors import ConfigurationError

TOKEN_ENV = "FLIGHT_CLUB_TOKEN"
HEADERS_ENV = "FLIGHT_CLUB_HEADERS"


@dataclass
class CLIConfig:
    url: str
    db: str
    token: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    gen_trace_id: bool = False
    skip_warmup: bool = False
    output: Optional[Path] = None


def _split_pair(pair: str) -> tuple:
    key, sep, value = pair.partition("=")
    if not sep or not key.strip():
        raise ConfigurationError(f"invalid header {pair!r}, expected key=value")
    return key.strip(), value


def parse_headers(values: Optional[Iterable[str]] = None,
                  env_value: Optional[str] = None) -> Dict[str, str]:
    """Merge key=value pairs from the environment and from the command line.

    Command line pairs override environment pairs with the same key.
    """
    headers: Dict[str, str] = {}
    if env_value:
        for pair in env_value.split(";"):
            if pair.strip():
                key, value = _split_pair(pair)
                headers[key] = value
    for pair in values or []:
        key, value = _split_pair(pair)
        headers[key] = value
    return headers
