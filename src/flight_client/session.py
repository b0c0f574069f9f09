import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

import pyarrow.flight as flight
from pyarrow.flight import Location

from core.config import CLIConfig
from core.errors import ConfigurationError

logger = logging.getLogger(__name__)

TRACE_ID_HEADER = "influx-trace-id"
TRACE_ID_HEADER_2 = "uber-trace-id"
TRACE_ID_SUFFIX = "1112223334445:0:1"

DEFAULT_PORTS = {"http": 80, "https": 443}


class Transport(Enum):
    INSECURE = "insecure"
    TLS = "tls"


@dataclass(frozen=True)
class EndpointCredentials:
    """Where to connect and how the channel is secured"""
    host: str
    port: int
    transport: Transport

    @property
    def address(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"

    @property
    def location(self) -> Location:
        if self.transport is Transport.TLS:
            return Location.for_grpc_tls(self.host, self.port)
        return Location.for_grpc_tcp(self.host, self.port)


def parse_url(url: str) -> EndpointCredentials:
    """Resolve ``scheme://host[:port]`` into an address and a transport.

    http maps to a plaintext channel on port 80 by default, https to TLS with the
    default trust store on port 443. Any other scheme is a configuration error.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme == "http":
        transport = Transport.INSECURE
    elif scheme == "https":
        transport = Transport.TLS
    else:
        raise ConfigurationError(f"unhandled scheme {parts.scheme!r} in url {url!r}")

    if not parts.hostname:
        raise ConfigurationError(f"missing host in url {url!r}")
    try:
        port = parts.port
    except ValueError as e:
        raise ConfigurationError(f"invalid port in url {url!r}: {e}") from e

    if port is None:
        port = DEFAULT_PORTS[scheme]
    credentials = EndpointCredentials(parts.hostname, port, transport)
    logger.debug(f"Resolved {url} to {credentials.address} ({transport.value})")
    return credentials


def generate_trace_id(rng: Optional[random.Random] = None) -> str:
    """8 random bytes, hex encoded. The generator belongs to this call only."""
    rng = rng or random.Random()
    return rng.randbytes(8).hex()


@dataclass(frozen=True)
class SessionContext:
    """Outgoing metadata sent with every call of one query invocation"""
    database: str
    token: str
    headers: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    trace_id: Optional[str] = None

    @property
    def trace_header(self) -> Optional[str]:
        if self.trace_id is None:
            return None
        return f"{self.trace_id}:{TRACE_ID_SUFFIX}"

    @property
    def metadata(self) -> List[Tuple[str, str]]:
        pairs = [
            ("database", self.database),
            # the bearer token is sent as a plain header, servers do not accept flight's auth-token
            ("authorization", f"Token {self.token}"),
            # enables special queries
            ("iox-debug", "true"),
        ]
        pairs.extend((key.lower(), value) for key, value in self.headers)
        if self.trace_id is not None:
            pairs.append((TRACE_ID_HEADER, self.trace_header))
            pairs.append((TRACE_ID_HEADER_2, self.trace_header))
        return pairs

    def call_options(self) -> flight.FlightCallOptions:
        return flight.FlightCallOptions(
            headers=[(key.encode(), value.encode()) for key, value in self.metadata]
        )


def build_session(config: CLIConfig, trace_id: Optional[str] = None) -> SessionContext:
    session = SessionContext(
        database=config.db,
        token=config.token,
        headers=tuple(config.headers.items()),
        trace_id=trace_id,
    )
    logger.debug(f"Session headers: {[key for key, _ in session.metadata]}")
    return session

