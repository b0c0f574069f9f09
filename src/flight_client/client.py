import logging

import pyarrow.flight as flight
from flightsql import flightsql_pb2
from google.protobuf import any_pb2

from flight_client.session import EndpointCredentials, SessionContext

logger = logging.getLogger(__name__)


def command_descriptor(command) -> flight.FlightDescriptor:
    """Wrap a Flight SQL command message in the descriptor GetFlightInfo expects"""
    wrapped = any_pb2.Any()
    wrapped.Pack(command)
    return flight.FlightDescriptor.for_command(wrapped.SerializeToString())


class FlightSqlClient:
    """Minimal Arrow Flight SQL client sending the session metadata on every call"""

    def __init__(self, credentials: EndpointCredentials, session: SessionContext):
        self.credentials = credentials
        self.session = session
        self.client = flight.FlightClient(credentials.location)
        logger.debug(f"Connecting to {credentials.address} ({credentials.transport.value})")

    def __enter__(self) -> "FlightSqlClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def get_catalogs(self) -> flight.FlightInfo:
        """List catalogs, used as a cheap warmup request"""
        return self.client.get_flight_info(
            command_descriptor(flightsql_pb2.CommandGetCatalogs()),
            self.session.call_options(),
        )

    def execute(self, query: str) -> flight.FlightInfo:
        """Plan a SQL query and return the endpoints holding its results"""
        return self.client.get_flight_info(
            command_descriptor(flightsql_pb2.CommandStatementQuery(query=query)),
            self.session.call_options(),
        )

    def do_get(self, ticket: flight.Ticket) -> flight.FlightStreamReader:
        """Redeem an endpoint ticket for its record batch stream"""
        return self.client.do_get(ticket, self.session.call_options())
