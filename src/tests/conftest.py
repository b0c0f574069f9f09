import threading
from types import SimpleNamespace

import pyarrow as pa
import pyarrow.flight as flight
import pytest
from flightsql import flightsql_pb2
from google.protobuf import any_pb2


class HeaderRecorder(flight.ServerMiddlewareFactory):
    """Keeps the request headers of every call the server receives"""

    def __init__(self):
        super().__init__()
        self.calls = []

    def start_call(self, info, headers):
        self.calls.append(headers)
        return None


class HandshakeRequired(flight.ServerAuthHandler):
    """Rejects every call that did not go through a Flight handshake first"""

    def __init__(self):
        super().__init__()
        self.handshakes = 0

    def authenticate(self, outgoing, incoming):
        self.handshakes += 1
        raise flight.FlightUnauthenticatedError("handshake not supported here")

    def is_valid(self, token):
        if not token:
            raise flight.FlightUnauthenticatedError("handshake required")
        return token


class FakeFlightSqlServer(flight.FlightServerBase):
    """Answers CommandGetCatalogs and CommandStatementQuery with a fixed table"""

    def __init__(self, table: pa.Table, location: str = "grpc://127.0.0.1:0", auth_handler=None):
        self.recorder = HeaderRecorder()
        super().__init__(location, auth_handler=auth_handler, middleware={"headers": self.recorder})
        self.table = table
        self.queries = []
        self.catalog_requests = 0

    def get_flight_info(self, context, descriptor):
        command = any_pb2.Any()
        command.ParseFromString(descriptor.command)

        if command.Is(flightsql_pb2.CommandGetCatalogs.DESCRIPTOR):
            self.catalog_requests += 1
            schema = pa.schema([("catalog_name", pa.string())])
            return flight.FlightInfo(schema, descriptor, [], -1, -1)

        if command.Is(flightsql_pb2.CommandStatementQuery.DESCRIPTOR):
            statement = flightsql_pb2.CommandStatementQuery()
            command.Unpack(statement)
            self.queries.append(statement.query)
            if statement.query.startswith("FAIL"):
                raise flight.FlightServerError("error while planning query")
            endpoint = flight.FlightEndpoint(b"results", [])
            return flight.FlightInfo(self.table.schema, descriptor, [endpoint],
                                     self.table.num_rows, -1)

        raise flight.FlightServerError(f"unknown command {command.type_url}")

    def do_get(self, context, ticket):
        return flight.RecordBatchStream(self.table)


@pytest.fixture
def sample_table():
    return pa.table({
        'name': pa.array(['a', 'b'], pa.string()),
        'value': pa.array([1, 2], pa.int32()),
    })


@pytest.fixture
def flight_sql_server(sample_table):
    server = FakeFlightSqlServer(sample_table)

    # Run the server in a background thread
    server_thread = threading.Thread(target=server.serve)
    server_thread.daemon = True
    server_thread.start()

    yield server

    server.shutdown()
    server_thread.join()


@pytest.fixture
def handshake_flight_sql_server(sample_table):
    auth = HandshakeRequired()
    server = FakeFlightSqlServer(sample_table, auth_handler=auth)
    server.auth = auth
    server_thread = threading.Thread(target=server.serve)
    server_thread.daemon = True
    server_thread.start()

    yield server

    server.shutdown()
    server_thread.join()


class FakeReader:
    """Stands in for a FlightStreamReader"""

    def __init__(self, batches, error=None):
        self.batches = list(batches)
        self.error = error
        self.cancelled = False

    def read_chunk(self):
        if self.batches:
            return SimpleNamespace(data=self.batches.pop(0), app_metadata=None)
        if self.error is not None:
            raise self.error
        raise StopIteration

    def cancel(self):
        self.cancelled = True


@pytest.fixture
def fake_reader():
    return FakeReader


@pytest.fixture
def make_flight_info():
    def make(*tickets):
        return SimpleNamespace(endpoints=[SimpleNamespace(ticket=t) for t in tickets])
    return make
