import logging
import time
from contextlib import closing
from typing import Iterator, TextIO

import pyarrow as pa
import pyarrow.flight as flight

from core.errors import QueryError
from core.timings import Timings
from rendering.table import print_streams

logger = logging.getLogger(__name__)


def read_batches(reader) -> Iterator[pa.RecordBatch]:
    """Yield every batch of a DoGet stream until the server signals end of stream.

    End of stream is success; any other error propagates. A stream abandoned
    before its end is cancelled.
    """
    finished = False
    try:
        while True:
            try:
                chunk = reader.read_chunk()
            except StopIteration:
                finished = True
                return
            # a chunk may carry app metadata only
            if chunk.data is not None:
                yield chunk.data
    finally:
        if not finished:
            reader.cancel()


class QueryExecutor:
    """Runs one query against a Flight SQL client and prints its results as a table."""

    def __init__(self, client) -> None:
        self.client = client

    def warmup(self) -> int:
        # the first request on a fresh connection pays for the connection setup,
        # issue a throwaway one so it does not skew the measured phases
        start = time.perf_counter_ns()
        self.client.get_catalogs()
        elapsed = time.perf_counter_ns() - start
        logger.debug(f"Warmup took {elapsed}ns")
        return elapsed

    def execute(self, query: str):
        start = time.perf_counter_ns()
        info = self.client.execute(query)
        elapsed = time.perf_counter_ns() - start
        logger.debug(f"Execute took {elapsed}ns, {len(info.endpoints)} endpoint(s)")
        return info, elapsed

    def open_streams(self, info: flight.FlightInfo, timings: Timings) -> Iterator[Iterator[pa.RecordBatch]]:
        """Redeem each endpoint ticket in order, adding the time spent opening it to ``timings``"""
        for i, endpoint in enumerate(info.endpoints):
            start = time.perf_counter_ns()
            try:
                reader = self.client.do_get(endpoint.ticket)
            except (flight.FlightError, pa.ArrowException) as e:
                raise QueryError("getting ticket failed", e) from e
            timings.do_get += time.perf_counter_ns() - start
            logger.debug(f"Opened stream for endpoint {i}")

            with closing(read_batches(reader)) as batches:
                yield batches

    def fetch(self, info: flight.FlightInfo, writer: TextIO, height=None) -> Timings:
        """Stream every endpoint of ``info`` into a single table"""
        timings = Timings()
        with closing(self.open_streams(info, timings)) as streams:
            rows = print_streams(writer, streams, height=height)
        logger.debug(f"Fetched {rows} rows from {len(info.endpoints)} endpoint(s)")
        return timings

    def run(self, query: str, writer: TextIO, skip_warmup: bool = False, height=None) -> Timings:
        timings = Timings()
        if not skip_warmup:
            timings.warmup = self.warmup()

        info, timings.execute = self.execute(query)
        return timings.add(self.fetch(info, writer, height=height))
