import logging
import os
from typing import Callable, Iterable, List, Optional, TextIO

import pyarrow as pa
from rich.box import Box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from rendering.values import render_value

logger = logging.getLogger(__name__)

# Lines the table adds around its rows: header, header rule, footer rule, footer.
TABLE_OVERHEAD = 4

# Column separators and a rule under the header, no outer border.
PLAIN_BOX = Box(
    "    \n"
    "  | \n"
    " -+ \n"
    "  | \n"
    " -+ \n"
    " -+ \n"
    "  | \n"
    "    \n",
    ascii=True,
)


def terminal_height(writer: TextIO) -> Optional[int]:
    """Height of the terminal behind ``writer``, or None when it is not a terminal."""
    try:
        return os.get_terminal_size(writer.fileno()).lines
    except (AttributeError, OSError, ValueError):
        return None


def should_show_footer(row_count: int, height: Optional[int]) -> bool:
    """Repeat the header below the rows once the table no longer fits on screen.

    An unknown height (output redirected to a file or pipe) never shows the footer.
    """
    if height is None:
        return False
    return row_count + TABLE_OVERHEAD >= height


class TablePrinter:
    """Collects record batches and renders them as one text table.

    Use as a context manager: the table is rendered exactly once on exit,
    also when a batch fails half way, so the rows gathered so far are not lost.
    """

    def __init__(self, writer: TextIO,
                 renderer: Callable[[pa.Array, int], str] = render_value,
                 height: Optional[int] = None, width: Optional[int] = None) -> None:
        self.writer = writer
        self.width = width
        self.renderer = renderer
        self.height = height if height is not None else terminal_height(writer)
        self.header: List[str] = []
        self.rows: List[List[str]] = []
        self._rendered = False

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def __enter__(self) -> "TablePrinter":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.render()

    def add_batch(self, batch: pa.RecordBatch) -> None:
        """Append every row of ``batch``; the first non-empty batch fixes the header"""
        if batch.num_rows == 0:
            return
        if not self.header:
            self.header = list(batch.schema.names)

        columns = batch.columns
        for r in range(batch.num_rows):
            # build the whole row first so a failing cell never leaves half a row behind
            row = [self.renderer(column, r) for column in columns]
            self.rows.append(row)

    def render(self) -> None:
        if self._rendered:
            return
        self._rendered = True
        if not self.header:
            logger.debug("No rows received, nothing to render")
            return

        footer = should_show_footer(self.row_count, self.height)
        table = Table(
            box=PLAIN_BOX,
            show_edge=False,
            show_footer=footer,
            header_style="",
            footer_style="",
        )
        for name in self.header:
            table.add_column(Text(name), footer=Text(name) if footer else "",
                             justify="left", overflow="fold")
        for row in self.rows:
            table.add_row(*[Text(value) for value in row])

        console = Console(file=self.writer, width=self.width, highlight=False, emoji=False)
        console.print(table)
        logger.debug(f"Rendered {self.row_count} rows (footer={footer})")


def print_streams(writer: TextIO, streams: Iterable[Iterable[pa.RecordBatch]],
                  height: Optional[int] = None) -> int:
    """Render every batch of every stream into a single table, returning the row count"""
    with TablePrinter(writer, height=height) as table:
        for stream in streams:
            for batch in stream:
                table.add_batch(batch)
    return table.row_count
