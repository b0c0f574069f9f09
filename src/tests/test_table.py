import io
import os
from decimal import Decimal
from unittest.mock import patch

import pyarrow as pa
import pytest

from core.errors import UnsupportedTypeError
from rendering.table import TablePrinter, print_streams, should_show_footer, terminal_height


def cells(text):
    """Split the table lines that carry column separators into stripped cells"""
    return [[c.strip() for c in line.split("|")] for line in text.splitlines() if "|" in line]


@pytest.fixture
def batch():
    return pa.record_batch({
        'name': pa.array(['a', 'b'], pa.string()),
        'value': pa.array([1, 2], pa.int32()),
    })


class TestFooterHeuristic:
    def test_footer_at_boundary(self):
        assert should_show_footer(2, 6) is True
        assert should_show_footer(2, 7) is False
        assert should_show_footer(10, 6) is True

    def test_unknown_height_never_shows_footer(self):
        assert should_show_footer(1000, None) is False

    def test_terminal_height_of_non_terminal(self):
        assert terminal_height(io.StringIO()) is None

    def test_terminal_height_of_terminal(self):
        with patch("rendering.table.os.get_terminal_size", return_value=os.terminal_size((120, 40))):
            assert terminal_height(io.StringIO()) is None

            class FakeTTY(io.StringIO):
                def fileno(self):
                    return 1

            assert terminal_height(FakeTTY()) == 40


class TestTablePrinter:
    def test_header_and_rows(self, batch):
        out = io.StringIO()
        with TablePrinter(out, height=100) as table:
            table.add_batch(batch)

        text = out.getvalue()
        assert "name | value" in text
        assert cells(text) == [["name", "value"], ["a", "1"], ["b", "2"]]
        assert table.row_count == 2

    def test_footer_repeats_header(self, batch):
        out = io.StringIO()
        with TablePrinter(out, height=6) as table:
            table.add_batch(batch)

        assert cells(out.getvalue()) == [["name", "value"], ["a", "1"], ["b", "2"], ["name", "value"]]

    def test_no_footer_below_threshold(self, batch):
        out = io.StringIO()
        with TablePrinter(out, height=7) as table:
            table.add_batch(batch)

        assert cells(out.getvalue()) == [["name", "value"], ["a", "1"], ["b", "2"]]

    def test_no_footer_without_terminal(self, batch):
        out = io.StringIO()
        with TablePrinter(out) as table:
            table.add_batch(batch)

        assert table.height is None
        assert out.getvalue().count("name | value") == 1

    def test_no_batches_renders_nothing(self):
        out = io.StringIO()
        with TablePrinter(out, height=100):
            pass
        assert out.getvalue() == ""

    def test_empty_batch_does_not_fix_header(self, batch):
        empty = pa.record_batch({'other': pa.array([], pa.int64())})
        out = io.StringIO()
        with TablePrinter(out, height=100) as table:
            table.add_batch(empty)
            table.add_batch(batch)

        assert cells(out.getvalue())[0] == ["name", "value"]

    def test_renders_once(self, batch):
        out = io.StringIO()
        with TablePrinter(out, height=100) as table:
            table.add_batch(batch)
            table.render()

        assert out.getvalue().count("name | value") == 1

    def test_long_values_wrap(self):
        long_value = "x" * 200
        out = io.StringIO()
        with TablePrinter(out, height=100, width=80) as table:
            table.add_batch(pa.record_batch({'long': pa.array([long_value])}))

        lines = [line.strip() for line in out.getvalue().splitlines()]
        # header, rule, then the wrapped value
        body = lines[2:]
        assert len(body) > 1
        assert "".join(body) == long_value

    def test_flushes_gathered_rows_when_a_batch_fails(self, batch):
        bad = pa.record_batch({
            'name': pa.array(['c'], pa.string()),
            'value': pa.array([Decimal("1")], pa.decimal128(3, 0)),
        })
        out = io.StringIO()
        with pytest.raises(UnsupportedTypeError):
            with TablePrinter(out, height=100) as table:
                table.add_batch(batch)
                table.add_batch(bad)

        # the failing row is not rendered at all, not even its first cell
        assert cells(out.getvalue()) == [["name", "value"], ["a", "1"], ["b", "2"]]

    def test_custom_renderer(self, batch):
        out = io.StringIO()
        with TablePrinter(out, renderer=lambda column, row: "?", height=100) as table:
            table.add_batch(batch)

        assert cells(out.getvalue())[1:] == [["?", "?"], ["?", "?"]]

    def test_cell_text_is_not_markup(self):
        out = io.StringIO()
        with TablePrinter(out, height=100) as table:
            table.add_batch(pa.record_batch({'a': pa.array(['[bold]x[/bold]']), 'b': pa.array([':smile:'])}))

        assert cells(out.getvalue())[1] == ["[bold]x[/bold]", ":smile:"]


def test_print_streams_keeps_streaming_order(batch):
    second = pa.record_batch({
        'name': pa.array(['c'], pa.string()),
        'value': pa.array([3], pa.int32()),
    })
    out = io.StringIO()

    count = print_streams(out, [[batch], [], [second]], height=100)

    assert count == 3
    assert cells(out.getvalue()) == [["name", "value"], ["a", "1"], ["b", "2"], ["c", "3"]]
