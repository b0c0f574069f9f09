"""Text rendering of single Arrow cells.

Every supported column type maps onto one ColumnKind member and every member
has exactly one rendering rule in _RENDERERS. Supporting a new Arrow type
means adding a member and a rule; anything else fails with
UnsupportedTypeError.
"""
from enum import Enum
from typing import Callable, Dict, Tuple

import numpy as np
import pyarrow as pa

from core.errors import UnsupportedTypeError
from core.timings import format_duration

NULL = "NULL"

_NANOS_PER_DAY = 86_400 * 10 ** 9
_UNIT_NANOS = {"s": 10 ** 9, "ms": 10 ** 6, "us": 10 ** 3, "ns": 1}


class ColumnKind(Enum):
    TIMESTAMP = "timestamp"
    TIME32 = "time32"
    TIME64 = "time64"
    DATE32 = "date32"
    DATE64 = "date64"
    DURATION = "duration"
    FLOAT16 = "halffloat"
    FLOAT32 = "float"
    FLOAT64 = "double"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    STRING = "string"
    BINARY = "binary"
    BOOLEAN = "bool"


_TYPE_CHECKS = [
    (pa.types.is_timestamp, ColumnKind.TIMESTAMP),
    (pa.types.is_time32, ColumnKind.TIME32),
    (pa.types.is_time64, ColumnKind.TIME64),
    (pa.types.is_date32, ColumnKind.DATE32),
    (pa.types.is_date64, ColumnKind.DATE64),
    (pa.types.is_duration, ColumnKind.DURATION),
    (pa.types.is_float16, ColumnKind.FLOAT16),
    (pa.types.is_float32, ColumnKind.FLOAT32),
    (pa.types.is_float64, ColumnKind.FLOAT64),
    (pa.types.is_uint8, ColumnKind.UINT8),
    (pa.types.is_uint16, ColumnKind.UINT16),
    (pa.types.is_uint32, ColumnKind.UINT32),
    (pa.types.is_uint64, ColumnKind.UINT64),
    (pa.types.is_int8, ColumnKind.INT8),
    (pa.types.is_int16, ColumnKind.INT16),
    (pa.types.is_int32, ColumnKind.INT32),
    (pa.types.is_int64, ColumnKind.INT64),
    # is_string / is_binary only match the 32-bit offset variants, large_* stay unsupported
    (pa.types.is_string, ColumnKind.STRING),
    (pa.types.is_binary, ColumnKind.BINARY),
    (pa.types.is_boolean, ColumnKind.BOOLEAN),
]


def column_kind(data_type: pa.DataType) -> ColumnKind:
    """Classify an Arrow type, raising UnsupportedTypeError for anything unknown"""
    for check, kind in _TYPE_CHECKS:
        if check(data_type):
            return kind
    raise UnsupportedTypeError(str(data_type))


def civil_from_days(days: int) -> Tuple[int, int, int]:
    """Proleptic Gregorian (year, month, day) for a day count since 1970-01-01.

    Not bounded to datetime's year 1..9999 range; year 0 and negative years are astronomical.
    """
    z = days + 719468
    era = z // 146097
    doe = z - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


def format_timestamp(nanoseconds: int) -> str:
    """Format nanoseconds since the epoch as YYYY-MM-DD HH:MM:SS[.fraction] in UTC."""
    seconds, nanos = divmod(nanoseconds, 10 ** 9)
    days, seconds = divmod(seconds, 86_400)
    year, month, day = civil_from_days(days)
    hour, rest = divmod(seconds, 3600)
    minute, second = divmod(rest, 60)
    sign = "-" if year < 0 else ""
    out = (f"{sign}{abs(year):04d}-{month:02d}-{day:02d} "
           f"{hour:02d}:{minute:02d}:{second:02d}")
    if nanos:
        out += "." + f"{nanos:09d}".rstrip("0")
    return out


def _raw(column: pa.Array, row: int, width: pa.DataType) -> int:
    # reinterpret the temporal storage as its plain integer representation
    return column.view(width)[row].as_py()


def _render_unit_time(column: pa.Array, row: int) -> str:
    width = pa.int32() if pa.types.is_time32(column.type) else pa.int64()
    return format_timestamp(_raw(column, row, width) * _UNIT_NANOS[column.type.unit])


def _render_date32(column: pa.Array, row: int) -> str:
    return format_timestamp(_raw(column, row, pa.int32()) * _NANOS_PER_DAY)


def _render_date64(column: pa.Array, row: int) -> str:
    return format_timestamp(_raw(column, row, pa.int64()) * _UNIT_NANOS["ms"])


def _render_duration(column: pa.Array, row: int) -> str:
    return format_duration(_raw(column, row, pa.int64()) * _UNIT_NANOS[column.type.unit])


def _render_float16(column: pa.Array, row: int) -> str:
    return str(np.float16(column[row].as_py()))


def _render_float32(column: pa.Array, row: int) -> str:
    # shortest representation that round-trips through float32
    return str(np.float32(column[row].as_py()))


def _render_plain(column: pa.Array, row: int) -> str:
    return str(column[row].as_py())


def _render_binary(column: pa.Array, row: int) -> str:
    return repr(column[row].as_py())


def _render_bool(column: pa.Array, row: int) -> str:
    return "t" if column[row].as_py() else "f"


_RENDERERS: Dict[ColumnKind, Callable[[pa.Array, int], str]] = {
    ColumnKind.TIMESTAMP: _render_unit_time,
    ColumnKind.TIME32: _render_unit_time,
    ColumnKind.TIME64: _render_unit_time,
    ColumnKind.DATE32: _render_date32,
    ColumnKind.DATE64: _render_date64,
    ColumnKind.DURATION: _render_duration,
    ColumnKind.FLOAT16: _render_float16,
    ColumnKind.FLOAT32: _render_float32,
    ColumnKind.FLOAT64: _render_plain,
    ColumnKind.UINT8: _render_plain,
    ColumnKind.UINT16: _render_plain,
    ColumnKind.UINT32: _render_plain,
    ColumnKind.UINT64: _render_plain,
    ColumnKind.INT8: _render_plain,
    ColumnKind.INT16: _render_plain,
    ColumnKind.INT32: _render_plain,
    ColumnKind.INT64: _render_plain,
    ColumnKind.STRING: _render_plain,
    ColumnKind.BINARY: _render_binary,
    ColumnKind.BOOLEAN: _render_bool,
}


def render_value(column: pa.Array, row: int) -> str:
    """Render the cell at ``row`` of ``column`` as display text."""
    if not column[row].is_valid:
        return NULL
    return _RENDERERS[column_kind(column.type)](column, row)
