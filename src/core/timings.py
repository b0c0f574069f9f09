from dataclasses import dataclass

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND


def _fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10 ** precision)
    digits = f"{frac:0{precision}d}".rstrip("0")
    return f"{whole}.{digits}" if digits else str(whole)


def format_duration(nanoseconds: int) -> str:
    """Render a duration the way Go's time.Duration prints, e.g. 1.5s, 250ms, 1h2m0.5s."""
    sign = "-" if nanoseconds < 0 else ""
    u = abs(nanoseconds)

    if u < SECOND:
        if u == 0:
            return "0s"
        if u < MICROSECOND:
            return f"{sign}{u}ns"
        if u < MILLISECOND:
            return f"{sign}{_fraction(u, 3)}µs"
        return f"{sign}{_fraction(u, 6)}ms"

    total_seconds, frac = divmod(u, SECOND)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    out = _fraction(seconds * SECOND + frac, 9) + "s"
    if hours:
        out = f"{hours}h{minutes}m{out}"
    elif minutes:
        out = f"{minutes}m{out}"
    return sign + out


@dataclass
class Timings:
    """Per-phase latency of one query, in nanoseconds."""
    warmup: int = 0
    execute: int = 0
    do_get: int = 0

    @property
    def total(self) -> int:
        return self.warmup + self.execute + self.do_get

    def add(self, other: "Timings") -> "Timings":
        """Accumulate another set of timings into this one"""
        self.warmup += other.warmup
        self.execute += other.execute
        self.do_get += other.do_get
        return self

    def __add__(self, other: "Timings") -> "Timings":
        return Timings(self.warmup, self.execute, self.do_get).add(other)

    def __str__(self) -> str:
        return (f"Warmup: {format_duration(self.warmup)}, "
                f"Execute: {format_duration(self.execute)}, "
                f"DoGet: {format_duration(self.do_get)}, "
                f"Total: {format_duration(self.total)}")
