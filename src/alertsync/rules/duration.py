"""
Duration strings.

Every duration that leaves this package (rule ``duration`` labels, group
intervals, normalized ``for`` fields) is rendered by ``format_duration``,
which follows Go's ``time.Duration.String()``:

    >>> format_duration(90)
    '1m30s'
    >>> format_duration(9900)
    '2h45m0s'

Parsing accepts Go units (``ns``, ``us``, ``µs``, ``ms``, ``s``, ``m``,
``h``) plus the Prometheus day, week and year units, so values echoed by
the ruler in either notation can be compared.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
YEAR = 365 * DAY

_UNITS = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # U+00B5 micro sign
    "μs": MICROSECOND,  # U+03BC greek mu
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
    "d": DAY,
    "w": WEEK,
    "y": YEAR,
}

_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h|d|w|y)")


def _format_fraction(value: int, precision: int) -> str:
    """Render ``value`` scaled down by 10**precision, trimming trailing zeros."""
    whole, frac = divmod(value, 10**precision)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(precision, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_nanoseconds(nanoseconds: int) -> str:
    """Render an integer nanosecond count the way Go's Duration.String() does."""
    if nanoseconds == 0:
        return "0s"

    sign = "-" if nanoseconds < 0 else ""
    remaining = abs(nanoseconds)

    if remaining < SECOND:
        if remaining < MICROSECOND:
            return f"{sign}{remaining}ns"
        if remaining < MILLISECOND:
            return f"{sign}{_format_fraction(remaining, 3)}µs"
        return f"{sign}{_format_fraction(remaining, 6)}ms"

    out = f"{_format_fraction(remaining % MINUTE, 9)}s"
    if remaining >= MINUTE:
        out = f"{(remaining // MINUTE) % 60}m{out}"
    if remaining >= HOUR:
        out = f"{remaining // HOUR}h{out}"
    return sign + out


def format_duration(seconds: int | float) -> str:
    """Render a number of seconds as a canonical duration string.

    Examples:
        >>> format_duration(0)
        '0s'
        >>> format_duration(60)
        '1m0s'
        >>> format_duration(3600)
        '1h0m0s'
    """
    if isinstance(seconds, bool):
        raise TypeError("duration must be a number of seconds, not a bool")
    if isinstance(seconds, int):
        return format_nanoseconds(seconds * SECOND)
    return format_nanoseconds(int((Decimal(str(seconds)) * SECOND).to_integral_value()))


def parse_nanoseconds(text: str) -> int:
    """Parse a duration string into an integer nanosecond count.

    Raises:
        ValueError: if ``text`` is not a duration string
    """
    value = text.strip()
    if not value:
        raise ValueError("invalid duration: empty string")

    sign = 1
    if value[0] in "+-":
        sign = -1 if value[0] == "-" else 1
        value = value[1:]

    # A bare zero needs no unit.
    if value == "0":
        return 0

    total = Decimal(0)
    pos = 0
    for match in _COMPONENT_RE.finditer(value):
        if match.start() != pos:
            break
        number, unit = match.groups()
        try:
            total += Decimal(number) * _UNITS[unit]
        except InvalidOperation as exc:
            raise ValueError(f"invalid duration {text!r}") from exc
        pos = match.end()

    if pos == 0 or pos != len(value):
        raise ValueError(f"invalid duration {text!r}")

    return sign * int(total.to_integral_value())


def parse_duration_to_seconds(text: str) -> int:
    """Return the whole number of seconds in a duration string.

    Examples:
        >>> parse_duration_to_seconds("2h45m")
        9900
    """
    nanoseconds = parse_nanoseconds(text)
    seconds = abs(nanoseconds) // SECOND
    return -seconds if nanoseconds < 0 else seconds


def normalize_duration(text: str) -> str:
    """Re-render a duration string in canonical form (``"1m"`` -> ``"1m0s"``)."""
    return format_nanoseconds(parse_nanoseconds(text))
