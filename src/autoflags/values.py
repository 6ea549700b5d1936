"""
Flag value kinds and their text conversions.

A dataclass field becomes a flag when its annotation (or, failing that, its
current value) is one of the supported kinds:

    int        machine word signed integer
    Int64      64-bit signed integer
    Uint       machine word unsigned integer
    Uint64     64-bit unsigned integer
    float      64-bit floating point
    bool       boolean
    str        string
    timedelta  duration, written like "1h30m" or "250ms"

Any other type can take part by implementing the Value protocol: a `set`
method that parses command-line text and a `__str__` that renders the current
value.
"""

import re
import sys
from datetime import timedelta
from fractions import Fraction
from typing import NewType, Protocol, runtime_checkable

Int64 = NewType("Int64", int)
Uint = NewType("Uint", int)
Uint64 = NewType("Uint64", int)

INT_BITS = sys.maxsize.bit_length() + 1

_TRUE_STRINGS = ("1", "t", "T", "TRUE", "true", "True")
_FALSE_STRINGS = ("0", "f", "F", "FALSE", "false", "False")

_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

_DURATION_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "µs": _MICROSECOND,  # micro sign
    "μs": _MICROSECOND,  # Greek small letter mu
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

_DURATION_COMPONENT = re.compile(
    r"(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?(?P<unit>[^0-9.]*)"
)


@runtime_checkable
class Value(Protocol):
    """
    A value that knows how to parse itself from command-line text.

    Implementations may also define `is_bool_flag()` returning True, in which
    case the flag can be given without an argument (`-verbose`) and `set` is
    called with "true".

    Example:
        class Hosts:
            def __init__(self):
                self.hosts = []

            def set(self, text):
                self.hosts.extend(text.split(","))

            def __str__(self):
                return ",".join(self.hosts)
    """

    def set(self, text: str) -> None: ...

    def __str__(self) -> str: ...


def parse_bool(text: str) -> bool:
    """
    Parse a boolean flag value.

    Accepts 1, t, T, TRUE, true, True, 0, f, F, FALSE, false and False.
    """
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError("parse error")


def parse_int(text: str, bits: int = INT_BITS, signed: bool = True) -> int:
    """
    Parse an integer flag value with a base prefix (0x, 0o, 0b) allowed.

    Args:
        text: The command-line text.
        bits: Width of the destination integer.
        signed: Whether negative values are allowed.

    Raises:
        ValueError: If the text is not an integer or does not fit in `bits`.
    """
    if not signed and text[:1] in ("+", "-"):
        raise ValueError("parse error")
    try:
        value = int(text, 0)
    except ValueError:
        raise ValueError("parse error") from None
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if not low <= value <= high:
        raise ValueError("value out of range")
    return value


def parse_float(text: str) -> float:
    """Parse a 64-bit floating point flag value."""
    try:
        return float(text)
    except ValueError:
        raise ValueError("parse error") from None


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string such as "300ms", "-1.5h" or "2h45m".

    A duration is an optional sign followed by a sequence of decimal numbers,
    each with an optional fraction and a unit suffix. Valid units are "ns",
    "us" (or "µs"), "ms", "s", "m" and "h". The bare string "0" is also
    accepted. Precision below one microsecond is rounded away since
    timedelta cannot hold it.

    Raises:
        ValueError: If the string is malformed or overflows a 64-bit count
            of nanoseconds.
    """
    s = text
    negative = False
    if s[:1] in ("-", "+"):
        negative = s[0] == "-"
        s = s[1:]
    if s == "0":
        return timedelta(0)
    if not s:
        raise ValueError(f'invalid duration "{text}"')

    total = Fraction(0)
    pos = 0
    while pos < len(s):
        match = _DURATION_COMPONENT.match(s, pos)
        whole, frac, unit = match.group("whole", "frac", "unit")
        if not whole and not frac:
            raise ValueError(f'invalid duration "{text}"')
        if not unit:
            raise ValueError(f'missing unit in duration "{text}"')
        if unit not in _DURATION_UNITS:
            raise ValueError(f'unknown unit "{unit}" in duration "{text}"')
        amount = Fraction(int(whole or "0"))
        if frac:
            amount += Fraction(int(frac), 10 ** len(frac))
        total += amount * _DURATION_UNITS[unit]
        pos = match.end()

    nanoseconds = int(total)
    limit = (1 << 63) if negative else (1 << 63) - 1
    if nanoseconds > limit:
        raise ValueError(f'invalid duration "{text}"')
    if negative:
        nanoseconds = -nanoseconds
    return timedelta(microseconds=round(Fraction(nanoseconds, _MICROSECOND)))


def _duration_nanoseconds(value: timedelta) -> int:
    """Return the exact number of nanoseconds in a timedelta."""
    return ((value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds) * 1000


def _format_fraction(amount: int, unit: int) -> str:
    whole, frac = divmod(amount, unit)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_duration(value: timedelta) -> str:
    """
    Render a timedelta the way durations are written on the command line.

    Examples: "0s", "1.5s", "300ms", "2µs", "15m0s", "1h0m0s".
    """
    nanoseconds = _duration_nanoseconds(value)
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    nanoseconds = abs(nanoseconds)

    if nanoseconds < _SECOND:
        for suffix, unit in (
            ("ns", _NANOSECOND),
            ("µs", _MICROSECOND),
            ("ms", _MILLISECOND),
        ):
            if nanoseconds < unit * 1000:
                return f"{sign}{_format_fraction(nanoseconds, unit)}{suffix}"

    hours, rest = divmod(nanoseconds, _HOUR)
    minutes, rest = divmod(rest, _MINUTE)
    text = f"{_format_fraction(rest, _SECOND)}s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text
