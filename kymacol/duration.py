"""Parsing and formatting of duration strings such as "1m30s" or "250ms"."""

from __future__ import annotations

import re

_UNITS_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}

_MAX_NS = 2**63 - 1
_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")
_NS_PER_SECOND = 1_000_000_000


class DurationError(ValueError):
    """Raised when a duration string cannot be parsed."""


def _parse_ns(text: str) -> int:
    original = text
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise DurationError(f"invalid duration {original!r}")

    total = 0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise DurationError(f"invalid duration {original!r}")
        if not unit:
            raise DurationError(f"missing unit in duration {original!r}")
        scale = _UNITS_NS.get(unit)
        if scale is None:
            raise DurationError(f"unknown unit {unit!r} in duration {original!r}")
        value = int(whole or "0") * scale
        if frac:
            value += int(frac) * scale // 10 ** len(frac)
        total += value
        if total > _MAX_NS + (1 if negative else 0):
            raise DurationError(f"invalid duration {original!r}")
        pos = match.end()
    return -total if negative else total


def parse_duration(text: str) -> float:
    """Parse a duration string and return its length in seconds."""
    return _parse_ns(text) / _NS_PER_SECOND


def _format_fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    digits = str(frac).rjust(precision, "0").rstrip("0")
    return f"{whole}.{digits}" if digits else str(whole)


def format_duration(seconds: float) -> str:
    """Format a length in seconds the way duration strings are written, e.g. "1m0s"."""
    ns = round(seconds * _NS_PER_SECOND)
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns == 0:
        return "0s"
    if ns < _NS_PER_SECOND:
        if ns < 1_000:
            return f"{sign}{ns}ns"
        if ns < 1_000_000:
            return f"{sign}{_format_fraction(ns, 3)}µs"
        return f"{sign}{_format_fraction(ns, 6)}ms"

    minute_ns = 60 * _NS_PER_SECOND
    text = f"{_format_fraction(ns % minute_ns, 9)}s"
    minutes = ns // minute_ns
    if minutes:
        hours, minutes = divmod(minutes, 60)
        text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return sign + text