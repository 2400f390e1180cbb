"""Durations and sizes read from the environment."""

from __future__ import annotations

import os
import re
from datetime import timedelta
from decimal import Decimal
from fractions import Fraction

_NS_PER_SECOND = 1_000_000_000
_UNIT_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": _NS_PER_SECOND,
    "m": 60 * _NS_PER_SECOND,
    "h": 3600 * _NS_PER_SECOND,
}
_COMPONENT = re.compile(r"([0-9]+(?:\.[0-9]*)?|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = 2**63 - 1

DEFAULT_AUCTION_INTERVAL = timedelta(minutes=5)
DEFAULT_AUCTION_CHECK_INTERVAL = timedelta(minutes=1)
DEFAULT_BATCH_INSERT_INTERVAL = timedelta(minutes=3)
DEFAULT_MAX_BATCH_SIZE = 5


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"``, ``"300ms"`` or ``"-1.5s"``.

    Raises ValueError when the text is not a valid duration.
    """
    rest = text
    negative = False
    if rest.startswith(("-", "+")):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total = Fraction(0)
    position = 0
    while position < len(rest):
        match = _COMPONENT.match(rest, position)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += Fraction(Decimal(match.group(1))) * _UNIT_NS[match.group(2)]
        position = match.end()

    nanoseconds = int(total)
    limit = _INT64_MAX + 1 if negative else _INT64_MAX
    if nanoseconds > limit:
        raise ValueError(f"invalid duration {text!r}")

    result = timedelta(microseconds=nanoseconds // 1000)
    return -result if negative else result


def _env_duration(name: str, default: timedelta) -> timedelta:
    try:
        return parse_duration(os.environ.get(name, ""))
    except ValueError:
        return default


def auction_interval() -> timedelta:
    """How long an auction stays open (``AUCTION_INTERVAL``)."""
    return _env_duration("AUCTION_INTERVAL", DEFAULT_AUCTION_INTERVAL)


def auction_check_interval() -> timedelta:
    """How often expired auctions are looked for (``AUCTION_CHECK_INTERVAL``)."""
    return _env_duration("AUCTION_CHECK_INTERVAL", DEFAULT_AUCTION_CHECK_INTERVAL)


def batch_insert_interval() -> timedelta:
    """Longest wait before a bid batch is flushed (``BATCH_INSERT_INTERVAL``)."""
    return _env_duration("BATCH_INSERT_INTERVAL", DEFAULT_BATCH_INSERT_INTERVAL)


def max_batch_size() -> int:
    """Number of bids that triggers a batch flush (``MAX_BATCH_SIZE``)."""
    raw = os.environ.get("MAX_BATCH_SIZE", "")
    if not _INTEGER.fullmatch(raw):
        return DEFAULT_MAX_BATCH_SIZE
    value = int(raw)
    if not -_INT64_MAX - 1 <= value <= _INT64_MAX:
        return DEFAULT_MAX_BATCH_SIZE
    return value