"""Parse the AMECS solar feed and look up the series nearest to a location."""

import io
import logging
import math
import re
from datetime import datetime, timedelta, timezone

from .errors import (
    HeaderLineIsNotFound,
    HeaderLineIsNotValid,
    InvalidBaseTime,
    InvalidLineWasSupplied,
    InvalidValueInData,
    NonUtcZoneSupplied,
    SourceReadError,
)
from .models import Coordinate, DataPoint
from .utils import to_float32

logger = logging.getLogger(__name__)

BASE_TIME_FORMAT = "%Y/%m/%d %H:%M:%S"
SUPPORTED_ZONE = "UTC"
SAMPLE_INTERVAL = timedelta(hours=1)

# Decimal or exponent literal, or inf/infinity/nan. ASCII digits only, no
# whitespace, no underscores.
_FLOAT_TOKEN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE | re.ASCII,
)


def _strip_terminator(line):
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def read_lines(source):
    """Yield the lines of a feed without their line terminators.

    Args:
        source: str, bytes, or a text or binary stream. Bytes are UTF-8.

    Yields:
        str: Each line in order

    Raises:
        SourceReadError: If reading or decoding the source fails
    """
    if isinstance(source, str):
        source = io.StringIO(source)
    elif isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    lines = iter(source)
    while True:
        try:
            line = next(lines)
            if isinstance(line, (bytes, bytearray)):
                line = line.decode("utf-8")
        except StopIteration:
            return
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(e) from e
        yield _strip_terminator(line)


def parse_header(line):
    """Parse the header line into the base time shared by every series.

    The header looks like ``2024/01/01 00:00:00,UTC``.

    Returns:
        datetime: Base time, timezone-aware UTC
    """
    naive_time, separator, zone = line.rstrip().partition(",")
    if not separator:
        raise HeaderLineIsNotValid()

    if zone != SUPPORTED_ZONE:
        raise NonUtcZoneSupplied(zone)

    try:
        base_time = datetime.strptime(naive_time, BASE_TIME_FORMAT)
    except ValueError as e:
        raise InvalidBaseTime(e) from e

    return base_time.replace(tzinfo=timezone.utc)


def parse_value(token):
    """Parse one feed token as a float32; out-of-range literals become inf."""
    if _FLOAT_TOKEN.fullmatch(token) is None:
        cause = ValueError(f"invalid float literal: {token!r}")
        raise InvalidValueInData(cause, token) from cause
    return to_float32(float(token))


def parse_body_line(line, base_time):
    """Parse one station line into its coordinate and hourly series.

    Args:
        line: ``lat,lon,power_0,...,power_n``
        base_time: Timestamp of power_0

    Returns:
        tuple: (Coordinate, tuple of DataPoint)
    """
    values = [parse_value(token) for token in line.split(",")]
    if len(values) < 2:
        raise InvalidLineWasSupplied()

    lat, lon, *powers = values
    series = tuple(
        DataPoint(power=power, timestamp=base_time + offset * SAMPLE_INTERVAL)
        for offset, power in enumerate(powers)
    )
    return Coordinate(lat=lat, lon=lon), series


class SolarData:
    """Snapshot of every station's series from one feed.

    Entries keep the order of the lines in the feed. Instances are never
    modified after construction and may be shared between threads.
    """

    def __init__(self, base_time, entries=()):
        self._base_time = base_time
        self._entries = tuple((coord, tuple(series)) for coord, series in entries)

    @classmethod
    def try_new(cls, source):
        """Build SolarData from a feed.

        The whole feed must be valid; the first problem found aborts parsing.

        Args:
            source: str, bytes, or a text or binary stream

        Returns:
            SolarData: Parsed snapshot

        Raises:
            ParseError: Subclass describing which part of the feed was invalid
        """
        lines = read_lines(source)

        header = next(lines, None)
        if header is None:
            raise HeaderLineIsNotFound()
        base_time = parse_header(header)

        entries = [parse_body_line(line, base_time) for line in lines]
        logger.debug(f"Parsed {len(entries)} stations from feed based at {base_time.isoformat()}")
        return cls(base_time, entries)

    @property
    def base_time(self):
        return self._base_time

    @property
    def entries(self):
        """Tuple of (Coordinate, tuple of DataPoint) pairs in feed order."""
        return self._entries

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __repr__(self):
        return f"SolarData(base_time={self._base_time.isoformat()}, entries={len(self._entries)})"

    def nearest_series_data(self, coord):
        """Find the station closest to a coordinate.

        Uses the planar distance from Coordinate.distance. When several
        stations are equally close the one listed first in the feed wins.
        A station whose distance is NaN is never closer than any other.

        Args:
            coord: Coordinate to search around

        Returns:
            tuple: (matched Coordinate, its series as a tuple of DataPoint)

        Raises:
            ValueError: If there are no stations. Callers must check first.
        """
        if not self._entries:
            raise ValueError("nearest_series_data() called on empty SolarData")

        best = None
        best_distance = math.inf
        for entry in self._entries:
            distance = entry[0].distance(coord)
            if math.isnan(distance):
                distance = math.inf
            if best is None or distance < best_distance:
                best = entry
                best_distance = distance

        return best
