"""Utility functions for solar data processing."""

import time
from datetime import datetime, timezone

import numpy as np

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_float32(value):
    """Narrow a number to 32-bit float.

    Values outside the float32 range become +/-inf, as when parsing an f32.
    """
    with np.errstate(over="ignore"):
        return np.float32(value)


def format_float(value):
    """Render a float32 in its shortest positional form.

    Integral values drop the trailing ".0" so that 139.0 renders as "139",
    the sign of -0.0 is kept, and NaN renders as "NaN".

    Args:
        value: Number to render

    Returns:
        str: Decimal text
    """
    value = to_float32(value)
    if np.isnan(value):
        return "NaN"
    return np.format_float_positional(value, trim="-")


def epoch_millis():
    """Current time as milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def timestamp_nanos(timestamp):
    """Convert an aware datetime to integer nanoseconds since the Unix epoch.

    Args:
        timestamp: timezone-aware datetime

    Returns:
        int: Nanoseconds since 1970-01-01T00:00:00Z
    """
    delta = timestamp - EPOCH
    seconds = delta.days * 86400 + delta.seconds
    return seconds * 1_000_000_000 + delta.microseconds * 1000
