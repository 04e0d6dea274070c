"""Data models for solar generation readings."""

from dataclasses import dataclass
from datetime import datetime

import numpy as np

from .utils import format_float, to_float32


@dataclass(frozen=True)
class Coordinate:
    """Geographic position of a reporting station.

    lat and lon are stored as numpy float32.
    """
    lat: np.float32
    lon: np.float32

    def __post_init__(self):
        object.__setattr__(self, "lat", to_float32(self.lat))
        object.__setattr__(self, "lon", to_float32(self.lon))

    def distance(self, other):
        """Planar distance between two coordinates, computed in float32.

        Treats latitude/longitude as a flat plane. This is only accurate over a
        small region with no antimeridian or pole crossing, which holds for the
        area covered by the feed.

        Args:
            other: Coordinate to measure against

        Returns:
            numpy.float32: Euclidean distance in degrees
        """
        with np.errstate(over="ignore", invalid="ignore"):
            lat_diff = self.lat - other.lat
            lon_diff = self.lon - other.lon
            return np.sqrt(lat_diff * lat_diff + lon_diff * lon_diff)

    def __str__(self):
        return f"{format_float(self.lat)},{format_float(self.lon)}"


@dataclass(frozen=True)
class DataPoint:
    """One power reading (float32) at an absolute UTC time."""
    power: np.float32
    timestamp: datetime

    def __post_init__(self):
        object.__setattr__(self, "power", to_float32(self.power))
