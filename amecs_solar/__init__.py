"""AMECS solar feed parsing and logging package.

This package parses the AMECS solar generation feed and finds the station
series nearest to a given location.
"""

from .client import AmecsSolarClient
from .errors import (
    ParseError,
    HeaderLineIsNotFound,
    HeaderLineIsNotValid,
    NonUtcZoneSupplied,
    InvalidBaseTime,
    InvalidValueInData,
    InvalidLineWasSupplied,
    SourceReadError
)
from .models import Coordinate, DataPoint
from .solar_data import SolarData
from .uploader import InfluxWriter

__all__ = [
    'AmecsSolarClient',
    'Coordinate',
    'DataPoint',
    'SolarData',
    'InfluxWriter',
    'ParseError',
    'HeaderLineIsNotFound',
    'HeaderLineIsNotValid',
    'NonUtcZoneSupplied',
    'InvalidBaseTime',
    'InvalidValueInData',
    'InvalidLineWasSupplied',
    'SourceReadError'
]
