import io
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from amecs_solar.errors import (
    HeaderLineIsNotFound,
    HeaderLineIsNotValid,
    InvalidBaseTime,
    InvalidLineWasSupplied,
    InvalidValueInData,
    NonUtcZoneSupplied,
    ParseError,
    SourceReadError,
)
from amecs_solar.models import Coordinate, DataPoint
from amecs_solar.solar_data import SolarData, parse_header

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)

FEED = (
    "2024/01/01 00:00:00,UTC\n"
    "35.0,139.0,100.5,200.25\n"
    "34.5,135.5,1,2,3\n"
    "43.0,141.0\n"
)


def test_end_to_end_single_station():
    data = SolarData.try_new("2024/01/01 00:00:00,UTC\n35.0,139.0,100.5,200.25\n")

    assert len(data) == 1
    coord, series = data.entries[0]
    assert coord == Coordinate(lat=35.0, lon=139.0)
    assert series == (
        DataPoint(power=100.5, timestamp=datetime(2024, 1, 1, 0, tzinfo=timezone.utc)),
        DataPoint(power=200.25, timestamp=datetime(2024, 1, 1, 1, tzinfo=timezone.utc)),
    )

    assert data.nearest_series_data(Coordinate(lat=35.0, lon=139.0)) == (coord, series)


def test_entries_keep_line_order():
    data = SolarData.try_new(FEED)
    assert [str(coord) for coord, _ in data] == ["35,139", "34.5,135.5", "43,141"]


def test_series_are_hourly_from_base_time():
    data = SolarData.try_new(FEED)
    assert data.base_time == BASE

    for _, series in data:
        for offset, dp in enumerate(series):
            assert dp.timestamp == BASE + timedelta(hours=offset)

    _, series = data.entries[1]
    assert [dp.power for dp in series] == [1.0, 2.0, 3.0]


def test_line_with_only_coordinate_has_empty_series():
    data = SolarData.try_new(FEED)
    coord, series = data.entries[2]
    assert coord == Coordinate(lat=43.0, lon=141.0)
    assert series == ()


def test_header_only_gives_no_entries():
    data = SolarData.try_new("2024/01/01 00:00:00,UTC")
    assert len(data) == 0
    assert data.base_time == BASE


def test_accepts_bytes_and_streams():
    expected = SolarData.try_new(FEED).entries
    assert SolarData.try_new(FEED.encode("utf-8")).entries == expected
    assert SolarData.try_new(io.BytesIO(FEED.encode("utf-8"))).entries == expected
    assert SolarData.try_new(io.StringIO(FEED)).entries == expected


def test_crlf_line_endings():
    data = SolarData.try_new(FEED.replace("\n", "\r\n"))
    assert len(data) == 3
    assert data.entries[0][1][-1].power == 200.25


def test_header_trailing_whitespace_is_ignored():
    assert parse_header("2024/01/01 00:00:00,UTC  ") == BASE


def test_empty_input():
    with pytest.raises(HeaderLineIsNotFound):
        SolarData.try_new("")


def test_header_without_comma():
    with pytest.raises(HeaderLineIsNotValid):
        SolarData.try_new("not-a-header")


def test_header_with_other_zone():
    with pytest.raises(NonUtcZoneSupplied) as excinfo:
        SolarData.try_new("2024/01/01 00:00:00,JST\n35.0,139.0,1\n")
    assert excinfo.value.zone == "JST"


def test_header_zone_is_split_on_first_comma():
    with pytest.raises(NonUtcZoneSupplied):
        SolarData.try_new("2024/01/01 00:00:00,UTC,extra")


def test_header_with_bad_time():
    with pytest.raises(InvalidBaseTime) as excinfo:
        SolarData.try_new("2024-01-01,UTC")
    assert isinstance(excinfo.value.cause, ValueError)
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_body_with_invalid_value():
    with pytest.raises(InvalidValueInData) as excinfo:
        SolarData.try_new("2024/01/01 00:00:00,UTC\n35.0,x")
    assert excinfo.value.token == "x"
    assert isinstance(excinfo.value.cause, ValueError)


@pytest.mark.parametrize("token", ["", " 1.0", "1_000", "0x10", "1.0.0", "٣٥"])
def test_body_rejects_loose_float_syntax(token):
    with pytest.raises(InvalidValueInData):
        SolarData.try_new(f"2024/01/01 00:00:00,UTC\n35.0,139.0,{token}")


def test_body_accepts_exponent_and_special_values():
    data = SolarData.try_new("2024/01/01 00:00:00,UTC\n3.5e1,+139.,.5,-1E-2,inf,NaN")
    coord, series = data.entries[0]
    assert coord == Coordinate(lat=35.0, lon=139.0)
    assert series[0].power == 0.5
    assert series[1].power == np.float32(-0.01)
    assert series[2].power == float("inf")
    assert series[3].power != series[3].power


def test_blank_body_line_is_invalid():
    with pytest.raises(InvalidValueInData):
        SolarData.try_new("2024/01/01 00:00:00,UTC\n\n35.0,139.0,1\n")


def test_body_with_single_value():
    with pytest.raises(InvalidLineWasSupplied):
        SolarData.try_new("2024/01/01 00:00:00,UTC\n35.0")


def test_first_error_aborts_whole_parse():
    with pytest.raises(InvalidLineWasSupplied):
        SolarData.try_new("2024/01/01 00:00:00,UTC\n35.0,139.0,1\n36.0\n37.0,x\n")


def test_read_error_is_reported():
    class FailingStream:
        def __iter__(self):
            yield "2024/01/01 00:00:00,UTC\n"
            raise OSError("connection reset")

    with pytest.raises(SourceReadError) as excinfo:
        SolarData.try_new(FailingStream())
    assert isinstance(excinfo.value.cause, OSError)


def test_undecodable_bytes_are_a_read_error():
    with pytest.raises(SourceReadError):
        SolarData.try_new(b"2024/01/01 00:00:00,UTC\n\xff\xfe\n")


def test_errors_share_a_base_class():
    for error in (HeaderLineIsNotFound, HeaderLineIsNotValid, NonUtcZoneSupplied, InvalidBaseTime,
                  InvalidValueInData, InvalidLineWasSupplied, SourceReadError):
        assert issubclass(error, ParseError)
    assert str(HeaderLineIsNotFound()) == "HeaderLine is not found"


def test_nearest_picks_closest_station():
    data = SolarData.try_new(FEED)
    coord, series = data.nearest_series_data(Coordinate(lat=34.4, lon=135.6))
    assert coord == Coordinate(lat=34.5, lon=135.5)
    assert len(series) == 3


def test_nearest_returns_stored_series_without_copy():
    data = SolarData.try_new(FEED)
    _, series = data.nearest_series_data(Coordinate(lat=35.0, lon=139.0))
    assert series is data.entries[0][1]


def test_nearest_tie_goes_to_first_station():
    data = SolarData.try_new(
        "2024/01/01 00:00:00,UTC\n"
        "10.0,10.0,1\n"
        "12.0,10.0,2\n"
        "8.0,10.0,3\n"
    )
    # (10, 10) and (12, 10) are both exactly 1.0 away
    coord, series = data.nearest_series_data(Coordinate(lat=11.0, lon=10.0))
    assert coord == Coordinate(lat=10.0, lon=10.0)
    assert series[0].power == 1.0


def test_nearest_tie_between_duplicate_coordinates():
    data = SolarData.try_new("2024/01/01 00:00:00,UTC\n1.0,1.0,1\n1.0,1.0,2\n")
    _, series = data.nearest_series_data(Coordinate(lat=0.0, lon=0.0))
    assert series[0].power == 1.0


def test_nearest_skips_nan_coordinates():
    data = SolarData.try_new("2024/01/01 00:00:00,UTC\nnan,0.0,1\n50.0,50.0,2\n")
    coord, _ = data.nearest_series_data(Coordinate(lat=0.0, lon=0.0))
    assert coord == Coordinate(lat=50.0, lon=50.0)


def test_nearest_on_empty_data_is_a_precondition_violation():
    data = SolarData.try_new("2024/01/01 00:00:00,UTC\n")
    with pytest.raises(ValueError):
        data.nearest_series_data(Coordinate(lat=0.0, lon=0.0))


def test_values_are_narrowed_to_float32():
    data = SolarData.try_new("2024/01/01 00:00:00,UTC\n35.1,139.7,0.1\n")
    coord, series = data.entries[0]
    assert isinstance(coord.lat, np.float32)
    assert coord.lat == np.float32(35.1)
    assert series[0].power == np.float32(0.1)
    assert str(coord) == "35.1,139.7"


def test_out_of_range_value_becomes_infinite():
    data = SolarData.try_new("2024/01/01 00:00:00,UTC\n35.0,139.0,1e39,-1e39\n")
    _, series = data.entries[0]
    assert series[0].power == np.inf
    assert series[1].power == -np.inf


def test_nearest_tie_after_float32_narrowing_goes_to_first_station():
    # 35.00000001 and 35.0 are the same float32, so both stations are at distance 0
    data = SolarData.try_new(
        "2024/01/01 00:00:00,UTC\n"
        "35.00000001,139.0,1\n"
        "35.0,139.0,2\n"
    )
    _, series = data.nearest_series_data(Coordinate(lat=35.0, lon=139.0))
    assert series[0].power == 1.0
