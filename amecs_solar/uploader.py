"""Write matched series to an InfluxDB v2 bucket."""

import logging
import math

import numpy as np
import requests

from .utils import timestamp_nanos

logger = logging.getLogger(__name__)

MEASUREMENT = "amecs-solar"


def escape_tag(value):
    """Escape a tag key or value for line protocol."""
    return value.replace(",", "\\,").replace("=", "\\=").replace(" ", "\\ ")


def format_field(value):
    """Render a float field value in positional notation."""
    return np.format_float_positional(float(value), trim="-")


def to_line_protocol(coord, series):
    """Render a series as InfluxDB line protocol, one line per DataPoint.

    Power is written as the float32 reading widened to a double. InfluxDB has
    no representation for NaN or infinity, so those points are left out.

    Args:
        coord: Coordinate used as the ``coord`` tag
        series: Iterable of DataPoint

    Returns:
        str: Newline separated points
    """
    tag = escape_tag(str(coord))
    return "\n".join(
        f"{MEASUREMENT},coord={tag} power={format_field(dp.power)} {timestamp_nanos(dp.timestamp)}"
        for dp in series
        if math.isfinite(dp.power)
    )


class InfluxWriter:
    """Writes series through the InfluxDB v2 HTTP write API."""

    def __init__(self, host, token, org, bucket, timeout=15):
        self.host = host.rstrip("/")
        self.org = org
        self.bucket = bucket
        self.timeout = timeout
        self.requests_session = requests.Session()
        self.requests_session.headers.update({
            "Authorization": f"Token {token}",
            "Content-Type": "text/plain; charset=utf-8",
        })

    def write(self, coord, series):
        """Write every DataPoint of a series.

        Args:
            coord: Coordinate of the matched station
            series: Sequence of DataPoint

        Returns:
            bool: True if the points were accepted (or there was nothing to write)
        """
        body = to_line_protocol(coord, series)
        if not body:
            return True

        try:
            response = self.requests_session.post(
                f"{self.host}/api/v2/write",
                params={"org": self.org, "bucket": self.bucket, "precision": "ns"},
                data=body.encode("utf-8"),
                timeout=self.timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.error(f"Failed to connect to InfluxDB at {self.host}: {e}")
            return False

        if response.status_code not in (200, 204):
            logger.error(f"Failed to write datapoints: {response.status_code} - {response.text}")
            return False

        logger.debug(f"Wrote {len(series)} datapoints to bucket {self.bucket}")
        return True

    def close(self):
        """Close the writer session."""
        self.requests_session.close()
