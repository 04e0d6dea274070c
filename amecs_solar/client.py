"""Client for downloading the AMECS solar generation feed."""

import logging

import requests

from .errors import ParseError
from .solar_data import SolarData
from .utils import epoch_millis

logger = logging.getLogger(__name__)

FEED_URL = "https://www.amecs.co.jp/solar/data/ndata.csv"
USER_AGENT = "amecs-solar-logger/0.1.0"
REQUEST_TIMEOUT_SECONDS = 15


class AmecsSolarClient:
    """Client for the AMECS solar feed.

    This class handles all direct interactions with the feed server:
    - Downloading the CSV snapshot
    - Parsing it into SolarData
    """

    def __init__(self, url=FEED_URL, timeout=REQUEST_TIMEOUT_SECONDS, user_agent=USER_AGENT):
        """Initialize the client.

        Args:
            url: Feed URL
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with every request
        """
        self.url = url
        self.timeout = timeout
        self.requests_session = requests.Session()
        self.requests_session.headers.update({"User-Agent": user_agent})

    def get_feed(self):
        """Download the current feed.

        The epoch time in milliseconds is appended as the query string so
        intermediate caches never serve a stale snapshot.

        Returns:
            str: Feed text or None if the request failed
        """
        try:
            response = self.requests_session.get(f"{self.url}?{epoch_millis()}", timeout=self.timeout)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.error(f"Failed to connect to {self.url}: {e}")
            return None

        if response.status_code != 200:
            logger.error(f"Invalid response from server: {response.status_code}")
            logger.debug(response.text)
            return None

        return response.text

    def get_solar_data(self):
        """Download and parse the current feed.

        Returns:
            SolarData: Parsed snapshot or None if downloading or parsing failed
        """
        feed = self.get_feed()
        if feed is None:
            return None

        try:
            return SolarData.try_new(feed)
        except ParseError as e:
            logger.error(f"Failed to parse CSV as SolarData: {e}")
            return None

    def close(self):
        """Close the client session."""
        self.requests_session.close()
