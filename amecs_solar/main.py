"""Main entry point and command-line interface for solar feed logging."""

import argparse
import json
import logging
import os
import sys
import time
from email.utils import format_datetime
from pathlib import Path

import appdirs

from .client import AmecsSolarClient
from .models import Coordinate
from .uploader import InfluxWriter

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "amecs_solar.json"
AMECS_SOLAR_CONFIG_DIR = appdirs.user_config_dir("amecs_solar")
AMECS_SOLAR_CONFIG_PATH = Path(AMECS_SOLAR_CONFIG_DIR, CONFIG_FILENAME)

FETCH_INTERVAL_SECONDS = 60 * 60
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

# (option name, environment variable), looked up in that order then in the config file
COORD_OPTIONS = [("lat", "LAT"), ("lon", "LON")]
INFLUX_OPTIONS = [
    ("infl_host", "INFL_HOST"),
    ("infl_token", "INFL_TOKEN"),
    ("infl_org", "INFL_ORG"),
    ("infl_bucket", "INFL_BUCKET"),
]


def configure_logging(debug=False):
    """Send log records to stdout, DEBUG and above when debugging."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    # requests/urllib3 are noisy at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def find_config_path(path=None):
    """Locate the JSON config file.

    Args:
        path: Explicit path, used as is when given

    Returns:
        Path: First existing candidate, or None
    """
    if path:
        return Path(path)
    for candidate in (Path(CONFIG_FILENAME), AMECS_SOLAR_CONFIG_PATH):
        if candidate.is_file():
            return candidate
    return None


def load_config(path=None):
    """Load settings from the JSON config file, if there is one."""
    config_path = find_config_path(path)
    if config_path is None:
        return {}
    logger.debug(f"Loading config from {config_path.resolve()}")
    with open(config_path) as fd:
        return json.load(fd)


def resolve_options(args, config, options):
    """Fill unset options from the environment, then from the config file.

    Returns:
        dict: option name to value, None where nothing supplied one
    """
    values = {}
    for name, env in options:
        value = getattr(args, name, None)
        if value is None:
            value = os.environ.get(env)
        if value is None:
            value = config.get(name)
        values[name] = value
    return values


class AmecsSolar:
    """Fetches the feed on a schedule and records the series nearest to a location.

    This class coordinates between the AmecsSolarClient and an optional
    InfluxWriter. Without a writer it only logs what it would write.
    """

    def __init__(self, coord, client=None, writer=None, interval=FETCH_INTERVAL_SECONDS):
        """Initialize the logger.

        Args:
            coord: Coordinate to match against station locations
            client: Feed client, a new AmecsSolarClient by default
            writer: InfluxWriter, or None for a dry run
            interval: Seconds between fetches
        """
        self.coord = coord
        self.client = client if client is not None else AmecsSolarClient()
        self.writer = writer
        self.interval = interval

    def run_cycle(self):
        """Fetch the feed once and record the nearest series.

        Returns:
            bool: True if the cycle completed, False if it was skipped
        """
        solar_data = self.client.get_solar_data()
        if solar_data is None:
            return False

        if len(solar_data) == 0:
            logger.warning("Feed contains no stations")
            return False

        actual_coord, series = solar_data.nearest_series_data(self.coord)
        if not series:
            logger.info("No datapoints obtained")
            return True

        logger.info(
            f"total {len(series)} datapoints obtained ({actual_coord}). "
            f"({format_datetime(series[0].timestamp)} -> {format_datetime(series[-1].timestamp)})"
        )

        if self.writer is None:
            return True

        if not self.writer.write(actual_coord, series):
            return False

        logger.info("Written!")
        return True

    def run(self, once=False):
        """Run a cycle now and then once every interval until interrupted.

        Args:
            once: Stop after the first cycle
        """
        next_tick = time.monotonic()
        try:
            while True:
                try:
                    self.run_cycle()
                except Exception:
                    logger.exception("Unexpected error in fetch cycle")

                if once:
                    break

                next_tick += self.interval
                delay = next_tick - time.monotonic()
                if delay > 0:
                    time.sleep(delay)
                else:
                    # Missed ticks are skipped rather than run back to back
                    next_tick = time.monotonic()

        except KeyboardInterrupt:
            logger.info("Interrupted, stopping")
        finally:
            self.close()

    def close(self):
        """Close client and writer sessions."""
        self.client.close()
        if self.writer is not None:
            self.writer.close()


def build_parser():
    """Build the argument parser for the dry-run and run subcommands."""
    parser = argparse.ArgumentParser(
        description="Log the AMECS solar generation series nearest to a location")
    parser.add_argument("--debug", action="store_true",
                        help="Print debug messages")
    parser.add_argument("--once", action="store_true",
                        help="Fetch the feed once then exit")
    parser.add_argument("--interval", type=float, default=FETCH_INTERVAL_SECONDS,
                        help="Seconds between fetches (default: %(default)s)")
    parser.add_argument("--config",
                        help=f"Path to JSON config file (default: ./{CONFIG_FILENAME} or {AMECS_SOLAR_CONFIG_PATH})")

    subparsers = parser.add_subparsers(dest="command", required=True)

    dry_run = subparsers.add_parser("dry-run", help="Fetch and match the feed without writing")
    run = subparsers.add_parser("run", help="Fetch, match and write to InfluxDB")

    for subparser in (dry_run, run):
        subparser.add_argument("--lat", help="Latitude to match [env: LAT]")
        subparser.add_argument("--lon", help="Longitude to match [env: LON]")

    run.add_argument("--infl-host", help="InfluxDB URL [env: INFL_HOST]")
    run.add_argument("--infl-token", help="InfluxDB API token [env: INFL_TOKEN]")
    run.add_argument("--infl-org", help="InfluxDB organisation [env: INFL_ORG]")
    run.add_argument("--infl-bucket", help="InfluxDB bucket [env: INFL_BUCKET]")

    return parser


def parse_coordinate(parser, values):
    """Turn resolved lat/lon values into a Coordinate, or exit with a usage error."""
    missing = [name for name, value in values.items() if value is None]
    if missing:
        parser.error(f"missing required option(s): {', '.join('--' + name for name in missing)}")
    try:
        return Coordinate(lat=float(values["lat"]), lon=float(values["lon"]))
    except (TypeError, ValueError):
        parser.error(f"invalid coordinate: lat={values['lat']!r} lon={values['lon']!r}")


def build_writer(parser, values):
    """Create an InfluxWriter from resolved options, or exit with a usage error."""
    missing = [name for name, value in values.items() if value is None]
    if missing:
        parser.error(f"missing required option(s): {', '.join('--' + name.replace('_', '-') for name in missing)}")
    return InfluxWriter(
        host=values["infl_host"],
        token=values["infl_token"],
        org=values["infl_org"],
        bucket=values["infl_bucket"],
    )


def main(argv=None):
    """Main entry point."""
    # Make stdout line-buffered (i.e. each line will be automatically flushed):
    sys.stdout.reconfigure(line_buffering=True)

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    config = load_config(args.config)
    coord = parse_coordinate(parser, resolve_options(args, config, COORD_OPTIONS))

    writer = None
    if args.command == "run":
        writer = build_writer(parser, resolve_options(args, config, INFLUX_OPTIONS))

    logger.info(f"Matching feed against {coord} ({'dry run' if writer is None else 'writing to ' + writer.host})")
    amecs_solar = AmecsSolar(coord, writer=writer, interval=args.interval)
    amecs_solar.run(once=args.once)


if __name__ == "__main__":
    main()
