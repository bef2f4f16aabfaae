#!/usr/bin/env python3
"""
BirdWeather Command Line Interface
==================================
Run any query function from the shell and print or save the resulting table.

Usage:
    birdweather stations --query backyard --limit 20
    birdweather --output dets.csv detections --from 2025-05-01T00:00:00.000Z \\
        --to 2025-05-02T00:00:00.000Z --species-name "Wood Thrush"
    birdweather tod-counts --species-id 305 --station-id 1733 --station-id 9 --by-station
    birdweather init-config
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import yaml

from .config.settings import ClientConfig, create_default_config
from .core.client import BirdWeatherClient, connect
from .core.errors import UsageError
from .core.results import FetchResult, FetchStatus
from .export import write_result
from .queries import (
    find_species,
    get_counts,
    get_daily_detection_counts,
    get_detections,
    get_environment_data,
    get_light_data,
    get_species_info,
    get_stations,
    get_tod_counts,
    get_top_species,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")
PREVIEW_ROWS = 10

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def setup_logging(level: str = "INFO"):
    """Configure logging for command line runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def _lat_lon(value: str) -> Dict[str, float]:
    """Parse a "LAT,LON" corner."""
    try:
        lat, lon = value.split(",")
        return {"lat": float(lat), "lon": float(lon)}
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {value!r}")


# --- Argument Groups ---

def _add_period(parser: argparse.ArgumentParser):
    parser.add_argument("--from", dest="from_", help="Period start, e.g. 2025-05-01T00:00:00.000Z")
    parser.add_argument("--to", help="Period end, e.g. 2025-05-02T00:00:00.000Z")


def _add_box(parser: argparse.ArgumentParser):
    parser.add_argument("--ne", type=_lat_lon, help="North-east corner as LAT,LON")
    parser.add_argument("--sw", type=_lat_lon, help="South-west corner as LAT,LON")


def _add_stations(parser: argparse.ArgumentParser):
    parser.add_argument("--station-id", dest="station_ids", action="append", help="Station id (repeatable)")


def _add_limit(parser: argparse.ArgumentParser, default: Optional[int] = None):
    parser.add_argument("--limit", type=int, default=default, help="Maximum rows to return")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="birdweather",
        description="Query the BirdWeather GraphQL API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  birdweather stations --query backyard --limit 20
  birdweather --output dets.jsonl detections --species-id 305 --limit 1000
  birdweather counts --from 2025-05-01T00:00:00.000Z --to 2025-05-02T00:00:00.000Z
  birdweather init-config
        """
    )
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to configuration file")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--output", type=Path, help="Write rows to a .csv, .jsonl or .json file")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    det = subparsers.add_parser("detections", help="Fetch detections")
    _add_period(det)
    _add_stations(det)
    det.add_argument("--station-type", dest="station_types", action="append", help="e.g. puc, birdnetpi, app")
    det.add_argument("--species-id", dest="species_ids", action="append", help="Species id (repeatable)")
    det.add_argument("--species-name", dest="species_names", action="append", help="Common or scientific name")
    det.add_argument("--continent", dest="continents", action="append")
    det.add_argument("--country", dest="countries", action="append")
    det.add_argument("--min-confidence", dest="confidence_gte", type=float, help="Minimum confidence (0-1)")
    _add_box(det)
    _add_limit(det)

    st = subparsers.add_parser("stations", help="Fetch stations")
    st.add_argument("--query", help="Search string for station names")
    _add_period(st)
    _add_box(st)
    _add_limit(st)

    sp = subparsers.add_parser("species", help="Search species by name")
    sp.add_argument("query", help="Common or scientific name, or part of one")
    _add_limit(sp, default=20)

    info = subparsers.add_parser("species-info", help="Look up species metadata by id")
    info.add_argument("ids", nargs="+", help="Species ids")

    counts = subparsers.add_parser("counts", help="Detection, species and station totals")
    _add_period(counts)
    _add_stations(counts)
    counts.add_argument("--station-type", dest="station_types", action="append")
    counts.add_argument("--species-id")
    _add_box(counts)

    daily = subparsers.add_parser("daily-counts", help="Daily detection totals")
    _add_period(daily)
    _add_stations(daily)
    daily.add_argument("--species-id", dest="species_ids", action="append")
    daily.add_argument("--by-species", action="store_true", help="One row per species per day")

    top = subparsers.add_parser("top-species", help="Most detected species")
    _add_period(top)
    _add_stations(top)
    top.add_argument("--station-type", dest="station_types", action="append")
    _add_limit(top, default=10)

    tod = subparsers.add_parser("tod-counts", help="Detections by time of day for one species")
    tod.add_argument("--species-id", help="Species id (required)")
    _add_period(tod)
    _add_stations(tod)
    tod.add_argument("--min-confidence", dest="confidence_gte", type=float)
    _add_box(tod)
    tod.add_argument("--tod-gte", type=float, help="Earliest time of day as a fractional hour")
    tod.add_argument("--tod-lte", type=float, help="Latest time of day as a fractional hour")
    tod.add_argument("--by-station", action="store_true", help="One request per station")
    tod.add_argument("--fill-zeros", action="store_true", help="Add zero rows for empty bins")

    for name, help_text in (("environment", "PUC environmental sensor history"),
                            ("light", "PUC spectral light sensor history")):
        sensor = subparsers.add_parser(name, help=help_text)
        _add_stations(sensor)
        _add_period(sensor)
        _add_limit(sensor)

    subparsers.add_parser("init-config", help="Create default configuration file")

    return parser


# --- Command Handlers ---

def _detections(client: BirdWeatherClient, args: argparse.Namespace) -> FetchResult:
    return get_detections(
        client, from_=args.from_, to=args.to,
        station_ids=args.station_ids, station_types=args.station_types,
        species_ids=args.species_ids, species_names=args.species_names,
        continents=args.continents, countries=args.countries,
        confidence_gte=args.confidence_gte, ne=args.ne, sw=args.sw, limit=args.limit,
    )


def _stations(client, args):
    return get_stations(client, query=args.query, from_=args.from_, to=args.to,
                        ne=args.ne, sw=args.sw, limit=args.limit)


def _species(client, args):
    return find_species(client, args.query, limit=args.limit)


def _species_info(client, args):
    return get_species_info(client, args.ids)


def _counts(client, args):
    return get_counts(client, from_=args.from_, to=args.to, station_ids=args.station_ids,
                      station_types=args.station_types, species_id=args.species_id,
                      ne=args.ne, sw=args.sw)


def _daily_counts(client, args):
    return get_daily_detection_counts(client, from_=args.from_, to=args.to, station_ids=args.station_ids,
                                      species_ids=args.species_ids, by_species=args.by_species)


def _top_species(client, args):
    return get_top_species(client, limit=args.limit, from_=args.from_, to=args.to,
                           station_ids=args.station_ids, station_types=args.station_types)


def _tod_counts(client, args):
    return get_tod_counts(
        client, species_id=args.species_id, from_=args.from_, to=args.to,
        station_ids=args.station_ids, confidence_gte=args.confidence_gte,
        ne=args.ne, sw=args.sw, time_of_day_gte=args.tod_gte, time_of_day_lte=args.tod_lte,
        by_station=args.by_station, fill_zeros=args.fill_zeros,
    )


def _environment(client, args):
    return get_environment_data(client, station_id=args.station_ids, from_=args.from_,
                                to=args.to, limit=args.limit)


def _light(client, args):
    return get_light_data(client, station_id=args.station_ids, from_=args.from_,
                          to=args.to, limit=args.limit)


COMMANDS: Dict[str, Callable[[BirdWeatherClient, argparse.Namespace], FetchResult]] = {
    "detections": _detections,
    "stations": _stations,
    "species": _species,
    "species-info": _species_info,
    "counts": _counts,
    "daily-counts": _daily_counts,
    "top-species": _top_species,
    "tod-counts": _tod_counts,
    "environment": _environment,
    "light": _light,
}


def print_summary(command: str, result: FetchResult, rows: int = PREVIEW_ROWS):
    """Print a short summary of a result followed by its first rows."""
    print("\n" + "=" * 70)
    print(f"{command.upper()} SUMMARY")
    print("=" * 70)
    print(f"  Status:   {result.status.value}")
    print(f"  Rows:     {len(result)}")
    print(f"  Pages:    {result.pages_fetched} ({result.requests_made} requests)")
    if result.failed_page is not None:
        print(f"  Failed on page {result.failed_page}")
    for message in result.messages:
        print(f"  Note: {message}")
    for error in result.errors[:3]:
        print(f"  Error: {error}")

    if result.rows:
        print("-" * 70)
        print(" | ".join(result.columns))
        for row in result.rows[:rows]:
            print(" | ".join("" if row.get(c) is None else str(row.get(c)) for c in result.columns))
        if len(result) > rows:
            print(f"... {len(result) - rows} more rows")
    print("=" * 70)


def load_config(path: Optional[Path]) -> ClientConfig:
    if path is not None and path.exists():
        return ClientConfig.from_file(path)
    return ClientConfig.from_env()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``birdweather`` command. Returns the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_USAGE

    if args.command == "init-config":
        path = create_default_config(args.config)
        print(f"Created {path}")
        return EXIT_OK

    try:
        config = load_config(args.config)
    except (ValueError, yaml.YAMLError) as e:
        print(f"Invalid configuration in {args.config}: {e}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(args.log_level or config.log_level)

    client = connect(config)
    try:
        result = COMMANDS[args.command](client, args)
    except UsageError as e:
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE
    finally:
        client.close()

    if args.output is not None:
        try:
            write_result(args.output, result)
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            return EXIT_USAGE
        print(f"Saved {len(result)} rows to {args.output} ({result.status.value})")
    else:
        print_summary(args.command, result)

    if result.status is FetchStatus.FAILED:
        return EXIT_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
