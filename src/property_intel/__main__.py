import argparse
import dataclasses
import json
import logging
from pathlib import Path

from .categories import ALL_CATEGORIES
from .config import get_settings
from .models import Query
from .wiring import build_coordinator


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Aggregate location intelligence for a point",
    )

    parser.add_argument(
        "--lat",
        type=float,
        required=True,
        help="Latitude in decimal degrees",
    )

    parser.add_argument(
        "--lon",
        type=float,
        required=True,
        help="Longitude in decimal degrees",
    )

    parser.add_argument(
        "--address",
        default="",
        help="Free-text address hint",
    )

    parser.add_argument(
        "--categories",
        default=None,
        help="Comma-separated list of categories (default: all)",
    )

    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use offline demo adapters (no network)",
    )

    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit one JSON log line per provider outcome",
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, etc.)",
    )

    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Overall deadline in seconds; pending providers are cancelled",
    )

    parser.add_argument(
        "--output",
        default=None,
        help="Write the profile JSON to a file (path)",
    )

    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level.upper())

    settings = get_settings()
    if args.demo and not settings.demo:
        settings = dataclasses.replace(settings, demo=True)

    if args.categories:
        requested = [c for c in args.categories.split(",") if c.strip()]
    else:
        requested = list(ALL_CATEGORIES)

    query = Query(args.lat, args.lon, args.address)
    coordinator = build_coordinator(settings)
    profile, outcomes = coordinator.aggregate_with_outcomes_sync(query, requested, deadline=args.deadline)

    if args.log_json:
        for outcome in outcomes:
            print(json.dumps(outcome.to_log_dict()))
        summary = {"summary": profile.summary.to_dict()}
        summary["outcomes"] = len(outcomes)
        summary["succeeded"] = sum(1 for o in outcomes if o.succeeded)
        print(json.dumps(summary))

    payload = profile.to_dict()
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(json.dumps({"output": str(output_path)}))
    else:
        print(json.dumps(payload, indent=2))
    return 0


def _safe_main(argv=None):
    try:
        main(argv)
    except SystemExit:
        raise
    except Exception as exc:
        print(json.dumps({"error": str(exc)}))
        raise SystemExit(1)


if __name__ == "__main__":
    _safe_main()
