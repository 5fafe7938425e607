from __future__ import annotations

import argparse
import json
from datetime import date, datetime
from typing import List, Optional

from production_metrics.metrics.metric_aggregator import AGGREGATORS
from production_metrics.metrics.metric_models import (
    MODE_CHOICES,
    MODE_RAW,
    TEAM_ALL,
    TEAM_CHOICES,
    FilterSpec,
)
from production_metrics.presentation.console import render_summary, render_timeseries


def _iso_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r} (expected YYYY-MM-DD)")


def _machine_id(value: str) -> int:
    try:
        machine = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"machine must be an integer, got {value!r}")
    if machine < 1:
        raise argparse.ArgumentTypeError("machine must be >= 1")
    return machine


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="production-metrics",
        description="Production line footage / speed by shift workday",
    )

    parser.add_argument(
        "metric",
        choices=sorted(AGGREGATORS),
        help="Metric family to report.",
    )
    parser.add_argument("--start", type=_iso_date, required=True, help="First shift workday (YYYY-MM-DD).")
    parser.add_argument("--end", type=_iso_date, required=True, help="Last shift workday (YYYY-MM-DD), inclusive.")
    parser.add_argument("--team", choices=TEAM_CHOICES, default=TEAM_ALL, help="Shift team filter.")
    parser.add_argument("--machine", type=_machine_id, default=None, help="Machine id filter.")
    parser.add_argument(
        "--mode",
        choices=MODE_CHOICES,
        default=MODE_RAW,
        help=(
            "Speed: raw = every reading, running = only readings > 0. "
            "Footage always sums every increment; the mode is only echoed."
        ),
    )
    parser.add_argument(
        "--view",
        choices=["summary", "timeseries", "both"],
        default="both",
        help="Which result(s) to print.",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text.")

    return parser


def parse_filter_spec(args: argparse.Namespace, parser: argparse.ArgumentParser) -> FilterSpec:
    if args.start > args.end:
        parser.error("--start must be before or equal to --end")

    return FilterSpec(
        start_date=args.start,
        end_date=args.end,
        team=args.team,
        machine_id=args.machine,
        mode=args.mode,
    )


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    spec = parse_filter_spec(args, parser)

    aggregator = AGGREGATORS[args.metric]()

    summary = aggregator.get_summary(spec) if args.view in ("summary", "both") else None
    series = aggregator.get_timeseries(spec) if args.view in ("timeseries", "both") else None

    if args.json:
        payload = {}
        if summary is not None:
            payload["summary"] = summary.to_dict()
        if series is not None:
            payload["timeseries"] = series.to_dict()
        print(json.dumps(payload, indent=2))
        return

    if summary is not None:
        print(render_summary(summary))
    if series is not None:
        print(render_timeseries(series, title=f"{args.metric.upper()} BY SHIFT WORKDAY"))


if __name__ == "__main__":
    main()
