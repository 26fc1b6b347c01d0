"""Command line entry point: fetch and score a forecast, or rank spot scores."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Any, Optional, Sequence, TextIO

from .cache import ForecastCache
from .entities import Coordinate, Rating, SpotScore, SurferProfile, ValidationError
from .providers import default_providers
from .serializers import serialize_forecast, serialize_ranking, serialize_scores
from .services.aggregator import AggregationError, ForecastAggregator
from .services.ranking import rank_spots
from .services.scoring import score_forecast
from .settings import ConfigurationError, Settings, load_settings


class CommandError(Exception):
    """Raised for failures that should end the command with a message."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="surfcast", description="Personalized surf forecasts")
    subparsers = parser.add_subparsers(dest="command", required=True)

    forecast = subparsers.add_parser("forecast", help="Fetch, merge and score a forecast")
    forecast.add_argument("--lat", type=float, required=True, help="Latitude")
    forecast.add_argument("--lon", type=float, required=True, help="Longitude")
    forecast.add_argument("--spot-id", help="Surfline spot identifier")
    forecast.add_argument("--skill", help="beginner, intermediate, advanced or expert")
    forecast.add_argument("--board", help="shortboard, longboard, funboard or other")
    forecast.add_argument("--board-length", type=float, help="Board length in feet")
    forecast.add_argument("--timeout", type=float, help="Overall deadline in seconds")
    forecast.add_argument("--raw", action="store_true", help="Print the merged forecast without scores")

    rank = subparsers.add_parser("rank", help="Rank precomputed spot scores from a JSON file")
    rank.add_argument("file", type=argparse.FileType("r"), help="JSON list of spot scores ('-' for stdin)")
    rank.add_argument("--skill", help="Only keep scores computed for this skill level")
    rank.add_argument("--board", help="Only keep scores computed for this board type")
    rank.add_argument("--board-length", type=float, help="Board length in feet")
    rank.add_argument("--region", help="Only keep spots in this region")
    return parser


def handle_forecast(options: argparse.Namespace, settings: Settings) -> Any:
    try:
        coordinate = Coordinate(options.lat, options.lon)
        profile = SurferProfile.from_mapping(
            {
                "skill_level": options.skill,
                "board_type": options.board,
                "board_length": options.board_length,
            }
        )
    except ValidationError as exc:
        raise CommandError(str(exc)) from exc

    aggregator = ForecastAggregator(
        default_providers(request_config=settings.request_config()),
        cache=ForecastCache(ttl=settings.cache_ttl),
    )
    try:
        forecast = aggregator.get_integrated_forecast(
            coordinate,
            settings.credentials,
            spot_id=options.spot_id,
            timeout=options.timeout or settings.aggregate_timeout,
        )
    except (AggregationError, ValidationError) as exc:
        raise CommandError(f"Forecast unavailable: {exc}") from exc

    if options.raw:
        return serialize_forecast(forecast)
    return {
        "daily": serialize_forecast(forecast)["daily"],
        "hourly": serialize_scores(score_forecast(forecast, profile)),
        "sources": list(forecast.sources),
        "failures": dict(forecast.failures),
    }


def handle_rank(options: argparse.Namespace) -> Any:
    try:
        entries = json.load(options.file)
    except ValueError as exc:
        raise CommandError(f"Invalid JSON: {exc}") from exc
    finally:
        options.file.close()
    if not isinstance(entries, list):
        raise CommandError("Expected a JSON list of spot scores")
    try:
        profile = SurferProfile(options.skill, options.board, options.board_length)
        scores = [_spot_score(entry) for entry in entries]
    except ValidationError as exc:
        raise CommandError(str(exc)) from exc
    return serialize_ranking(rank_spots(scores, profile, region_id=options.region))


def _spot_score(entry: Any) -> SpotScore:
    if not isinstance(entry, dict):
        raise ValidationError("Each spot score must be an object")
    try:
        return SpotScore(
            spot_id=str(entry["spot_id"]),
            forecast_time=datetime.fromisoformat(str(entry["forecast_time"]).replace("Z", "+00:00")),
            score=Rating(entry["score"]),
            difficulty=entry.get("difficulty"),
            region_id=entry.get("region_id"),
            skill_level=entry.get("skill_level"),
            board_type=entry.get("board_type"),
        )
    except KeyError as exc:
        raise ValidationError(f"Spot score is missing {exc.args[0]!r}") from exc
    except ValueError as exc:
        raise ValidationError(f"Invalid spot score {entry!r}: {exc}") from exc


def main(argv: Optional[Sequence[str]] = None, stdout: Optional[TextIO] = None) -> int:
    stdout = stdout or sys.stdout
    parser = build_parser()
    options = parser.parse_args(argv)
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        parser.exit(2, f"surfcast: {exc}\n")
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        if options.command == "forecast":
            payload = handle_forecast(options, settings)
        else:
            payload = handle_rank(options)
    except CommandError as exc:
        parser.exit(1, f"surfcast: {exc}\n")
    stdout.write(json.dumps(payload, ensure_ascii=False))
    stdout.write("\n")
    return 0


__all__ = ["CommandError", "build_parser", "main"]
