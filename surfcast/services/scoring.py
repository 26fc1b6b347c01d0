"""Personalized surf suitability scoring.

Every hour goes through the same ordered stages: base score from wave height,
skill adjustment, board adjustment, wind adjustment, rating. Each stage clamps
into 0..100 before the next one runs, so the order changes the result.
Nothing here performs I/O or keeps state between calls.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from ..entities import (
    BoardType,
    HourlyObservation,
    Rating,
    ScoredObservation,
    SkillLevel,
    SurferProfile,
    UnifiedForecast,
)

MIN_SCORE = 0
MAX_SCORE = 100

OffshorePredicate = Callable[[HourlyObservation], bool]


def never_offshore(hour: HourlyObservation) -> bool:
    """Default predicate; offshore detection needs the spot's coastline orientation."""
    return False


def clamp(score: float) -> int:
    return int(max(MIN_SCORE, min(MAX_SCORE, score)))


def base_score(wave_height: Optional[float]) -> int:
    if wave_height is None:
        return 0
    if wave_height < 0.3:
        return 20
    if 0.7 <= wave_height <= 1.5:
        return 90
    if 1.5 < wave_height <= 3.0:
        return 70
    if wave_height > 3.0:
        return 30
    return 50


def adjust_for_skill(score: int, wave_height: float, skill_level: Optional[SkillLevel]) -> int:
    delta = 0
    if skill_level is SkillLevel.BEGINNER:
        if wave_height < 0.5:
            delta = 20
        elif wave_height > 1.0:
            delta = -30
    elif skill_level is SkillLevel.INTERMEDIATE:
        if 0.5 <= wave_height <= 1.2:
            delta = 10
        elif wave_height > 2.0:
            delta = -20
    elif skill_level is SkillLevel.ADVANCED:
        if 0.7 <= wave_height <= 2.0:
            delta = 10
    elif skill_level is SkillLevel.EXPERT:
        if 1.0 <= wave_height <= 3.0:
            delta = 20
    return clamp(score + delta)


def adjust_for_board(
    score: int,
    wave_height: float,
    board_type: Optional[BoardType],
    board_length: Optional[float],
) -> int:
    delta = 0
    if board_type is BoardType.SHORTBOARD:
        if 0.7 <= wave_height <= 2.5:
            delta = 15
        elif wave_height < 0.5:
            delta = -20
    elif board_type is BoardType.LONGBOARD:
        if 0.3 <= wave_height <= 1.2:
            delta = 15
        elif wave_height > 1.8:
            delta = -25
    elif board_type is BoardType.FUNBOARD:
        if 0.4 <= wave_height <= 1.5:
            delta = 10
    score = clamp(score + delta)

    # length tie-break applies to every board type
    if board_length is not None:
        if board_length < 6 and wave_height > 1.5:
            score = clamp(score + 5)
        elif board_length > 8 and wave_height < 0.8:
            score = clamp(score + 5)
    return score


def adjust_for_wind(score: int, hour: HourlyObservation, offshore: OffshorePredicate = never_offshore) -> int:
    wind_speed = hour.wind_speed
    if wind_speed is None:
        return score
    if wind_speed > 8:
        return clamp(score - 30)
    if wind_speed > 5:
        return clamp(score - 15)
    if wind_speed < 5 and offshore(hour):
        return clamp(score + 20)
    return score


def rating_for(score: int) -> Rating:
    if score >= 80:
        return Rating.EXCELLENT
    if score >= 60:
        return Rating.GOOD
    if score >= 40:
        return Rating.FAIR
    if score >= 20:
        return Rating.POOR
    return Rating.BAD


def score_hour(
    hour: HourlyObservation,
    profile: SurferProfile,
    offshore: OffshorePredicate = never_offshore,
) -> ScoredObservation:
    wave_height = hour.wave_height
    score = base_score(wave_height)
    if wave_height is not None:
        score = adjust_for_skill(score, wave_height, profile.skill_level)
        score = adjust_for_board(score, wave_height, profile.board_type, profile.board_length)
        score = adjust_for_wind(score, hour, offshore)
    return ScoredObservation(observation=hour, score=score, rating=rating_for(score))


def score_forecast(
    forecast: UnifiedForecast,
    profile: SurferProfile,
    *,
    offshore: OffshorePredicate = never_offshore,
) -> List[ScoredObservation]:
    """Score every hourly entry of ``forecast`` for ``profile``, keeping its order."""
    return [score_hour(hour, profile, offshore) for hour in forecast.hourly]


def quick_rating(wave_height: float, skill_level: Optional[SkillLevel]) -> Rating:
    """Coarse wave-height rating per skill, used for precomputed spot scores.

    Beginners and intermediates get their own tables; everyone else is rated
    on the advanced table.
    """
    if skill_level is SkillLevel.BEGINNER:
        if wave_height < 0.5:
            return Rating.GOOD
        if wave_height < 1.0:
            return Rating.FAIR
        if wave_height < 1.5:
            return Rating.POOR
        return Rating.BAD
    if skill_level is SkillLevel.INTERMEDIATE:
        if wave_height < 0.5:
            return Rating.FAIR
        if wave_height < 1.0:
            return Rating.GOOD
        if wave_height < 1.5:
            return Rating.EXCELLENT
        if wave_height < 2.0:
            return Rating.GOOD
        if wave_height < 2.5:
            return Rating.FAIR
        return Rating.POOR
    if wave_height < 0.5:
        return Rating.POOR
    if wave_height < 1.0:
        return Rating.FAIR
    if wave_height < 1.5:
        return Rating.GOOD
    if wave_height < 2.5:
        return Rating.EXCELLENT
    if wave_height < 3.5:
        return Rating.GOOD
    return Rating.FAIR


__all__ = [
    "OffshorePredicate",
    "adjust_for_board",
    "adjust_for_skill",
    "adjust_for_wind",
    "base_score",
    "clamp",
    "never_offshore",
    "quick_rating",
    "rating_for",
    "score_forecast",
    "score_hour",
]
