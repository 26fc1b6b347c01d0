from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..entities import RankedSpotScore, Rating, SpotScore, SurferProfile


def adjust_for_board_length(score: Rating, difficulty: Optional[str], board_length: Optional[float]) -> Rating:
    """Short boards favour advanced spots, long boards favour beginner spots."""
    if board_length is None or not difficulty:
        return score
    difficulty = difficulty.lower()
    if board_length <= 6 and difficulty == "advanced":
        return score.bump()
    if board_length > 8 and difficulty == "beginner":
        return score.bump()
    return score


def rank_spots(
    scores: Iterable[SpotScore],
    profile: SurferProfile,
    *,
    now: Optional[datetime] = None,
    region_id: Optional[str] = None,
) -> List[RankedSpotScore]:
    """Order spot scores for ``profile``, best first.

    Entries forecast strictly before ``now`` are dropped, as are entries scored
    for another skill level or board type than the profile's. Ties keep their
    input order.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    ranked: List[RankedSpotScore] = []
    for item in scores:
        if _as_utc(item.forecast_time) < now:
            continue
        if region_id is not None and item.region_id != region_id:
            continue
        if not _matches(item.skill_level, profile.skill_level) or not _matches(item.board_type, profile.board_type):
            continue
        ranked.append(
            RankedSpotScore(
                spot_id=item.spot_id,
                forecast_time=item.forecast_time,
                score=item.score,
                adjusted_score=adjust_for_board_length(item.score, item.difficulty, profile.board_length),
                difficulty=item.difficulty,
                region_id=item.region_id,
                skill_level=item.skill_level,
                board_type=item.board_type,
            )
        )
    return sorted(ranked, key=lambda entry: entry.adjusted_score.rank, reverse=True)


def _matches(scored_for, wanted) -> bool:
    return scored_for is None or wanted is None or scored_for is wanted


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


__all__ = ["adjust_for_board_length", "rank_spots"]
