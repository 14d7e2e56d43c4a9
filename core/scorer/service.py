#!/usr/bin/env python3
"""
Matching Service - Rank open tee times for a user and users for a tee time.

Scoring blends four factors with fixed weights:
- Industry: networking fit with the tee time's preference, host and players
- Skill: playing-level fit with the preference or the group's average
- Distance: miles from the user to the course, decaying past 30 miles
- Timing: how far out the round is, best at one to three days

Scoring is pure and never raises; missing profile data degrades to neutral
sub-scores. Only candidate retrieval touches the database, and it reads one
consistent snapshot per request.
"""

from datetime import datetime
from typing import Any, Iterable, List, Optional
import logging

from database.database import db_session_scope
from database.models import TeeTime
from database.repositories import TeeTimeRepository, UserRepository
from core.config_loader import MatchingConfig
from core.geo import distance_between
from core.utils import as_utc

from core.scorer.constants import SCORE_DECIMALS, WEIGHTS
from core.scorer.industry import calculate_industry_score
from core.scorer.models import MatchScore, RankedTeeTime, ScoreBreakdown, UserMatch
from core.scorer.proximity import calculate_distance_score, calculate_timing_score
from core.scorer.skill import calculate_skill_score

logger = logging.getLogger(__name__)


def _round(value: float) -> float:
    return round(value, SCORE_DECIMALS)


def calculate_score(
    user: Any,
    tee_time: Any,
    distance: float,
    now: Optional[datetime] = None
) -> MatchScore:
    """Weighted compatibility of user with tee_time.

    The total is computed from unrounded sub-scores; the total and each
    sub-score are rounded for display afterwards.
    """
    industry = calculate_industry_score(user, tee_time)
    skill = calculate_skill_score(user, tee_time)
    proximity = calculate_distance_score(distance, getattr(user, 'search_radius', None))
    timing = calculate_timing_score(getattr(tee_time, 'date_time', None), now)

    total = (
        industry * WEIGHTS['industry'] +
        skill * WEIGHTS['skill'] +
        proximity * WEIGHTS['distance'] +
        timing * WEIGHTS['timing']
    )

    return MatchScore(
        tee_time_id=getattr(tee_time, 'id', None),
        score=_round(total),
        breakdown=ScoreBreakdown(
            industry=_round(industry),
            skill=_round(skill),
            distance=_round(proximity),
            timing=_round(timing),
        )
    )


def _soonest_key(tee_time: Any):
    date_time = getattr(tee_time, 'date_time', None)
    if date_time is None:
        return (1, 0.0)
    return (0, as_utc(date_time).timestamp())


def rank_tee_times(
    user: Any,
    tee_times: Iterable[Any],
    now: Optional[datetime] = None
) -> List[RankedTeeTime]:
    """Score each tee time for user, best first.

    Distance is measured from the user to the tee time's course, or taken as
    0 when either lacks coordinates. Ties keep a deterministic order: the
    sooner round first.
    """
    ranked = []
    for tee_time in tee_times:
        distance = distance_between(user, getattr(tee_time, 'course', None))
        distance = distance if distance is not None else 0.0
        ranked.append(RankedTeeTime(
            tee_time=tee_time,
            score=calculate_score(user, tee_time, distance, now),
            distance_miles=distance,
        ))

    # Two stable passes: soonest first, then by score descending
    ranked.sort(key=lambda r: _soonest_key(r.tee_time))
    ranked.sort(key=lambda r: r.score.score, reverse=True)
    return ranked


class MatchingService:
    """Compatibility scoring and recommendation retrieval."""

    def __init__(self, config: Optional[MatchingConfig] = None, session_factory=None):
        self.config = config or MatchingConfig()
        self.session_factory = session_factory

    def score(
        self,
        user: Any,
        tee_time: Any,
        distance: float,
        now: Optional[datetime] = None
    ) -> MatchScore:
        return calculate_score(user, tee_time, distance, now)

    def rank(
        self,
        user: Any,
        tee_times: Iterable[Any],
        now: Optional[datetime] = None
    ) -> List[RankedTeeTime]:
        return rank_tee_times(user, tee_times, now)

    def recommend_tee_times(
        self,
        user: Any,
        limit: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> List[RankedTeeTime]:
        """Best open tee times for user.

        Users with a location get candidates within their search radius;
        users without one get any open tee time within the fallback radius,
        all scored at distance 0. Tee times the user already hosts or plays
        in are left out.
        """
        limit = limit or self.config.recommendation_limit

        latitude = getattr(user, 'latitude', None)
        longitude = getattr(user, 'longitude', None)
        if latitude is not None and longitude is not None:
            radius = user.search_radius
        else:
            latitude = longitude = None
            radius = self.config.fallback_radius_miles

        with db_session_scope(self.session_factory) as session:
            repo = TeeTimeRepository(session)
            candidates = repo.find_candidates_near(
                latitude,
                longitude,
                radius,
                limit=self.config.candidate_pool_size,
                now=now,
            )

        user_id = getattr(user, 'id', None)
        candidates = [tt for tt in candidates if not self._includes_user(tt, user_id)]

        ranked = self.rank(user, candidates, now)
        logger.info(f"Ranked {len(ranked)} candidate tee times for user {user_id}, returning top {limit}")
        return ranked[:limit]

    def find_matches_for_tee_time(
        self,
        tee_time: TeeTime,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> List[UserMatch]:
        """Located users who would fit tee_time, best first.

        Only users within their own search radius of the course and scoring
        at least min_score are returned; current players are excluded.
        """
        limit = limit or self.config.match_limit
        min_score = self.config.min_match_score if min_score is None else min_score

        existing = [slot.user_id for slot in tee_time.slots if slot.user_id is not None]

        with db_session_scope(self.session_factory) as session:
            users = UserRepository(session).find_located_users(exclude_ids=existing)

        matches = []
        for user in users:
            distance = distance_between(user, tee_time.course)
            if distance is None or distance > user.search_radius:
                continue

            match_score = calculate_score(user, tee_time, distance, now)
            if match_score.score >= min_score:
                matches.append(UserMatch(
                    user_id=user.id,
                    score=match_score.score,
                    distance_miles=distance,
                    breakdown=match_score.breakdown,
                ))

        matches.sort(key=lambda m: m.score, reverse=True)
        logger.info(f"Found {len(matches)} users matching tee time {tee_time.id} (min_score={min_score})")
        return matches[:limit]

    @staticmethod
    def _includes_user(tee_time: Any, user_id: Any) -> bool:
        if user_id is None:
            return False
        user_id = str(user_id)
        if str(getattr(tee_time, 'host_id', None)) == user_id:
            return True
        return any(str(slot.user_id) == user_id for slot in getattr(tee_time, 'slots', None) or ())
