#!/usr/bin/env python3
"""
Proximity Scores - Distance and timing factors.

Distance decays with miles from the course; timing favours rounds one to
three days out.
"""

from datetime import datetime
from typing import Optional

from core.scorer.constants import (
    DISTANCE_BUCKETS,
    DISTANCE_DECAY_CEILING,
    DISTANCE_DECAY_START,
    DISTANCE_FLOOR,
    TIMING_BUCKETS,
    TIMING_FAR_FUTURE_SCORE,
    TIMING_PAST_SCORE,
)
from core.utils import hours_until


def calculate_distance_score(distance: float, search_radius: float) -> float:
    """
    Score in [0.2, 1.0], non-increasing in distance.

    Past 30 miles the score decays linearly from 0.75 towards zero at the
    user's search radius and is floored at 0.2. A search radius of 30 miles
    or less leaves no room for the decay, so anything past 30 gets the floor.
    """
    for max_distance, score in DISTANCE_BUCKETS:
        if distance <= max_distance:
            return score

    if search_radius is None or search_radius <= DISTANCE_DECAY_START:
        return DISTANCE_FLOOR

    ratio = (search_radius - distance) / (search_radius - DISTANCE_DECAY_START)
    return max(DISTANCE_FLOOR, DISTANCE_DECAY_CEILING * ratio)


def calculate_timing_score(date_time: datetime, now: Optional[datetime] = None) -> float:
    if date_time is None:
        return TIMING_FAR_FUTURE_SCORE

    hours = hours_until(date_time, now)

    if hours < 0:
        return TIMING_PAST_SCORE

    for upper, inclusive, score in TIMING_BUCKETS:
        if hours < upper or (inclusive and hours == upper):
            return score

    return TIMING_FAR_FUTURE_SCORE
