#!/usr/bin/env python3
"""
Skill Score - Playing-level compatibility between a user and a tee time.

Skill levels are ordered (BEGINNER < INTERMEDIATE < ADVANCED < EXPERT), so
besides exact matches a neighbouring preferred level counts. When neither
applies, the user is compared against the mean level of the players already
in the group.
"""

from typing import Any, Optional
import logging

from database.models import SkillLevel
from core.scorer.constants import SKILL_LEVEL_ORDER, SKILL_PROXIMITY_BUCKETS, SKILL_SCORES
from core.scorer.industry import participants

logger = logging.getLogger(__name__)


def skill_index(value: Any) -> Optional[int]:
    """Position of a skill level in SKILL_LEVEL_ORDER; None if unset or unknown."""
    if value is None or value == '':
        return None
    try:
        return SKILL_LEVEL_ORDER.index(SkillLevel(value))
    except ValueError:
        logger.debug(f"Ignoring unknown skill level {value!r}")
        return None


def calculate_skill_score(user: Any, tee_time: Any) -> float:
    user_index = skill_index(getattr(user, 'skill_level', None))
    if user_index is None:
        return SKILL_SCORES['unknown']

    preferred = {
        index for index in map(skill_index, getattr(tee_time, 'skill_preference', None) or ())
        if index is not None
    }
    if not preferred:
        return SKILL_SCORES['open_to_all']

    if user_index in preferred:
        return SKILL_SCORES['exact']

    if any(abs(index - user_index) == 1 for index in preferred):
        return SKILL_SCORES['adjacent']

    levels = [
        index for index in (skill_index(getattr(p, 'skill_level', None)) for p in participants(tee_time))
        if index is not None
    ]
    if levels:
        diff = abs(user_index - sum(levels) / len(levels))
        for max_diff, score in SKILL_PROXIMITY_BUCKETS:
            if diff <= max_diff:
                return score

    return SKILL_SCORES['mismatch']
