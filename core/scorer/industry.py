#!/usr/bin/env python3
"""
Industry Score - How well a user's industry fits a tee time's networking mix.

Rules are evaluated in a fixed order and the first one that applies wins:
no user industry, open preference, exact match, affinity, host match,
participant match, mismatch.
"""

from typing import Any, Iterable, List, Optional, Set
import logging

from database.models import Industry
from core.scorer.constants import INDUSTRY_AFFINITIES, INDUSTRY_SCORES

logger = logging.getLogger(__name__)


def as_industry(value: Any) -> Optional[Industry]:
    """Industry member for an enum or raw string value; None if unset or unknown."""
    if value is None or value == '':
        return None
    try:
        return Industry(value)
    except ValueError:
        logger.debug(f"Ignoring unknown industry {value!r}")
        return None


def _industries(values: Optional[Iterable[Any]]) -> Set[Industry]:
    return {industry for industry in map(as_industry, values or ()) if industry is not None}


def participants(tee_time: Any) -> List[Any]:
    """Users currently holding a slot (the host included)."""
    return [
        slot.user for slot in (getattr(tee_time, 'slots', None) or ())
        if getattr(slot, 'user', None) is not None
    ]


def calculate_industry_score(user: Any, tee_time: Any) -> float:
    user_industry = as_industry(getattr(user, 'industry', None))
    if user_industry is None:
        return INDUSTRY_SCORES['unknown']

    preferences = _industries(getattr(tee_time, 'industry_preference', None))
    if not preferences:
        return INDUSTRY_SCORES['open_to_all']

    if user_industry in preferences:
        return INDUSTRY_SCORES['exact']

    if preferences.intersection(INDUSTRY_AFFINITIES.get(user_industry, ())):
        return INDUSTRY_SCORES['affinity']

    host = getattr(tee_time, 'host', None)
    if host is not None and as_industry(getattr(host, 'industry', None)) == user_industry:
        return INDUSTRY_SCORES['host_match']

    if any(as_industry(getattr(p, 'industry', None)) == user_industry for p in participants(tee_time)):
        return INDUSTRY_SCORES['participant_match']

    return INDUSTRY_SCORES['mismatch']
