#!/usr/bin/env python3
"""
Scoring Module - Tee time compatibility scoring and ranking.

Public API:
- MatchingService: recommendation and reverse-matching orchestrator
- calculate_score / rank_tee_times: pure scoring entry points
- MatchScore, ScoreBreakdown, RankedTeeTime, UserMatch: result dataclasses

The module is split into focused, single-responsibility pieces:

- constants.py: Weights, affinity table, skill order and score buckets
- industry.py: Industry sub-score
- skill.py: Skill sub-score
- proximity.py: Distance and timing sub-scores
- models.py: Result dataclasses
- service.py: Composite score, ranking and MatchingService
"""

from core.scorer.models import MatchScore, RankedTeeTime, ScoreBreakdown, UserMatch
from core.scorer.service import MatchingService, calculate_score, rank_tee_times

__all__ = [
    'MatchingService',
    'calculate_score',
    'rank_tee_times',
    'MatchScore',
    'ScoreBreakdown',
    'RankedTeeTime',
    'UserMatch',
]
