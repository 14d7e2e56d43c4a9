#!/usr/bin/env python3
"""
Scoring Models - Data structures for scoring results.
"""

from typing import Any, Dict
from dataclasses import dataclass, field

from database.models import TeeTime


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-factor sub-scores, each in [0, 1]."""
    industry: float = 0.0
    skill: float = 0.0
    distance: float = 0.0
    timing: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            'industry_score': self.industry,
            'skill_score': self.skill,
            'distance_score': self.distance,
            'timing_score': self.timing,
        }


@dataclass(frozen=True)
class MatchScore:
    """Composite compatibility of a user with a tee time. Never persisted."""
    tee_time_id: Any
    score: float
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tee_time_id': str(self.tee_time_id) if self.tee_time_id is not None else None,
            'score': self.score,
            'breakdown': self.breakdown.to_dict(),
        }


@dataclass
class RankedTeeTime:
    tee_time: TeeTime
    score: MatchScore
    distance_miles: float = 0.0


@dataclass
class UserMatch:
    """A user who would fit an existing tee time."""
    user_id: Any
    score: float
    distance_miles: float
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
