#!/usr/bin/env python3
"""
Scoring Constants - Fixed weights, lookup tables and score buckets.

Kept as immutable data so each precedence rule in the factor modules reads
as a table lookup and can be tested in isolation.
"""

from types import MappingProxyType

from database.models import Industry, SkillLevel

# Composite weights; they sum to 1.0
WEIGHTS = MappingProxyType({
    'industry': 0.35,
    'skill': 0.25,
    'distance': 0.25,
    'timing': 0.15,
})

# Industries that often network together. Directional: A listing B does not
# mean B lists A.
INDUSTRY_AFFINITIES = MappingProxyType({
    Industry.TECHNOLOGY: (Industry.ENGINEERING, Industry.ENTREPRENEURSHIP, Industry.CONSULTING),
    Industry.FINANCE: (Industry.CONSULTING, Industry.LEGAL, Industry.REAL_ESTATE),
    Industry.HEALTHCARE: (Industry.CONSULTING, Industry.LEGAL),
    Industry.LEGAL: (Industry.FINANCE, Industry.REAL_ESTATE, Industry.HEALTHCARE),
    Industry.REAL_ESTATE: (Industry.FINANCE, Industry.LEGAL, Industry.SALES),
    Industry.CONSULTING: (Industry.TECHNOLOGY, Industry.FINANCE, Industry.EXECUTIVE),
    Industry.MARKETING: (Industry.SALES, Industry.TECHNOLOGY, Industry.ENTREPRENEURSHIP),
    Industry.SALES: (Industry.MARKETING, Industry.REAL_ESTATE, Industry.ENTREPRENEURSHIP),
    Industry.ENGINEERING: (Industry.TECHNOLOGY, Industry.CONSULTING),
    Industry.EXECUTIVE: (Industry.CONSULTING, Industry.ENTREPRENEURSHIP, Industry.FINANCE),
    Industry.ENTREPRENEURSHIP: (Industry.TECHNOLOGY, Industry.SALES, Industry.MARKETING),
    Industry.OTHER: (),
})

SKILL_LEVEL_ORDER = (
    SkillLevel.BEGINNER,
    SkillLevel.INTERMEDIATE,
    SkillLevel.ADVANCED,
    SkillLevel.EXPERT,
)

INDUSTRY_SCORES = MappingProxyType({
    'unknown': 0.5,          # user has no industry
    'open_to_all': 0.7,      # tee time lists no preference
    'exact': 1.0,
    'affinity': 0.8,
    'host_match': 0.9,       # checked after affinity even though it scores higher
    'participant_match': 0.85,
    'mismatch': 0.3,
})

SKILL_SCORES = MappingProxyType({
    'unknown': 0.5,
    'open_to_all': 0.7,
    'exact': 1.0,
    'adjacent': 0.75,
    'mismatch': 0.3,
})

# (max |user index - mean participant index|, score), first match wins
SKILL_PROXIMITY_BUCKETS = (
    (0.5, 0.9),
    (1.0, 0.7),
    (1.5, 0.5),
)

# (max distance in miles, score), inclusive, first match wins
DISTANCE_BUCKETS = (
    (5.0, 1.0),
    (15.0, 0.9),
    (30.0, 0.75),
)
DISTANCE_DECAY_START = 30.0
DISTANCE_DECAY_CEILING = 0.75
DISTANCE_FLOOR = 0.2

# (upper bound in hours, upper bound inclusive, score), first match wins.
# Resulting ranges: [0, 4) 0.5, [4, 24) 0.8, [24, 72] 1.0, (72, 168] 0.9,
# (168, 336] 0.7
TIMING_BUCKETS = (
    (4.0, False, 0.5),
    (24.0, False, 0.8),
    (72.0, True, 1.0),
    (168.0, True, 0.9),
    (336.0, True, 0.7),
)
TIMING_FAR_FUTURE_SCORE = 0.5
# Tee times already under way or over; candidate queries exclude them
TIMING_PAST_SCORE = 0.5

SCORE_DECIMALS = 2
