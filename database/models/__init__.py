from .base import Base
from .enums import Industry, SkillLevel, TeeTimeStatus, TERMINAL_STATUSES
from .user import User, DEFAULT_SEARCH_RADIUS_MILES
from .course import Course
from .tee_time import TeeTime, TeeTimeSlot, MIN_SLOTS, MAX_SLOTS

__all__ = [
    'Base',
    'Industry',
    'SkillLevel',
    'TeeTimeStatus',
    'TERMINAL_STATUSES',
    'User',
    'DEFAULT_SEARCH_RADIUS_MILES',
    'Course',
    'TeeTime',
    'TeeTimeSlot',
    'MIN_SLOTS',
    'MAX_SLOTS',
]
