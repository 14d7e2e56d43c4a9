import enum


class Industry(str, enum.Enum):
    TECHNOLOGY = 'TECHNOLOGY'
    FINANCE = 'FINANCE'
    HEALTHCARE = 'HEALTHCARE'
    LEGAL = 'LEGAL'
    REAL_ESTATE = 'REAL_ESTATE'
    CONSULTING = 'CONSULTING'
    MARKETING = 'MARKETING'
    SALES = 'SALES'
    ENGINEERING = 'ENGINEERING'
    EXECUTIVE = 'EXECUTIVE'
    ENTREPRENEURSHIP = 'ENTREPRENEURSHIP'
    OTHER = 'OTHER'


class SkillLevel(str, enum.Enum):
    """Declared in playing-strength order; scoring relies on it."""
    BEGINNER = 'BEGINNER'
    INTERMEDIATE = 'INTERMEDIATE'
    ADVANCED = 'ADVANCED'
    EXPERT = 'EXPERT'


class TeeTimeStatus(str, enum.Enum):
    OPEN = 'OPEN'
    FULL = 'FULL'
    CANCELLED = 'CANCELLED'
    COMPLETED = 'COMPLETED'


# Statuses that no longer accept joins or leaves
TERMINAL_STATUSES = frozenset({TeeTimeStatus.CANCELLED, TeeTimeStatus.COMPLETED})
