#!/usr/bin/env python3
"""
Request models for tee time operations.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from database.models import Industry, SkillLevel, TeeTimeStatus, MIN_SLOTS, MAX_SLOTS
from core.utils import as_utc, utcnow

NOTES_MAX_LENGTH = 500


def _must_be_future(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and as_utc(value) <= utcnow():
        raise ValueError('Date must be in the future')
    return value


class CreateTeeTimeRequest(BaseModel):
    """Request to host a new tee time."""
    course_id: UUID = Field(..., description="Course to play")
    date_time: datetime = Field(..., description="Tee time, must be in the future")
    total_slots: int = Field(MAX_SLOTS, ge=MIN_SLOTS, le=MAX_SLOTS, description="Number of players (2-4)")
    industry_preference: List[Industry] = Field(default_factory=list)
    skill_preference: List[SkillLevel] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)

    @field_validator('date_time')
    @classmethod
    def date_time_in_future(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _must_be_future(value)


class UpdateTeeTimeRequest(BaseModel):
    """Partial update of a tee time; only provided fields change."""
    date_time: Optional[datetime] = None
    total_slots: Optional[int] = Field(None, ge=MIN_SLOTS, le=MAX_SLOTS)
    industry_preference: Optional[List[Industry]] = None
    skill_preference: Optional[List[SkillLevel]] = None
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)
    status: Optional[TeeTimeStatus] = Field(None, description="Only OPEN or CANCELLED")

    @field_validator('date_time', 'total_slots', 'status', 'industry_preference', 'skill_preference')
    @classmethod
    def not_null_when_given(cls, value):
        # Omit a field to leave it unchanged; only notes can be cleared
        if value is None:
            raise ValueError('Cannot be null')
        return value

    @field_validator('date_time')
    @classmethod
    def date_time_in_future(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _must_be_future(value)

    @field_validator('status')
    @classmethod
    def status_is_settable(cls, value: Optional[TeeTimeStatus]) -> Optional[TeeTimeStatus]:
        if value is not None and value not in (TeeTimeStatus.OPEN, TeeTimeStatus.CANCELLED):
            raise ValueError('Status can only be set to OPEN or CANCELLED')
        return value


class ListTeeTimesRequest(BaseModel):
    """Filters for browsing tee times."""
    course_id: Optional[UUID] = None
    host_id: Optional[UUID] = None
    status: Optional[TeeTimeStatus] = None
    industry: Optional[Industry] = None
    skill_level: Optional[SkillLevel] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius: float = Field(50, ge=1, le=200, description="Search radius in miles")
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    has_available_slots: bool = False
    cursor: Optional[str] = Field(None, description="Id of the last tee time on the previous page")
    limit: int = Field(20, ge=1, le=100)


class JoinTeeTimeRequest(BaseModel):
    """Request to join a tee time, optionally in a specific slot."""
    slot_number: Optional[int] = Field(None, ge=1, le=MAX_SLOTS)
