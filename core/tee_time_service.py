#!/usr/bin/env python3
"""
Tee time service - hosting, browsing, joining and leaving tee times.

Every mutation runs in its own unit of work (database.uow). Joins run at the
configured isolation level (SERIALIZABLE by default); when the database aborts
a join because a concurrent join won, the caller gets SlotUnavailableError and
may retry after re-reading the tee time. Nothing is retried here.
"""

import contextlib
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import DBAPIError, IntegrityError

from database.database import db_session_scope
from database.models import TeeTime, TeeTimeSlot, TeeTimeStatus
from database.repositories import CourseRepository, TeeTimeRepository
from database.uow import tee_time_uow
from core.config_loader import TeeTimeConfig
from core.exceptions import (
    AlreadyJoinedError,
    ForbiddenError,
    NotFoundError,
    SlotUnavailableError,
)
from core.schemas import CreateTeeTimeRequest, ListTeeTimesRequest, UpdateTeeTimeRequest
from core.scorer.models import MatchScore
from core.utils import enum_value, to_uuid

logger = logging.getLogger(__name__)

# SQLSTATE codes PostgreSQL uses when it aborts one of two conflicting transactions
SERIALIZATION_FAILURE_CODES = frozenset({'40001', '40P01'})


def is_serialization_failure(exc: DBAPIError) -> bool:
    """True if the driver error means the transaction lost to a concurrent one."""
    orig = getattr(exc, 'orig', None)
    code = getattr(orig, 'pgcode', None) or getattr(orig, 'sqlstate', None)
    if code in SERIALIZATION_FAILURE_CODES:
        return True
    # SQLite reports writer contention as a locked database
    return 'database is locked' in str(orig or exc).lower()


@contextlib.contextmanager
def _translate_store_errors(tee_time_id: Any, user_id: Any):
    """Map store-level aborts, including those raised at commit, to slot errors."""
    try:
        yield
    except IntegrityError as e:
        # uq_tee_time_slot_user: a concurrent join by the same user got there first
        logger.info(f"Duplicate join by user {user_id} on tee time {tee_time_id}: {e.orig}")
        raise AlreadyJoinedError() from e
    except DBAPIError as e:
        if not is_serialization_failure(e):
            raise
        logger.warning(f"Serialization failure on tee time {tee_time_id} for user {user_id}")
        raise SlotUnavailableError('Slot was taken by another user') from e


def _parse_id(value: Any, resource: str):
    try:
        return to_uuid(value)
    except ValueError:
        raise NotFoundError(f'{resource} not found')


class TeeTimeService:
    """Service for tee time lifecycle and slot reservation."""

    def __init__(self, config: Optional[TeeTimeConfig] = None, session_factory=None):
        self.config = config or TeeTimeConfig()
        self.session_factory = session_factory

    def get_by_id(self, tee_time_id: Any) -> TeeTime:
        tee_time_id = _parse_id(tee_time_id, 'Tee time')
        with db_session_scope(self.session_factory) as session:
            tee_time = TeeTimeRepository(session).get_by_id(tee_time_id)
        if tee_time is None:
            raise NotFoundError('Tee time not found')
        return tee_time

    def list(
        self,
        request: Optional[ListTeeTimesRequest] = None,
        now: Optional[datetime] = None
    ) -> Tuple[List[TeeTime], Optional[str], bool]:
        """
        Browse tee times.

        Returns:
            (tee_times, next_cursor, has_more). next_cursor is the id of the
            last tee time on the page and is None when there is no next page.
        """
        request = request or ListTeeTimesRequest(limit=self.config.default_list_limit)
        filters = request.model_dump()

        with db_session_scope(self.session_factory) as session:
            tee_times, has_more = TeeTimeRepository(session).list_tee_times(**filters, now=now)

        next_cursor = str(tee_times[-1].id) if has_more and tee_times else None
        return tee_times, next_cursor, has_more

    def create(self, host_id: Any, request: CreateTeeTimeRequest) -> TeeTime:
        """Host a new tee time; the host takes slot 1."""
        host_id = _parse_id(host_id, 'User')
        with tee_time_uow(self.session_factory) as repo:
            if repo.sibling(CourseRepository).get_by_id(request.course_id) is None:
                raise NotFoundError('Course not found')

            tee_time = repo.create(
                host_id=host_id,
                course_id=request.course_id,
                date_time=request.date_time,
                total_slots=request.total_slots,
                industry_preference=request.industry_preference,
                skill_preference=request.skill_preference,
                notes=request.notes,
            )
        return tee_time

    def update(
        self,
        tee_time_id: Any,
        user_id: Any,
        request: UpdateTeeTimeRequest,
        expected_version: Optional[int] = None
    ) -> TeeTime:
        """
        Apply the fields set on request. Host only.

        expected_version defaults to the version read here; pass the version
        the caller last saw to detect edits made since.
        """
        tee_time_id = _parse_id(tee_time_id, 'Tee time')
        user_id = _parse_id(user_id, 'User')
        changes = request.model_dump(exclude_unset=True)

        with tee_time_uow(self.session_factory) as repo:
            tee_time = repo.get_by_id(tee_time_id)
            if tee_time is None:
                raise NotFoundError('Tee time not found')
            if tee_time.host_id != user_id:
                raise ForbiddenError('Only the host can update this tee time')

            if not changes:
                return tee_time

            version = tee_time.version if expected_version is None else expected_version
            updated = repo.update(tee_time_id, changes, expected_version=version)

        logger.info(f"Updated tee time {tee_time_id} ({', '.join(sorted(changes))}) -> v{updated.version}")
        return updated

    def delete(self, tee_time_id: Any, user_id: Any) -> None:
        tee_time_id = _parse_id(tee_time_id, 'Tee time')
        user_id = _parse_id(user_id, 'User')

        with tee_time_uow(self.session_factory) as repo:
            tee_time = repo.get_by_id(tee_time_id)
            if tee_time is None:
                raise NotFoundError('Tee time not found')
            if tee_time.host_id != user_id:
                raise ForbiddenError('Only the host can delete this tee time')
            repo.delete(tee_time)

        logger.info(f"Deleted tee time {tee_time_id}")

    def join(
        self,
        tee_time_id: Any,
        user_id: Any,
        preferred_slot: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> TeeTimeSlot:
        """
        Take a vacant slot in the tee time.

        Raises:
            AlreadyJoinedError: user already holds a slot here.
            SlotUnavailableError: tee time missing, not OPEN, or the slot was
                lost to a concurrent join (retryable after re-reading).
            TeeTimeFullError: no vacant slot left.
        """
        tee_time_id = _parse_id(tee_time_id, 'Tee time')
        user_id = _parse_id(user_id, 'User')

        with _translate_store_errors(tee_time_id, user_id):
            with tee_time_uow(self.session_factory, self.config.join_isolation_level) as repo:
                slot = repo.join_slot(tee_time_id, user_id, preferred_slot=preferred_slot, now=now)

        logger.info(f"User {user_id} joined tee time {tee_time_id} in slot {slot.slot_number}")
        return slot

    def leave(self, tee_time_id: Any, user_id: Any) -> None:
        """
        Give up the user's slot; a full tee time reopens.

        Raises:
            SlotUnavailableError: user holds no slot, or the tee time is
                cancelled or completed.
            ConflictError: user is the host.
        """
        tee_time_id = _parse_id(tee_time_id, 'Tee time')
        user_id = _parse_id(user_id, 'User')

        with _translate_store_errors(tee_time_id, user_id):
            with tee_time_uow(self.session_factory) as repo:
                repo.leave_slot(tee_time_id, user_id)

        logger.info(f"User {user_id} left tee time {tee_time_id}")

    def get_user_tee_times(self, user_id: Any, status: Optional[TeeTimeStatus] = None) -> List[TeeTime]:
        """Tee times the user hosts or plays in, soonest first."""
        user_id = _parse_id(user_id, 'User')
        with db_session_scope(self.session_factory) as session:
            return TeeTimeRepository(session).get_user_tee_times(user_id, status=status)

    def get_participant_ids(self, tee_time_id: Any) -> List[Any]:
        tee_time_id = _parse_id(tee_time_id, 'Tee time')
        with db_session_scope(self.session_factory) as session:
            return TeeTimeRepository(session).get_participant_ids(tee_time_id)

    def is_participant(self, tee_time_id: Any, user_id: Any) -> bool:
        try:
            tee_time_id, user_id = to_uuid(tee_time_id), to_uuid(user_id)
        except ValueError:
            return False
        with db_session_scope(self.session_factory) as session:
            return TeeTimeRepository(session).find_user_slot(tee_time_id, user_id) is not None

    @staticmethod
    def format_tee_time(
        tee_time: TeeTime,
        distance_miles: Optional[float] = None,
        match_score: Optional[MatchScore] = None
    ) -> Dict[str, Any]:
        """Plain dict for API and CLI output."""
        course = tee_time.course
        host = tee_time.host

        result = {
            'id': str(tee_time.id),
            'date_time': tee_time.date_time.isoformat() if tee_time.date_time else None,
            'total_slots': tee_time.total_slots,
            'filled_slots': tee_time.filled_slots,
            'available_slots': tee_time.available_slots,
            'industry_preference': list(tee_time.industry_preference or []),
            'skill_preference': list(tee_time.skill_preference or []),
            'notes': tee_time.notes,
            'status': enum_value(tee_time.status),
            'version': tee_time.version,
            'course': {
                'id': str(course.id),
                'name': course.name,
                'slug': course.slug,
                'city': course.city,
                'state': course.state,
                'image_url': course.image_url,
            } if course is not None else None,
            'host': {
                'id': str(host.id),
                'first_name': host.first_name,
                'last_name': host.last_name,
                'avatar_url': host.avatar_url,
                'industry': enum_value(host.industry),
                'company': host.company,
                'job_title': host.job_title,
                'skill_level': enum_value(host.skill_level),
            } if host is not None else None,
            'slots': [
                {
                    'slot_number': slot.slot_number,
                    'user_id': str(slot.user_id) if slot.user_id else None,
                    'joined_at': slot.joined_at.isoformat() if slot.joined_at else None,
                }
                for slot in tee_time.slots
            ],
        }

        if distance_miles is not None:
            result['distance'] = round(distance_miles, 1)
        if match_score is not None:
            result['match_score'] = match_score.score
            result['score_breakdown'] = match_score.breakdown.to_dict()

        return result
