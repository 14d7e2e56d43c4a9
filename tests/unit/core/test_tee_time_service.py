#!/usr/bin/env python3
"""
Unit tests for TeeTimeService.

Uses in-memory SQLite through the same unit-of-work plumbing as production.
Store-level aborts are simulated with driver errors carrying PostgreSQL
SQLSTATE codes.
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from database.models import Industry, SkillLevel, TeeTimeStatus
from database.repositories import TeeTimeRepository
from database.uow import tee_time_uow
from core.config_loader import TeeTimeConfig
from core.exceptions import (
    AlreadyJoinedError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SlotUnavailableError,
    TeeTimeFullError,
    ValidationError,
)
from core.schemas import CreateTeeTimeRequest, ListTeeTimesRequest, UpdateTeeTimeRequest
from core.scorer import calculate_score
from core.tee_time_service import TeeTimeService, is_serialization_failure
from core.utils import utcnow
from tests.fixtures.golf import NOW, make_profile, seed_course, seed_tee_time, seed_user


class FakeDriverError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


def serialization_failure():
    return OperationalError(
        "UPDATE tee_time_slots ...",
        {},
        FakeDriverError("could not serialize access due to concurrent update", pgcode='40001'),
    )


@pytest.fixture
def service(session_factory):
    return TeeTimeService(TeeTimeConfig(), session_factory=session_factory)


@pytest.fixture
def world(db_session):
    host = seed_user(db_session, first_name="Hana", industry=Industry.FINANCE, skill_level=SkillLevel.ADVANCED)
    players = [seed_user(db_session) for _ in range(3)]
    course = seed_course(db_session, slug="pebble-beach")
    tee_time = seed_tee_time(db_session, host, course, total_slots=3)
    db_session.commit()
    return host, players, course, tee_time


class TestLookups:

    def test_get_by_id(self, service, world):
        _, _, course, tee_time = world
        found = service.get_by_id(str(tee_time.id))
        assert found.id == tee_time.id
        assert found.course.slug == "pebble-beach"

    @pytest.mark.parametrize("tee_time_id", ["not-a-uuid", str(uuid.uuid4())])
    def test_get_by_id_not_found(self, service, world, tee_time_id):
        with pytest.raises(NotFoundError):
            service.get_by_id(tee_time_id)

    def test_list_returns_cursor_when_more(self, service, world, db_session):
        host, _, course, first = world
        second = seed_tee_time(db_session, host, course, hours_out=72)
        db_session.commit()

        tee_times, next_cursor, has_more = service.list(ListTeeTimesRequest(limit=1), now=NOW)
        assert [tt.id for tt in tee_times] == [first.id]
        assert has_more is True
        assert next_cursor == str(first.id)

        tee_times, next_cursor, has_more = service.list(ListTeeTimesRequest(limit=1, cursor=next_cursor), now=NOW)
        assert [tt.id for tt in tee_times] == [second.id]
        assert next_cursor is None
        assert has_more is False

    def test_participants(self, service, world):
        host, players, _, tee_time = world
        service.join(tee_time.id, players[0].id, now=NOW)

        assert service.get_participant_ids(tee_time.id) == [host.id, players[0].id]
        assert service.is_participant(tee_time.id, players[0].id) is True
        assert service.is_participant(tee_time.id, players[1].id) is False
        assert service.is_participant("bogus", players[0].id) is False
        assert [tt.id for tt in service.get_user_tee_times(players[0].id)] == [tee_time.id]


class TestCreateUpdateDelete:

    def test_create(self, service, world):
        host, _, course, _ = world
        request = CreateTeeTimeRequest(
            course_id=course.id,
            date_time=utcnow() + timedelta(days=3),
            total_slots=2,
            industry_preference=[Industry.TECHNOLOGY],
        )

        tee_time = service.create(host.id, request)

        assert tee_time.host_id == host.id
        assert tee_time.total_slots == 2
        assert tee_time.industry_preference == ['TECHNOLOGY']
        assert tee_time.slots[0].user_id == host.id

    def test_create_unknown_course(self, service, world):
        host = world[0]
        request = CreateTeeTimeRequest(course_id=uuid.uuid4(), date_time=utcnow() + timedelta(days=3))
        with pytest.raises(NotFoundError, match='Course'):
            service.create(host.id, request)

    def test_update_by_host(self, service, world):
        host, _, _, tee_time = world
        updated = service.update(tee_time.id, host.id, UpdateTeeTimeRequest(notes="Bring a sleeve of balls"))
        assert updated.notes == "Bring a sleeve of balls"
        assert updated.version == tee_time.version + 1

    def test_update_by_non_host(self, service, world):
        _, players, _, tee_time = world
        with pytest.raises(ForbiddenError):
            service.update(tee_time.id, players[0].id, UpdateTeeTimeRequest(notes="mine now"))

    def test_update_with_stale_version(self, service, world):
        host, _, _, tee_time = world
        service.update(tee_time.id, host.id, UpdateTeeTimeRequest(notes="first"))

        with pytest.raises(ConflictError):
            service.update(tee_time.id, host.id, UpdateTeeTimeRequest(notes="second"), expected_version=0)

    def test_cancel_blocks_joins(self, service, world):
        host, players, _, tee_time = world
        service.update(tee_time.id, host.id, UpdateTeeTimeRequest(status=TeeTimeStatus.CANCELLED))

        with pytest.raises(SlotUnavailableError):
            service.join(tee_time.id, players[0].id, now=NOW)

    def test_cancelled_tee_time_stays_cancelled(self, service, world):
        host, _, _, tee_time = world
        service.update(tee_time.id, host.id, UpdateTeeTimeRequest(status=TeeTimeStatus.CANCELLED))

        with pytest.raises(ConflictError):
            service.update(tee_time.id, host.id, UpdateTeeTimeRequest(status=TeeTimeStatus.OPEN))

        assert service.get_by_id(tee_time.id).status == TeeTimeStatus.CANCELLED

    def test_unvalidated_null_is_a_typed_error(self, service, world):
        host, _, _, tee_time = world
        request = UpdateTeeTimeRequest.model_construct(date_time=None)

        with pytest.raises(ValidationError):
            service.update(tee_time.id, host.id, request)

        assert service.get_by_id(tee_time.id).date_time is not None

    def test_delete(self, service, world):
        host, players, _, tee_time = world
        with pytest.raises(ForbiddenError):
            service.delete(tee_time.id, players[0].id)

        service.delete(tee_time.id, host.id)

        with pytest.raises(NotFoundError):
            service.get_by_id(tee_time.id)


class TestJoinLeave:

    def test_join_until_full_then_leave_reopens(self, service, world):
        _, players, _, tee_time = world

        first = service.join(tee_time.id, players[0].id, now=NOW)
        second = service.join(tee_time.id, players[1].id, preferred_slot=3, now=NOW)

        assert (first.slot_number, second.slot_number) == (2, 3)
        assert service.get_by_id(tee_time.id).status == TeeTimeStatus.FULL

        with pytest.raises(SlotUnavailableError):
            service.join(tee_time.id, players[2].id, now=NOW)

        service.leave(tee_time.id, players[0].id)
        assert service.get_by_id(tee_time.id).status == TeeTimeStatus.OPEN

    def test_double_join(self, service, world):
        _, players, _, tee_time = world
        service.join(tee_time.id, players[0].id, now=NOW)
        with pytest.raises(AlreadyJoinedError):
            service.join(tee_time.id, players[0].id, now=NOW)

    def test_host_cannot_leave(self, service, world):
        host, _, _, tee_time = world
        with pytest.raises(ConflictError):
            service.leave(tee_time.id, host.id)

    def test_failed_join_rolls_back(self, service, world):
        _, players, _, tee_time = world

        with patch.object(TeeTimeRepository, 'count_vacant_slots', side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                service.join(tee_time.id, players[0].id, now=NOW)

        assert service.is_participant(tee_time.id, players[0].id) is False

    def test_join_full_error_passes_through(self, service, world):
        _, players, _, tee_time = world
        with patch.object(TeeTimeRepository, 'join_slot', side_effect=TeeTimeFullError()):
            with pytest.raises(TeeTimeFullError):
                service.join(tee_time.id, players[0].id, now=NOW)

    def test_join_runs_at_configured_isolation_level(self, session_factory, world):
        _, players, _, tee_time = world
        service = TeeTimeService(TeeTimeConfig(join_isolation_level="SERIALIZABLE"), session_factory=session_factory)

        with patch('core.tee_time_service.tee_time_uow', wraps=tee_time_uow) as uow:
            service.join(tee_time.id, players[0].id, now=NOW)

        uow.assert_called_once_with(session_factory, "SERIALIZABLE")


class TestStoreErrorTranslation:

    def test_serialization_failure_during_join(self, service, world):
        _, players, _, tee_time = world
        with patch.object(TeeTimeRepository, 'join_slot', side_effect=serialization_failure()):
            with pytest.raises(SlotUnavailableError, match='taken by another user'):
                service.join(tee_time.id, players[0].id, now=NOW)

    def test_serialization_failure_at_commit(self, service, world):
        _, players, _, tee_time = world
        with patch.object(Session, 'commit', side_effect=serialization_failure()):
            with pytest.raises(SlotUnavailableError):
                service.join(tee_time.id, players[0].id, now=NOW)

        assert service.is_participant(tee_time.id, players[0].id) is False

    def test_duplicate_slot_holder_is_already_joined(self, service, world):
        _, players, _, tee_time = world
        error = IntegrityError(
            "UPDATE tee_time_slots ...",
            {},
            FakeDriverError('duplicate key value violates unique constraint "uq_tee_time_slot_user"', pgcode='23505'),
        )
        with patch.object(TeeTimeRepository, 'join_slot', side_effect=error):
            with pytest.raises(AlreadyJoinedError):
                service.join(tee_time.id, players[0].id, now=NOW)

    def test_other_driver_errors_propagate(self, service, world):
        _, players, _, tee_time = world
        error = OperationalError("SELECT 1", {}, FakeDriverError("connection refused", pgcode='08006'))
        with patch.object(TeeTimeRepository, 'join_slot', side_effect=error):
            with pytest.raises(OperationalError):
                service.join(tee_time.id, players[0].id, now=NOW)

    def test_is_serialization_failure(self):
        assert is_serialization_failure(serialization_failure())
        assert is_serialization_failure(
            OperationalError("x", {}, FakeDriverError("deadlock detected", pgcode='40P01'))
        )
        assert is_serialization_failure(
            OperationalError("x", {}, FakeDriverError("database is locked"))
        )
        assert not is_serialization_failure(
            DBAPIError("x", {}, FakeDriverError("syntax error", pgcode='42601'))
        )


class TestFormatTeeTime:

    def test_format(self, service, world):
        host, players, _, tee_time = world
        service.join(tee_time.id, players[0].id, now=NOW)
        tee_time = service.get_by_id(tee_time.id)
        score = calculate_score(make_profile(), tee_time, 3.0, now=NOW)

        data = TeeTimeService.format_tee_time(tee_time, distance_miles=3.14159, match_score=score)

        assert data['id'] == str(tee_time.id)
        assert data['status'] == 'OPEN'
        assert data['filled_slots'] == 2
        assert data['available_slots'] == 1
        assert data['course']['slug'] == 'pebble-beach'
        assert data['host']['first_name'] == 'Hana'
        assert data['host']['industry'] == 'FINANCE'
        assert [slot['slot_number'] for slot in data['slots']] == [1, 2, 3]
        assert data['slots'][1]['user_id'] == str(players[0].id)
        assert data['slots'][2]['user_id'] is None
        assert data['distance'] == 3.1
        assert data['match_score'] == score.score
        assert set(data['score_breakdown']) == {'industry_score', 'skill_score', 'distance_score', 'timing_score'}

    def test_format_without_extras(self, world):
        tee_time = world[3]
        data = TeeTimeService.format_tee_time(tee_time)
        assert 'distance' not in data
        assert 'match_score' not in data
