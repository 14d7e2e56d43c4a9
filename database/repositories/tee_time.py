import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, update, func, and_, or_
from sqlalchemy.orm import selectinload

from database.models import (
    Course, TeeTime, TeeTimeSlot, TeeTimeStatus, TERMINAL_STATUSES, MAX_SLOTS
)
from database.repositories.base import BaseRepository
from core.exceptions import (
    AlreadyJoinedError, ConflictError, SlotUnavailableError, TeeTimeFullError, ValidationError
)
from core.geo import bounding_box
from core.utils import enum_value, enum_values, to_uuid, utcnow

logger = logging.getLogger(__name__)

# Columns a partial update may not clear
NON_NULLABLE_FIELDS = ('date_time', 'total_slots', 'status', 'industry_preference', 'skill_preference')


def _with_relations(stmt):
    """Eager-load everything the scorer and formatters read."""
    return stmt.options(
        selectinload(TeeTime.host),
        selectinload(TeeTime.course),
        selectinload(TeeTime.slots).selectinload(TeeTimeSlot.user),
    )


class TeeTimeRepository(BaseRepository):
    def get_by_id(self, tee_time_id: Any) -> Optional[TeeTime]:
        stmt = _with_relations(select(TeeTime).where(TeeTime.id == to_uuid(tee_time_id)))
        return self.db.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_tee_times(
        self,
        course_id: Optional[Any] = None,
        host_id: Optional[Any] = None,
        status: Optional[TeeTimeStatus] = None,
        industry: Optional[Any] = None,
        skill_level: Optional[Any] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius: float = 50,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        has_available_slots: bool = False,
        cursor: Optional[Any] = None,
        limit: int = 20,
        now: Optional[datetime] = None
    ) -> Tuple[List[TeeTime], bool]:
        """List tee times ordered by date_time, then id.

        Defaults to OPEN tee times in the future. The geo filter is a
        bounding box around (latitude, longitude); callers needing exact
        distances compute them afterwards.

        Returns: (tee_times, has_more)
        """
        stmt = select(TeeTime)

        if course_id is not None:
            stmt = stmt.where(TeeTime.course_id == to_uuid(course_id))
        if host_id is not None:
            stmt = stmt.where(TeeTime.host_id == to_uuid(host_id))

        stmt = stmt.where(TeeTime.status == (status or TeeTimeStatus.OPEN))

        if from_date is not None or to_date is not None:
            if from_date is not None:
                stmt = stmt.where(TeeTime.date_time >= from_date)
            if to_date is not None:
                stmt = stmt.where(TeeTime.date_time <= to_date)
        else:
            stmt = stmt.where(TeeTime.date_time >= (now or utcnow()))

        if latitude is not None and longitude is not None:
            box = bounding_box(latitude, longitude, radius)
            stmt = stmt.join(TeeTime.course).where(
                Course.latitude.between(box.min_lat, box.max_lat),
                Course.longitude.between(box.min_lng, box.max_lng),
            )

        if has_available_slots:
            stmt = stmt.where(TeeTime.slots.any(TeeTimeSlot.user_id.is_(None)))

        if cursor is not None:
            stmt = stmt.where(self._after_cursor(cursor))

        stmt = _with_relations(stmt.order_by(TeeTime.date_time.asc(), TeeTime.id.asc()))

        # Preference lists are JSON arrays, matched in Python; the SQL limit
        # only applies when no such filter would shrink the page afterwards.
        if industry is None and skill_level is None:
            stmt = stmt.limit(limit + 1)

        tee_times = list(self.db.execute(stmt).scalars().all())

        if industry is not None:
            wanted = enum_value(industry)
            tee_times = [tt for tt in tee_times if wanted in (tt.industry_preference or [])]
        if skill_level is not None:
            wanted = enum_value(skill_level)
            tee_times = [tt for tt in tee_times if wanted in (tt.skill_preference or [])]

        has_more = len(tee_times) > limit
        return tee_times[:limit], has_more

    def _after_cursor(self, cursor: Any):
        try:
            cursor_id = to_uuid(cursor)
        except ValueError:
            raise ValidationError({'cursor': ['Malformed cursor']})

        cursor_time = self.db.execute(
            select(TeeTime.date_time).where(TeeTime.id == cursor_id)
        ).scalar_one_or_none()
        if cursor_time is None:
            raise ValidationError({'cursor': ['Unknown cursor']})

        return or_(
            TeeTime.date_time > cursor_time,
            and_(TeeTime.date_time == cursor_time, TeeTime.id > cursor_id),
        )

    def find_candidates_near(
        self,
        latitude: Optional[float],
        longitude: Optional[float],
        radius: float,
        limit: int = 100,
        now: Optional[datetime] = None
    ) -> List[TeeTime]:
        """Open, future tee times with a vacant slot, for the scorer to rank."""
        tee_times, _ = self.list_tee_times(
            latitude=latitude,
            longitude=longitude,
            radius=radius,
            has_available_slots=True,
            limit=limit,
            now=now,
        )
        return tee_times

    def create(
        self,
        host_id: Any,
        course_id: Any,
        date_time: datetime,
        total_slots: int = MAX_SLOTS,
        industry_preference: Optional[Sequence[Any]] = None,
        skill_preference: Optional[Sequence[Any]] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TeeTime:
        """Create a tee time with slots 1..total_slots; the host takes slot 1."""
        host_id = to_uuid(host_id)
        joined_at = now or utcnow()

        tee_time = TeeTime(
            host_id=host_id,
            course_id=to_uuid(course_id),
            date_time=date_time,
            total_slots=total_slots,
            industry_preference=enum_values(industry_preference),
            skill_preference=enum_values(skill_preference),
            notes=notes,
            status=TeeTimeStatus.OPEN,
            version=0,
        )
        tee_time.slots = [
            TeeTimeSlot(
                slot_number=number,
                user_id=host_id if number == 1 else None,
                joined_at=joined_at if number == 1 else None,
            )
            for number in range(1, total_slots + 1)
        ]
        self.db.add(tee_time)
        self.flush()

        logger.info(f"Created tee time {tee_time.id} with {total_slots} slots for host {host_id}")
        return self.get_by_id(tee_time.id)

    def update(
        self,
        tee_time_id: Any,
        changes: Dict[str, Any],
        expected_version: int
    ) -> TeeTime:
        """Apply non-slot changes if the row is still at expected_version.

        The version check and increment happen in the same UPDATE, so two
        writers starting from the same version cannot both succeed.
        """
        tee_time_id = to_uuid(tee_time_id)
        values = dict(changes)
        nulls = [key for key in NON_NULLABLE_FIELDS if key in values and values[key] is None]
        if nulls:
            raise ValidationError({key: ['Cannot be null'] for key in nulls})

        if 'status' in values:
            current = self.db.execute(
                select(TeeTime.status).where(TeeTime.id == tee_time_id)
            ).scalar_one_or_none()
            if current in TERMINAL_STATUSES and values['status'] != current:
                raise ConflictError(f'Tee time is {current.value.lower()} and cannot be reopened')

        for key in ('industry_preference', 'skill_preference'):
            if key in values:
                values[key] = enum_values(values[key])

        stmt = (
            update(TeeTime)
            .where(TeeTime.id == tee_time_id, TeeTime.version == expected_version)
            .values(**values, version=TeeTime.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)

        if result.rowcount == 0:
            logger.info(f"Version conflict updating tee time {tee_time_id} (expected v{expected_version})")
            raise ConflictError('Tee time was modified by another request. Please refresh and try again.')

        if 'total_slots' in values:
            self._resize_slots(tee_time_id, values['total_slots'])

        self.sync_status(tee_time_id)
        return self.get_by_id(tee_time_id)

    def _resize_slots(self, tee_time_id: Any, total_slots: int) -> None:
        slots = list(self.db.execute(
            select(TeeTimeSlot)
            .where(TeeTimeSlot.tee_time_id == tee_time_id)
            .order_by(TeeTimeSlot.slot_number)
            .execution_options(populate_existing=True)
        ).scalars().all())

        current = len(slots)
        if total_slots > current:
            for number in range(current + 1, total_slots + 1):
                self.db.add(TeeTimeSlot(tee_time_id=tee_time_id, slot_number=number))
        elif total_slots < current:
            removed = [slot for slot in slots if slot.slot_number > total_slots]
            if any(not slot.is_vacant for slot in removed):
                raise ConflictError('Cannot remove slots that are already taken')
            for slot in removed:
                self.db.delete(slot)

        self.flush()

    def delete(self, tee_time: TeeTime) -> None:
        self.db.delete(tee_time)
        self.flush()

    # Slot reservation

    def find_with_slots(self, tee_time_id: Any, lock: bool = True) -> Optional[TeeTime]:
        """Fresh tee time row plus slots, row-locked where the backend supports it."""
        stmt = (
            select(TeeTime)
            .where(TeeTime.id == to_uuid(tee_time_id))
            .options(selectinload(TeeTime.slots))
            .execution_options(populate_existing=True)
        )
        if lock:
            stmt = stmt.with_for_update(of=TeeTime)
        return self.db.execute(stmt).scalar_one_or_none()

    def find_user_slot(self, tee_time_id: Any, user_id: Any) -> Optional[TeeTimeSlot]:
        stmt = select(TeeTimeSlot).where(
            TeeTimeSlot.tee_time_id == to_uuid(tee_time_id),
            TeeTimeSlot.user_id == to_uuid(user_id)
        )
        return self.db.execute(stmt).scalars().first()

    def find_vacant_slots(self, tee_time_id: Any) -> List[TeeTimeSlot]:
        stmt = (
            select(TeeTimeSlot)
            .where(TeeTimeSlot.tee_time_id == to_uuid(tee_time_id), TeeTimeSlot.user_id.is_(None))
            .order_by(TeeTimeSlot.slot_number)
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def claim_slot(self, slot_id: Any, user_id: Any, joined_at: datetime) -> bool:
        """Compare-and-swap: occupy the slot only if it is still vacant."""
        stmt = (
            update(TeeTimeSlot)
            .where(TeeTimeSlot.id == to_uuid(slot_id), TeeTimeSlot.user_id.is_(None))
            .values(user_id=to_uuid(user_id), joined_at=joined_at)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def release_slot(self, slot_id: Any, user_id: Any) -> bool:
        """Vacate the slot only if user_id still holds it."""
        stmt = (
            update(TeeTimeSlot)
            .where(TeeTimeSlot.id == to_uuid(slot_id), TeeTimeSlot.user_id == to_uuid(user_id))
            .values(user_id=None, joined_at=None)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def count_vacant_slots(self, tee_time_id: Any) -> int:
        stmt = select(func.count(TeeTimeSlot.id)).where(
            TeeTimeSlot.tee_time_id == to_uuid(tee_time_id),
            TeeTimeSlot.user_id.is_(None)
        )
        return self.db.execute(stmt).scalar_one()

    def set_status(self, tee_time_id: Any, status: TeeTimeStatus) -> None:
        stmt = (
            update(TeeTime)
            .where(TeeTime.id == to_uuid(tee_time_id))
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(stmt)

    def sync_status(self, tee_time_id: Any) -> TeeTimeStatus:
        """Re-derive OPEN/FULL from slot occupancy; terminal statuses are left alone."""
        status = self.db.execute(
            select(TeeTime.status).where(TeeTime.id == to_uuid(tee_time_id))
        ).scalar_one()
        if status in TERMINAL_STATUSES:
            return status

        derived = TeeTimeStatus.FULL if self.count_vacant_slots(tee_time_id) == 0 else TeeTimeStatus.OPEN
        if derived != status:
            self.set_status(tee_time_id, derived)
            logger.info(f"Tee time {tee_time_id} status {status.value} -> {derived.value}")
        return derived

    def join_slot(
        self,
        tee_time_id: Any,
        user_id: Any,
        preferred_slot: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> TeeTimeSlot:
        """Put user_id into a vacant slot of the tee time.

        Must run inside a SERIALIZABLE unit of work (see database.uow). The
        slot claim is a conditional UPDATE, so of two callers that read the
        same vacant slot only one can take it; the other gets
        SlotUnavailableError and may retry after re-reading.
        """
        if self.find_user_slot(tee_time_id, user_id) is not None:
            raise AlreadyJoinedError()

        tee_time = self.find_with_slots(tee_time_id)
        if tee_time is None:
            raise SlotUnavailableError('Tee time not found')
        if tee_time.status != TeeTimeStatus.OPEN:
            raise SlotUnavailableError('Tee time is no longer available')

        vacant = self.find_vacant_slots(tee_time.id)
        if not vacant:
            raise TeeTimeFullError()

        target = vacant[0]
        if preferred_slot is not None:
            target = next((slot for slot in vacant if slot.slot_number == preferred_slot), target)

        if not self.claim_slot(target.id, user_id, now or utcnow()):
            logger.warning(f"Lost race for slot {target.slot_number} of tee time {tee_time.id}")
            raise SlotUnavailableError('Slot was taken by another user')

        if self.count_vacant_slots(tee_time.id) == 0:
            self.set_status(tee_time.id, TeeTimeStatus.FULL)
            logger.info(f"Tee time {tee_time.id} is now full")

        return self.db.get(TeeTimeSlot, target.id, populate_existing=True)

    def leave_slot(self, tee_time_id: Any, user_id: Any) -> None:
        """Vacate user_id's slot and reopen the tee time if it was full."""
        slot = self.find_user_slot(tee_time_id, user_id)
        if slot is None:
            raise SlotUnavailableError('You are not in this tee time')

        tee_time = self.find_with_slots(tee_time_id)
        if tee_time.host_id == to_uuid(user_id):
            raise ConflictError('Host cannot leave. Cancel the tee time instead.')
        if tee_time.status in TERMINAL_STATUSES:
            raise SlotUnavailableError('Tee time is no longer active')

        if not self.release_slot(slot.id, user_id):
            raise SlotUnavailableError('You are not in this tee time')

        if tee_time.status == TeeTimeStatus.FULL:
            self.set_status(tee_time.id, TeeTimeStatus.OPEN)
            logger.info(f"Tee time {tee_time.id} reopened")

    def get_participant_ids(self, tee_time_id: Any) -> List[Any]:
        stmt = (
            select(TeeTimeSlot.user_id)
            .where(TeeTimeSlot.tee_time_id == to_uuid(tee_time_id), TeeTimeSlot.user_id.is_not(None))
            .order_by(TeeTimeSlot.slot_number)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_user_tee_times(
        self,
        user_id: Any,
        status: Optional[TeeTimeStatus] = None
    ) -> List[TeeTime]:
        user_id = to_uuid(user_id)
        stmt = select(TeeTime).where(
            or_(
                TeeTime.host_id == user_id,
                TeeTime.slots.any(TeeTimeSlot.user_id == user_id),
            )
        )
        if status is not None:
            stmt = stmt.where(TeeTime.status == status)

        stmt = _with_relations(stmt.order_by(TeeTime.date_time.asc()))
        return list(self.db.execute(stmt).scalars().all())
