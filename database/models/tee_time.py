import uuid

from sqlalchemy import Column, Text, Integer, TIMESTAMP, ForeignKey, Enum, JSON, Uuid, UniqueConstraint, Index, func
from sqlalchemy.orm import relationship

from .base import Base
from .enums import TeeTimeStatus

MIN_SLOTS = 2
MAX_SLOTS = 4


class TeeTime(Base):
    """
    A hosted round at a course with a fixed number of player slots.

    `status` caches slot occupancy (FULL iff every slot is taken) and is
    recomputed inside every transaction that changes occupancy. `version`
    guards non-slot updates with optimistic locking.
    """
    __tablename__ = 'tee_times'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    host_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    course_id = Column(Uuid, ForeignKey('courses.id', ondelete='CASCADE'), nullable=False)

    date_time = Column(TIMESTAMP(timezone=True), nullable=False)
    total_slots = Column(Integer, nullable=False, default=MAX_SLOTS)

    # Empty list means open to everyone
    industry_preference = Column(JSON, nullable=False, default=list)
    skill_preference = Column(JSON, nullable=False, default=list)
    notes = Column(Text)

    status = Column(Enum(TeeTimeStatus, name='tee_time_status'), nullable=False, default=TeeTimeStatus.OPEN)
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    host = relationship("User", back_populates="hosted_tee_times")
    course = relationship("Course", back_populates="tee_times")
    slots = relationship(
        "TeeTimeSlot",
        back_populates="tee_time",
        cascade="all, delete-orphan",
        order_by="TeeTimeSlot.slot_number",
    )

    __table_args__ = (
        Index('idx_tee_times_date_status', 'date_time', 'status'),
        Index('idx_tee_times_host', 'host_id'),
        Index('idx_tee_times_course', 'course_id'),
    )

    @property
    def filled_slots(self) -> int:
        return sum(1 for slot in self.slots if slot.user_id is not None)

    @property
    def available_slots(self) -> int:
        return self.total_slots - self.filled_slots

    def __repr__(self):
        return f"<TeeTime {self.id} {self.status} {self.filled_slots}/{self.total_slots}>"


class TeeTimeSlot(Base):
    """
    One numbered player position within a tee time.

    `user_id` and `joined_at` are set together when a player takes the slot
    and cleared together when they leave.
    """
    __tablename__ = 'tee_time_slots'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tee_time_id = Column(Uuid, ForeignKey('tee_times.id', ondelete='CASCADE'), nullable=False)
    slot_number = Column(Integer, nullable=False)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    joined_at = Column(TIMESTAMP(timezone=True), nullable=True)

    tee_time = relationship("TeeTime", back_populates="slots")
    user = relationship("User", back_populates="slots")

    __table_args__ = (
        UniqueConstraint('tee_time_id', 'slot_number', name='uq_tee_time_slot_number'),
        # A player holds at most one slot per tee time; NULLs are not compared
        UniqueConstraint('tee_time_id', 'user_id', name='uq_tee_time_slot_user'),
        Index('idx_tee_time_slots_user', 'user_id'),
    )

    @property
    def is_vacant(self) -> bool:
        return self.user_id is None
