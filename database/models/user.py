import uuid

from sqlalchemy import Column, Text, Float, Integer, TIMESTAMP, Enum, Uuid, Index, func
from sqlalchemy.orm import relationship

from .base import Base
from .enums import Industry, SkillLevel

DEFAULT_SEARCH_RADIUS_MILES = 50


class User(Base):
    """
    A golfer who can host or join tee times.

    Industry and skill level are optional; the scorer falls back to neutral
    scores when they are missing.
    """
    __tablename__ = 'users'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True)
    first_name = Column(Text)
    last_name = Column(Text)
    avatar_url = Column(Text)

    # Networking profile
    industry = Column(Enum(Industry, name='industry'), nullable=True)
    company = Column(Text)
    job_title = Column(Text)

    # Golf profile
    skill_level = Column(Enum(SkillLevel, name='skill_level'), nullable=True)
    handicap = Column(Float)

    # Location
    latitude = Column(Float)
    longitude = Column(Float)
    city = Column(Text)
    state = Column(Text)
    search_radius = Column(Integer, nullable=False, default=DEFAULT_SEARCH_RADIUS_MILES)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    hosted_tee_times = relationship("TeeTime", back_populates="host", cascade="all, delete-orphan")
    slots = relationship("TeeTimeSlot", back_populates="user")

    __table_args__ = (
        Index('idx_users_location', 'latitude', 'longitude'),
        Index('idx_users_industry', 'industry'),
    )

    def __repr__(self):
        return f"<User {self.id} {self.industry} {self.skill_level}>"
