import uuid

from sqlalchemy import Column, Text, Float, TIMESTAMP, Uuid, Index, func
from sqlalchemy.orm import relationship

from .base import Base


class Course(Base):
    __tablename__ = 'courses'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    city = Column(Text, nullable=False)
    state = Column(Text, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    image_url = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    tee_times = relationship("TeeTime", back_populates="course")

    __table_args__ = (
        Index('idx_courses_location', 'latitude', 'longitude'),
    )
