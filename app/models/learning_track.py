"""
LearningTrack model - ordered, schedulable collection of lessons
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from app.database import Base
from app.utils.timeutils import utc_now
import uuid


class LearningTrack(Base):
    """
    Learning tracks table - scheduling policy lives on the track row
    """
    __tablename__ = "learning_tracks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(20), default="draft")
    schedule_type = Column(String(32), nullable=False, default="flexible")
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    duration_weeks = Column(Integer)
    lessons_per_week = Column(Integer)
    max_lessons_per_week = Column(Integer)
    schedule_days = Column(JSON().with_variant(JSONB, "postgresql"))  # [1, 3] = Mon, Wed
    allow_all_lessons_immediately = Column(Boolean, default=False)
    allow_parallel_tracks = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return f"<LearningTrack(id={self.id}, title={self.title}, schedule={self.schedule_type})>"
