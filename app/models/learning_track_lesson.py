"""
LearningTrackLesson model - places a lesson at a position within a track
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.timeutils import utc_now
import uuid


class LearningTrackLesson(Base):
    """
    Join table between tracks and lessons, ordered by order_index (0-based)
    """
    __tablename__ = "learning_track_lessons"
    __table_args__ = (
        UniqueConstraint("learning_track_id", "order_index", name="uq_track_lesson_order"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    learning_track_id = Column(Uuid, ForeignKey("learning_tracks.id"), nullable=False, index=True)
    lesson_id = Column(Uuid, ForeignKey("lessons.id"), nullable=False)
    order_index = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    lesson = relationship("Lesson", lazy="joined")

    def __repr__(self):
        return f"<LearningTrackLesson(track={self.learning_track_id}, lesson={self.lesson_id}, order={self.order_index})>"
