"""
UserLessonProgress model - per-lesson completion
"""
from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Uuid
from app.database import Base
from app.utils.timeutils import utc_now
import uuid


class UserLessonProgress(Base):
    """
    Lesson completion rows; a non-null completed_at marks the lesson done
    """
    __tablename__ = "user_lesson_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_user_lesson_progress"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    lesson_id = Column(Uuid, ForeignKey("lessons.id"), nullable=False)
    started_at = Column(DateTime(timezone=True), default=utc_now)
    last_accessed = Column(DateTime(timezone=True), default=utc_now)
    completed_at = Column(DateTime(timezone=True))

    def __repr__(self):
        return f"<UserLessonProgress(user_id={self.user_id}, lesson_id={self.lesson_id}, done={self.completed_at is not None})>"
