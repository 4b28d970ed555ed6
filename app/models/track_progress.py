"""
UserLearningTrackProgress model - one enrollment row per learner per track
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Uuid
from app.database import Base
from app.utils.timeutils import utc_now
import uuid


class UserLearningTrackProgress(Base):
    """
    Track-level progress: pacing cursor and stored percentage

    completed_at set implies progress_percentage == 100 and
    current_lesson_order == lesson count.
    """
    __tablename__ = "user_learning_track_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "learning_track_id", name="uq_user_track_progress"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    learning_track_id = Column(Uuid, ForeignKey("learning_tracks.id"), nullable=False)
    enrolled_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    current_lesson_order = Column(Integer, default=0)
    progress_percentage = Column(Integer, default=0)
    next_available_date = Column(DateTime(timezone=True))

    def __repr__(self):
        return (
            f"<UserLearningTrackProgress(user_id={self.user_id}, track={self.learning_track_id}, "
            f"pct={self.progress_percentage})>"
        )
