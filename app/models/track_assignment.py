"""
LearningTrackAssignment model - which learners must take which tracks
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid
from app.database import Base
from app.utils.timeutils import utc_now
import uuid


class LearningTrackAssignment(Base):
    __tablename__ = "learning_track_assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    learning_track_id = Column(Uuid, ForeignKey("learning_tracks.id"), nullable=False)
    user_id = Column(Uuid, nullable=False, index=True)
    assigned_by = Column(Uuid)
    assigned_at = Column(DateTime(timezone=True), default=utc_now)
    due_date = Column(DateTime(timezone=True))
    status = Column(String(20), default="assigned")
    completion_required = Column(Boolean, default=True)

    def __repr__(self):
        return f"<LearningTrackAssignment(user_id={self.user_id}, track={self.learning_track_id}, status={self.status})>"
