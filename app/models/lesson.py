"""
Lesson model
"""
from sqlalchemy import Column, String, Text, Integer, DateTime, Uuid
from app.database import Base
from app.utils.timeutils import utc_now
import uuid


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    estimated_duration = Column(Integer)  # minutes
    status = Column(String(20), default="draft")
    created_at = Column(DateTime(timezone=True), default=utc_now)

    def __repr__(self):
        return f"<Lesson(id={self.id}, title={self.title})>"
