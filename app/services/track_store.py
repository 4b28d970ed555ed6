"""
Track store - the tabular select / upsert / rpc contract over the database
"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import (
    LearningTrack,
    LearningTrackLesson,
    LearningTrackAssignment,
    UserLearningTrackProgress,
    UserLessonProgress,
)

logger = logging.getLogger(__name__)


class TrackStore:
    """
    Row access for learning tracks

    Upserts merge the given values into the row matching the conflict keys and
    never commit; callers own the transaction.
    """

    def get_track(self, db: Session, track_id: UUID) -> Optional[LearningTrack]:
        return db.query(LearningTrack).filter(LearningTrack.id == track_id).first()

    def list_track_lessons(self, db: Session, track_id: UUID) -> List[LearningTrackLesson]:
        """Track lessons ordered by order_index ascending"""
        return (
            db.query(LearningTrackLesson)
            .filter(LearningTrackLesson.learning_track_id == track_id)
            .order_by(LearningTrackLesson.order_index.asc())
            .all()
        )

    def count_track_lessons(self, db: Session, track_id: UUID) -> int:
        return (
            db.query(func.count(LearningTrackLesson.id))
            .filter(LearningTrackLesson.learning_track_id == track_id)
            .scalar()
        ) or 0

    def get_lesson_completion(
        self,
        db: Session,
        user_id: UUID,
        lesson_id: UUID
    ) -> Optional[UserLessonProgress]:
        return db.query(UserLessonProgress).filter(
            UserLessonProgress.user_id == user_id,
            UserLessonProgress.lesson_id == lesson_id
        ).first()

    def get_enrollment(
        self,
        db: Session,
        user_id: UUID,
        track_id: UUID
    ) -> Optional[UserLearningTrackProgress]:
        return db.query(UserLearningTrackProgress).filter(
            UserLearningTrackProgress.user_id == user_id,
            UserLearningTrackProgress.learning_track_id == track_id
        ).first()

    def upsert_enrollment(
        self,
        db: Session,
        user_id: UUID,
        track_id: UUID,
        values: Dict[str, Any]
    ) -> UserLearningTrackProgress:
        """
        Merge values into the (user_id, learning_track_id) progress row

        Keys absent from values leave the stored columns untouched.
        """
        row = self.get_enrollment(db, user_id, track_id)

        if not row:
            row = UserLearningTrackProgress(user_id=user_id, learning_track_id=track_id)
            db.add(row)

        for column, value in values.items():
            setattr(row, column, value)

        db.flush()
        return row

    def upsert_lesson_completion(
        self,
        db: Session,
        user_id: UUID,
        lesson_id: UUID,
        values: Dict[str, Any]
    ) -> UserLessonProgress:
        """Merge values into the (user_id, lesson_id) completion row"""
        row = self.get_lesson_completion(db, user_id, lesson_id)

        if not row:
            row = UserLessonProgress(user_id=user_id, lesson_id=lesson_id)
            db.add(row)

        for column, value in values.items():
            setattr(row, column, value)

        db.flush()
        return row

    def get_assigned_tracks(self, db: Session, user_id: UUID) -> List[Dict[str, Any]]:
        """
        Assigned tracks for a learner

        Returns:
            List of {assignment_id, track_id, status, completion_required}
        """
        assignments = (
            db.query(LearningTrackAssignment)
            .filter(LearningTrackAssignment.user_id == user_id)
            .order_by(LearningTrackAssignment.assigned_at.asc())
            .all()
        )

        return [
            {
                "assignment_id": a.id,
                "track_id": a.learning_track_id,
                "status": a.status or "assigned",
                "completion_required": bool(a.completion_required),
            }
            for a in assignments
        ]


# Global instance
track_store = TrackStore()
