"""
Track progress service
Records lesson completions and advances the learner's track progress row
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models import UserLearningTrackProgress, UserLessonProgress
from app.services.errors import InvalidCompletionError, TrackProgressError
from app.services.scheduling_service import round_half_up
from app.services.track_store import TrackStore, track_store
from app.utils.cache import cache_service
from app.utils.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class TrackProgressService:
    """
    Service for writing completion progress

    The progress row is upserted on (user_id, learning_track_id) with merge
    semantics: last writer wins, no version check.
    """

    def __init__(
        self,
        store: TrackStore = track_store,
        restamp_enrolled_at: Optional[bool] = None
    ):
        self.store = store
        self._restamp_enrolled_at = restamp_enrolled_at

    @property
    def restamp_enrolled_at(self) -> bool:
        """Whether every completion moves enrolled_at to now (historical behaviour)"""
        if self._restamp_enrolled_at is None:
            return settings.RESTAMP_ENROLLED_AT_ON_COMPLETION
        return self._restamp_enrolled_at

    def record_completion(
        self,
        db: Session,
        learner_id: UUID,
        track_id: UUID,
        completed_lesson_index: int,
        total_lessons: int,
        now: Optional[datetime] = None
    ) -> UserLearningTrackProgress:
        """
        Advance track progress after a lesson is completed

        Logic:
        - current_lesson_order = max(index + 1, stored order capped at total),
          so completing an earlier lesson again never moves it backwards
        - progress_percentage = round_half_up(current_lesson_order / total * 100)
        - started_at set on the first lesson when not already set
        - completed_at set when the last lesson is completed

        Args:
            db: Database session
            learner_id: Learner UUID
            track_id: Learning track UUID
            completed_lesson_index: 0-based position of the completed lesson
            total_lessons: Number of lessons in the track
            now: Completion instant (defaults to current UTC time)

        Returns:
            The stored progress row

        Raises:
            InvalidCompletionError: index outside the track
            TrackProgressError: the upsert failed
        """
        if total_lessons <= 0 or not 0 <= completed_lesson_index < total_lessons:
            raise InvalidCompletionError(
                f"Lesson index {completed_lesson_index} out of range for {total_lessons} lessons"
            )

        now = ensure_utc(now) or utc_now()
        is_last = completed_lesson_index == total_lessons - 1
        next_order = completed_lesson_index + 1

        try:
            existing = self.store.get_enrollment(db, learner_id, track_id)

            if existing and existing.current_lesson_order:
                next_order = max(next_order, min(existing.current_lesson_order, total_lessons))

            values = {
                "current_lesson_order": next_order,
                "progress_percentage": round_half_up(next_order / total_lessons * 100),
            }

            if completed_lesson_index == 0 and (existing is None or existing.started_at is None):
                values["started_at"] = now

            if is_last:
                values["completed_at"] = now

            if existing is None or self.restamp_enrolled_at:
                values["enrolled_at"] = now

            row = self.store.upsert_enrollment(db, learner_id, track_id, values)
            db.commit()
            db.refresh(row)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save track progress for user={learner_id}, track={track_id}: {str(e)}")
            raise TrackProgressError("Track progress could not be saved") from e

        logger.info(
            f"Track progress updated: user={learner_id}, track={track_id}, "
            f"order={row.current_lesson_order}, pct={row.progress_percentage}, last={is_last}"
        )

        return row

    def mark_lesson_complete(
        self,
        db: Session,
        learner_id: UUID,
        lesson_id: UUID,
        now: Optional[datetime] = None
    ) -> UserLessonProgress:
        """Record the lesson itself as completed, keeping the first completion time"""
        now = ensure_utc(now) or utc_now()

        try:
            existing = self.store.get_lesson_completion(db, learner_id, lesson_id)

            values = {"last_accessed": now}
            if existing is None or existing.completed_at is None:
                values["completed_at"] = now

            row = self.store.upsert_lesson_completion(db, learner_id, lesson_id, values)
            db.commit()
            db.refresh(row)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save lesson completion for user={learner_id}, lesson={lesson_id}: {str(e)}")
            raise TrackProgressError("Lesson completion could not be saved") from e

        logger.info(f"Lesson completed: user={learner_id}, lesson={lesson_id}")
        cache_service.clear_analytics_cache()

        return row


# Global instance
track_progress_service = TrackProgressService()
