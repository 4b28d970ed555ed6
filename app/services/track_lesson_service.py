"""
Track lesson service
Loads a track's lessons for a learner and folds in lesson availability
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import LearningTrack, UserLearningTrackProgress
from app.schemas.track import (
    AssignedTrack,
    EnrollmentProgressResponse,
    EnrollmentState,
    LessonSummary,
    ScheduleConfig,
    TrackLessonView,
    TrackOverview,
    TrackProgressSummary,
    TrackResponse,
)
from app.services.errors import TrackLoadError, TrackNotFoundError
from app.services.scheduling_service import SchedulingService, scheduling_service
from app.services.track_store import TrackStore, track_store
from app.utils.auth import LearnerSession
from app.utils.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def schedule_config(track: LearningTrack) -> ScheduleConfig:
    """Map a track row onto the evaluator's config type, falling back to flexible"""
    try:
        return ScheduleConfig.model_validate(track)
    except ValidationError as e:
        logger.warning(f"Invalid schedule on track {track.id}, treating as flexible: {str(e)}")
        return ScheduleConfig(schedule_type="flexible")


def enrollment_state(
    row: Optional[UserLearningTrackProgress],
    now: datetime
) -> EnrollmentState:
    """
    Map a progress row onto the evaluator's enrollment type

    No row yet means not enrolled: enrollment is taken to start now.
    """
    if row is None:
        return EnrollmentState(enrolled_at=now)

    return EnrollmentState(
        enrolled_at=row.enrolled_at or now,
        started_at=row.started_at,
        completed_at=row.completed_at,
        current_lesson_order=row.current_lesson_order or 0
    )


class TrackLessonService:
    """
    Service for reading a learner's view of a track

    Read-only and idempotent; re-calling it is how callers refresh.
    """

    def __init__(
        self,
        store: TrackStore = track_store,
        scheduler: SchedulingService = scheduling_service
    ):
        self.store = store
        self.scheduler = scheduler

    def get_track(self, db: Session, track_id: UUID) -> LearningTrack:
        try:
            track = self.store.get_track(db, track_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch track {track_id}: {str(e)}")
            raise TrackLoadError("Failed to fetch track") from e

        if not track:
            raise TrackNotFoundError(f"Learning track {track_id} not found")

        return track

    def load_track_lessons(
        self,
        db: Session,
        track_id: UUID,
        learner: LearnerSession,
        now: Optional[datetime] = None
    ) -> List[TrackLessonView]:
        """
        Ordered lesson views for a learner

        Args:
            db: Database session
            track_id: Learning track UUID
            learner: Authenticated learner
            now: Evaluation instant (defaults to current UTC time)

        Returns:
            Lesson views in order_index order
        """
        track = self.get_track(db, track_id)
        lessons, _ = self._load(db, track, learner, ensure_utc(now) or utc_now())
        return lessons

    def get_track_overview(
        self,
        db: Session,
        track_id: UUID,
        learner: LearnerSession,
        now: Optional[datetime] = None
    ) -> TrackOverview:
        """Track, lesson views, stored enrollment and the summary percentage"""
        now = ensure_utc(now) or utc_now()
        track = self.get_track(db, track_id)
        lessons, enrollment = self._load(db, track, learner, now)

        summary = self.summarize(
            lessons,
            schedule_config(track),
            enrollment_state(enrollment, now)
        )

        return TrackOverview(
            track=TrackResponse.model_validate(track),
            summary=summary,
            lessons=lessons,
            enrollment=EnrollmentProgressResponse.model_validate(enrollment) if enrollment else None
        )

    def summarize(
        self,
        lessons: List[TrackLessonView],
        config: ScheduleConfig,
        progress: EnrollmentState
    ) -> TrackProgressSummary:
        total = len(lessons)
        completed = sum(1 for lesson in lessons if lesson.completed)

        return TrackProgressSummary(
            total_lessons=total,
            completed_lessons=completed,
            remaining_lessons=total - completed,
            progress_percentage=self.scheduler.calculate_track_progress(
                completed, total, config, progress
            )
        )

    def get_assigned_tracks(self, db: Session, learner: LearnerSession) -> List[AssignedTrack]:
        """Tracks assigned to the learner with their stored progress"""
        try:
            assigned = self.store.get_assigned_tracks(db, learner.user_id)
            results = []

            for item in assigned:
                track = self.store.get_track(db, item["track_id"])
                if not track:
                    continue

                progress = self.store.get_enrollment(db, learner.user_id, track.id)

                results.append(AssignedTrack(
                    assignment_id=item["assignment_id"],
                    track_id=track.id,
                    title=track.title,
                    description=track.description,
                    status=item["status"],
                    completion_required=item["completion_required"],
                    lesson_count=self.store.count_track_lessons(db, track.id),
                    progress_percentage=(progress.progress_percentage or 0) if progress else 0,
                    started_at=progress.started_at if progress else None,
                    completed_at=progress.completed_at if progress else None
                ))
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch assigned tracks for {learner.user_id}: {str(e)}")
            raise TrackLoadError("Failed to fetch assigned tracks") from e

        return results

    def _load(
        self,
        db: Session,
        track: LearningTrack,
        learner: LearnerSession,
        now: datetime
    ) -> Tuple[List[TrackLessonView], Optional[UserLearningTrackProgress]]:
        try:
            track_lessons = self.store.list_track_lessons(db, track.id)
            enrollment = self.store.get_enrollment(db, learner.user_id, track.id)
            completions = [
                self.store.get_lesson_completion(db, learner.user_id, tl.lesson_id)
                for tl in track_lessons
            ]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch lessons for track {track.id}: {str(e)}")
            raise TrackLoadError("Failed to fetch track lessons") from e

        config = schedule_config(track)
        progress = enrollment_state(enrollment, now)
        total = len(track_lessons)

        views: List[TrackLessonView] = []
        for index, (track_lesson, completion) in enumerate(zip(track_lessons, completions)):
            availability = self.scheduler.calculate_lesson_availability(
                index, total, config, progress, now=now
            )
            completed_at = ensure_utc(completion.completed_at) if completion else None
            previous_completed = index == 0 or views[index - 1].completed

            views.append(TrackLessonView(
                id=track_lesson.id,
                order_index=track_lesson.order_index,
                lesson=LessonSummary.model_validate(track_lesson.lesson),
                completed=completed_at is not None,
                completed_at=completed_at,
                available=availability.available,
                available_date=availability.available_date,
                availability_reason=availability.reason,
                available_label=None if availability.available else self.scheduler.format_available_date(
                    availability.available_date, now=now
                ),
                can_start=availability.available and (
                    previous_completed or bool(track.allow_parallel_tracks)
                )
            ))

        logger.info(
            f"Loaded track {track.id} for user {learner.user_id}: "
            f"{total} lessons, {sum(1 for v in views if v.completed)} completed"
        )

        return views, enrollment


# Global instance
track_lesson_service = TrackLessonService()
