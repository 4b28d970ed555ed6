"""
Lesson viewer host
Switches a learner between the track's lesson list and an active lesson
"""
import logging
from enum import Enum
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.schemas.track import (
    LessonActionResponse,
    Notification,
    TrackLessonView,
    TrackOverview,
    TrackResponse,
)
from app.services.errors import InvalidCompletionError, TrackLoadError, TrackProgressError
from app.services.track_lesson_service import TrackLessonService, track_lesson_service
from app.services.track_progress_service import TrackProgressService, track_progress_service
from app.utils.auth import LearnerSession
from app.utils.timeutils import utc_now

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    LOADING = "loading"
    LIST_VIEW = "list_view"
    ACTIVE_LESSON = "active_lesson"


class LessonViewerHost:
    """
    State machine around one learner's view of one track

    Transitions:
    - list_view --start--> active_lesson, when the lesson is available and
      the previous one is completed (or the track allows parallel lessons)
    - active_lesson --complete--> list_view, after saving progress and reloading
    - active_lesson --continue--> active_lesson on the next startable lesson,
      otherwise list_view
    - active_lesson --exit--> list_view, nothing saved

    Failures are reported as notifications, never raised.
    """

    def __init__(
        self,
        db: Session,
        track_id: UUID,
        learner: LearnerSession,
        lesson_service: TrackLessonService = track_lesson_service,
        progress_service: TrackProgressService = track_progress_service,
        clock: Callable = utc_now
    ):
        self.db = db
        self.track_id = track_id
        self.learner = learner
        self.lesson_service = lesson_service
        self.progress_service = progress_service
        self.clock = clock

        self.track: Optional[TrackResponse] = None
        self.overview: Optional[TrackOverview] = None
        self.lessons: List[TrackLessonView] = []
        self.active_lesson_id: Optional[UUID] = None
        self.notifications: List[Notification] = []
        self.loading = False

    @property
    def state(self) -> ViewState:
        if self.loading:
            return ViewState.LOADING
        if self.active_lesson_id is not None:
            return ViewState.ACTIVE_LESSON
        return ViewState.LIST_VIEW

    def notify(self, title: str, description: str, variant: str = "default") -> None:
        self.notifications.append(Notification(title=title, description=description, variant=variant))

    def refresh(self) -> bool:
        """
        Re-fetch the lesson list

        On failure the previous list is kept. TrackNotFoundError propagates.
        """
        self.loading = True
        try:
            self.overview = self.lesson_service.get_track_overview(
                self.db, self.track_id, self.learner, now=self.clock()
            )
            self.track = self.overview.track
            self.lessons = self.overview.lessons
            return True
        except TrackLoadError as e:
            logger.error(f"Error fetching track lessons: {str(e)}")
            self.notify("Error", "Failed to fetch track lessons", "destructive")
            return False
        finally:
            self.loading = False

    def index_of(self, lesson_id: Optional[UUID]) -> int:
        for index, view in enumerate(self.lessons):
            if view.lesson.id == lesson_id:
                return index
        return -1

    def can_start(self, index: int, previous_completed: Optional[bool] = None) -> bool:
        """Available, and either the previous lesson is done or parallel lessons are allowed"""
        if not 0 <= index < len(self.lessons):
            return False

        if previous_completed is None:
            previous_completed = index == 0 or self.lessons[index - 1].completed

        allow_parallel = bool(self.track.allow_parallel_tracks) if self.track else False
        return self.lessons[index].available and (previous_completed or allow_parallel)

    def start(self, lesson_id: UUID) -> bool:
        index = self.index_of(lesson_id)
        if index < 0:
            self.notify("Lesson not found", "This lesson is not part of the track.", "destructive")
            return False

        lesson = self.lessons[index]
        if not lesson.available:
            self.notify(
                "Lesson not available",
                lesson.availability_reason or "This lesson is not available yet.",
                "destructive"
            )
            return False

        if not self.can_start(index):
            self.notify(
                "Lesson locked",
                "Complete the previous lesson before starting this one.",
                "destructive"
            )
            return False

        self.active_lesson_id = lesson_id
        return True

    def complete(self) -> bool:
        """
        Save the active lesson's completion, advance track progress, reload

        Returns:
            True when track progress was saved
        """
        index = self.index_of(self.active_lesson_id)
        if index < 0:
            logger.error("Completed lesson not found in track lessons")
            self.active_lesson_id = None
            return False

        now = self.clock()
        total = len(self.lessons)
        is_last = index == total - 1
        saved = False

        try:
            self.progress_service.mark_lesson_complete(
                self.db, self.learner.user_id, self.active_lesson_id, now=now
            )
        except TrackProgressError as e:
            logger.error(f"Error saving lesson completion: {str(e)}")
            self.notify("Error saving progress", "There was an issue saving your lesson progress.", "destructive")

        try:
            self.progress_service.record_completion(
                self.db, self.learner.user_id, self.track_id, index, total, now=now
            )
            saved = True
            self.notify(
                "Progress saved!",
                "Congratulations! You've completed the entire learning track!"
                if is_last else "Great job! Your track progress has been updated."
            )
        except (TrackProgressError, InvalidCompletionError) as e:
            logger.error(f"Error updating track progress: {str(e)}")
            self.notify(
                "Error saving track progress",
                "Your lesson was completed but track progress couldn't be saved.",
                "destructive"
            )

        self.refresh()
        self.active_lesson_id = None
        return saved

    def continue_to_next(self) -> bool:
        """
        Complete the active lesson and open the next one when allowed

        Returns:
            True when a next lesson became active
        """
        index = self.index_of(self.active_lesson_id)
        self.complete()

        if 0 <= index < len(self.lessons) - 1:
            next_lesson = self.lessons[index + 1]

            if self.can_start(index + 1, previous_completed=True):
                self.active_lesson_id = next_lesson.lesson.id
                return True

            if not next_lesson.available:
                self.notify(
                    "Next lesson not available",
                    next_lesson.availability_reason or "The next lesson is not available yet.",
                    "destructive"
                )

        self.active_lesson_id = None
        return False

    def exit(self) -> None:
        """Back to the list; in-lesson state is not persisted"""
        self.active_lesson_id = None

    def to_response(self) -> LessonActionResponse:
        return LessonActionResponse(
            state=self.state.value,
            active_lesson_id=self.active_lesson_id,
            summary=self.overview.summary if self.overview else None,
            lessons=self.lessons,
            notifications=self.notifications
        )
