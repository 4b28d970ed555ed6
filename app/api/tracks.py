"""
Learning track API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from app.database import get_db
from app.schemas.track import TrackOverview, LessonActionResponse
from app.services.errors import TrackLoadError, TrackNotFoundError
from app.services.lesson_viewer import LessonViewerHost
from app.services.track_lesson_service import track_lesson_service
from app.utils.auth import LearnerSession, get_learner_session

router = APIRouter(prefix="/api/tracks", tags=["tracks"])
logger = logging.getLogger(__name__)


def _open_lesson(
    db: Session,
    track_id: UUID,
    lesson_id: UUID,
    learner: LearnerSession
) -> LessonViewerHost:
    """Load the track and move the host onto the requested lesson, or fail"""

    host = LessonViewerHost(db, track_id, learner)

    try:
        loaded = host.refresh()
    except TrackNotFoundError:
        raise HTTPException(status_code=404, detail="Learning track not found")

    if not loaded:
        raise HTTPException(status_code=503, detail="Failed to fetch track lessons")

    if host.index_of(lesson_id) < 0:
        raise HTTPException(status_code=404, detail="Lesson is not part of this track")

    if not host.start(lesson_id):
        raise HTTPException(status_code=409, detail=host.notifications[-1].description)

    return host


@router.get("/{track_id}", response_model=TrackOverview)
async def get_track(
    track_id: UUID,
    learner: LearnerSession = Depends(get_learner_session),
    db: Session = Depends(get_db)
):
    """
    Get a track with its lessons for the current learner

    Returns:
    - Track scheduling settings
    - Lessons in order with completion and availability
    - Summary percentage from completed lessons
    """

    try:
        return track_lesson_service.get_track_overview(db, track_id, learner)
    except TrackNotFoundError:
        raise HTTPException(status_code=404, detail="Learning track not found")
    except TrackLoadError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/{track_id}/lessons/{lesson_id}/start", response_model=LessonActionResponse)
async def start_lesson(
    track_id: UUID,
    lesson_id: UUID,
    learner: LearnerSession = Depends(get_learner_session),
    db: Session = Depends(get_db)
):
    """
    Start a lesson

    Rejected with 409 unless the lesson is available and the previous
    lesson is completed (or the track allows parallel lessons).
    """

    host = _open_lesson(db, track_id, lesson_id, learner)
    logger.info(f"User {learner.user_id} started lesson {lesson_id} in track {track_id}")

    return host.to_response()


@router.post("/{track_id}/lessons/{lesson_id}/complete", response_model=LessonActionResponse)
async def complete_lesson(
    track_id: UUID,
    lesson_id: UUID,
    learner: LearnerSession = Depends(get_learner_session),
    db: Session = Depends(get_db)
):
    """
    Complete a lesson and advance track progress

    A failed progress write is reported in notifications; the lesson
    completion itself is kept.
    """

    host = _open_lesson(db, track_id, lesson_id, learner)
    host.complete()

    return host.to_response()


@router.post("/{track_id}/lessons/{lesson_id}/continue", response_model=LessonActionResponse)
async def continue_to_next_lesson(
    track_id: UUID,
    lesson_id: UUID,
    learner: LearnerSession = Depends(get_learner_session),
    db: Session = Depends(get_db)
):
    """Complete a lesson and open the next one when it can be started"""

    host = _open_lesson(db, track_id, lesson_id, learner)
    host.continue_to_next()

    return host.to_response()
