"""
Current learner API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from app.database import get_db
from app.schemas.track import AssignedTrack
from app.services.errors import TrackLoadError
from app.services.track_lesson_service import track_lesson_service
from app.utils.auth import LearnerSession, get_learner_session

router = APIRouter(prefix="/api/me", tags=["learners"])
logger = logging.getLogger(__name__)


@router.get("/tracks", response_model=List[AssignedTrack])
async def get_my_tracks(
    learner: LearnerSession = Depends(get_learner_session),
    db: Session = Depends(get_db)
):
    """Learning tracks assigned to the current learner, with progress"""

    try:
        return track_lesson_service.get_assigned_tracks(db, learner)
    except TrackLoadError as e:
        raise HTTPException(status_code=503, detail=str(e))
