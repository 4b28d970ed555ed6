"""
Progress analytics API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.schemas.analytics import ProgressAnalytics
from app.services.analytics_service import analytics_service
from app.utils.auth import LearnerSession, get_learner_session

router = APIRouter(prefix="/api/analytics", tags=["analytics"])
logger = logging.getLogger(__name__)


@router.get("/progress", response_model=ProgressAnalytics)
async def get_progress_analytics(
    learner: LearnerSession = Depends(get_learner_session),
    db: Session = Depends(get_db)
):
    """
    Get organisation-wide learning progress

    Returns:
    - Total learners and published lessons
    - Completion rate and average session time (last 30 days)
    - Per-lesson completion rates
    - Recent completions (last 7 days)

    Callers without an admin or manager role get empty figures.
    """

    try:
        logger.info(f"Fetching progress analytics for user {learner.user_id}")

        analytics = analytics_service.get_progress_analytics(db, learner)

        return ProgressAnalytics(**analytics)

    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch progress analytics: {str(e)}")
        raise HTTPException(
            status_code=503,
            detail="Failed to fetch progress analytics"
        )
