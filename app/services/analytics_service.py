"""
Analytics service for organisation-wide lesson progress
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func
from collections import defaultdict
from app.models import Lesson, Profile, UserLessonProgress
from app.utils.auth import LearnerSession
from app.utils.cache import cache_service
from app.utils.timeutils import utc_now, ensure_utc
from app.services.scheduling_service import round_half_up

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Service for generating progress analytics for admins and managers"""

    RECENT_ACTIVITY_DAYS = 7
    ACTIVE_WINDOW_DAYS = 30
    DEFAULT_LESSON_MINUTES = 10
    TOP_LESSONS = 10
    RECENT_ITEMS = 10

    def get_progress_analytics(
        self,
        db: Session,
        learner: LearnerSession,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Get progress analytics for the organisation

        Args:
            db: Database session
            learner: Caller; non-admin roles receive empty analytics
            now: Reference instant (defaults to current UTC time)

        Returns:
            Dictionary with learner, lesson and activity metrics
        """

        if not learner.can_access_analytics:
            logger.info(f"User {learner.user_id} has no analytics role, returning empty analytics")
            return self._empty()

        cache_key = cache_service.generate_analytics_key("progress")
        cached = cache_service.get(cache_key)
        if cached:
            return cached

        now = ensure_utc(now) or utc_now()

        # Learners and published lessons
        total_learners = db.query(func.count(Profile.id)).scalar() or 0
        active_lessons = db.query(func.count(Lesson.id)).filter(
            Lesson.status == "published"
        ).scalar() or 0

        # Completions in the active window
        window_start = now - timedelta(days=self.ACTIVE_WINDOW_DAYS)
        window_rows = db.query(UserLessonProgress, Lesson).join(
            Lesson, Lesson.id == UserLessonProgress.lesson_id
        ).filter(
            UserLessonProgress.completed_at.isnot(None),
            UserLessonProgress.completed_at >= window_start
        ).all()

        unique_active = len({progress.user_id for progress, _ in window_rows})
        completion_rate = round_half_up(unique_active / total_learners * 100) if total_learners > 0 else 0

        if window_rows:
            minutes = [lesson.estimated_duration or self.DEFAULT_LESSON_MINUTES for _, lesson in window_rows]
            avg_session_time = round_half_up(sum(minutes) / len(minutes))
        else:
            avg_session_time = 0

        analytics = {
            "total_learners": total_learners,
            "active_lessons": active_lessons,
            "completion_rate": completion_rate,
            "avg_session_time": avg_session_time,
            "lesson_completion_rates": self._lesson_completion_rates(db),
            "recent_activity": self._recent_activity(db, now),
        }

        cache_service.set(cache_key, analytics)

        return analytics

    def _lesson_completion_rates(self, db: Session) -> List[Dict[str, Any]]:
        """Completion rate per published lesson that has any progress"""

        rows = db.query(UserLessonProgress, Lesson).join(
            Lesson, Lesson.id == UserLessonProgress.lesson_id
        ).filter(Lesson.status == "published").all()

        attempted = defaultdict(set)
        completed = defaultdict(set)
        titles = {}

        for progress, lesson in rows:
            titles[lesson.id] = lesson.title
            attempted[lesson.id].add(progress.user_id)
            if progress.completed_at:
                completed[lesson.id].add(progress.user_id)

        rates = []
        for lesson_id, users in attempted.items():
            rates.append({
                "title": titles[lesson_id],
                "completion_rate": round_half_up(len(completed[lesson_id]) / len(users) * 100) if users else 0,
                "users_attempted": len(users),
                "users_completed": len(completed[lesson_id]),
            })

        # Alphabetical, first page only
        rates.sort(key=lambda x: x["title"].lower())

        return rates[:self.TOP_LESSONS]

    def _recent_activity(self, db: Session, now: datetime) -> List[Dict[str, Any]]:
        """Latest lesson completions, newest first"""

        since = now - timedelta(days=self.RECENT_ACTIVITY_DAYS)

        rows = db.query(UserLessonProgress, Lesson, Profile).join(
            Lesson, Lesson.id == UserLessonProgress.lesson_id
        ).outerjoin(
            Profile, Profile.id == UserLessonProgress.user_id
        ).filter(
            UserLessonProgress.completed_at.isnot(None),
            UserLessonProgress.completed_at >= since
        ).order_by(UserLessonProgress.completed_at.desc()).limit(self.RECENT_ITEMS).all()

        return [
            {
                "timestamp": ensure_utc(progress.completed_at).isoformat(),
                "user_full_name": (profile.full_name if profile else None) or "Unknown User",
                "lesson_title": lesson.title,
                "action": "completed",
            }
            for progress, lesson, profile in rows
        ]

    def _empty(self) -> Dict[str, Any]:
        return {
            "total_learners": 0,
            "active_lessons": 0,
            "completion_rate": 0,
            "avg_session_time": 0,
            "lesson_completion_rates": [],
            "recent_activity": [],
        }


# Global instance
analytics_service = AnalyticsService()
