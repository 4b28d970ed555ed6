"""
Pydantic schemas for analytics endpoints
"""
from pydantic import BaseModel
from typing import List


class LessonCompletionRate(BaseModel):
    """Completion rate for a specific lesson"""
    title: str
    completion_rate: int
    users_attempted: int
    users_completed: int


class RecentActivity(BaseModel):
    """A recent lesson completion"""
    timestamp: str
    user_full_name: str
    lesson_title: str
    action: str


class ProgressAnalytics(BaseModel):
    """Organisation-wide learning progress"""
    total_learners: int
    active_lessons: int
    completion_rate: int
    avg_session_time: int
    lesson_completion_rates: List[LessonCompletionRate]
    recent_activity: List[RecentActivity]
