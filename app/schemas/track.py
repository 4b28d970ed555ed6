"""
Pydantic schemas for learning tracks: scheduling value types and API responses
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from app.utils.timeutils import ensure_utc


class ScheduleConfig(BaseModel):
    """
    Scheduling fields of a track, as consumed by the availability evaluator

    Pacing fields come from admin-edited rows; values of the wrong shape are
    dropped to None so the evaluator falls back to open access.
    """
    schedule_type: str = "flexible"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    duration_weeks: Optional[int] = None
    lessons_per_week: Optional[int] = None
    max_lessons_per_week: Optional[int] = None
    schedule_days: Optional[List[int]] = None
    allow_all_lessons_immediately: Optional[bool] = False

    class Config:
        from_attributes = True

    @field_validator("schedule_type", mode="before")
    @classmethod
    def _schedule_type(cls, value):
        return value if isinstance(value, str) else "flexible"

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _date(cls, value):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    @field_validator("start_date", "end_date")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)

    @field_validator("duration_weeks", "lessons_per_week", "max_lessons_per_week", mode="before")
    @classmethod
    def _whole_number(cls, value):
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value)
        return None

    @field_validator("schedule_days", mode="before")
    @classmethod
    def _weekdays(cls, value):
        # 0 = Sunday .. 6 = Saturday; anything else is ignored
        if not isinstance(value, (list, tuple)):
            return None
        return [d for d in value if isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6]

    @field_validator("allow_all_lessons_immediately", mode="before")
    @classmethod
    def _flag(cls, value):
        return value if value is None or isinstance(value, bool) else False


class EnrollmentState(BaseModel):
    """A learner's enrollment in one track, defaulted when no row exists yet"""
    enrolled_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    current_lesson_order: int = 0

    @field_validator("enrolled_at", "started_at", "completed_at")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)


class AvailabilityResult(BaseModel):
    """Computed per load, never stored"""
    available: bool
    available_date: datetime
    reason: str


class LessonSummary(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    estimated_duration: Optional[int] = None
    status: Optional[str] = None

    class Config:
        from_attributes = True


class TrackLessonView(BaseModel):
    """One lesson of a track as seen by a specific learner"""
    id: UUID
    order_index: int
    lesson: LessonSummary
    completed: bool
    completed_at: Optional[datetime] = None
    available: bool
    available_date: datetime
    availability_reason: str
    available_label: Optional[str] = None
    can_start: bool = False


class TrackProgressSummary(BaseModel):
    """Header figures shown above the lesson list"""
    total_lessons: int
    completed_lessons: int
    remaining_lessons: int
    progress_percentage: int = Field(..., ge=0, le=100)


class TrackResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    status: Optional[str] = None
    schedule_type: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    duration_weeks: Optional[int] = None
    lessons_per_week: Optional[int] = None
    schedule_days: Optional[List[int]] = None
    allow_all_lessons_immediately: Optional[bool] = False
    allow_parallel_tracks: Optional[bool] = False

    class Config:
        from_attributes = True


class EnrollmentProgressResponse(BaseModel):
    """Stored track progress row"""
    user_id: UUID
    learning_track_id: UUID
    enrolled_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    current_lesson_order: int = 0
    progress_percentage: int = 0

    class Config:
        from_attributes = True


class TrackOverview(BaseModel):
    """Track, its lessons for the learner and the summary percentage"""
    track: TrackResponse
    summary: TrackProgressSummary
    lessons: List[TrackLessonView]
    enrollment: Optional[EnrollmentProgressResponse] = None


class Notification(BaseModel):
    """Transient message surfaced to the learner"""
    title: str
    description: str
    variant: str = "default"  # or "destructive"


class LessonActionResponse(BaseModel):
    """Result of a start / complete / continue action"""
    state: str
    active_lesson_id: Optional[UUID] = None
    summary: Optional[TrackProgressSummary] = None
    lessons: List[TrackLessonView] = []
    notifications: List[Notification] = []


class AssignedTrack(BaseModel):
    """A track assigned to the learner, with their progress on it"""
    assignment_id: UUID
    track_id: UUID
    title: str
    description: Optional[str] = None
    status: str
    completion_required: bool = True
    lesson_count: int = 0
    progress_percentage: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
