"""
Database models package
"""
from app.models.learning_track import LearningTrack
from app.models.lesson import Lesson
from app.models.learning_track_lesson import LearningTrackLesson
from app.models.track_progress import UserLearningTrackProgress
from app.models.lesson_progress import UserLessonProgress
from app.models.track_assignment import LearningTrackAssignment
from app.models.user import Profile, UserRole

__all__ = [
    "LearningTrack",
    "Lesson",
    "LearningTrackLesson",
    "UserLearningTrackProgress",
    "UserLessonProgress",
    "LearningTrackAssignment",
    "Profile",
    "UserRole",
]
