"""Tests for recording lesson completions and track progress."""
import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.models import Lesson, UserLearningTrackProgress, UserLessonProgress
from app.services.errors import InvalidCompletionError, TrackProgressError
from app.services.track_progress_service import TrackProgressService, track_progress_service
from app.services.track_store import TrackStore
from app.utils.timeutils import ensure_utc
from tests.conftest import NOW


def stored_progress(db, learner, track):
    db.expire_all()
    return db.query(UserLearningTrackProgress).filter(
        UserLearningTrackProgress.user_id == learner.user_id,
        UserLearningTrackProgress.learning_track_id == track.id,
    ).one()


@pytest.mark.integration
class TestRecordCompletion:
    def test_first_then_last_lesson(self, db_session, make_track, learner):
        track = make_track(lesson_count=3)

        track_progress_service.record_completion(db_session, learner.user_id, track.id, 0, 3, now=NOW)
        row = stored_progress(db_session, learner, track)
        assert row.current_lesson_order == 1
        assert row.progress_percentage == 33
        assert ensure_utc(row.started_at) == NOW
        assert row.completed_at is None

        later = NOW + timedelta(hours=2)
        track_progress_service.record_completion(db_session, learner.user_id, track.id, 2, 3, now=later)
        row = stored_progress(db_session, learner, track)
        assert row.current_lesson_order == 3
        assert row.progress_percentage == 100
        assert ensure_utc(row.completed_at) == later
        assert ensure_utc(row.started_at) == NOW

    def test_single_row_per_learner_and_track(self, db_session, make_track, learner):
        track = make_track(lesson_count=3)
        for index in range(3):
            track_progress_service.record_completion(db_session, learner.user_id, track.id, index, 3, now=NOW)

        count = db_session.query(UserLearningTrackProgress).filter(
            UserLearningTrackProgress.user_id == learner.user_id
        ).count()
        assert count == 1

    def test_enrolled_at_restamped_by_default(self, db_session, make_track, learner):
        track = make_track(lesson_count=3)
        track_progress_service.record_completion(db_session, learner.user_id, track.id, 0, 3, now=NOW)

        later = NOW + timedelta(days=3)
        track_progress_service.record_completion(db_session, learner.user_id, track.id, 1, 3, now=later)

        assert ensure_utc(stored_progress(db_session, learner, track).enrolled_at) == later

    def test_enrolled_at_kept_when_restamp_disabled(self, db_session, make_track, learner):
        track = make_track(lesson_count=3)
        service = TrackProgressService(restamp_enrolled_at=False)
        service.record_completion(db_session, learner.user_id, track.id, 0, 3, now=NOW)
        service.record_completion(db_session, learner.user_id, track.id, 1, 3, now=NOW + timedelta(days=3))

        assert ensure_utc(stored_progress(db_session, learner, track).enrolled_at) == NOW

    def test_review_keeps_started_at_and_cursor(self, db_session, make_track, learner):
        track = make_track(lesson_count=3)
        for index in range(3):
            track_progress_service.record_completion(db_session, learner.user_id, track.id, index, 3, now=NOW)

        track_progress_service.record_completion(
            db_session, learner.user_id, track.id, 0, 3, now=NOW + timedelta(days=1)
        )

        row = stored_progress(db_session, learner, track)
        assert ensure_utc(row.started_at) == NOW
        assert row.completed_at is not None
        assert row.progress_percentage == 100
        assert row.current_lesson_order == 3

    def test_last_lesson_first_completes_track(self, db_session, make_track, learner):
        track = make_track(lesson_count=4)

        track_progress_service.record_completion(db_session, learner.user_id, track.id, 3, 4, now=NOW)

        row = stored_progress(db_session, learner, track)
        assert row.started_at is None
        assert row.progress_percentage == 100
        assert row.current_lesson_order == 4

    @pytest.mark.parametrize("index,total", [(-1, 3), (3, 3), (0, 0)])
    def test_index_outside_track(self, db_session, make_track, learner, index, total):
        track = make_track(lesson_count=3)
        with pytest.raises(InvalidCompletionError):
            track_progress_service.record_completion(db_session, learner.user_id, track.id, index, total)

    def test_failed_upsert_rolls_back(self, db_session, make_track, learner):
        class BrokenStore(TrackStore):
            def upsert_enrollment(self, db, user_id, track_id, values):
                raise OperationalError("INSERT", {}, Exception("database is locked"))

        track = make_track(lesson_count=3)
        service = TrackProgressService(store=BrokenStore())

        with pytest.raises(TrackProgressError):
            service.record_completion(db_session, learner.user_id, track.id, 0, 3, now=NOW)

        assert db_session.query(UserLearningTrackProgress).count() == 0


@pytest.mark.integration
class TestMarkLessonComplete:
    def test_first_completion_time_kept(self, db_session, make_track, learner):
        make_track(lesson_count=1)
        lesson = db_session.query(Lesson).first()

        track_progress_service.mark_lesson_complete(db_session, learner.user_id, lesson.id, now=NOW)
        later = NOW + timedelta(days=2)
        row = track_progress_service.mark_lesson_complete(db_session, learner.user_id, lesson.id, now=later)

        assert ensure_utc(row.completed_at) == NOW
        assert ensure_utc(row.last_accessed) == later
        assert db_session.query(UserLessonProgress).count() == 1

    def test_separate_rows_per_learner(self, db_session, make_track, learner):
        make_track(lesson_count=1)
        lesson = db_session.query(Lesson).first()

        track_progress_service.mark_lesson_complete(db_session, learner.user_id, lesson.id, now=NOW)
        track_progress_service.mark_lesson_complete(db_session, uuid.uuid4(), lesson.id, now=NOW)

        assert db_session.query(UserLessonProgress).count() == 2
