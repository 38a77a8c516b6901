"""
Tests for feedback business logic
"""
from datetime import datetime, timedelta, timezone

import pytest

from skillsync_feedback.core.exceptions import FeedbackNotFoundError, InvalidInputError
from skillsync_feedback.models.feedback import Feedback, parse_tags
from skillsync_feedback.schemas.feedback import FeedbackCreate, FeedbackUpdate
from skillsync_feedback.services.feedback_service import FeedbackService, validate_feedback


def _create(db, **overrides):
    data = {"comment": "Great course", "rating": 5, "user_id": 1, "course_id": 10}
    data.update(overrides)
    return FeedbackService.save_feedback(db, FeedbackCreate(**data))


class TestSaveAndFetch:

    def test_save_assigns_id_and_equal_timestamps(self, db):
        feedback = _create(db)

        assert feedback.id is not None
        assert feedback.submission_timestamp is not None
        assert feedback.submission_timestamp == feedback.last_updated_timestamp
        assert feedback.status == "New"
        assert feedback.is_anonymous is False

    def test_get_by_id_returns_stored_fields(self, db):
        created = _create(db)

        fetched = FeedbackService.get_feedback_by_id(db, created.id)

        assert fetched.comment == "Great course"
        assert fetched.rating == 5
        assert fetched.user_id == 1
        assert fetched.course_id == 10

    def test_get_missing_raises_not_found(self, db):
        with pytest.raises(FeedbackNotFoundError):
            FeedbackService.get_feedback_by_id(db, 12345)

    def test_blank_comment_rejected(self, db):
        with pytest.raises(InvalidInputError) as exc_info:
            _create(db, comment="   ")
        assert exc_info.value.field == "comment"

    def test_get_all(self, db):
        _create(db)
        _create(db, course_id=11)

        assert len(FeedbackService.get_all_feedback(db)) == 2


class TestValidateFeedback:

    def _feedback(self, **overrides):
        values = {"comment": "ok", "rating": 3, "user_id": 1, "course_id": 2}
        values.update(overrides)
        return Feedback(**values)

    def test_valid_record_passes(self):
        validate_feedback(self._feedback(rating=None, content_relevance_rating=5))

    @pytest.mark.parametrize("field", ["rating", "content_relevance_rating", "trainer_effectiveness_rating"])
    def test_ratings_out_of_range(self, field):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_feedback(self._feedback(**{field: 6}))
        assert exc_info.value.field == field

        with pytest.raises(InvalidInputError):
            validate_feedback(self._feedback(**{field: 0}))

    def test_missing_links(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_feedback(self._feedback(course_id=None))
        assert exc_info.value.field == "course_id"

    def test_length_limits(self):
        with pytest.raises(InvalidInputError):
            validate_feedback(self._feedback(comment="x" * 2001))
        with pytest.raises(InvalidInputError):
            validate_feedback(self._feedback(admin_notes="x" * 1001))
        with pytest.raises(InvalidInputError):
            validate_feedback(self._feedback(status="S" * 51))


class TestDelete:

    def test_delete_then_delete_again(self, db):
        feedback = _create(db)

        FeedbackService.delete_feedback(db, feedback.id)

        with pytest.raises(FeedbackNotFoundError):
            FeedbackService.get_feedback_by_id(db, feedback.id)
        with pytest.raises(FeedbackNotFoundError):
            FeedbackService.delete_feedback(db, feedback.id)

    def test_delete_missing(self, db):
        with pytest.raises(FeedbackNotFoundError):
            FeedbackService.delete_feedback(db, 999)


class TestUpdate:

    def test_full_replace_keeps_submission_timestamp(self, db):
        feedback = _create(db, trainer_id=3, tags="a", admin_notes="note")
        submitted = feedback.submission_timestamp
        last_updated = feedback.last_updated_timestamp

        updated = FeedbackService.update_feedback(
            db,
            feedback.id,
            FeedbackUpdate(comment="Revised", rating=2, user_id=1, course_id=10, status="Reviewed"),
        )

        assert updated.comment == "Revised"
        assert updated.rating == 2
        assert updated.status == "Reviewed"
        # omitted fields are replaced, not preserved
        assert updated.trainer_id is None
        assert updated.tags is None
        assert updated.admin_notes is None
        assert updated.submission_timestamp == submitted
        assert updated.last_updated_timestamp >= last_updated

    def test_update_missing(self, db):
        with pytest.raises(FeedbackNotFoundError):
            FeedbackService.update_feedback(
                db, 77, FeedbackUpdate(comment="x", user_id=1, course_id=1)
            )

    def test_update_never_moves_timestamp_backwards(self, db):
        feedback = _create(db)
        future = feedback.last_updated_timestamp + timedelta(days=1)
        feedback.last_updated_timestamp = future
        db.commit()

        updated = FeedbackService.update_feedback(
            db, feedback.id, FeedbackUpdate(comment="x", user_id=1, course_id=10)
        )

        assert updated.last_updated_timestamp >= future


class TestStatus:

    def test_update_status(self, db):
        feedback = _create(db)
        before = feedback.last_updated_timestamp

        FeedbackService.update_feedback_status(db, feedback.id, "Actioned")

        db.expire_all()
        refreshed = FeedbackService.get_feedback_by_id(db, feedback.id)
        assert refreshed.status == "Actioned"
        assert refreshed.last_updated_timestamp >= before

    @pytest.mark.parametrize("status", [None, "", "   "])
    def test_empty_status_rejected(self, db, status):
        feedback = _create(db)

        with pytest.raises(InvalidInputError):
            FeedbackService.update_feedback_status(db, feedback.id, status)

        db.expire_all()
        assert FeedbackService.get_feedback_by_id(db, feedback.id).status == "New"

    def test_status_for_missing_record(self, db):
        with pytest.raises(FeedbackNotFoundError):
            FeedbackService.update_feedback_status(db, 404, "Closed")

    def test_status_longer_than_column_rejected(self, db):
        feedback = _create(db)

        with pytest.raises(InvalidInputError) as exc_info:
            FeedbackService.update_feedback_status(db, feedback.id, "S" * 51)
        assert exc_info.value.field == "status"

        db.expire_all()
        assert FeedbackService.get_feedback_by_id(db, feedback.id).status == "New"


class TestAddTags:

    def test_merge_refreshes_last_updated_and_keeps_submission(self, db):
        feedback = _create(db)
        submitted = feedback.submission_timestamp
        before = feedback.last_updated_timestamp

        FeedbackService.add_tags_to_feedback(db, feedback.id, "pacing")

        db.expire_all()
        refreshed = FeedbackService.get_feedback_by_id(db, feedback.id)
        assert refreshed.last_updated_timestamp >= before
        assert refreshed.submission_timestamp == submitted
        assert refreshed.submission_timestamp <= refreshed.last_updated_timestamp

    def test_merge_never_moves_timestamp_backwards(self, db):
        feedback = _create(db)
        future = feedback.last_updated_timestamp + timedelta(days=1)
        feedback.last_updated_timestamp = future
        db.commit()

        FeedbackService.add_tags_to_feedback(db, feedback.id, "pacing")

        db.expire_all()
        assert FeedbackService.get_feedback_by_id(db, feedback.id).last_updated_timestamp >= future

    def test_merge_is_case_sensitive_and_deduplicated(self, db):
        feedback = _create(db)

        FeedbackService.add_tags_to_feedback(db, feedback.id, "bug, ui_bug")
        FeedbackService.add_tags_to_feedback(db, feedback.id, "UI_BUG, bug")

        db.expire_all()
        refreshed = FeedbackService.get_feedback_by_id(db, feedback.id)
        assert refreshed.tag_set == {"bug", "ui_bug", "UI_BUG"}
        assert len(refreshed.tags.split(",")) == 3

    def test_merge_is_idempotent(self, db):
        feedback = _create(db)

        FeedbackService.add_tags_to_feedback(db, feedback.id, "slow, audio")
        once = FeedbackService.get_feedback_by_id(db, feedback.id).tag_set
        FeedbackService.add_tags_to_feedback(db, feedback.id, "slow, audio")
        twice = FeedbackService.get_feedback_by_id(db, feedback.id).tag_set

        assert once == twice == {"slow", "audio"}

    def test_merge_is_commutative(self, db):
        first = _create(db)
        second = _create(db)

        FeedbackService.add_tags_to_feedback(db, first.id, "a, b")
        FeedbackService.add_tags_to_feedback(db, first.id, "b, c")
        FeedbackService.add_tags_to_feedback(db, second.id, "b, c")
        FeedbackService.add_tags_to_feedback(db, second.id, "a, b")

        assert (
            FeedbackService.get_feedback_by_id(db, first.id).tag_set
            == FeedbackService.get_feedback_by_id(db, second.id).tag_set
            == {"a", "b", "c"}
        )

    def test_existing_tags_are_trimmed_on_merge(self, db):
        feedback = _create(db, tags=" pacing ,  slides")

        FeedbackService.add_tags_to_feedback(db, feedback.id, "slides")

        assert FeedbackService.get_feedback_by_id(db, feedback.id).tag_set == {"pacing", "slides"}

    @pytest.mark.parametrize("tags", [None, "", " , "])
    def test_empty_tags_rejected(self, db, tags):
        feedback = _create(db)
        with pytest.raises(InvalidInputError):
            FeedbackService.add_tags_to_feedback(db, feedback.id, tags)

    def test_tags_for_missing_record(self, db):
        with pytest.raises(FeedbackNotFoundError):
            FeedbackService.add_tags_to_feedback(db, 404, "bug")

    def test_parse_tags(self):
        assert parse_tags(None) == set()
        assert parse_tags("a, b ,a,,") == {"a", "b"}


class TestFilters:

    def test_date_range_rejects_inverted_bounds(self, db):
        with pytest.raises(InvalidInputError):
            FeedbackService.get_feedback_by_date_range(
                db, datetime(2024, 2, 1), datetime(2024, 1, 1)
            )

    def test_date_range_accepts_aware_bounds(self, db, make_feedback):
        inside = make_feedback(submission_timestamp=datetime(2024, 1, 10, 12, 0))
        make_feedback(submission_timestamp=datetime(2024, 3, 1, 12, 0))
        plus_two = timezone(timedelta(hours=2))

        result = FeedbackService.get_feedback_by_date_range(
            db,
            datetime(2024, 1, 10, 14, 0, tzinfo=plus_two),
            datetime(2024, 1, 31, tzinfo=plus_two),
        )

        assert [f.id for f in result] == [inside.id]

    def test_min_rating_bounds(self, db):
        with pytest.raises(InvalidInputError):
            FeedbackService.get_feedback_by_min_rating(db, 0)
        with pytest.raises(InvalidInputError):
            FeedbackService.get_feedback_by_min_rating(db, 6)

    def test_empty_results_are_not_errors(self, db):
        assert FeedbackService.get_feedback_by_course(db, 1) == []
        assert FeedbackService.get_feedback_by_user(db, 1) == []
        assert FeedbackService.get_feedback_by_trainer(db, 1) == []
        assert FeedbackService.get_feedback_by_status(db, "Closed") == []
        assert FeedbackService.get_feedback_by_tag(db, "bug") == []


class TestAggregates:

    def test_average_ignores_null_ratings(self, db, make_feedback):
        make_feedback(course_id=10, rating=3)
        make_feedback(course_id=10, rating=5)
        make_feedback(course_id=10, rating=None)

        assert FeedbackService.get_average_overall_rating_for_course(db, 10) == 4.0
        assert FeedbackService.get_feedback_count_for_course(db, 10) == 3

    def test_average_without_ratings_is_none(self, db, make_feedback):
        make_feedback(course_id=20, rating=None)

        assert FeedbackService.get_average_overall_rating_for_course(db, 20) is None
        assert FeedbackService.get_average_overall_rating_for_course(db, 21) is None
        assert FeedbackService.get_feedback_count_for_course(db, 21) == 0

    def test_detailed_rating_averages(self, db, make_feedback):
        make_feedback(course_id=10, content_relevance_rating=4, trainer_effectiveness_rating=2)
        make_feedback(course_id=10, content_relevance_rating=5, trainer_effectiveness_rating=None)
        make_feedback(course_id=10, content_relevance_rating=None, trainer_effectiveness_rating=None)

        assert FeedbackService.get_average_content_relevance_rating_for_course(db, 10) == 4.5
        assert FeedbackService.get_average_trainer_effectiveness_rating_for_course(db, 10) == 2.0
        assert FeedbackService.get_average_trainer_effectiveness_rating_for_course(db, 99) is None
