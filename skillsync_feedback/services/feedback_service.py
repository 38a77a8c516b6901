"""
Feedback business logic service
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from skillsync_feedback.core.exceptions import FeedbackNotFoundError, InvalidInputError
from skillsync_feedback.models.feedback import STATUS_MAX_LENGTH, Feedback, parse_tags
from skillsync_feedback.repositories.feedback_repository import FeedbackRepository
from skillsync_feedback.schemas.feedback import FeedbackCreate, FeedbackUpdate

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 2000
MAX_ADMIN_NOTES_LENGTH = 1000

# Fields replaced wholesale by a full update
MUTABLE_FIELDS = (
    "comment",
    "rating",
    "user_id",
    "course_id",
    "trainer_id",
    "content_relevance_rating",
    "trainer_effectiveness_rating",
    "would_recommend",
    "is_anonymous",
    "tags",
    "status",
    "admin_notes",
)

RATING_FIELDS = {
    "rating": "Rating",
    "content_relevance_rating": "Content relevance rating",
    "trainer_effectiveness_rating": "Trainer effectiveness rating",
}


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the form timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_feedback(feedback: Feedback) -> None:
    """
    Check field constraints on a feedback record before it is persisted

    Raises:
        InvalidInputError: naming the first offending field
    """
    if feedback.comment is None or not feedback.comment.strip():
        raise InvalidInputError("Comment cannot be blank", field="comment")
    if len(feedback.comment) > MAX_COMMENT_LENGTH:
        raise InvalidInputError(
            f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters", field="comment"
        )

    for field, label in RATING_FIELDS.items():
        value = getattr(feedback, field)
        if value is None:
            continue
        if value < MIN_RATING:
            raise InvalidInputError(f"{label} must be at least {MIN_RATING}", field=field)
        if value > MAX_RATING:
            raise InvalidInputError(f"{label} cannot be more than {MAX_RATING}", field=field)

    if feedback.user_id is None:
        raise InvalidInputError("User ID cannot be null", field="user_id")
    if feedback.course_id is None:
        raise InvalidInputError("Course ID cannot be null", field="course_id")

    if feedback.admin_notes is not None and len(feedback.admin_notes) > MAX_ADMIN_NOTES_LENGTH:
        raise InvalidInputError(
            f"Admin notes cannot exceed {MAX_ADMIN_NOTES_LENGTH} characters", field="admin_notes"
        )

    if feedback.status is not None and len(feedback.status) > STATUS_MAX_LENGTH:
        raise InvalidInputError(
            f"Status cannot exceed {STATUS_MAX_LENGTH} characters", field="status"
        )


def _average(values) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


class FeedbackService:
    """Service for feedback-related business logic"""

    # ------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------

    @staticmethod
    def _pre_save(feedback: Feedback) -> None:
        """Stamp a new record; both timestamps share one instant when neither is set."""
        now = utcnow()
        if feedback.submission_timestamp is None:
            feedback.submission_timestamp = now
        if feedback.last_updated_timestamp is None:
            feedback.last_updated_timestamp = max(now, feedback.submission_timestamp)
        if feedback.status is None:
            feedback.status = "New"
        if feedback.is_anonymous is None:
            feedback.is_anonymous = False

    @staticmethod
    def _pre_update(feedback: Feedback) -> None:
        """Refresh last_updated_timestamp; it never moves backwards."""
        now = utcnow()
        floor = feedback.last_updated_timestamp or feedback.submission_timestamp
        feedback.last_updated_timestamp = max(now, floor) if floor else now

    # ------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------

    @staticmethod
    def save_feedback(db: Session, feedback_data: FeedbackCreate) -> Feedback:
        """
        Submit new feedback

        Args:
            db: Database session
            feedback_data: Feedback submission data

        Returns:
            Stored feedback with its generated ID

        Raises:
            InvalidInputError: If a field constraint is violated
        """
        feedback = Feedback(**feedback_data.model_dump())
        validate_feedback(feedback)
        FeedbackService._pre_save(feedback)

        saved = FeedbackRepository(db).add(feedback)
        logger.info(f"Feedback {saved.id} submitted for course {saved.course_id} by user {saved.user_id}")
        return saved

    @staticmethod
    def get_all_feedback(db: Session) -> list[Feedback]:
        return FeedbackRepository(db).list_all()

    @staticmethod
    def get_feedback_by_id(db: Session, feedback_id: int) -> Feedback:
        """
        Get feedback by ID

        Raises:
            FeedbackNotFoundError: If no record has that ID
        """
        feedback = FeedbackRepository(db).get_by_id(feedback_id)
        if feedback is None:
            logger.warning(f"Feedback {feedback_id} not found")
            raise FeedbackNotFoundError(feedback_id)
        return feedback

    @staticmethod
    def delete_feedback(db: Session, feedback_id: int) -> None:
        """
        Delete feedback permanently

        Args:
            db: Database session
            feedback_id: Feedback ID

        Raises:
            FeedbackNotFoundError: If no record has that ID
        """
        feedback = FeedbackService.get_feedback_by_id(db, feedback_id)
        FeedbackRepository(db).delete(feedback)
        logger.info(f"Feedback {feedback_id} deleted")

    @staticmethod
    def update_feedback(db: Session, feedback_id: int, feedback_data: FeedbackUpdate) -> Feedback:
        """
        Replace every mutable field of a feedback record

        This is a full replace, not a partial merge: fields omitted from the
        payload take their schema defaults. ``submission_timestamp`` is kept.

        Args:
            db: Database session
            feedback_id: Feedback ID
            feedback_data: New values for all mutable fields

        Returns:
            Updated feedback

        Raises:
            FeedbackNotFoundError: If no record has that ID
            InvalidInputError: If a field constraint is violated
        """
        feedback = FeedbackService.get_feedback_by_id(db, feedback_id)
        values = feedback_data.model_dump()

        for field in MUTABLE_FIELDS:
            setattr(feedback, field, values[field])

        try:
            validate_feedback(feedback)
        except InvalidInputError:
            db.rollback()
            raise

        FeedbackService._pre_update(feedback)
        updated = FeedbackRepository(db).save(feedback)
        logger.info(f"Feedback {feedback_id} updated")
        return updated

    # ------------------------------------------------------------
    # Status and tag management
    # ------------------------------------------------------------

    @staticmethod
    def update_feedback_status(db: Session, feedback_id: int, status: Optional[str]) -> Feedback:
        """
        Set the lifecycle status of a feedback record

        Raises:
            InvalidInputError: If status is missing or blank
            FeedbackNotFoundError: If no record has that ID
        """
        if status is None or not status.strip():
            raise InvalidInputError("Status must not be empty", field="status")
        if len(status) > STATUS_MAX_LENGTH:
            raise InvalidInputError(
                f"Status cannot exceed {STATUS_MAX_LENGTH} characters", field="status"
            )

        repository = FeedbackRepository(db)
        feedback = repository.get_by_id(feedback_id, for_update=True)
        if feedback is None:
            raise FeedbackNotFoundError(feedback_id)

        previous = feedback.status
        feedback.status = status
        FeedbackService._pre_update(feedback)
        repository.save(feedback)
        logger.info(f"Feedback {feedback_id} status changed: {previous} -> {status}")
        return feedback

    @staticmethod
    def add_tags_to_feedback(db: Session, feedback_id: int, tags_to_add: Optional[str]) -> Feedback:
        """
        Merge comma-separated tags into a record's existing tags

        Existing and new tags are split on commas and trimmed, then unioned,
        so the merge is idempotent and order-independent. Comparison is
        case-sensitive: "UI_BUG" and "ui_bug" are distinct tags.

        Raises:
            InvalidInputError: If tags_to_add is missing or contains no tags
            FeedbackNotFoundError: If no record has that ID
        """
        new_tags = parse_tags(tags_to_add)
        if not new_tags:
            raise InvalidInputError("Tags must not be empty", field="tags")

        repository = FeedbackRepository(db)
        feedback = repository.get_by_id(feedback_id, for_update=True)
        if feedback is None:
            raise FeedbackNotFoundError(feedback_id)

        feedback.tag_set = feedback.tag_set | new_tags
        FeedbackService._pre_update(feedback)
        repository.save(feedback)
        logger.info(f"Feedback {feedback_id} tags merged: {feedback.tags}")
        return feedback

    # ------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------

    @staticmethod
    def get_feedback_by_course(db: Session, course_id: int) -> list[Feedback]:
        return FeedbackRepository(db).find_by_course_id(course_id)

    @staticmethod
    def get_feedback_by_user(db: Session, user_id: int) -> list[Feedback]:
        return FeedbackRepository(db).find_by_user_id(user_id)

    @staticmethod
    def get_feedback_by_trainer(db: Session, trainer_id: int) -> list[Feedback]:
        return FeedbackRepository(db).find_by_trainer_id(trainer_id)

    @staticmethod
    def get_feedback_by_date_range(db: Session, start_date: datetime, end_date: datetime) -> list[Feedback]:
        """
        Get feedback submitted between two instants, both inclusive

        Timezone-aware bounds are converted to UTC; naive bounds are taken as UTC.

        Raises:
            InvalidInputError: If start_date is after end_date
        """
        start = to_naive_utc(start_date)
        end = to_naive_utc(end_date)
        if start > end:
            raise InvalidInputError("startDate must not be after endDate", field="startDate")
        return FeedbackRepository(db).find_by_submission_timestamp_between(start, end)

    @staticmethod
    def get_feedback_by_min_rating(db: Session, rating: int) -> list[Feedback]:
        if rating < MIN_RATING or rating > MAX_RATING:
            raise InvalidInputError(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}", field="rating"
            )
        return FeedbackRepository(db).find_by_rating_at_least(rating)

    @staticmethod
    def get_feedback_by_status(db: Session, status: str) -> list[Feedback]:
        return FeedbackRepository(db).find_by_status(status)

    @staticmethod
    def get_feedback_by_tag(db: Session, tag: str) -> list[Feedback]:
        """Substring match on the stored tag string, so "bug" also finds "ui_bug"."""
        return FeedbackRepository(db).find_by_tags_containing(tag)

    @staticmethod
    def get_feedback_by_course_and_status(db: Session, course_id: int, status: str) -> list[Feedback]:
        return FeedbackRepository(db).find_by_course_id_and_status(course_id, status)

    # ------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------

    @staticmethod
    def get_average_overall_rating_for_course(db: Session, course_id: int) -> Optional[float]:
        """
        Mean overall rating of a course's feedback

        Records without a rating are ignored.

        Returns:
            The mean, or None when no record of the course has a rating
        """
        feedback_list = FeedbackRepository(db).find_by_course_id(course_id)
        return _average(f.rating for f in feedback_list)

    @staticmethod
    def get_feedback_count_for_course(db: Session, course_id: int) -> int:
        """Number of feedback records for a course, rated or not."""
        return FeedbackRepository(db).count_by_course_id(course_id)

    @staticmethod
    def get_average_content_relevance_rating_for_course(db: Session, course_id: int) -> Optional[float]:
        feedback_list = FeedbackRepository(db).find_by_course_id(course_id)
        return _average(f.content_relevance_rating for f in feedback_list)

    @staticmethod
    def get_average_trainer_effectiveness_rating_for_course(db: Session, course_id: int) -> Optional[float]:
        feedback_list = FeedbackRepository(db).find_by_course_id(course_id)
        return _average(f.trainer_effectiveness_rating for f in feedback_list)
