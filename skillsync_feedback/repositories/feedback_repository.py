"""
Feedback repository - typed query surface over the feedback table
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skillsync_feedback.models.feedback import Feedback

logger = logging.getLogger(__name__)


class FeedbackRepository:
    """SQLAlchemy implementation of the feedback repository.

    Lookups return lists ordered by ID; callers should not depend on that order.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------
    # Persistence passthrough
    # ------------------------------------------------------------

    def add(self, feedback: Feedback) -> Feedback:
        """Insert a new record and return it with its generated ID."""
        self.db.add(feedback)
        self._commit()
        self.db.refresh(feedback)
        return feedback

    def save(self, feedback: Feedback) -> Feedback:
        """Flush pending changes of an already-persisted record."""
        self._commit()
        self.db.refresh(feedback)
        return feedback

    def delete(self, feedback: Feedback) -> None:
        self.db.delete(feedback)
        self._commit()

    def get_by_id(self, feedback_id: int, for_update: bool = False) -> Optional[Feedback]:
        """
        Get a record by ID

        Args:
            feedback_id: Feedback ID
            for_update: Lock the row until commit (ignored by SQLite)

        Returns:
            Feedback object if found, None otherwise
        """
        query = self.db.query(Feedback).filter(Feedback.id == feedback_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def exists(self, feedback_id: int) -> bool:
        return self.db.query(Feedback.id).filter(Feedback.id == feedback_id).first() is not None

    def list_all(self) -> list[Feedback]:
        return self.db.query(Feedback).order_by(Feedback.id).all()

    # ------------------------------------------------------------
    # Finders
    # ------------------------------------------------------------

    def find_by_course_id(self, course_id: int) -> list[Feedback]:
        return self._where(Feedback.course_id == course_id)

    def find_by_user_id(self, user_id: int) -> list[Feedback]:
        return self._where(Feedback.user_id == user_id)

    def find_by_trainer_id(self, trainer_id: int) -> list[Feedback]:
        return self._where(Feedback.trainer_id == trainer_id)

    def find_by_status(self, status: str) -> list[Feedback]:
        return self._where(Feedback.status == status)

    def find_by_submission_timestamp_between(self, start: datetime, end: datetime) -> list[Feedback]:
        """Records submitted within [start, end], both bounds inclusive."""
        return self._where(Feedback.submission_timestamp.between(start, end))

    def find_by_rating_at_least(self, rating: int) -> list[Feedback]:
        return self._where(Feedback.rating >= rating)

    def find_by_tags_containing(self, tag: str) -> list[Feedback]:
        """
        Records whose tag string contains ``tag`` as a case-sensitive substring

        LIKE is case-insensitive on SQLite and on MySQL's default collations,
        so it only narrows the candidates; the final match happens here.
        """
        candidates = self._where(Feedback.tags.contains(tag, autoescape=True))
        return [f for f in candidates if tag in f.tags]

    def find_by_course_id_and_status(self, course_id: int, status: str) -> list[Feedback]:
        return self._where(Feedback.course_id == course_id, Feedback.status == status)

    def count_by_course_id(self, course_id: int) -> int:
        return self.db.query(Feedback).filter(Feedback.course_id == course_id).count()

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    def _where(self, *criteria) -> list[Feedback]:
        return self.db.query(Feedback).filter(*criteria).order_by(Feedback.id).all()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Feedback transaction failed, rolled back")
            raise
