"""
Database model for Feedback
"""
from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, String, Text

from skillsync_feedback.core.database import Base

TAG_DELIMITER = ","
STATUS_MAX_LENGTH = 50


def parse_tags(raw) -> set[str]:
    """Split a comma-separated tag string into a set of trimmed, non-empty tags."""
    if not raw:
        return set()
    return {tag.strip() for tag in raw.split(TAG_DELIMITER) if tag.strip()}


def join_tags(tags) -> str:
    """Serialize a tag set to its stored comma-separated form (sorted for stable output)."""
    return TAG_DELIMITER.join(sorted(tags))


class Feedback(Base):
    """Feedback model - one user's evaluation of a course and, optionally, its trainer"""
    __tablename__ = "feedback"

    # SQLite only autoincrements an INTEGER primary key
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True, autoincrement=True)

    # Core feedback content
    comment = Column("comment_text", String(2000), nullable=False)
    rating = Column("overall_rating", Integer, nullable=True)  # 1-5

    # Linking fields
    user_id = Column(BigInteger, nullable=False, index=True)
    course_id = Column(BigInteger, nullable=False, index=True)
    trainer_id = Column(BigInteger, nullable=True, index=True)

    # Structured ratings, 1-5 each
    content_relevance_rating = Column(Integer, nullable=True)
    trainer_effectiveness_rating = Column(Integer, nullable=True)
    would_recommend = Column(Boolean, nullable=True)
    is_anonymous = Column(Boolean, nullable=False, default=False)

    # Management and tagging
    tags = Column(Text, nullable=True)  # comma-separated, e.g. "improvement,ui_bug"
    status = Column(String(STATUS_MAX_LENGTH), nullable=True, default="New", index=True)  # New, Reviewed, Actioned, Closed
    admin_notes = Column(String(1000), nullable=True)

    # Set by the service hooks, not by the database
    submission_timestamp = Column(DateTime, nullable=False, index=True)
    last_updated_timestamp = Column(DateTime, nullable=True)

    @property
    def tag_set(self) -> set[str]:
        return parse_tags(self.tags)

    @tag_set.setter
    def tag_set(self, tags):
        self.tags = join_tags(tags) if tags else None

    def __repr__(self):
        return f"<Feedback(id={self.id}, course_id={self.course_id}, user_id={self.user_id}, status='{self.status}')>"
