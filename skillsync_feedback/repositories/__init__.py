"""
Repositories package - query surface over storage
"""
from skillsync_feedback.repositories.feedback_repository import FeedbackRepository

__all__ = [
    "FeedbackRepository",
]
