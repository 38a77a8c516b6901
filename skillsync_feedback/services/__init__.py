"""
Services package - business logic layer
"""
from skillsync_feedback.services.feedback_service import FeedbackService

__all__ = [
    "FeedbackService",
]
