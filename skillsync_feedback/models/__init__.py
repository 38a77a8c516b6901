"""
Database models for the feedback service
"""
from skillsync_feedback.models.feedback import Feedback

__all__ = [
    "Feedback",
]
