"""
Error kinds raised by the feedback service layer
"""
from typing import Optional


class FeedbackServiceError(Exception):
    """Base class for feedback service errors"""
    pass


class FeedbackNotFoundError(FeedbackServiceError):
    """Raised when no feedback record has the requested ID"""

    def __init__(self, feedback_id: int):
        self.feedback_id = feedback_id
        super().__init__(f"Feedback not found with ID: {feedback_id}")


class InvalidInputError(FeedbackServiceError):
    """Raised when a payload is missing a required value or violates a field constraint"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)
