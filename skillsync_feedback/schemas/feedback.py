"""
Pydantic schemas for Feedback

JSON field names are camelCase (``courseId``, ``isAnonymous``); snake_case
names are accepted on input as well.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from skillsync_feedback.models.feedback import STATUS_MAX_LENGTH

# IDs are stored as signed 64-bit integers
ID_MIN = -(2 ** 63)
ID_MAX = 2 ** 63 - 1


class CamelModel(BaseModel):
    """Base schema that speaks camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeedbackBase(CamelModel):
    """Fields shared by create and full-update payloads"""
    comment: str = Field(..., min_length=1, max_length=2000, description="Feedback comment")
    rating: Optional[int] = Field(None, ge=1, le=5, description="Overall rating (1-5)")
    user_id: int = Field(..., ge=ID_MIN, le=ID_MAX, description="Submitting user ID")
    course_id: int = Field(..., ge=ID_MIN, le=ID_MAX, description="Course ID")
    trainer_id: Optional[int] = Field(None, ge=ID_MIN, le=ID_MAX, description="Trainer ID")
    content_relevance_rating: Optional[int] = Field(None, ge=1, le=5, description="Content relevance rating (1-5)")
    trainer_effectiveness_rating: Optional[int] = Field(None, ge=1, le=5, description="Trainer effectiveness rating (1-5)")
    would_recommend: Optional[bool] = Field(None, description="Would the user recommend the course")
    is_anonymous: bool = Field(False, description="Hide the submitter from reviewers")
    tags: Optional[str] = Field(None, description="Comma-separated tags, e.g. 'improvement, ui_bug'")
    status: Optional[str] = Field("New", max_length=STATUS_MAX_LENGTH, description="Lifecycle status (New, Reviewed, Actioned, Closed)")
    admin_notes: Optional[str] = Field(None, max_length=1000, description="Internal admin notes")


class FeedbackCreate(FeedbackBase):
    """Schema for submitting feedback"""
    pass


class FeedbackUpdate(FeedbackBase):
    """Schema for a full update; every mutable field is replaced"""
    pass


class StatusUpdate(CamelModel):
    """Body of PATCH /feedback/{id}/status"""
    status: Optional[str] = Field(None, max_length=STATUS_MAX_LENGTH)


class TagsUpdate(CamelModel):
    """Body of PATCH /feedback/{id}/tags"""
    tags: Optional[str] = Field(None, description="Comma-separated tags to merge in")


class FeedbackResponse(CamelModel):
    """Schema for feedback response"""
    id: int
    comment: str
    rating: Optional[int] = None
    user_id: int
    course_id: int
    trainer_id: Optional[int] = None
    content_relevance_rating: Optional[int] = None
    trainer_effectiveness_rating: Optional[int] = None
    would_recommend: Optional[bool] = None
    is_anonymous: bool = False
    tags: Optional[str] = None
    status: Optional[str] = None
    admin_notes: Optional[str] = None
    submission_timestamp: datetime
    last_updated_timestamp: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
