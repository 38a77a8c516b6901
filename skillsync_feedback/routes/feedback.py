"""
Feedback routes
"""
import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, Response, status
from sqlalchemy.orm import Session

from skillsync_feedback.core.database import get_db
from skillsync_feedback.core.exceptions import FeedbackNotFoundError, InvalidInputError
from skillsync_feedback.schemas.feedback import (
    ID_MAX,
    ID_MIN,
    FeedbackCreate,
    FeedbackResponse,
    FeedbackUpdate,
    StatusUpdate,
    TagsUpdate,
)
from skillsync_feedback.services.feedback_service import FeedbackService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["feedback"])

# Out-of-range IDs fail validation (400) instead of overflowing the driver
RecordId = Annotated[int, Path(ge=ID_MIN, le=ID_MAX)]


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _not_found(e: FeedbackNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _server_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"Failed to {action}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(e)}"
    )


# ============================================================
# CRUD
# ============================================================

@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit feedback",
    description="Create a new feedback record"
)
def submit_feedback(
    feedback_data: FeedbackCreate,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Submit feedback for a course

    - **comment**: Feedback text (required, 1-2000 characters)
    - **rating**: Overall rating (1-5)
    - **userId** / **courseId**: Required links
    """
    try:
        feedback = FeedbackService.save_feedback(db, feedback_data)
        response.headers["Location"] = f"{request.url.path.rstrip('/')}/{feedback.id}"
        return feedback
    except InvalidInputError as e:
        raise _bad_request(str(e))
    except Exception as e:
        raise _server_error("submit feedback", e)


@router.get(
    "",
    response_model=list[FeedbackResponse],
    summary="Get all feedback"
)
def get_all_feedback(db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_all_feedback(db)
    except Exception as e:
        raise _server_error("retrieve feedback", e)


# Fixed paths must be registered before /{feedback_id}
@router.get(
    "/date-range",
    response_model=list[FeedbackResponse],
    summary="Get feedback by submission date range",
    description="Both bounds are inclusive ISO-8601 timestamps"
)
def get_feedback_by_date_range(
    start_date: datetime = Query(..., alias="startDate", description="Range start (ISO-8601)"),
    end_date: datetime = Query(..., alias="endDate", description="Range end (ISO-8601)"),
    db: Session = Depends(get_db)
):
    try:
        return FeedbackService.get_feedback_by_date_range(db, start_date, end_date)
    except InvalidInputError as e:
        raise _bad_request(str(e))
    except Exception as e:
        raise _server_error("retrieve feedback by date range", e)


@router.get(
    "/{feedback_id}",
    response_model=FeedbackResponse,
    summary="Get feedback by ID"
)
def get_feedback(feedback_id: RecordId, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_by_id(db, feedback_id)
    except FeedbackNotFoundError as e:
        raise _not_found(e)
    except Exception as e:
        raise _server_error("retrieve feedback", e)


@router.put(
    "/{feedback_id}",
    response_model=FeedbackResponse,
    summary="Update feedback",
    description="Replace every mutable field of a feedback record"
)
def update_feedback(feedback_id: RecordId, feedback_data: FeedbackUpdate, db: Session = Depends(get_db)):
    try:
        return FeedbackService.update_feedback(db, feedback_id, feedback_data)
    except FeedbackNotFoundError as e:
        raise _not_found(e)
    except InvalidInputError as e:
        raise _bad_request(str(e))
    except Exception as e:
        raise _server_error("update feedback", e)


@router.delete(
    "/{feedback_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete feedback"
)
def delete_feedback(feedback_id: RecordId, db: Session = Depends(get_db)):
    try:
        FeedbackService.delete_feedback(db, feedback_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except FeedbackNotFoundError as e:
        raise _not_found(e)
    except Exception as e:
        raise _server_error("delete feedback", e)


# ============================================================
# Status and tags
# ============================================================

@router.patch(
    "/{feedback_id}/status",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Update feedback status"
)
def update_feedback_status(feedback_id: RecordId, payload: StatusUpdate, db: Session = Depends(get_db)):
    if not payload.status:
        raise _bad_request("Field 'status' is required")
    try:
        FeedbackService.update_feedback_status(db, feedback_id, payload.status)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except FeedbackNotFoundError as e:
        raise _not_found(e)
    except InvalidInputError as e:
        raise _bad_request(str(e))
    except Exception as e:
        raise _server_error("update feedback status", e)


@router.patch(
    "/{feedback_id}/tags",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Add tags to feedback",
    description="Merge comma-separated tags into the record's tag set"
)
def add_tags_to_feedback(feedback_id: RecordId, payload: TagsUpdate, db: Session = Depends(get_db)):
    if not payload.tags:
        raise _bad_request("Field 'tags' is required")
    try:
        FeedbackService.add_tags_to_feedback(db, feedback_id, payload.tags)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except FeedbackNotFoundError as e:
        raise _not_found(e)
    except InvalidInputError as e:
        raise _bad_request(str(e))
    except Exception as e:
        raise _server_error("add tags to feedback", e)


# ============================================================
# Filters
# ============================================================

@router.get("/course/{course_id}", response_model=list[FeedbackResponse], summary="Get feedback for a course")
def get_feedback_by_course(course_id: RecordId, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_by_course(db, course_id)
    except Exception as e:
        raise _server_error("retrieve feedback by course", e)


@router.get("/user/{user_id}", response_model=list[FeedbackResponse], summary="Get feedback by a user")
def get_feedback_by_user(user_id: RecordId, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_by_user(db, user_id)
    except Exception as e:
        raise _server_error("retrieve feedback by user", e)


@router.get("/trainer/{trainer_id}", response_model=list[FeedbackResponse], summary="Get feedback for a trainer")
def get_feedback_by_trainer(trainer_id: RecordId, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_by_trainer(db, trainer_id)
    except Exception as e:
        raise _server_error("retrieve feedback by trainer", e)


@router.get("/status/{status_value}", response_model=list[FeedbackResponse], summary="Get feedback by status")
def get_feedback_by_status(status_value: str, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_by_status(db, status_value)
    except Exception as e:
        raise _server_error("retrieve feedback by status", e)


@router.get(
    "/tag/{tag}",
    response_model=list[FeedbackResponse],
    summary="Get feedback by tag",
    description="Case-sensitive substring match on the record's tags"
)
def get_feedback_by_tag(tag: str, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_by_tag(db, tag)
    except Exception as e:
        raise _server_error("retrieve feedback by tag", e)


@router.get(
    "/rating/{min_rating}",
    response_model=list[FeedbackResponse],
    summary="Get feedback rated at least N"
)
def get_feedback_by_min_rating(min_rating: int, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_by_min_rating(db, min_rating)
    except InvalidInputError as e:
        raise _bad_request(str(e))
    except Exception as e:
        raise _server_error("retrieve feedback by rating", e)


@router.get(
    "/course/{course_id}/status/{status_value}",
    response_model=list[FeedbackResponse],
    summary="Get feedback for a course with a given status"
)
def get_feedback_by_course_and_status(course_id: RecordId, status_value: str, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_by_course_and_status(db, course_id, status_value)
    except Exception as e:
        raise _server_error("retrieve feedback by course and status", e)


# ============================================================
# Course analytics
# ============================================================

@router.get(
    "/course/{course_id}/average-rating",
    response_model=float,
    summary="Average overall rating for a course",
    description="Returns 0.0 when no feedback for the course has a rating"
)
def get_average_overall_rating_for_course(course_id: RecordId, db: Session = Depends(get_db)):
    try:
        avg = FeedbackService.get_average_overall_rating_for_course(db, course_id)
        return avg if avg is not None else 0.0
    except Exception as e:
        raise _server_error("compute average rating", e)


@router.get(
    "/course/{course_id}/count",
    response_model=int,
    summary="Feedback count for a course"
)
def get_feedback_count_for_course(course_id: RecordId, db: Session = Depends(get_db)):
    try:
        return FeedbackService.get_feedback_count_for_course(db, course_id)
    except Exception as e:
        raise _server_error("count feedback", e)


@router.get(
    "/course/{course_id}/average-content-relevance",
    response_model=float,
    summary="Average content relevance rating for a course"
)
def get_average_content_relevance_for_course(course_id: RecordId, db: Session = Depends(get_db)):
    try:
        avg = FeedbackService.get_average_content_relevance_rating_for_course(db, course_id)
        return avg if avg is not None else 0.0
    except Exception as e:
        raise _server_error("compute average content relevance", e)


@router.get(
    "/course/{course_id}/average-trainer-effectiveness",
    response_model=float,
    summary="Average trainer effectiveness rating for a course"
)
def get_average_trainer_effectiveness_for_course(course_id: RecordId, db: Session = Depends(get_db)):
    try:
        avg = FeedbackService.get_average_trainer_effectiveness_rating_for_course(db, course_id)
        return avg if avg is not None else 0.0
    except Exception as e:
        raise _server_error("compute average trainer effectiveness", e)
