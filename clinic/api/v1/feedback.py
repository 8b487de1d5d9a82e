from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import STAFF_ROLES, require_roles
from clinic.db.models import Feedback, User
from clinic.db.models.enums import Role
from clinic.db.session import get_session
from clinic.schemas.feedback import FeedbackCreate, FeedbackResponse
from clinic.services.feedback_service import FeedbackService

router = APIRouter()


def construct_feedback_response(feedback: Feedback) -> FeedbackResponse:
    return FeedbackResponse(
        id=feedback.id,
        service_id=feedback.service_id,
        participant_id=None if feedback.is_anonymous else feedback.participant_id,
        target_type=feedback.target_type,
        rating_score=feedback.rating_score,
        comments=feedback.comments,
        is_anonymous=feedback.is_anonymous,
        submission_date=feedback.submission_date,
    )


@router.post("", response_model=FeedbackResponse, status_code=201)
async def submit_feedback(
    request: FeedbackCreate,
    user: User = Depends(require_roles(Role.PATIENT, *STAFF_ROLES)),
    session: AsyncSession = Depends(get_session),
):
    feedback = await FeedbackService(session).submit_feedback(request, user)
    return construct_feedback_response(feedback)


@router.get("/service/{service_id}", response_model=List[FeedbackResponse])
async def service_feedback(
    service_id: UUID,
    user: User = Depends(require_roles(*STAFF_ROLES)),
    session: AsyncSession = Depends(get_session),
):
    entries = await FeedbackService(session).list_for_service(service_id)
    return [construct_feedback_response(f) for f in entries]
