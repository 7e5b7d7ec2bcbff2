from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import db_session
from app.models.api.applications import (
    AcceptApplicationRequest,
    AcceptApplicationResult,
    ApplicationResponse,
    FinalizePaymentRequest,
    RejectApplicationRequest,
    RoomApplicationDetail,
    StudentApplicationDetail,
    SubmitApplicationRequest,
)
from app.models.api.rentals import RentalResponse
from app.routers.errors import raise_http_error
from app.services.finalize_payment_service import FinalizePaymentService
from app.services.list_applications_service import ListApplicationsService
from app.services.review_application_service import ReviewApplicationService
from app.services.submit_application_service import SubmitApplicationService

router = APIRouter()
rooms_router = APIRouter()


@router.post("", response_model=ApplicationResponse, status_code=201)
async def submit_application(
    request: SubmitApplicationRequest, db: AsyncSession = Depends(db_session)
) -> ApplicationResponse:
    """Apply to a room as a student."""
    try:
        service = SubmitApplicationService(db)
        return await service.submit_application(request)
    except Exception as e:
        raise_http_error(e)


@router.get("", response_model=List[StudentApplicationDetail])
async def list_student_applications(
    student_id: UUID = Query(..., description="Student whose applications to list"),
    db: AsyncSession = Depends(db_session),
) -> List[StudentApplicationDetail]:
    """List a student's applications, newest first."""
    try:
        service = ListApplicationsService(db)
        return await service.list_student_applications(student_id)
    except Exception as e:
        raise_http_error(e)


@router.post("/{application_id}/accept", response_model=AcceptApplicationResult)
async def accept_application(
    application_id: UUID,
    request: AcceptApplicationRequest,
    db: AsyncSession = Depends(db_session),
) -> AcceptApplicationResult:
    """
    Accept an application as the room's host.

    The student is moved to awaiting payment, a conversation is opened and
    other pending applications for the room are rejected. Problems with the
    last two steps are reported in ``warnings``.
    """
    try:
        service = ReviewApplicationService(db)
        return await service.accept_application(application_id, request)
    except Exception as e:
        raise_http_error(e)


@router.post("/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: UUID,
    request: RejectApplicationRequest,
    db: AsyncSession = Depends(db_session),
) -> ApplicationResponse:
    """Reject an application as the room's host."""
    try:
        service = ReviewApplicationService(db)
        return await service.reject_application(application_id, request.elderly_id)
    except Exception as e:
        raise_http_error(e)


@router.post("/{application_id}/finalize", response_model=RentalResponse)
async def finalize_payment(
    application_id: UUID,
    request: FinalizePaymentRequest,
    db: AsyncSession = Depends(db_session),
) -> RentalResponse:
    """Confirm payment for an accepted application and start the rental."""
    try:
        service = FinalizePaymentService(db)
        return await service.finalize_payment(application_id, request.student_id)
    except Exception as e:
        raise_http_error(e)


@rooms_router.get(
    "/{room_id}/applications", response_model=List[RoomApplicationDetail]
)
async def list_room_applications(
    room_id: UUID,
    elderly_id: UUID = Query(..., description="Host requesting the list"),
    db: AsyncSession = Depends(db_session),
) -> List[RoomApplicationDetail]:
    """List a room's applications with applicant details, newest first."""
    try:
        service = ListApplicationsService(db)
        return await service.list_room_applications(room_id, elderly_id)
    except Exception as e:
        raise_http_error(e)
