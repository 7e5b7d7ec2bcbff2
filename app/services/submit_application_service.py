import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import is_unique_violation
from app.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from app.models.api.applications import ApplicationResponse, SubmitApplicationRequest
from app.models.roles import UserRole
from app.repositories.application_repository import ApplicationRepository
from app.repositories.profile_repository import ProfileRepository
from app.repositories.room_repository import RoomRepository

logger = logging.getLogger(__name__)


class SubmitApplicationService:
    """Service for students applying to rooms."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.application_repo = ApplicationRepository(db)
        self.profile_repo = ProfileRepository(db)
        self.room_repo = RoomRepository(db)

    async def submit_application(
        self, request: SubmitApplicationRequest
    ) -> ApplicationResponse:
        """
        Submit an application:
        1. Verify the applicant is a student
        2. Verify the room exists and is still available
        3. Insert the application as pending; the store rejects duplicates
        """
        # Step 1: Only students apply
        student = await self.profile_repo.get_by_id(request.student_id)
        if not student:
            raise NotFoundError("Student profile not found")
        if student.user_type is not UserRole.STUDENT:
            raise PermissionDeniedError("Only students can apply to rooms")

        # Step 2: Room must be open for applications
        room = await self.room_repo.get_by_id(request.room_id)
        if not room:
            raise NotFoundError("Room not found")
        if not room.is_available:
            raise ValueError("Room is no longer available")

        # Step 3: Insert
        try:
            application = await self.application_repo.create_pending(
                room_id=room.id,
                student_id=student.id,
                message=request.message,
            )
        except IntegrityError as e:
            await self.db.rollback()
            if is_unique_violation(e):
                raise ConflictError("An application for this room already exists") from e
            raise

        logger.info(
            "Application %s submitted by %s for room %s",
            application.id,
            student.id,
            room.id,
        )
        return application
