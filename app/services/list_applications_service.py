import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, PermissionDeniedError
from app.models.api.applications import (
    ApplicantSummary,
    RoomApplicationDetail,
    RoomSummary,
    StudentApplicationDetail,
    StudentProfileSummary,
)
from app.repositories.application_repository import ApplicationRepository
from app.repositories.profile_repository import ProfileRepository
from app.repositories.room_repository import RoomRepository

logger = logging.getLogger(__name__)


class ListApplicationsService:
    """Service for the host's and the student's views of applications."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.application_repo = ApplicationRepository(db)
        self.profile_repo = ProfileRepository(db)
        self.room_repo = RoomRepository(db)

    async def list_room_applications(
        self, room_id: UUID, elderly_id: UUID
    ) -> List[RoomApplicationDetail]:
        """
        List a room's applications for its host, newest first:

        1. Verify the room belongs to the host
        2. Retrieve the applications
        3. Look up applicant profiles and student profiles separately and
           attach them; missing rows fall back to empty values
        """
        room = await self.room_repo.get_by_id(room_id)
        if not room:
            raise NotFoundError("Room not found")
        if room.elderly_id != elderly_id:
            raise PermissionDeniedError("Only the room's host can see its applications")

        applications = await self.application_repo.list_by_room(room_id)
        logger.debug("Found %d applications for room %s", len(applications), room_id)
        if not applications:
            return []

        student_ids = {application.student_id for application in applications}
        profiles = {p.id: p for p in await self.profile_repo.get_many(student_ids)}
        student_profiles = {
            sp.id: sp for sp in await self.profile_repo.get_student_profiles(student_ids)
        }

        details = []
        for application in applications:
            profile = profiles.get(application.student_id)
            student_profile = student_profiles.get(application.student_id)
            details.append(
                RoomApplicationDetail(
                    id=application.id,
                    status=application.status,
                    message=application.message,
                    created_at=application.created_at,
                    student=ApplicantSummary(
                        id=application.student_id,
                        full_name=profile.full_name if profile else "",
                        age=profile.age if profile else 0,
                        bio=(profile.bio or "") if profile else "",
                        student_profile=(
                            StudentProfileSummary(
                                university=student_profile.university,
                                course=student_profile.course,
                                student_type=student_profile.student_type,
                            )
                            if student_profile
                            else None
                        ),
                    ),
                )
            )
        return details

    async def list_student_applications(
        self, student_id: UUID
    ) -> List[StudentApplicationDetail]:
        """List a student's own applications with room and host, newest first."""
        applications = await self.application_repo.list_by_student_with_rooms(
            student_id
        )
        return [
            StudentApplicationDetail(
                id=application.id,
                status=application.status,
                message=application.message or "",
                created_at=application.created_at,
                room=(
                    RoomSummary(
                        id=application.room.id,
                        title=application.room.title,
                        location=application.room.location or "",
                        elderly_name=(
                            application.room.elderly.full_name
                            if application.room.elderly
                            else ""
                        ),
                    )
                    if application.room
                    else None
                ),
            )
            for application in applications
        ]
