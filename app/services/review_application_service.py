import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import is_unique_violation
from app.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from app.models.api.applications import (
    AcceptApplicationRequest,
    AcceptApplicationResult,
    ApplicationResponse,
    ApplicationStatus,
)
from app.models.api.rooms import RoomResponse
from app.repositories.application_repository import ApplicationRepository
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.room_repository import RoomRepository

logger = logging.getLogger(__name__)

# Accepting again from awaiting_payment re-runs the idempotent follow-up steps
ACCEPTABLE_STATUSES = (ApplicationStatus.PENDING, ApplicationStatus.AWAITING_PAYMENT)


class ReviewApplicationService:
    """Service for hosts accepting or rejecting applications to their rooms."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.application_repo = ApplicationRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.room_repo = RoomRepository(db)

    async def accept_application(
        self, application_id: UUID, request: AcceptApplicationRequest
    ) -> AcceptApplicationResult:
        """
        Accept an application. Each step commits on its own:
        1. Move the application to awaiting_payment (failure aborts)
        2. Open the host/student conversation (an existing one counts as success)
        3. Reject the room's other pending applications (best-effort)

        Once step 1 commits the accept is reported as successful; problems in
        steps 2 and 3 are logged and returned as warnings. Step 1 refuses while
        another application of the room is awaiting payment or accepted.
        """
        room = await self._get_owned_room(request.room_id, request.elderly_id)

        application = await self.application_repo.get_by_id(application_id)
        if (
            not application
            or application.room_id != room.id
            or application.student_id != request.student_id
        ):
            raise NotFoundError("Application not found")
        if application.status not in ACCEPTABLE_STATUSES:
            raise InvalidTransitionError(
                f"Cannot accept an application that is {application.status.value}"
            )

        # Step 1: Primary transition, conditional on the stored status
        logger.info("Starting accept process for application %s", application_id)
        claimed = await self.application_repo.claim_for_payment(application_id, room.id)
        updated = await self.application_repo.refresh(application_id)
        if not updated:
            raise NotFoundError("Application not found")
        if not claimed:
            if updated.status not in ACCEPTABLE_STATUSES:
                raise InvalidTransitionError(
                    f"Cannot accept an application that is {updated.status.value}"
                )
            raise ConflictError(
                "Another application for this room was already accepted"
            )

        warnings: List[str] = []

        # Step 2: Conversation between host and student
        conversation_id, created = await self._open_conversation(
            room, request.student_id, warnings
        )

        # Step 3: Cascading rejection
        rejected_ids = await self._reject_other_applications(
            room.id, application_id, warnings
        )

        return AcceptApplicationResult(
            application=updated,
            conversation_id=conversation_id,
            conversation_created=created,
            rejected_application_ids=rejected_ids,
            warnings=warnings,
        )

    async def reject_application(
        self, application_id: UUID, elderly_id: UUID
    ) -> ApplicationResponse:
        """Reject an application to one of the host's rooms. Idempotent."""
        application = await self.application_repo.get_by_id(application_id)
        if not application:
            raise NotFoundError("Application not found")
        await self._get_owned_room(application.room_id, elderly_id)

        logger.info("Rejecting application %s", application_id)
        rejected = await self.application_repo.set_status(
            application_id, ApplicationStatus.REJECTED
        )
        if not rejected:
            raise NotFoundError("Application not found")
        return rejected

    async def _get_owned_room(self, room_id: UUID, elderly_id: UUID) -> RoomResponse:
        room = await self.room_repo.get_by_id(room_id)
        if not room:
            raise NotFoundError("Room not found")
        if room.elderly_id != elderly_id:
            raise PermissionDeniedError("Only the room's host can review applications")
        return room

    async def _open_conversation(
        self, room: RoomResponse, student_id: UUID, warnings: List[str]
    ) -> Tuple[Optional[UUID], bool]:
        try:
            conversation = await self.conversation_repo.create_for_pairing(
                room_id=room.id, elderly_id=room.elderly_id, student_id=student_id
            )
            logger.info("Conversation %s created for room %s", conversation.id, room.id)
            return conversation.id, True
        except IntegrityError as e:
            await self.db.rollback()
            if not is_unique_violation(e):
                logger.error("Error creating conversation for room %s: %s", room.id, e)
                warnings.append("Conversation could not be created")
                return None, False
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Error creating conversation for room %s: %s", room.id, e)
            warnings.append("Conversation could not be created")
            return None, False

        logger.info("Conversation already exists for room %s", room.id)
        existing = await self.conversation_repo.get_by_pairing(
            room_id=room.id, elderly_id=room.elderly_id, student_id=student_id
        )
        return (existing.id if existing else None), False

    async def _reject_other_applications(
        self, room_id: UUID, accepted_id: UUID, warnings: List[str]
    ) -> List[UUID]:
        try:
            rejected_ids = await self.application_repo.reject_pending_siblings(
                room_id, accepted_id
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Error rejecting other applications (non-critical) for room %s: %s",
                room_id,
                e,
            )
            warnings.append("Other pending applications could not be rejected")
            return []

        logger.info(
            "Rejected %d other pending applications for room %s",
            len(rejected_ids),
            room_id,
        )
        return rejected_ids
