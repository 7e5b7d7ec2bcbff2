# Export all models
from .api import (
    AcceptApplicationResult,
    ApplicationResponse,
    ApplicationStatus,
    ConversationResponse,
    MessageResponse,
    RentalResponse,
    SendMessageRequest,
)
from .db import (
    ApplicationModel,
    ConversationModel,
    MessageModel,
    PaymentModel,
    ProfileModel,
    RentalModel,
    RoomModel,
    StudentProfileModel,
)
from .roles import UserRole

__all__ = [
    # API models
    "AcceptApplicationResult",
    "ApplicationResponse",
    "ApplicationStatus",
    "ConversationResponse",
    "MessageResponse",
    "RentalResponse",
    "SendMessageRequest",
    # DB models
    "ApplicationModel",
    "ConversationModel",
    "MessageModel",
    "PaymentModel",
    "ProfileModel",
    "RentalModel",
    "RoomModel",
    "StudentProfileModel",
    # Roles
    "UserRole",
]
