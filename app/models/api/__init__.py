# API models for request/response contracts
from .applications import (
    AcceptApplicationRequest,
    AcceptApplicationResult,
    ApplicationResponse,
    ApplicationStatus,
    FinalizePaymentRequest,
    RejectApplicationRequest,
    RoomApplicationDetail,
    StudentApplicationDetail,
    SubmitApplicationRequest,
)
from .conversations import (
    ConversationHeader,
    ConversationResponse,
    ConversationSummary,
    ConversationView,
)
from .messages import MarkReadResponse, MessageResponse, SendMessageRequest
from .profiles import ProfileResponse, StudentProfileResponse
from .rentals import PaymentResponse, RentalResponse
from .rooms import RoomResponse

__all__ = [
    "AcceptApplicationRequest",
    "AcceptApplicationResult",
    "ApplicationResponse",
    "ApplicationStatus",
    "FinalizePaymentRequest",
    "RejectApplicationRequest",
    "RoomApplicationDetail",
    "StudentApplicationDetail",
    "SubmitApplicationRequest",
    "ConversationHeader",
    "ConversationResponse",
    "ConversationSummary",
    "ConversationView",
    "MarkReadResponse",
    "MessageResponse",
    "SendMessageRequest",
    "PaymentResponse",
    "RentalResponse",
    "ProfileResponse",
    "StudentProfileResponse",
    "RoomResponse",
]
