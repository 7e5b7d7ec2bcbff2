# Repository classes for database operations
from .application_repository import ApplicationRepository
from .base_repository import BaseRepository
from .conversation_repository import ConversationRepository
from .message_repository import MessageRepository
from .profile_repository import ProfileRepository
from .rental_repository import PaymentRepository, RentalRepository
from .room_repository import RoomRepository

__all__ = [
    "ApplicationRepository",
    "BaseRepository",
    "ConversationRepository",
    "MessageRepository",
    "PaymentRepository",
    "ProfileRepository",
    "RentalRepository",
    "RoomRepository",
]
