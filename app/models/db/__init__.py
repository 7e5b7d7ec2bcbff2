# SQLAlchemy database models
from .application_model import ApplicationModel
from .conversation_model import ConversationModel
from .message_model import MessageModel
from .payment_model import PaymentModel
from .profile_model import ProfileModel, StudentProfileModel
from .rental_model import RentalModel
from .room_model import RoomModel

__all__ = [
    "ApplicationModel",
    "ConversationModel",
    "MessageModel",
    "PaymentModel",
    "ProfileModel",
    "RentalModel",
    "RoomModel",
    "StudentProfileModel",
]
