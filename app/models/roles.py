from enum import Enum
from typing import Any
from uuid import UUID

from app.exceptions import PermissionDeniedError


class UserRole(str, Enum):
    """The two kinds of profile that take part in a rental.

    Each role knows which conversation column identifies itself and which one
    identifies the counterpart, so queries never branch on ``user_type``.
    """

    ELDERLY = "elderly"
    STUDENT = "student"

    @property
    def own_field(self) -> str:
        return "elderly_id" if self is UserRole.ELDERLY else "student_id"

    @property
    def counterpart_field(self) -> str:
        return "student_id" if self is UserRole.ELDERLY else "elderly_id"

    def own_column(self, model: Any) -> Any:
        return getattr(model, self.own_field)

    def counterpart_column(self, model: Any) -> Any:
        return getattr(model, self.counterpart_field)

    def counterpart_id(self, conversation: Any) -> UUID:
        return getattr(conversation, self.counterpart_field)

    @classmethod
    def for_participant(cls, conversation: Any, profile_id: UUID) -> "UserRole":
        """Resolve the role a profile plays in a conversation."""
        if conversation.elderly_id == profile_id:
            return cls.ELDERLY
        if conversation.student_id == profile_id:
            return cls.STUDENT
        raise PermissionDeniedError("Profile is not a participant in this conversation")
