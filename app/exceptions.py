"""Domain errors raised by services and translated to HTTP by the routers."""


class NotFoundError(LookupError):
    """A referenced room, application, conversation or profile is absent."""


class PermissionDeniedError(Exception):
    """The acting profile may not perform this action."""


class InvalidTransitionError(ValueError):
    """The requested transition is not allowed from the current status."""


class ConflictError(Exception):
    """A write collided with a store uniqueness constraint."""
