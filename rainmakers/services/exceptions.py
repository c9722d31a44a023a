"""Shared exceptions for service layer operations."""


class ServiceError(Exception):
    """
    Base for errors the API turns into a JSON ``{"error": ...}`` response.

    Each subclass carries the HTTP status it maps to so the exception
    handler in ``main`` does not need to know about individual types.
    """
    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthenticationError(ServiceError):
    """Raised when no valid identity accompanies a request."""
    status_code = 401


class AccessDeniedError(ServiceError):
    """Raised when the actor is neither the owner nor an admin."""
    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFoundError(ServiceError):
    """Raised when the target row does not exist."""
    status_code = 404

    def __init__(self, kind: str, target_id: str) -> None:
        self.kind = kind
        self.target_id = target_id
        super().__init__(f"{kind} not found")


class DuplicateSubmissionError(ServiceError):
    """
    Raised when a pledge already has a submission.

    Covers both the up-front check and the unique constraint firing when two
    confirmations race for the same pledge.
    """
    status_code = 409

    def __init__(self, pledge_id: str) -> None:
        self.pledge_id = pledge_id
        super().__init__("This pledge already has a submission")
