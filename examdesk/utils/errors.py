from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    """
    Base error raised by the service layer and rendered by the API as
    {"success": false, "message": ..., "data"/"errors": ...}
    """
    status = 400

    def __init__(
        self,
        message: str = "Request could not be processed",
        data: Any = None,
        errors: Optional[Dict[str, List[str]]] = None,
        status: Optional[int] = None,
    ):
        self.message = message
        self.data = data
        self.errors = errors
        if status is not None:
            self.status = status
        super().__init__(self.message)


class ValidationError(ServiceError):
    status = 422

    def __init__(self, message: str = "Invalid input", errors: Optional[Dict[str, List[str]]] = None, **kwargs):
        super().__init__(message, errors=errors, **kwargs)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors={field: [message]})


class AuthError(ServiceError):
    status = 401

    def __init__(self, message: str = "Authentication error", **kwargs):
        super().__init__(message, **kwargs)


class ForbiddenError(ServiceError):
    status = 403

    def __init__(self, message: str = "You don't have permission to perform this action", **kwargs):
        super().__init__(message, **kwargs)


class NotFoundError(ServiceError):
    status = 404

    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, **kwargs)


class ConflictError(ServiceError):
    """The existing resource, when there is one, travels in ``data``."""
    status = 409

    def __init__(self, message: str = "Resource state conflict", **kwargs):
        super().__init__(message, **kwargs)


class RateLimitError(ServiceError):
    status = 429

    def __init__(self, message: str = "Too many requests, please try again later", **kwargs):
        super().__init__(message, **kwargs)
