"""Domain errors raised by the services and mapped to HTTP responses in main.py."""


class ResultServiceError(Exception):
    """Base class for every error the result services raise on purpose."""
    default_message = "Request could not be completed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ResultServiceError):
    default_message = "Invalid input"


class InvalidTransition(ResultServiceError):
    default_message = "Illegal result state change"


class InvalidArgument(ResultServiceError):
    default_message = "Invalid argument"


class PermissionDenied(ResultServiceError):
    default_message = "You do not have permission to perform this action"


class NotFoundError(ResultServiceError):
    default_message = "Not found"


class ResultNotFound(NotFoundError):
    default_message = "Result not found"


class TermNotFound(NotFoundError):
    default_message = "Term not found"


class StudentNotFound(NotFoundError):
    default_message = "Student not found"


class TokenNotFound(NotFoundError):
    default_message = "Token not found"


class TokenAlreadyUsed(ResultServiceError):
    default_message = "Token has already been used"


class Unavailable(ResultServiceError):
    default_message = "Service temporarily unavailable, please retry"
