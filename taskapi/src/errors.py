"""
API error taxonomy.

Services raise these exceptions; the application factory renders every
ApiError as a JSON response with the matching HTTP status code.

    ValidationError      422  field-keyed messages, client must fix input
    AuthenticationError  401  missing/invalid token or bad credentials
    AuthorizationError   403  valid principal, forbidden action
    NotFoundError        404  resource id does not exist
    ConflictError        409  uniqueness violated at the database level
    RateLimitError       429  carries a retry-after hint
"""

from typing import Dict, List, Optional


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = 'An unexpected error occurred'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        return {'message': self.message}


class ValidationError(ApiError):
    status_code = 422
    default_message = 'The given data was invalid.'

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message or self._summarize(errors))

    @classmethod
    def _summarize(cls, errors):
        # First message, plus how many more there are
        messages = [msg for field_messages in errors.values() for msg in field_messages]
        if not messages:
            return cls.default_message
        if len(messages) == 1:
            return messages[0]
        extra = len(messages) - 1
        return f"{messages[0]} (and {extra} more error{'s' if extra > 1 else ''})"

    def to_dict(self) -> dict:
        return {'message': self.message, 'errors': self.errors}


class ConflictError(ValidationError):
    status_code = 409
    default_message = 'The resource conflicts with an existing record.'


class AuthenticationError(ApiError):
    status_code = 401
    default_message = 'Unauthenticated.'


class AuthorizationError(ApiError):
    status_code = 403
    default_message = 'This action is unauthorized.'


class NotFoundError(ApiError):
    status_code = 404
    default_message = 'Resource not found'


class RateLimitError(ApiError):
    status_code = 429
    default_message = 'Too Many Attempts.'

    def __init__(self, retry_after: int, message: Optional[str] = None):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        return {'message': self.message, 'retry_after': self.retry_after}
