"""Custom exception hierarchy for better error handling.

    ChatbotException (base)
    ├── QuotaExhaustedException
    ├── AlreadySharedException
    ├── ProviderFailureException
    ├── InvalidRequestException
    ├── ActivityNotFoundException
    ├── ConversationNotFoundException
    ├── PermissionDeniedException
    │   └── TranscriptAccessDeniedException
    └── ActivityValidationException
"""
from typing import Dict, Optional

from fastapi import HTTPException, status

from shared.utils.constants import (
    MSG_ALREADY_SHARED,
    MSG_INVALID_ACTION,
    MSG_NO_ACCESS,
    MSG_NO_ATTEMPTS_REMAINING,
)


class ChatbotException(Exception):
    """Base exception for all application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)

    def to_error_payload(self) -> Dict[str, str]:
        """Body returned by the action endpoint for this error."""
        return {"error": self.message}


class QuotaExhaustedException(ChatbotException):
    """Raised when the user has no attempts (or interactions) remaining."""

    # Shown as a disabled input, not a failed request
    status_code = status.HTTP_200_OK

    def __init__(self, user_id: int, activity_id: int):
        self.user_id = user_id
        self.activity_id = activity_id
        super().__init__(MSG_NO_ATTEMPTS_REMAINING)


class AlreadySharedException(ChatbotException):
    """Raised when the user's single share slot for an activity is taken."""

    status_code = status.HTTP_200_OK

    def __init__(self, user_id: int, activity_id: int):
        self.user_id = user_id
        self.activity_id = activity_id
        super().__init__(MSG_ALREADY_SHARED)


class ProviderFailureException(ChatbotException):
    """Raised when the AI provider call fails or returns unsuccessfully."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, error_message: str):
        self.error_message = error_message
        super().__init__(error_message)


class InvalidRequestException(ChatbotException):
    """Raised for missing or malformed request parameters and unknown actions."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = MSG_INVALID_ACTION):
        super().__init__(message)


class ActivityNotFoundException(ChatbotException):
    """Raised when an activity is not found."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, activity_id: int):
        self.activity_id = activity_id
        super().__init__(f"Activity {activity_id} not found")


class ConversationNotFoundException(ChatbotException):
    """Raised when a conversation is not found."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, conversation_id: int):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} not found")


class PermissionDeniedException(ChatbotException):
    """Raised when the caller lacks the capability required for an action."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = MSG_NO_ACCESS):
        super().__init__(message)


class TranscriptAccessDeniedException(PermissionDeniedException):
    """Raised when a viewer may not read a conversation transcript."""

    def __init__(self, conversation_id: int, user_id: Optional[int] = None):
        self.conversation_id = conversation_id
        self.user_id = user_id
        super().__init__(MSG_NO_ACCESS)


class ActivityValidationException(ChatbotException):
    """Raised when activity settings fail validation."""

    status_code = 422

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        summary = "; ".join(f"{field}: {reason}" for field, reason in errors.items())
        super().__init__(f"Invalid activity settings: {summary}")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={"message": self.message, "errors": self.errors},
        )
