"""Chatbot activity services."""
from .quota_service import QuotaService
from .conversation_service import ConversationService
from .sharing_service import SharingService
from .completion_service import CompletionService
from .transcript_service import TranscriptService
from .activity_service import ActivityService
from .dialog_service import DialogService

__all__ = [
    "QuotaService",
    "ConversationService",
    "SharingService",
    "CompletionService",
    "TranscriptService",
    "ActivityService",
    "DialogService",
]
