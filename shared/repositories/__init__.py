"""Data access layer - repository pattern for database operations."""
from .activity_repository import ActivityRepository
from .conversation_repository import ConversationRepository
from .exchange_repository import ExchangeRepository
from .user_repository import UserRepository

__all__ = [
    "ActivityRepository",
    "ConversationRepository",
    "ExchangeRepository",
    "UserRepository",
]
