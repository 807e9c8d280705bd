"""Sharing, publication and instructor comments on conversations."""

import json
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from shared.models.entities import Conversation
from shared.repositories import ConversationRepository
from shared.utils.exceptions import AlreadySharedException

logger = logging.getLogger("chatbot.sharing_service")


class SharingService:
    """
    Per (user, activity) at most one conversation is shared with instructors.
    Publication to the class (is_public) is independent of sharing.
    """

    def __init__(self, db: DBSession):
        self.db = db
        self.conversation_repo = ConversationRepository(db)

    def share_conversation(self, conversation_id: int, user_id: int, activity_id: int) -> bool:
        """
        Share an owned conversation with instructors.

        The existing-share check runs before ownership, so a user holding the
        slot gets AlreadySharedException even for a conversation they don't own.

        Returns:
            True if shared, False if the conversation is missing or not owned

        Raises:
            AlreadySharedException: the user's share slot is taken
        """
        if self.conversation_repo.has_shared(user_id, activity_id):
            raise AlreadySharedException(user_id, activity_id)

        try:
            shared = self.conversation_repo.set_shared(conversation_id, user_id, activity_id)
        except IntegrityError as e:
            # Lost a race with a concurrent share
            raise AlreadySharedException(user_id, activity_id) from e

        if shared:
            logger.info(json.dumps({
                "step": "SHARE",
                "status": "shared",
                "conversation_id": conversation_id,
                "user_id": user_id,
                "activity_id": activity_id,
            }))
        return shared

    def toggle_public(self, conversation_id: int, user_id: int) -> Optional[bool]:
        """Flip class visibility. Returns the new value, or None if not owned."""
        new_value = self.conversation_repo.toggle_public(conversation_id, user_id)
        if new_value is not None:
            logger.info(json.dumps({
                "step": "SHARE",
                "status": "public" if new_value else "private",
                "conversation_id": conversation_id,
            }))
        return new_value

    def revoke_share(self, conversation_id: int) -> bool:
        """Release the share slot. Idempotent; returns whether the conversation exists."""
        exists = self.conversation_repo.clear_shared(conversation_id)
        if exists:
            logger.info(json.dumps({
                "step": "SHARE",
                "status": "revoked",
                "conversation_id": conversation_id,
            }))
        return exists

    def get_comment(self, conversation_id: int) -> str:
        return self.conversation_repo.get_comment(conversation_id) or ""

    def save_comment(self, conversation_id: int, comment: str) -> bool:
        return self.conversation_repo.set_comment(conversation_id, comment)

    @staticmethod
    def can_view(conversation: Conversation, viewer_id: int, is_instructor: bool) -> bool:
        """Owner always; anyone if public; instructors if shared."""
        if conversation.user_id == viewer_id:
            return True
        if conversation.is_public:
            return True
        return bool(is_instructor and conversation.is_shared)
