"""Conversation data access layer."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from shared.models.entities import Conversation

logger = logging.getLogger(__name__)


class ConversationRepository:
    """Repository for conversation (attempt) records."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_by_id(self, conversation_id: int) -> Optional[Conversation]:
        """
        Retrieve a conversation by ID.

        Args:
            conversation_id: Conversation identifier

        Returns:
            Conversation if found, None otherwise
        """
        return self.db.query(Conversation).filter(Conversation.id == conversation_id).first()

    def get_owned(self, conversation_id: int, user_id: int) -> Optional[Conversation]:
        """Retrieve a conversation only if it belongs to user_id."""
        return (
            self.db.query(Conversation)
            .filter(Conversation.id == conversation_id, Conversation.user_id == user_id)
            .first()
        )

    def get_current(self, user_id: int, activity_id: int) -> Optional[Conversation]:
        """Return the unfinished conversation for (user, activity), if any."""
        return (
            self.db.query(Conversation)
            .filter(
                Conversation.user_id == user_id,
                Conversation.activity_id == activity_id,
                Conversation.finished.is_(False),
            )
            .first()
        )

    def count_by_user(self, user_id: int, activity_id: int, finished: Optional[bool] = None) -> int:
        """Count a user's conversations in an activity, optionally by finished flag."""
        query = self.db.query(Conversation).filter(
            Conversation.user_id == user_id,
            Conversation.activity_id == activity_id,
        )
        if finished is not None:
            query = query.filter(Conversation.finished.is_(finished))
        return query.count()

    def create_current(self, user_id: int, activity_id: int) -> Conversation:
        """
        Open a new attempt for (user, activity).

        The partial unique index on unfinished rows is the gate: if a
        concurrent request opened an attempt first, the insert fails and the
        winner's row is returned instead of a duplicate.

        Returns:
            The open Conversation
        """
        now = datetime.utcnow()
        conversation = Conversation(
            user_id=user_id,
            activity_id=activity_id,
            finished=False,
            is_shared=False,
            is_public=False,
            created_at=now,
            updated=now,
        )
        self.db.add(conversation)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.get_current(user_id, activity_id)
            if existing is None:
                raise
            logger.info(
                f"Concurrent attempt detected for user {user_id} activity {activity_id}; "
                f"reusing conversation {existing.id}"
            )
            return existing
        self.db.refresh(conversation)
        return conversation

    def finish(self, conversation_id: int) -> bool:
        """Mark a conversation finished. Returns True if a row changed."""
        result = self.db.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id, Conversation.finished.is_(False))
            .values(finished=True, updated=datetime.utcnow())
        )
        self.db.commit()
        return result.rowcount > 0

    def finish_current(self, user_id: int, activity_id: int) -> bool:
        """Mark the user's open attempt finished. Returns True if one existed."""
        result = self.db.execute(
            update(Conversation)
            .where(
                Conversation.user_id == user_id,
                Conversation.activity_id == activity_id,
                Conversation.finished.is_(False),
            )
            .values(finished=True, updated=datetime.utcnow())
        )
        self.db.commit()
        return result.rowcount > 0

    def get_shared(self, user_id: int, activity_id: int) -> Optional[Conversation]:
        """Return the conversation occupying the user's share slot, if any."""
        return (
            self.db.query(Conversation)
            .filter(
                Conversation.user_id == user_id,
                Conversation.activity_id == activity_id,
                Conversation.is_shared.is_(True),
            )
            .first()
        )

    def has_shared(self, user_id: int, activity_id: int) -> bool:
        return self.get_shared(user_id, activity_id) is not None

    def set_shared(self, conversation_id: int, user_id: int, activity_id: int) -> bool:
        """
        Share a conversation owned by user_id.

        Raises IntegrityError (after rollback) when another row already holds
        the share slot.

        Returns:
            True if the row was updated, False if not found / not owned
        """
        try:
            result = self.db.execute(
                update(Conversation)
                .where(
                    Conversation.id == conversation_id,
                    Conversation.user_id == user_id,
                    Conversation.activity_id == activity_id,
                )
                .values(is_shared=True, updated=datetime.utcnow())
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        return result.rowcount > 0

    def clear_shared(self, conversation_id: int) -> bool:
        """
        Clear the shared flag regardless of owner.

        Returns:
            True if the conversation exists, False otherwise
        """
        conversation = self.get_by_id(conversation_id)
        if not conversation:
            return False
        if conversation.is_shared:
            conversation.is_shared = False
            self.db.commit()
        return True

    def toggle_public(self, conversation_id: int, user_id: int) -> Optional[bool]:
        """Flip is_public on an owned conversation and return the new value."""
        conversation = self.get_owned(conversation_id, user_id)
        if not conversation:
            return None
        conversation.is_public = not conversation.is_public
        self.db.commit()
        return conversation.is_public

    def get_comment(self, conversation_id: int) -> Optional[str]:
        conversation = self.get_by_id(conversation_id)
        if not conversation:
            return None
        return conversation.comment or ""

    def set_comment(self, conversation_id: int, comment: str) -> bool:
        """Replace the instructor comment. Returns False if the conversation is missing."""
        conversation = self.get_by_id(conversation_id)
        if not conversation:
            return False
        conversation.comment = comment
        self.db.commit()
        return True

    def list_by_user(self, user_id: int, activity_id: int, finished: Optional[bool] = None) -> List[Conversation]:
        """List a user's conversations in an activity, oldest first."""
        query = self.db.query(Conversation).filter(
            Conversation.user_id == user_id,
            Conversation.activity_id == activity_id,
        )
        if finished is not None:
            query = query.filter(Conversation.finished.is_(finished))
        return query.order_by(Conversation.id.asc()).all()

    def list_public(self, activity_id: int) -> List[Conversation]:
        """List conversations published to the class."""
        return (
            self.db.query(Conversation)
            .filter(Conversation.activity_id == activity_id, Conversation.is_public.is_(True))
            .order_by(Conversation.id.asc())
            .all()
        )

    def list_shared(self, activity_id: int) -> List[Conversation]:
        """List conversations currently shared with instructors."""
        return (
            self.db.query(Conversation)
            .filter(Conversation.activity_id == activity_id, Conversation.is_shared.is_(True))
            .all()
        )
