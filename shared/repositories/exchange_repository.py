"""Message exchange (chat history) data access layer."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from shared.models.entities import MessageExchange


class ExchangeRepository:
    """Append-only store of request/response pairs per conversation."""

    def __init__(self, db: DBSession):
        self.db = db

    def append(
        self,
        conversation_id: int,
        request: str,
        response: str,
        provider: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> MessageExchange:
        """
        Record one interaction.

        Args:
            conversation_id: Owning conversation
            request: Raw user text (not the composed prompt)
            response: Generated content
            provider: Provider/channel identifier used for the call
            timestamp: Defaults to now (UTC)

        Returns:
            Created MessageExchange
        """
        exchange = MessageExchange(
            conversation_id=conversation_id,
            provider=provider,
            request=request,
            response=response,
            timestamp=timestamp or datetime.utcnow(),
        )
        self.db.add(exchange)
        self.db.commit()
        self.db.refresh(exchange)
        return exchange

    def count(self, conversation_id: Optional[int]) -> int:
        """Number of interactions used in a conversation (0 when there is none)."""
        if conversation_id is None:
            return 0
        return (
            self.db.query(MessageExchange)
            .filter(MessageExchange.conversation_id == conversation_id)
            .count()
        )

    def list_by_conversation(self, conversation_id: int) -> List[MessageExchange]:
        """Return exchanges in timestamp (then insertion) order."""
        return (
            self.db.query(MessageExchange)
            .filter(MessageExchange.conversation_id == conversation_id)
            .order_by(MessageExchange.timestamp.asc(), MessageExchange.id.asc())
            .all()
        )
