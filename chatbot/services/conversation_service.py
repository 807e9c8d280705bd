"""Conversation lifecycle of chatbot attempts."""

import json
import logging
from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from shared.models.domain import ChatState, ChatTurn, SendResult
from shared.models.entities import Activity, Conversation
from shared.repositories import ConversationRepository, ExchangeRepository
from shared.services.llm_service import LLMService, build_llm_service
from shared.utils.constants import MSG_EMPTY_PROMPT
from shared.utils.exceptions import (
    InvalidRequestException,
    ProviderFailureException,
    QuotaExhaustedException,
)
from chatbot.services.quota_service import QuotaService

logger = logging.getLogger("chatbot.conversation_service")


class ConversationService:
    """
    State machine per (user, activity):

        NoActiveAttempt --send--> ActiveAttempt --limit reached / confirm--> Finished

    Finished is terminal for the row; the next send starts over from
    NoActiveAttempt and may open a new attempt if quota remains.
    """

    def __init__(self, db: DBSession, llm_service: Optional[LLMService] = None):
        self.db = db
        self.quota = QuotaService(db)
        self.conversation_repo = ConversationRepository(db)
        self.exchange_repo = ExchangeRepository(db)
        self._llm_service = llm_service

    @property
    def llm_service(self) -> LLMService:
        if self._llm_service is None:
            self._llm_service = build_llm_service()
        return self._llm_service

    @staticmethod
    def build_prompt(system_prompt: Optional[str], prompt_text: str, prior_exchanges: int) -> str:
        """
        Compose the outbound prompt.

        The system prompt is only sent with the first message of an attempt;
        later turns rely on the provider channel to carry the history.
        """
        if prior_exchanges == 0:
            return f"{system_prompt or ''}\n{prompt_text}"
        return prompt_text

    def send_request(
        self,
        user_id: int,
        activity_id: int,
        prompt_text: str,
        context_id: Optional[int] = None,
    ) -> SendResult:
        """
        Send one user message to the provider inside the current attempt.

        Raises:
            InvalidRequestException: empty or whitespace-only text
            QuotaExhaustedException: no open attempt and no attempts left
            ProviderFailureException: provider call failed (nothing recorded)
        """
        if not prompt_text or not prompt_text.strip():
            raise InvalidRequestException(MSG_EMPTY_PROMPT)

        activity = self.quota.get_activity(activity_id)
        conversation = self._open_or_resume(user_id, activity)

        prior = self.exchange_repo.count(conversation.id)
        prompt = self.build_prompt(activity.prompt_text, prompt_text, prior)

        result = self.llm_service.generate(
            context_id, user_id, prompt, channel=activity.channel
        )
        if not result.success:
            logger.warning(json.dumps({
                "step": "CONVERSATION",
                "status": "provider_failed",
                "conversation_id": conversation.id,
                "error": result.error_message,
            }))
            raise ProviderFailureException(result.error_message or "AI provider request failed")

        self.exchange_repo.append(
            conversation.id,
            request=prompt_text,
            response=result.content,
            provider=self.llm_service.provider,
        )

        remaining_interactions = self.quota.remaining_interactions(user_id, activity_id)
        finished = False
        if remaining_interactions < 1:
            self.conversation_repo.finish(conversation.id)
            finished = True
            logger.info(json.dumps({
                "step": "CONVERSATION",
                "status": "finished",
                "reason": "interaction_limit",
                "conversation_id": conversation.id,
            }))

        return SendResult(
            conversation_id=conversation.id,
            generated_content=result.content,
            remaining_interactions=remaining_interactions,
            remaining_attempts=self.quota.remaining_attempts(user_id, activity_id),
            finished=finished,
        )

    def _open_or_resume(self, user_id: int, activity: Activity) -> Conversation:
        """Return the current attempt, opening one if quota allows."""
        conversation = self.conversation_repo.get_current(user_id, activity.id)

        # An open attempt can be left without interactions if the limit was lowered
        if conversation is not None and self.exchange_repo.count(conversation.id) >= activity.interactions:
            self.conversation_repo.finish(conversation.id)
            conversation = None

        if conversation is not None:
            return conversation

        if self.quota.remaining_attempts(user_id, activity.id) <= 0:
            logger.info(json.dumps({
                "step": "CONVERSATION",
                "status": "rejected",
                "reason": "no_attempts_remaining",
                "user_id": user_id,
                "activity_id": activity.id,
            }))
            raise QuotaExhaustedException(user_id, activity.id)

        conversation = self.conversation_repo.create_current(user_id, activity.id)
        logger.info(json.dumps({
            "step": "CONVERSATION",
            "status": "opened",
            "conversation_id": conversation.id,
            "user_id": user_id,
            "activity_id": activity.id,
        }))
        return conversation

    def confirm_finish(self, user_id: int, activity_id: int) -> bool:
        """Finish the user's open attempt. Returns False if none was open."""
        finished = self.conversation_repo.finish_current(user_id, activity_id)
        if finished:
            logger.info(json.dumps({
                "step": "CONVERSATION",
                "status": "finished",
                "reason": "confirmed",
                "user_id": user_id,
                "activity_id": activity_id,
            }))
        return finished

    def get_chat_state(self, user_id: int, activity_id: int) -> ChatState:
        """Read-only view of the current attempt, its thread and remaining quota."""
        activity = self.quota.get_activity(activity_id)
        current = self.conversation_repo.get_current(user_id, activity_id)
        attempts_remaining = self.quota.remaining_attempts(user_id, activity_id)

        history: List[ChatTurn] = []
        if current is not None:
            for exchange in self.exchange_repo.list_by_conversation(current.id):
                history.append(ChatTurn(is_user=True, content=exchange.request, timestamp=exchange.timestamp))
                history.append(ChatTurn(is_user=False, content=exchange.response, timestamp=exchange.timestamp))

        return ChatState(
            activity_id=activity.id,
            conversation_id=current.id if current else None,
            attempts_remaining=attempts_remaining,
            interactions_remaining=self.quota.remaining_interactions(user_id, activity_id),
            history=history,
            no_attempts=current is None and attempts_remaining < 1,
        )
