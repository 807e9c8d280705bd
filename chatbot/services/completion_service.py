"""Custom completion rules for chatbot activities."""

from typing import Dict

from sqlalchemy.orm import Session as DBSession

from shared.models.entities import Activity
from shared.repositories import ActivityRepository, ConversationRepository
from shared.utils.constants import (
    COMPLETION_SORT_ORDER,
    MSG_COMPLETION_ATTEMPTS,
    MSG_COMPLETION_SHARE,
    RULE_COMPLETION_ATTEMPTS,
    RULE_COMPLETION_SHARE,
)
from shared.utils.exceptions import ActivityNotFoundException, InvalidRequestException


class CompletionService:
    """Evaluates completionattempts / completionshare for a user."""

    SORT_ORDER = COMPLETION_SORT_ORDER

    def __init__(self, db: DBSession):
        self.activity_repo = ActivityRepository(db)
        self.conversation_repo = ConversationRepository(db)

    def _get_activity(self, activity_id: int) -> Activity:
        activity = self.activity_repo.get_by_id(activity_id)
        if not activity:
            raise ActivityNotFoundException(activity_id)
        return activity

    def get_state(self, rule: str, user_id: int, activity_id: int) -> bool:
        """Return whether the user satisfies one named rule."""
        activity = self._get_activity(activity_id)

        if rule == RULE_COMPLETION_ATTEMPTS:
            required = activity.completion_attempts_count or 0
            if not activity.completion_attempts_enabled or required <= 0:
                return False
            finished = self.conversation_repo.count_by_user(user_id, activity_id, finished=True)
            return finished >= required

        if rule == RULE_COMPLETION_SHARE:
            if not activity.completion_share_enabled:
                return False
            return self.conversation_repo.has_shared(user_id, activity_id)

        raise InvalidRequestException(f"Unknown completion rule: {rule}")

    def evaluate(self, user_id: int, activity_id: int) -> Dict[str, bool]:
        return {
            RULE_COMPLETION_ATTEMPTS: self.get_state(RULE_COMPLETION_ATTEMPTS, user_id, activity_id),
            RULE_COMPLETION_SHARE: self.get_state(RULE_COMPLETION_SHARE, user_id, activity_id),
        }

    def rule_descriptions(self, activity_id: int) -> Dict[str, str]:
        """Human-readable descriptions of the rules enabled on the activity."""
        activity = self._get_activity(activity_id)
        descriptions: Dict[str, str] = {}
        if activity.completion_attempts_enabled:
            descriptions[RULE_COMPLETION_ATTEMPTS] = MSG_COMPLETION_ATTEMPTS.format(
                attempts=activity.completion_attempts_count or 0
            )
        if activity.completion_share_enabled:
            descriptions[RULE_COMPLETION_SHARE] = MSG_COMPLETION_SHARE
        return descriptions
