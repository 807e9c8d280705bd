"""Attempt and interaction quotas for a (user, activity) pair."""

from sqlalchemy.orm import Session as DBSession

from shared.models.entities import Activity
from shared.repositories import ActivityRepository, ConversationRepository, ExchangeRepository
from shared.utils.exceptions import ActivityNotFoundException


class QuotaService:
    """Pure read queries over stored counts and configured limits."""

    def __init__(self, db: DBSession):
        self.activity_repo = ActivityRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.exchange_repo = ExchangeRepository(db)

    def get_activity(self, activity_id: int) -> Activity:
        activity = self.activity_repo.get_by_id(activity_id)
        if not activity:
            raise ActivityNotFoundException(activity_id)
        return activity

    def remaining_attempts(self, user_id: int, activity_id: int) -> int:
        """Configured attempts minus every attempt started, finished or not."""
        activity = self.get_activity(activity_id)
        used = self.conversation_repo.count_by_user(user_id, activity_id)
        return activity.attempts - used

    def remaining_interactions(self, user_id: int, activity_id: int) -> int:
        """Configured interactions minus exchanges in the current attempt (full limit if none is open)."""
        activity = self.get_activity(activity_id)
        current = self.conversation_repo.get_current(user_id, activity_id)
        used = self.exchange_repo.count(current.id if current else None)
        return activity.interactions - used
