"""Activity configuration: validation and CRUD for instructors."""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session as DBSession

from config import Settings, get_settings
from shared.models.entities import Activity
from shared.models.schemas import ActivityBase, CreateActivityRequest, UpdateActivityRequest
from shared.repositories import ActivityRepository
from shared.utils.exceptions import ActivityNotFoundException, ActivityValidationException

logger = logging.getLogger(__name__)


class ActivityService:
    def __init__(self, db: DBSession, settings: Optional[Settings] = None):
        self.repo = ActivityRepository(db)
        self.settings = settings or get_settings()

    def list_channels(self) -> Dict[str, str]:
        """Configured channels, {identifier: model id}."""
        return self.settings.get_channels()

    def validate(self, data: ActivityBase) -> Dict[str, str]:
        """
        Check settings against site limits and configured channels.

        Returns:
            {field: reason} for every invalid field (empty when valid)
        """
        errors: Dict[str, str] = {}

        if not 1 <= data.attempts <= self.settings.max_attempts:
            errors["attempts"] = f"must be between 1 and {self.settings.max_attempts}"
        if not 1 <= data.interactions <= self.settings.max_interactions:
            errors["interactions"] = f"must be between 1 and {self.settings.max_interactions}"

        if data.completion_attempts_enabled:
            count = data.completion_attempts_count
            if count is None or count < 1:
                errors["completion_attempts_count"] = "must be at least 1"
            elif count > data.attempts:
                errors["completion_attempts_count"] = "cannot exceed the number of attempts"

        channels = self.list_channels()
        if data.channel and channels and data.channel not in channels:
            errors["channel"] = f"unknown channel '{data.channel}'"

        return errors

    def _validate_or_raise(self, data: ActivityBase):
        errors = self.validate(data)
        if errors:
            raise ActivityValidationException(errors)

    def get(self, activity_id: int) -> Activity:
        activity = self.repo.get_by_id(activity_id)
        if not activity:
            raise ActivityNotFoundException(activity_id)
        return activity

    def create(self, request: CreateActivityRequest) -> Activity:
        self._validate_or_raise(request)
        fields = request.model_dump(exclude={"course_id"})
        if not fields.get("channel"):
            # Empty channel means the provider's default channel
            fields["channel"] = next(iter(self.list_channels()), None)
        activity = self.repo.create(request.course_id, fields)
        logger.info(f"Created activity {activity.id} in course {activity.course_id}")
        return activity

    def update(self, activity_id: int, request: UpdateActivityRequest) -> Activity:
        self._validate_or_raise(request)
        activity = self.repo.update(activity_id, request.model_dump())
        if not activity:
            raise ActivityNotFoundException(activity_id)
        logger.info(f"Updated activity {activity_id}")
        return activity

    def delete(self, activity_id: int):
        """Delete the activity with its conversations and history."""
        if not self.repo.delete(activity_id):
            raise ActivityNotFoundException(activity_id)
        logger.info(f"Deleted activity {activity_id}")
