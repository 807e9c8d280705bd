"""Activity configuration data access layer."""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session as DBSession

from shared.models.entities import Activity

_EDITABLE_FIELDS = (
    "name",
    "intro",
    "prompt_text",
    "channel",
    "attempts",
    "interactions",
    "completion_attempts_enabled",
    "completion_attempts_count",
    "completion_share_enabled",
)


class ActivityRepository:
    """Repository for activity configuration CRUD operations."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_by_id(self, activity_id: int) -> Optional[Activity]:
        return self.db.query(Activity).filter(Activity.id == activity_id).first()

    def create(self, course_id: int, fields: Dict[str, Any]) -> Activity:
        """
        Create a new activity record.

        Args:
            course_id: Course the activity belongs to
            fields: Editable settings (see _EDITABLE_FIELDS)

        Returns:
            Created Activity
        """
        now = datetime.utcnow()
        activity = Activity(
            course_id=course_id,
            created_at=now,
            updated_at=now,
            **{key: value for key, value in fields.items() if key in _EDITABLE_FIELDS},
        )
        self.db.add(activity)
        self.db.commit()
        self.db.refresh(activity)
        return activity

    def update(self, activity_id: int, fields: Dict[str, Any]) -> Optional[Activity]:
        """Apply editable settings. Returns None if the activity does not exist."""
        activity = self.get_by_id(activity_id)
        if not activity:
            return None
        for key, value in fields.items():
            if key in _EDITABLE_FIELDS:
                setattr(activity, key, value)
        activity.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(activity)
        return activity

    def delete(self, activity_id: int) -> bool:
        """
        Delete an activity together with its conversations and history.

        Returns:
            True if deleted, False if not found
        """
        activity = self.get_by_id(activity_id)
        if activity:
            self.db.delete(activity)
            self.db.commit()
            return True
        return False
