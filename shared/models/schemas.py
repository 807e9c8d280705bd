"""Pydantic API request/response schemas."""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class ActivityBase(BaseModel):
    """Fields an instructor can set on an activity."""
    name: str = Field(..., min_length=1, max_length=255)
    intro: Optional[str] = None
    prompt_text: str = ""
    channel: Optional[str] = None
    attempts: int
    interactions: int
    completion_attempts_enabled: bool = False
    completion_attempts_count: Optional[int] = None
    completion_share_enabled: bool = False


class CreateActivityRequest(ActivityBase):
    """Request to create a new activity instance."""
    course_id: int


class UpdateActivityRequest(ActivityBase):
    """Request to replace an activity's settings."""
    pass


class ActivityResponse(ActivityBase):
    """Activity configuration as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ChannelListResponse(BaseModel):
    """Channels available for activities, keyed by identifier."""
    provider: str
    channels: Dict[str, str]


class CompletionResponse(BaseModel):
    """Completion facts for one user in one activity."""
    activity_id: int
    user_id: int
    completionattempts: bool
    completionshare: bool
    descriptions: Dict[str, str] = Field(default_factory=dict)
    sort_order: List[str] = Field(default_factory=list)
