"""Activity administration, channel list and completion facts."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session as DBSession

from auth.middleware.auth_middleware import get_current_user_id
from chatbot.services import ActivityService, CompletionService
from config import get_settings
from database import get_db
from shared.models import (
    ActivityResponse,
    ChannelListResponse,
    CompletionResponse,
    CreateActivityRequest,
    UpdateActivityRequest,
)
from shared.repositories import UserRepository
from shared.utils.constants import RULE_COMPLETION_ATTEMPTS, RULE_COMPLETION_SHARE
from shared.utils.exceptions import ChatbotException, PermissionDeniedException


router = APIRouter(prefix="/activities", tags=["activities"])


def _require_teacher(db: DBSession, user_id: int, course_id: int):
    if not UserRepository(db).is_teacher(user_id, course_id):
        raise PermissionDeniedException()


@router.get("/channels", response_model=ChannelListResponse)
def list_channels(
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Channels an activity can route to."""
    return ChannelListResponse(
        provider=get_settings().ai_provider,
        channels=ActivityService(db).list_channels(),
    )


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def create_activity(
    request: CreateActivityRequest,
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    try:
        _require_teacher(db, user_id, request.course_id)
        return ActivityService(db).create(request)
    except ChatbotException as e:
        raise e.to_http_exception()


@router.get("/{activity_id}", response_model=ActivityResponse)
def get_activity(
    activity_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    try:
        activity = ActivityService(db).get(activity_id)
        if UserRepository(db).get_role(user_id, activity.course_id) is None:
            raise PermissionDeniedException()
        return activity
    except ChatbotException as e:
        raise e.to_http_exception()


@router.put("/{activity_id}", response_model=ActivityResponse)
def update_activity(
    activity_id: int,
    request: UpdateActivityRequest,
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    try:
        service = ActivityService(db)
        _require_teacher(db, user_id, service.get(activity_id).course_id)
        return service.update(activity_id, request)
    except ChatbotException as e:
        raise e.to_http_exception()


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    activity_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Delete the activity and every conversation recorded in it."""
    try:
        service = ActivityService(db)
        _require_teacher(db, user_id, service.get(activity_id).course_id)
        service.delete(activity_id)
    except ChatbotException as e:
        raise e.to_http_exception()


@router.get("/{activity_id}/completion", response_model=CompletionResponse)
def get_completion(
    activity_id: int,
    user: Optional[int] = Query(None, alias="userid"),
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """
    Completion facts for the caller, or for `userid` when the caller is an
    instructor in the activity's course.
    """
    try:
        target_id = user_id
        if user is not None and user != user_id:
            _require_teacher(db, user_id, ActivityService(db).get(activity_id).course_id)
            target_id = user

        service = CompletionService(db)
        facts = service.evaluate(target_id, activity_id)
        return CompletionResponse(
            activity_id=activity_id,
            user_id=target_id,
            completionattempts=facts[RULE_COMPLETION_ATTEMPTS],
            completionshare=facts[RULE_COMPLETION_SHARE],
            descriptions=service.rule_descriptions(activity_id),
            sort_order=list(service.SORT_ORDER),
        )
    except ChatbotException as e:
        raise e.to_http_exception()
