"""Read surfaces: chat view state and the dialog listings."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session as DBSession

from auth.middleware.auth_middleware import get_current_user_id
from chatbot.services import ConversationService, DialogService, QuotaService
from database import get_db
from shared.models import ChatState, PublicDialog, StudentDialogs, TeacherDialogs
from shared.repositories import UserRepository
from shared.utils.exceptions import ChatbotException, PermissionDeniedException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chatbot/activities", tags=["dialogs"])


def _require_role(db: DBSession, user_id: int, activity_id: int, teacher: bool = False):
    """Caller must be enrolled in the activity's course (as teacher if asked)."""
    activity = QuotaService(db).get_activity(activity_id)
    role = UserRepository(db).get_role(user_id, activity.course_id)
    if role is None or (teacher and not UserRepository(db).is_teacher(user_id, activity.course_id)):
        raise PermissionDeniedException()


@router.get("/{activity_id}/state", response_model=ChatState)
def get_chat_state(
    activity_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Current attempt, its thread and remaining quota for the chat view."""
    try:
        _require_role(db, user_id, activity_id)
        return ConversationService(db).get_chat_state(user_id, activity_id)
    except ChatbotException as e:
        raise e.to_http_exception()


@router.get("/{activity_id}/dialogs", response_model=StudentDialogs)
def get_student_dialogs(
    activity_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """The caller's finished attempts with share/publish flags."""
    try:
        _require_role(db, user_id, activity_id)
        return DialogService(db).student_dialogs(user_id, activity_id)
    except ChatbotException as e:
        raise e.to_http_exception()


@router.get("/{activity_id}/dialogs/shared", response_model=TeacherDialogs)
def get_teacher_dialogs(
    activity_id: int,
    tifirst: Optional[str] = Query(None, max_length=1),
    tilast: Optional[str] = Query(None, max_length=1),
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Every enrolled student with their shared attempt (instructors only)."""
    try:
        _require_role(db, user_id, activity_id, teacher=True)
        return DialogService(db).teacher_dialogs(activity_id, tifirst, tilast)
    except ChatbotException as e:
        raise e.to_http_exception()


@router.get("/{activity_id}/public", response_model=List[PublicDialog])
def get_public_dialogs(
    activity_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Conversations published to the class."""
    try:
        _require_role(db, user_id, activity_id)
        return DialogService(db).public_dialogs(activity_id)
    except ChatbotException as e:
        raise e.to_http_exception()
    except Exception as e:
        logger.exception(f"Error listing public dialogs: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error listing public dialogs: {str(e)}")
