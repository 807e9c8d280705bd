"""Chat action endpoint: one POST surface dispatching on `action`."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session as DBSession

from auth.middleware.auth_middleware import SessionClaims, get_session, require_sesskey
from chatbot.services import ConversationService, QuotaService, SharingService
from database import get_db
from shared.repositories import ConversationRepository, UserRepository
from shared.services.llm_service import LLMService, get_llm_service
from shared.utils.constants import (
    ACTION_CONFIRM_FINISH,
    ACTION_GET_COMMENT,
    ACTION_REVOKE_SHARE,
    ACTION_SAVE_COMMENT,
    ACTION_SEND_REQUEST,
    ACTION_SHARE_CONVERSATION,
    ACTION_TOGGLE_PUBLIC,
)
from shared.utils.exceptions import (
    ChatbotException,
    InvalidRequestException,
    PermissionDeniedException,
    ProviderFailureException,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chatbot", tags=["chatbot"])


class ActionContext:
    """Everything one action needs: ids from the form plus the caller."""

    def __init__(self, db: DBSession, user_id: int, activity_id: int,
                 conversation_id: Optional[int], context_id: Optional[int],
                 prompt_text: Optional[str], comment: Optional[str],
                 llm_service: LLMService):
        self.db = db
        self.user_id = user_id
        self.activity_id = activity_id
        self.conversation_id = conversation_id
        self.context_id = context_id
        self.prompt_text = prompt_text
        self.comment = comment
        self.llm_service = llm_service

    def require_enrolment(self):
        """Caller must hold a role in the activity's course."""
        activity = QuotaService(self.db).get_activity(self.activity_id)
        if UserRepository(self.db).get_role(self.user_id, activity.course_id) is None:
            raise PermissionDeniedException()

    def require_conversation_id(self) -> int:
        if self.conversation_id is None:
            raise InvalidRequestException("conversationid is required")
        return self.conversation_id

    def is_instructor(self) -> bool:
        activity = QuotaService(self.db).get_activity(self.activity_id)
        return UserRepository(self.db).is_teacher(self.user_id, activity.course_id)

    def require_instructor(self):
        if not self.is_instructor():
            raise PermissionDeniedException()

    def conversation_in_activity(self, conversation_id: int) -> bool:
        conversation = ConversationRepository(self.db).get_by_id(conversation_id)
        return conversation is not None and conversation.activity_id == self.activity_id


def _send_request(ctx: ActionContext) -> dict:
    result = ConversationService(ctx.db, ctx.llm_service).send_request(
        ctx.user_id, ctx.activity_id, ctx.prompt_text or "", context_id=ctx.context_id
    )
    return {
        "generatedcontent": result.generated_content,
        "remaininginteractions": result.remaining_interactions,
        "remainingattempts": result.remaining_attempts,
        "conversationid": result.conversation_id,
        "finished": result.finished,
    }


def _confirm_finish(ctx: ActionContext) -> dict:
    QuotaService(ctx.db).get_activity(ctx.activity_id)
    finished = ConversationService(ctx.db, ctx.llm_service).confirm_finish(ctx.user_id, ctx.activity_id)
    return {"success": finished}


def _share_conversation(ctx: ActionContext) -> dict:
    shared = SharingService(ctx.db).share_conversation(
        ctx.require_conversation_id(), ctx.user_id, ctx.activity_id
    )
    return {"success": shared}


def _toggle_public(ctx: ActionContext) -> dict:
    is_public = SharingService(ctx.db).toggle_public(ctx.require_conversation_id(), ctx.user_id)
    return {"success": is_public is not None, "ispublic": is_public}


def _revoke_share(ctx: ActionContext) -> dict:
    conversation_id = ctx.require_conversation_id()
    ctx.require_instructor()
    if not ctx.conversation_in_activity(conversation_id):
        return {"success": False}
    return {"success": SharingService(ctx.db).revoke_share(conversation_id)}


def _get_comment(ctx: ActionContext) -> dict:
    conversation_id = ctx.require_conversation_id()
    conversation = ConversationRepository(ctx.db).get_by_id(conversation_id)
    is_owner = conversation is not None and conversation.user_id == ctx.user_id
    if not is_owner:
        ctx.require_instructor()
    if not ctx.conversation_in_activity(conversation_id):
        return {"comment": ""}
    return {"comment": SharingService(ctx.db).get_comment(conversation_id)}


def _save_comment(ctx: ActionContext) -> dict:
    conversation_id = ctx.require_conversation_id()
    ctx.require_instructor()
    if not ctx.conversation_in_activity(conversation_id):
        return {"success": False}
    saved = SharingService(ctx.db).save_comment(conversation_id, ctx.comment or "")
    return {"success": saved}


def _parse_cmid(cmid: Optional[str]) -> int:
    try:
        return int(cmid)
    except (TypeError, ValueError):
        raise InvalidRequestException("cmid is required")


ACTION_HANDLERS = {
    ACTION_SEND_REQUEST: _send_request,
    ACTION_CONFIRM_FINISH: _confirm_finish,
    ACTION_SHARE_CONVERSATION: _share_conversation,
    ACTION_TOGGLE_PUBLIC: _toggle_public,
    ACTION_REVOKE_SHARE: _revoke_share,
    ACTION_GET_COMMENT: _get_comment,
    ACTION_SAVE_COMMENT: _save_comment,
}


@router.post("/ajax")
def chat_action(
    action: Optional[str] = Form(None),
    sesskey: Optional[str] = Form(None),
    cmid: Optional[str] = Form(None),
    conversationid: Optional[int] = Form(None),
    contextid: Optional[int] = Form(None),
    prompttext: Optional[str] = Form(None),
    comment: Optional[str] = Form(None),
    session: SessionClaims = Depends(get_session),
    db: DBSession = Depends(get_db),
    llm_service: LLMService = Depends(get_llm_service),
):
    """
    Dispatch a chat action for the current user.

    Quota and share-slot errors come back as 200 with {"error": ...} so the
    chat UI can render them inline; provider failures as 502 {"error": ...}.
    """
    handler = ACTION_HANDLERS.get(action or "")
    try:
        require_sesskey(session, sesskey)
        if handler is None:
            raise InvalidRequestException()
        activity_id = _parse_cmid(cmid)

        ctx = ActionContext(
            db=db,
            user_id=session.user_id,
            activity_id=activity_id,
            conversation_id=conversationid,
            context_id=contextid,
            prompt_text=prompttext,
            comment=comment,
            llm_service=llm_service,
        )
        ctx.require_enrolment()
        return handler(ctx)
    except ChatbotException as e:
        if e.status_code == 200 or isinstance(e, ProviderFailureException):
            return JSONResponse(status_code=e.status_code, content=e.to_error_payload())
        raise e.to_http_exception()
    except Exception as e:
        logger.exception(f"Error handling action '{action}': {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error handling action: {str(e)}")


@router.api_route("/ajax", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def chat_action_wrong_method():
    """Only POST is accepted for actions."""
    raise HTTPException(status_code=405, detail="Only POST requests are allowed.")
