"""Transcript export: PDF preview and download."""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session as DBSession

from auth.middleware.auth_middleware import get_current_user_id
from chatbot.services import TranscriptService
from database import get_db
from shared.utils.constants import TRANSCRIPT_DOWNLOAD, TRANSCRIPT_FILENAME, TRANSCRIPT_PREVIEW
from shared.utils.exceptions import ChatbotException

router = APIRouter(prefix="/chatbot/conversations", tags=["transcripts"])


@router.get("/{conversation_id}/pdf")
def get_transcript_pdf(
    conversation_id: int,
    action: str = Query(TRANSCRIPT_PREVIEW, pattern=f"^({TRANSCRIPT_PREVIEW}|{TRANSCRIPT_DOWNLOAD})$"),
    user_id: int = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Render the conversation; preview shows inline, download forces a save."""
    try:
        service = TranscriptService(db)
        pdf_bytes = service.render_pdf(service.build_transcript(conversation_id, user_id))
    except ChatbotException as e:
        raise e.to_http_exception()

    disposition = "inline" if action == TRANSCRIPT_PREVIEW else "attachment"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'{disposition}; filename="{TRANSCRIPT_FILENAME}"'},
    )
