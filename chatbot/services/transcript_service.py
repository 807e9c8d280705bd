"""Printable transcripts of conversations, rendered to PDF with fpdf2."""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from fpdf import FPDF
from sqlalchemy.orm import Session as DBSession

from shared.models.domain import Transcript, TranscriptTurn
from shared.repositories import ConversationRepository, ExchangeRepository, UserRepository
from shared.utils.constants import BOT_LABEL, MSG_SUBMITTED_BY
from shared.utils.exceptions import (
    ConversationNotFoundException,
    TranscriptAccessDeniedException,
)
from chatbot.services.sharing_service import SharingService

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%d %b %Y, %H:%M"

_EMOJI_PATTERNS = (
    re.compile("[\u200D\uFE0F]"),        # joiners and variation selectors
    re.compile("[0-9#*]\u20E3"),           # keycaps
    re.compile("[\U0001F000-\U0001FFFF]"),  # pictographs, flags, supplemental symbols
    re.compile("[\u2100-\u27BF]"),        # misc symbols and dingbats
)

# Typographic characters with a close latin-1 equivalent
_LATIN1_FALLBACKS = str.maketrans({
    "\u2018": "'",
    "\u2019": "'",
    "\u201C": '"',
    "\u201D": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2026": "...",
    "\u00A0": " ",
})


def remove_emojis(text: Optional[str]) -> str:
    """Strip emoji and pictographic symbols the PDF core fonts cannot draw."""
    if not text:
        return ""
    for pattern in _EMOJI_PATTERNS:
        text = pattern.sub("", text)
    return text


def to_core_charset(text: str) -> str:
    """Force text into latin-1 (Helvetica's charset); unmappable chars become '?'."""
    return text.translate(_LATIN1_FALLBACKS).encode("latin-1", "replace").decode("latin-1")


class TranscriptPDF(FPDF):
    """Chat transcript layout: title block, then alternating message bubbles."""

    def header(self):
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(100, 100, 100)
        self.cell(0, 8, "Conversation", align="R")
        self.ln(10)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(128, 128, 128)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section_title(self, title, size=16):
        self.set_font("Helvetica", "B", size)
        self.set_text_color(56, 56, 56)
        self.multi_cell(0, 9, title, new_x="LMARGIN", new_y="NEXT")
        self.ln(2)

    def body_text(self, text):
        self.set_font("Helvetica", "", 10)
        self.set_text_color(40, 40, 40)
        self.multi_cell(0, 5.5, text, new_x="LMARGIN", new_y="NEXT")
        self.ln(3)

    def submitted_by(self, text):
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(40, 40, 40)
        self.cell(0, 8, text, align="C")
        self.ln(12)

    def message(self, author, text, is_user):
        bubble_w = self.epw * 0.8
        x = self.l_margin + (self.epw - bubble_w if is_user else 0)

        self.set_font("Helvetica", "", 8)
        self.set_text_color(128, 128, 128)
        self.cell(0, 5, author, align="R" if is_user else "L")
        self.ln(5)

        self.set_font("Helvetica", "", 10)
        if is_user:
            self.set_fill_color(0, 120, 255)
            self.set_text_color(255, 255, 255)
        else:
            self.set_fill_color(221, 226, 235)
            self.set_text_color(40, 40, 40)
        self.set_x(x)
        self.multi_cell(
            bubble_w, 5.5, text,
            align="R" if is_user else "L",
            fill=True,
            padding=2,
            new_x="LMARGIN", new_y="NEXT",
        )
        self.ln(5)


class TranscriptService:
    """Builds and renders transcripts, enforcing who may see them."""

    def __init__(self, db: DBSession):
        self.conversation_repo = ConversationRepository(db)
        self.exchange_repo = ExchangeRepository(db)
        self.user_repo = UserRepository(db)

    def build_transcript(self, conversation_id: int, viewer_id: int) -> Transcript:
        """
        Assemble the printable projection of a conversation.

        Raises:
            ConversationNotFoundException: no such conversation
            TranscriptAccessDeniedException: viewer is not owner, the
                conversation is not public, and it is not shared with an
                instructor viewer
        """
        conversation = self.conversation_repo.get_by_id(conversation_id)
        if not conversation:
            raise ConversationNotFoundException(conversation_id)

        activity = conversation.activity
        is_instructor = self.user_repo.is_teacher(viewer_id, activity.course_id)
        if not SharingService.can_view(conversation, viewer_id, is_instructor):
            logger.warning(
                f"Transcript access denied: conversation {conversation_id} viewer {viewer_id}"
            )
            raise TranscriptAccessDeniedException(conversation_id, viewer_id)

        owner = self.user_repo.get_by_id(conversation.user_id)
        author_name = owner.fullname if owner else ""

        exchanges = self.exchange_repo.list_by_conversation(conversation_id)
        turns = []
        for exchange in exchanges:
            if exchange.request:
                turns.append(TranscriptTurn(author=author_name, text=remove_emojis(exchange.request), is_user=True))
            if exchange.response:
                turns.append(TranscriptTurn(author=BOT_LABEL, text=remove_emojis(exchange.response), is_user=False))

        return Transcript(
            conversation_id=conversation.id,
            activity_name=remove_emojis(activity.name),
            description=remove_emojis(activity.intro),
            author_name=author_name,
            started_at=exchanges[0].timestamp if exchanges else None,
            turns=turns,
        )

    @staticmethod
    def render_pdf(transcript: Transcript) -> bytes:
        """
        Render a transcript to PDF bytes.

        Output is a pure function of the transcript: the document creation
        date is pinned to the first exchange, so repeated renders (preview
        and download) are byte-identical.
        """
        started_at = transcript.started_at or datetime(1970, 1, 1)
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)

        pdf = TranscriptPDF()
        pdf.set_title("Conversation")
        pdf.set_creation_date(started_at)
        pdf.set_auto_page_break(auto=True, margin=20)
        pdf.add_page()

        pdf.section_title(to_core_charset(transcript.activity_name))
        if transcript.description:
            pdf.body_text(to_core_charset(transcript.description))

        if transcript.turns:
            stamp = transcript.started_at.strftime(TIMESTAMP_FORMAT) if transcript.started_at else ""
            pdf.submitted_by(to_core_charset(f"{MSG_SUBMITTED_BY}{transcript.author_name} {stamp}".strip()))

        for turn in transcript.turns:
            pdf.message(to_core_charset(turn.author), to_core_charset(turn.text), turn.is_user)

        return bytes(pdf.output())
