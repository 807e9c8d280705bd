"""Tests for chatbot/services/transcript_service.py"""

from datetime import datetime

import pytest

from chatbot.services.transcript_service import (
    TranscriptService,
    remove_emojis,
    to_core_charset,
)
from shared.models.domain import Transcript, TranscriptTurn
from shared.repositories import ConversationRepository, ExchangeRepository
from shared.utils.exceptions import (
    ConversationNotFoundException,
    TranscriptAccessDeniedException,
)


@pytest.fixture
def conversation_id(db_session, activity, users):
    repo = ConversationRepository(db_session)
    conversation = repo.create_current(users["student"].id, activity.id)
    exchanges = ExchangeRepository(db_session)
    exchanges.append(conversation.id, "What do leaves need? \U0001F331", "Light, water and CO2.",
                     timestamp=datetime(2025, 3, 4, 9, 30))
    exchanges.append(conversation.id, "Thanks!", "You're welcome \U0001F600",
                     timestamp=datetime(2025, 3, 4, 9, 31))
    repo.finish(conversation.id)
    return conversation.id


@pytest.fixture
def service(db_session):
    return TranscriptService(db_session)


class TestRemoveEmojis:

    def test_strips_pictographs(self):
        assert remove_emojis("Hi \U0001F600 there") == "Hi  there"

    def test_strips_keycaps_and_joiners(self):
        assert remove_emojis("Press 1\uFE0F\u20E3 now") == "Press  now"
        assert remove_emojis("family\u200D") == "family"

    def test_strips_dingbats(self):
        assert remove_emojis("done \u2714") == "done "

    def test_none(self):
        assert remove_emojis(None) == ""

    def test_plain_text_untouched(self):
        assert remove_emojis("Plain text, 100% ok.") == "Plain text, 100% ok."


class TestToCoreCharset:

    def test_latin1_kept(self):
        assert to_core_charset("café naïve") == "café naïve"

    def test_typographic_fallbacks(self):
        assert to_core_charset("\u201Chi\u201D \u2014 ok") == "\"hi\" - ok"

    def test_unmappable_replaced(self):
        assert to_core_charset("\u6F22\u5B57") == "??"


class TestBuildTranscript:

    def test_owner_sees_own_transcript(self, service, conversation_id, users):
        transcript = service.build_transcript(conversation_id, users["student"].id)

        assert transcript.activity_name == "Photosynthesis chat"
        assert transcript.description == "Ask the bot about plants."
        assert transcript.author_name == "Alice Anders"
        assert transcript.started_at == datetime(2025, 3, 4, 9, 30)
        assert [t.author for t in transcript.turns] == ["Alice Anders", "Bot", "Alice Anders", "Bot"]
        assert transcript.turns[0].text == "What do leaves need? "
        assert transcript.turns[3].text == "You're welcome "

    def test_other_student_denied(self, service, conversation_id, users):
        with pytest.raises(TranscriptAccessDeniedException):
            service.build_transcript(conversation_id, users["other"].id)

    def test_public_visible_to_classmates(self, service, conversation_id, users, db_session):
        ConversationRepository(db_session).toggle_public(conversation_id, users["student"].id)
        transcript = service.build_transcript(conversation_id, users["other"].id)
        assert transcript.conversation_id == conversation_id

    def test_teacher_needs_share(self, service, conversation_id, activity, users, db_session):
        with pytest.raises(TranscriptAccessDeniedException):
            service.build_transcript(conversation_id, users["teacher"].id)

        ConversationRepository(db_session).set_shared(conversation_id, users["student"].id, activity.id)
        transcript = service.build_transcript(conversation_id, users["teacher"].id)
        assert transcript.author_name == "Alice Anders"

    def test_missing_conversation(self, service, users):
        with pytest.raises(ConversationNotFoundException):
            service.build_transcript(9999, users["student"].id)


class TestRenderPdf:

    def test_renders_pdf(self, service, conversation_id, users):
        pdf = service.render_pdf(service.build_transcript(conversation_id, users["student"].id))
        assert pdf.startswith(b"%PDF")

    def test_repeated_renders_are_identical(self, service, conversation_id, users):
        transcript = service.build_transcript(conversation_id, users["student"].id)
        assert service.render_pdf(transcript) == service.render_pdf(transcript)

    def test_non_latin_text_does_not_break_rendering(self):
        transcript = Transcript(
            conversation_id=1,
            activity_name="Unicode \u6F22\u5B57 test",
            author_name="Zoë",
            started_at=datetime(2025, 1, 1, 8, 0),
            turns=[TranscriptTurn(author="Zoë", text="\u201Cquoted\u201D \u2014 \u6F22\u5B57", is_user=True)],
        )
        assert TranscriptService.render_pdf(transcript).startswith(b"%PDF")

    def test_empty_conversation(self):
        transcript = Transcript(conversation_id=1, activity_name="Empty", author_name="Nobody")
        assert TranscriptService.render_pdf(transcript).startswith(b"%PDF")
