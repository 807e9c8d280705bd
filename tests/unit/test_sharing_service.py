"""Tests for chatbot/services/sharing_service.py"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from chatbot.services.sharing_service import SharingService
from shared.models.entities import Conversation
from shared.repositories import ConversationRepository
from shared.utils.exceptions import AlreadySharedException


@pytest.fixture
def sharing(db_session):
    return SharingService(db_session)


@pytest.fixture
def finished_pair(db_session, activity, users):
    """Two finished conversations X and Y owned by the student."""
    repo = ConversationRepository(db_session)
    user_id = users["student"].id
    x = repo.create_current(user_id, activity.id)
    repo.finish(x.id)
    y = repo.create_current(user_id, activity.id)
    repo.finish(y.id)
    return x.id, y.id


class TestShareConversation:

    def test_share_then_revoke_then_share_other(self, sharing, finished_pair, activity, users):
        # Scenario D
        x, y = finished_pair
        user_id = users["student"].id

        assert sharing.share_conversation(x, user_id, activity.id) is True
        with pytest.raises(AlreadySharedException):
            sharing.share_conversation(y, user_id, activity.id)

        assert sharing.revoke_share(x) is True
        assert sharing.share_conversation(y, user_id, activity.id) is True

    def test_repeated_share_keeps_failing(self, sharing, finished_pair, activity, users):
        x, _ = finished_pair
        user_id = users["student"].id
        sharing.share_conversation(x, user_id, activity.id)

        for _ in range(2):
            with pytest.raises(AlreadySharedException):
                sharing.share_conversation(x, user_id, activity.id)

    def test_not_owned_is_noop(self, sharing, finished_pair, activity, users, db_session):
        x, _ = finished_pair
        assert sharing.share_conversation(x, users["other"].id, activity.id) is False
        assert db_session.get(Conversation, x).is_shared is False

    def test_missing_conversation_is_noop(self, sharing, activity, users):
        assert sharing.share_conversation(12345, users["student"].id, activity.id) is False

    def test_already_shared_checked_before_ownership(self, sharing, finished_pair, activity, users):
        x, _ = finished_pair
        user_id = users["student"].id
        sharing.share_conversation(x, user_id, activity.id)

        with pytest.raises(AlreadySharedException):
            sharing.share_conversation(99999, user_id, activity.id)

    def test_lost_race_becomes_already_shared(self, sharing, finished_pair, activity, users):
        x, _ = finished_pair
        with patch.object(
            sharing.conversation_repo, "set_shared",
            side_effect=IntegrityError("UPDATE", {}, Exception("unique")),
        ):
            with pytest.raises(AlreadySharedException):
                sharing.share_conversation(x, users["student"].id, activity.id)

    def test_unique_index_allows_single_share(self, finished_pair, activity, users, db_session):
        x, y = finished_pair
        repo = ConversationRepository(db_session)
        user_id = users["student"].id

        assert repo.set_shared(x, user_id, activity.id) is True
        with pytest.raises(IntegrityError):
            repo.set_shared(y, user_id, activity.id)
        assert len(repo.list_shared(activity.id)) == 1


class TestRevokeShare:

    def test_revoke_is_idempotent(self, sharing, finished_pair, activity, users, db_session):
        x, _ = finished_pair
        sharing.share_conversation(x, users["student"].id, activity.id)

        assert sharing.revoke_share(x) is True
        assert sharing.revoke_share(x) is True
        assert db_session.get(Conversation, x).is_shared is False

    def test_revoke_missing(self, sharing):
        assert sharing.revoke_share(4242) is False


class TestTogglePublic:

    def test_toggle_returns_new_value(self, sharing, finished_pair, users):
        x, _ = finished_pair
        assert sharing.toggle_public(x, users["student"].id) is True
        assert sharing.toggle_public(x, users["student"].id) is False

    def test_toggle_not_owned(self, sharing, finished_pair, users):
        x, _ = finished_pair
        assert sharing.toggle_public(x, users["other"].id) is None

    def test_public_is_independent_of_shared(self, sharing, finished_pair, activity, users, db_session):
        x, _ = finished_pair
        sharing.toggle_public(x, users["student"].id)
        conversation = db_session.get(Conversation, x)
        assert conversation.is_public is True
        assert conversation.is_shared is False


class TestComments:

    def test_round_trip(self, sharing, finished_pair):
        x, _ = finished_pair
        assert sharing.save_comment(x, "Nice reasoning about light reactions.") is True
        assert sharing.get_comment(x) == "Nice reasoning about light reactions."

    def test_missing_comment_is_empty(self, sharing, finished_pair):
        x, _ = finished_pair
        assert sharing.get_comment(x) == ""
        assert sharing.get_comment(777) == ""

    def test_save_on_missing_conversation(self, sharing):
        assert sharing.save_comment(777, "hi") is False


class TestCanView:

    def _conversation(self, **kwargs):
        defaults = {"user_id": 1, "is_public": False, "is_shared": False}
        defaults.update(kwargs)
        return Conversation(**defaults)

    def test_owner(self):
        assert SharingService.can_view(self._conversation(), 1, False) is True

    def test_public(self):
        assert SharingService.can_view(self._conversation(is_public=True), 2, False) is True

    def test_instructor_needs_shared(self):
        assert SharingService.can_view(self._conversation(), 3, True) is False
        assert SharingService.can_view(self._conversation(is_shared=True), 3, True) is True

    def test_student_cannot_see_shared(self):
        assert SharingService.can_view(self._conversation(is_shared=True), 2, False) is False
