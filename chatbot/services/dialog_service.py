"""Dialog listings for the student, instructor and public pages."""

from typing import Optional

from sqlalchemy.orm import Session as DBSession

from shared.models.domain import (
    PublicDialog,
    StudentDialog,
    StudentDialogs,
    TeacherDialogEntry,
    TeacherDialogs,
)
from shared.models.entities import User
from shared.repositories import ConversationRepository, UserRepository
from shared.utils.constants import MSG_NO_SUBMISSION
from chatbot.services.quota_service import QuotaService

STATUS_SHARED = "shared"


def _matches_initial(name: Optional[str], initial: Optional[str]) -> bool:
    if not initial:
        return True
    return (name or "").lower().startswith(initial.lower())


class DialogService:
    def __init__(self, db: DBSession):
        self.quota = QuotaService(db)
        self.conversation_repo = ConversationRepository(db)
        self.user_repo = UserRepository(db)

    def student_dialogs(self, user_id: int, activity_id: int) -> StudentDialogs:
        """The user's finished attempts, numbered from 1 in creation order."""
        self.quota.get_activity(activity_id)
        shared = self.conversation_repo.get_shared(user_id, activity_id)
        shared_id = shared.id if shared else None

        conversations = [
            StudentDialog(
                id=conversation.id,
                counter=counter,
                finished=conversation.finished,
                is_shared=conversation.is_shared,
                is_public=conversation.is_public,
                comment=conversation.comment,
                is_shared_conversation=conversation.id == shared_id,
            )
            for counter, conversation in enumerate(
                self.conversation_repo.list_by_user(user_id, activity_id, finished=True), start=1
            )
        ]

        return StudentDialogs(
            activity_id=activity_id,
            conversations=conversations,
            shared_conversation_id=shared_id,
            has_shared=shared is not None,
            remaining_attempts=self.quota.remaining_attempts(user_id, activity_id),
        )

    def teacher_dialogs(
        self,
        activity_id: int,
        first_initial: Optional[str] = None,
        last_initial: Optional[str] = None,
    ) -> TeacherDialogs:
        """
        One entry per enrolled student: their shared attempt, or a
        "no submission" placeholder.

        first_initial / last_initial filter students by the case-insensitive
        leading letter(s) of their first and last name.
        """
        activity = self.quota.get_activity(activity_id)
        shared_by_user = {c.user_id: c for c in self.conversation_repo.list_shared(activity_id)}

        entries = []
        for student in self.user_repo.list_students(activity.course_id):
            if not (_matches_initial(student.firstname, first_initial)
                    and _matches_initial(student.lastname, last_initial)):
                continue
            entries.append(self._teacher_entry(student, shared_by_user.get(student.id)))

        return TeacherDialogs(activity_id=activity_id, conversations=entries)

    @staticmethod
    def _teacher_entry(student: User, conversation) -> TeacherDialogEntry:
        if conversation is None:
            return TeacherDialogEntry(
                user_id=student.id,
                user_fullname=student.fullname,
                user_email=student.email,
                status=MSG_NO_SUBMISSION,
            )
        return TeacherDialogEntry(
            user_id=student.id,
            user_fullname=student.fullname,
            user_email=student.email,
            conversation_id=conversation.id,
            is_shared=True,
            comment=conversation.comment,
            last_modified=conversation.updated,
            status=STATUS_SHARED,
        )

    def public_dialogs(self, activity_id: int):
        """Conversations published to the class, with their owner's name."""
        self.quota.get_activity(activity_id)
        dialogs = []
        for conversation in self.conversation_repo.list_public(activity_id):
            owner = conversation.user
            dialogs.append(PublicDialog(
                id=conversation.id,
                user_id=conversation.user_id,
                user_fullname=owner.fullname if owner else "",
            ))
        return dialogs
