"""User and enrolment data access layer."""
from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from shared.models.entities import Enrolment, User
from shared.utils.constants import ROLE_STUDENT, ROLE_TEACHER


class UserRepository:
    """Read access to the host's users and course roles."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_role(self, user_id: int, course_id: int) -> Optional[str]:
        enrolment = (
            self.db.query(Enrolment)
            .filter(Enrolment.user_id == user_id, Enrolment.course_id == course_id)
            .first()
        )
        return enrolment.role if enrolment else None

    def is_teacher(self, user_id: int, course_id: int) -> bool:
        """True if the user holds the instructor capability in the course."""
        return self.get_role(user_id, course_id) == ROLE_TEACHER

    def list_students(self, course_id: int) -> List[User]:
        """Students enrolled in a course, ordered by last then first name."""
        return (
            self.db.query(User)
            .join(Enrolment, Enrolment.user_id == User.id)
            .filter(Enrolment.course_id == course_id, Enrolment.role == ROLE_STUDENT)
            .order_by(User.lastname.asc(), User.firstname.asc(), User.id.asc())
            .all()
        )
