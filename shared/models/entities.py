"""SQLAlchemy ORM database models."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Text, DateTime, Boolean, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class User(Base):
    """User table - projection of the host's user records (display name, email)."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    firstname = Column(String, nullable=False, default="")
    lastname = Column(String, nullable=False, default="")
    email = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    enrolments = relationship("Enrolment", back_populates="user", cascade="all, delete-orphan")

    @property
    def fullname(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


class Enrolment(Base):
    """Enrolment table - a user's role within a course ('student' or 'teacher')."""
    __tablename__ = "enrolments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, nullable=False)
    role = Column(String, nullable=False, default="student")

    user = relationship("User", back_populates="enrolments")

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrolment_user_course"),
        Index("idx_enrolment_course_role", "course_id", "role"),
    )


class Activity(Base):
    """Activity table - configuration of one chatbot activity instance."""
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    intro = Column(Text, nullable=True)  # Description shown above the chat and in transcripts
    prompt_text = Column(Text, nullable=False, default="")  # System prompt
    channel = Column(String, nullable=True)  # Provider channel identifier
    attempts = Column(Integer, nullable=False)
    interactions = Column(Integer, nullable=False)
    completion_attempts_enabled = Column(Boolean, default=False, nullable=False)
    completion_attempts_count = Column(Integer, nullable=True)
    completion_share_enabled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    conversations = relationship(
        "Conversation", back_populates="activity", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_activity_course", "course_id"),
    )


class Conversation(Base):
    """Conversation table - one attempt of a user in an activity."""
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False)
    finished = Column(Boolean, default=False, nullable=False)
    is_shared = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    comment = Column(Text, nullable=True)  # Instructor feedback
    created_at = Column(DateTime, default=datetime.utcnow)
    updated = Column(DateTime, default=datetime.utcnow)

    activity = relationship("Activity", back_populates="conversations")
    user = relationship("User")
    exchanges = relationship(
        "MessageExchange",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="MessageExchange.id",
    )

    __table_args__ = (
        Index("idx_conversation_user_activity", "user_id", "activity_id"),
        # At most one open attempt per (user, activity)
        Index(
            "uq_conversation_open",
            "user_id",
            "activity_id",
            unique=True,
            sqlite_where=text("finished = 0"),
            postgresql_where=text("finished = false"),
        ),
        # At most one shared attempt per (user, activity)
        Index(
            "uq_conversation_shared",
            "user_id",
            "activity_id",
            unique=True,
            sqlite_where=text("is_shared = 1"),
            postgresql_where=text("is_shared = true"),
        ),
    )


class MessageExchange(Base):
    """Message exchange table - one user request and bot response within a conversation."""
    __tablename__ = "message_exchanges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)
    provider = Column(String, nullable=True)  # Provider/channel used for this turn
    request = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    conversation = relationship("Conversation", back_populates="exchanges")

    __table_args__ = (
        Index("idx_exchange_conversation", "conversation_id", "timestamp"),
    )
