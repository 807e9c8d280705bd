"""Shared models - ORM entities, domain objects and API schemas."""
from .entities import Base, User, Enrolment, Activity, Conversation, MessageExchange
from .domain import (
    GenerationResult,
    ChatTurn,
    ChatState,
    SendResult,
    TranscriptTurn,
    Transcript,
    StudentDialog,
    StudentDialogs,
    TeacherDialogEntry,
    TeacherDialogs,
    PublicDialog,
)
from .schemas import (
    CreateActivityRequest,
    UpdateActivityRequest,
    ActivityResponse,
    ChannelListResponse,
    CompletionResponse,
)
