"""Domain models for business logic."""
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional


class GenerationResult(BaseModel):
    """Outcome of one AI provider call."""
    success: bool
    content: str = ""
    error_message: Optional[str] = None


class ChatTurn(BaseModel):
    """One bubble in the chat thread (user request or bot response)."""
    is_user: bool
    content: str
    timestamp: datetime


class ChatState(BaseModel):
    """What the chat view needs: open attempt, thread and remaining quota."""
    activity_id: int
    conversation_id: Optional[int] = None
    attempts_remaining: int
    interactions_remaining: int
    history: List[ChatTurn] = Field(default_factory=list)
    no_attempts: bool = False  # All attempts used and nothing open


class SendResult(BaseModel):
    """Result of a successful send-request."""
    conversation_id: int
    generated_content: str
    remaining_interactions: int
    remaining_attempts: int
    finished: bool = False


class TranscriptTurn(BaseModel):
    """A single labelled message in an exported transcript."""
    author: str
    text: str
    is_user: bool


class Transcript(BaseModel):
    """Printable projection of a conversation."""
    conversation_id: int
    activity_name: str
    description: str = ""
    author_name: str
    started_at: Optional[datetime] = None  # First exchange timestamp
    turns: List[TranscriptTurn] = Field(default_factory=list)


class StudentDialog(BaseModel):
    """A finished attempt as listed on the student's manage-dialogs page."""
    id: int
    counter: int
    finished: bool
    is_shared: bool
    is_public: bool
    comment: Optional[str] = None
    is_shared_conversation: bool = False


class StudentDialogs(BaseModel):
    """Student manage-dialogs view."""
    activity_id: int
    conversations: List[StudentDialog] = Field(default_factory=list)
    shared_conversation_id: Optional[int] = None
    has_shared: bool = False
    remaining_attempts: int


class TeacherDialogEntry(BaseModel):
    """One enrolled student and their shared attempt, if any."""
    user_id: int
    user_fullname: str
    user_email: Optional[str] = None
    conversation_id: Optional[int] = None
    is_shared: bool = False
    comment: Optional[str] = None
    last_modified: Optional[datetime] = None
    status: str


class TeacherDialogs(BaseModel):
    """Teacher manage-dialogs view."""
    activity_id: int
    conversations: List[TeacherDialogEntry] = Field(default_factory=list)


class PublicDialog(BaseModel):
    """A conversation published to the class."""
    id: int
    user_id: int
    user_fullname: str
