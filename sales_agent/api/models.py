"""
Pydantic models used for request/response validation and API data contracts.

Each class defines the structure of data expected in API endpoints, ensuring
validation and automatic OpenAPI schema generation. Owner ids are accepted
as either `ownerId` or `userId` (the widget sends `userId`).
"""

from datetime import date, time
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """
    One message of a conversation transcript.
    """
    role: Literal["user", "assistant", "system"]
    """Sender role."""
    content: str
    """Message text."""


class ChatRequest(BaseModel):
    """
    Inbound chat turn. Presence of the fields is checked by the turn itself so
    that a missing field yields the turn's own 400 message.
    """
    model_config = ConfigDict(populate_by_name=True)

    messages: Optional[List[ChatMessage]] = Field(None, description="Full ordered transcript, most recent message last.")
    owner_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("ownerId", "userId", "owner_id"),
        description="Identifier of the end user.",
        examples=["3f0c1f0e-6f53-4a4b-9d3e-2f0b6f3c1a11"],
    )


class ChatResponse(BaseModel):
    """
    Successful chat turn: the delivered reply and the id of its persisted record.
    """
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    """Final reply, identical to the persisted `bot_reply`."""
    conversation_id: str = Field(..., serialization_alias="conversationId")
    """Id of the stored ConversationRecord."""


class MeetingRequest(BaseModel):
    """
    Request to schedule a follow-up meeting.
    """
    model_config = ConfigDict(populate_by_name=True)

    owner_id: Optional[str] = Field(None, validation_alias=AliasChoices("ownerId", "userId", "owner_id"))
    """Owner of the meeting."""
    title: Optional[str] = None
    """Meeting title."""
    description: Optional[str] = None
    """Optional free-text description."""
    meeting_date: Optional[date] = Field(None, examples=["2025-09-30"])
    """Day of the meeting (YYYY-MM-DD)."""
    meeting_time: Optional[time] = Field(None, examples=["14:30"])
    """Start time (HH:MM)."""


class CalendarStatus(BaseModel):
    """
    Calendar connection state of an owner.
    """
    connected: bool
    message: str
