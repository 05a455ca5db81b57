"""
Service-layer operations for conversation records, meetings and calendar tokens.

All data functions are wrapped with the `@transactional` decorator, which manages
SQLAlchemy sessions and transactions automatically. Each function accepts (and
uses) an injected `session: Session` provided by the decorator. Return values
are plain dicts so nothing outlives the session that loaded it.
"""

from sales_agent.database.helpers.transactionManagement import transactional
from sales_agent.database.config.connection_engine import connection_engine, metadata
from sqlalchemy.orm import Session
import uuid
from uuid import UUID
from sales_agent.database.daos.conversation_dao import ConversationDao
from sales_agent.database.daos.meeting_dao import MeetingDao
from sales_agent.database.daos.calendar_credential_dao import CalendarCredentialDao
from sales_agent.database.entities.conversations import ConversationRecord
from sales_agent.database.entities.meetings import Meeting
from sales_agent.database.entities.calendar_credentials import CalendarCredential  # noqa: F401  (registers the table)
from datetime import datetime, timezone, date, time


def create_schema() -> None:
    """Create every table registered on the shared metadata (no-op for existing tables)."""
    metadata.create_all(connection_engine)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; they were written as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _record_to_dict(record: ConversationRecord) -> dict:
    return {
        "id": str(record.id),
        "user_id": record.user_id,
        "user_message": record.user_message,
        "bot_reply": record.bot_reply,
        "qualification": record.qualification,
        "sentiment": record.sentiment,
        "summary": record.summary,
        "transcript": record.transcript,
        "created_at": _as_utc(record.created_at).isoformat(),
    }


def _meeting_to_dict(meeting: Meeting) -> dict:
    return {
        "id": str(meeting.id),
        "user_id": meeting.user_id,
        "title": meeting.title,
        "description": meeting.description,
        "meeting_date": meeting.meeting_date.isoformat(),
        "meeting_time": meeting.meeting_time.strftime("%H:%M"),
        "google_calendar_event_id": meeting.google_calendar_event_id,
        "status": meeting.status,
        "created_at": _as_utc(meeting.created_at).isoformat(),
    }


@transactional
def create_conversation_record(
    session: Session,
    owner_id: str,
    user_message: str,
    bot_reply: str,
    qualification: str,
    sentiment: str,
    summary: str,
    transcript: list[dict],
) -> UUID:
    """
    Append one annotated chat turn to the conversation store.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    owner_id : str
        Owner of the conversation.
    user_message : str
        Triggering utterance.
    bot_reply : str
        Final reply, exactly as delivered to the client.
    qualification, sentiment : str
        Validated labels.
    summary : str
        Non-empty summary text.
    transcript : list[dict]
        Ordered `{role, content}` messages.

    Returns
    -------
    UUID
        Id of the new record.

    Notes
    -----
    - `created_at` is assigned here, at persistence time.
    - Exceptions propagate after rollback; nothing is written on failure.
    """
    conversation_dao = ConversationDao()
    record_id = uuid.uuid4()
    record = ConversationRecord(
        record_id=record_id,
        user_id=owner_id,
        user_message=user_message,
        bot_reply=bot_reply,
        qualification=qualification,
        sentiment=sentiment,
        summary=summary,
        transcript=transcript,
        created_at=datetime.now(timezone.utc),
    )
    conversation_dao.createConversationRecord(session, record)
    return record_id


@transactional
def get_conversations(session: Session, owner_id: str) -> list[dict]:
    """
    List the conversation records of an owner, newest first.

    Returns
    -------
    list[dict]
        Each item: {'id', 'user_id', 'user_message', 'bot_reply', 'qualification',
        'sentiment', 'summary', 'transcript', 'created_at'}
    """
    conversation_dao = ConversationDao()
    records = conversation_dao.fetchConversationRecordsByUserId(session, owner_id)
    return [_record_to_dict(record) for record in records]


@transactional
def create_meeting(
    session: Session,
    owner_id: str,
    title: str,
    description: str | None,
    meeting_date: date,
    meeting_time: time,
    google_calendar_event_id: str | None = None,
) -> dict:
    """
    Persist a scheduled meeting.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    owner_id : str
        Owner of the meeting.
    title : str
        Meeting title.
    description : str | None
        Optional description.
    meeting_date : date
        Day of the meeting.
    meeting_time : time
        Start time.
    google_calendar_event_id : str | None
        Calendar event id when the calendar side effect succeeded.

    Returns
    -------
    dict
        The stored meeting (see `_meeting_to_dict`).
    """
    meeting_dao = MeetingDao()
    meeting = Meeting(
        meeting_id=uuid.uuid4(),
        user_id=owner_id,
        title=title,
        description=description,
        meeting_date=meeting_date,
        meeting_time=meeting_time,
        google_calendar_event_id=google_calendar_event_id,
        status="scheduled",
        created_at=datetime.now(timezone.utc),
    )
    meeting_dao.createMeeting(session, meeting)
    session.flush()
    return _meeting_to_dict(meeting)


@transactional
def get_meetings(session: Session, owner_id: str) -> list[dict]:
    """List the meetings of an owner ordered by date, then time."""
    meeting_dao = MeetingDao()
    return [_meeting_to_dict(meeting) for meeting in meeting_dao.fetchMeetingsByUserId(session, owner_id)]


@transactional
def get_calendar_credentials(session: Session, owner_id: str) -> dict | None:
    """
    Return the stored calendar tokens of an owner.

    Returns
    -------
    dict | None
        {'access_token', 'refresh_token', 'token_expiry'} or None when the
        owner never connected a calendar.
    """
    credential = CalendarCredentialDao().fetchCredentialByUserId(session, owner_id)
    if credential is None:
        return None
    return {
        "access_token": credential.access_token,
        "refresh_token": credential.refresh_token,
        "token_expiry": _as_utc(credential.token_expiry),
    }


@transactional
def store_calendar_tokens(
    session: Session,
    owner_id: str,
    access_token: str,
    refresh_token: str,
    token_expiry: datetime | None,
) -> None:
    """
    Insert or overwrite the calendar tokens of an owner.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    owner_id : str
        Owner identifier.
    access_token : str
        Access token.
    refresh_token : str
        Refresh token.
    token_expiry : datetime | None
        Access-token expiry (UTC).
    """
    CalendarCredentialDao().upsertCredential(
        session,
        user_id=owner_id,
        access_token=access_token,
        refresh_token=refresh_token,
        token_expiry=token_expiry,
        timestamp=datetime.now(timezone.utc),
    )


@transactional
def is_calendar_connected(session: Session, owner_id: str) -> bool:
    """True when both an access token and a refresh token are stored for the owner."""
    credential = CalendarCredentialDao().fetchCredentialByUserId(session, owner_id)
    return bool(credential and credential.access_token and credential.refresh_token)
