"""
Meeting ORM Model
=================

The ``Meeting`` ORM model represents a follow-up meeting scheduled by a lead.
It maps to the ``meetings`` table. Rows are created once and never updated
or deleted by the application.

The ``google_calendar_event_id`` column is nullable: a meeting is stored even
when the calendar integration is not connected for the owner or the remote
event creation failed.
"""

from sales_agent.database.config.connection_engine import declarativeBase
from sqlalchemy import DateTime, Date, Time, TEXT, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
from datetime import datetime, date, time
from typing import Optional

class Meeting(declarativeBase):
    """
    ORM model for the `meetings` table.

    Attributes
    ----------
    id : UUID
        Primary key of the meeting.
    user_id : str
        Owner identifier.
    title : str
        Meeting title, also used as the calendar event summary.
    description : str | None
        Free-text description.
    meeting_date : date
        Day of the meeting.
    meeting_time : time
        Start time of the meeting (wall-clock, in the configured calendar time zone).
    google_calendar_event_id : str | None
        Id of the created calendar event, if any.
    status : str
        Lifecycle status; always "scheduled" on creation.
    created_at : datetime
        Creation timestamp (UTC).
    """

    __tablename__ = 'meetings'

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True
    )

    user_id: Mapped[str] = mapped_column(
        TEXT, nullable=False, index=True
    )

    title: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    description: Mapped[Optional[str]] = mapped_column(
        TEXT, nullable=True
    )

    meeting_date: Mapped[date] = mapped_column(
        Date, nullable=False
    )

    meeting_time: Mapped[time] = mapped_column(
        Time, nullable=False
    )

    google_calendar_event_id: Mapped[Optional[str]] = mapped_column(
        TEXT, nullable=True
    )
    """Calendar event id; null when the calendar side effect did not happen."""

    status: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    def __init__(
        self,
        meeting_id: UUID,
        user_id: str,
        title: str,
        description: str | None,
        meeting_date: date,
        meeting_time: time,
        google_calendar_event_id: str | None,
        status: str,
        created_at,
    ):
        """
        Initialize a new Meeting object.

        Parameters
        ----------
        meeting_id : UUID
            Unique identifier of the meeting.
        user_id : str
            Owner identifier.
        title : str
            Meeting title.
        description : str | None
            Optional description.
        meeting_date : date
            Day of the meeting.
        meeting_time : time
            Start time.
        google_calendar_event_id : str | None
            Calendar event id or None.
        status : str
            Initial status ("scheduled").
        created_at : datetime | str
            Creation timestamp. Accepts datetime or ISO8601 string.
        """
        self.id = meeting_id
        self.user_id = user_id
        self.title = title
        self.description = description
        self.meeting_date = meeting_date
        self.meeting_time = meeting_time
        self.google_calendar_event_id = google_calendar_event_id
        self.status = status
        if isinstance(created_at, str):
            self.created_at = datetime.fromisoformat(created_at)
        else:
            self.created_at = created_at

    def __str__(self) -> str:
        return (
            f"Meeting: id:{self.id}, user: {self.user_id}, title: {self.title}, "
            f"when: {self.meeting_date} {self.meeting_time}, event: {self.google_calendar_event_id}"
        )
