"""
Meeting DAO

Purpose
-------
Data-access layer for the `Meeting` ORM entity:
- Meeting creation
- Retrieval by owner, in chronological order (date, then time)

Design
------
- Requires an active SQLAlchemy `Session` provided by the caller.
- Calendar integration is not the DAO's concern; the event id arrives
  already resolved (or None).
"""

import logging
from sqlalchemy.orm import Session
from sqlalchemy import asc
from sales_agent.database.entities.meetings import Meeting

logger = logging.getLogger(__name__)

class MeetingDao:
    """
    Data Access Object (DAO) for managing meetings.
    """

    def createMeeting(self, session: Session, meeting: Meeting) -> Meeting:
        """
        Stage a new meeting record.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        meeting : Meeting
            Meeting entity instance to be added.

        Returns
        -------
        Meeting
            The staged meeting.
        """
        try:
            session.add(meeting)
            return meeting
        except Exception:
            logger.exception("Error in MeetingDao.createMeeting")
            raise

    def fetchMeetingsByUserId(self, session: Session, user_id: str) -> list[Meeting]:
        """
        Fetch all meetings of an owner, earliest first.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_id : str
            Owner identifier.

        Returns
        -------
        list[Meeting]
        """
        try:
            return (
                session.query(Meeting)
                .filter(Meeting.user_id == user_id)
                .order_by(asc(Meeting.meeting_date), asc(Meeting.meeting_time))
                .all()
            )
        except Exception:
            logger.exception("Error in MeetingDao.fetchMeetingsByUserId")
            raise
