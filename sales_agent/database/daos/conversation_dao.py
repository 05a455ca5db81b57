"""
Conversation DAO

Purpose
-------
Provides a thin data-access layer for the `ConversationRecord` ORM entity:
- Append a record
- List records of an owner, newest first

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller (no session
  creation inside the DAO). Transaction boundaries live in the service layer.
- Records are immutable: there are no update or delete methods.

Usage
-----
.. code-block:: python

    from sales_agent.database.helpers.transactionManagement import SessionFactory
    from sales_agent.database.daos.conversation_dao import ConversationDao

    dao = ConversationDao()
    with SessionFactory() as session:
        dao.createConversationRecord(session, record)
        session.commit()
        items = dao.fetchConversationRecordsByUserId(session, user_id=record.user_id)

Error Handling
--------------
- Methods log the failure with `logger.exception(...)` and re-raise.
"""

import logging
from sqlalchemy.orm import Session
from sqlalchemy import desc
from sales_agent.database.entities.conversations import ConversationRecord

logger = logging.getLogger(__name__)

class ConversationDao:
    """
    Data Access Object (DAO) for `ConversationRecord` entities.
    """

    def createConversationRecord(self, session: Session, record: ConversationRecord) -> ConversationRecord:
        """
        Stage a new conversation record.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        record : ConversationRecord
            Record to be added.

        Returns
        -------
        ConversationRecord
            The staged record.
        """
        try:
            session.add(record)
            return record
        except Exception:
            logger.exception("Error in ConversationDao.createConversationRecord")
            raise

    def fetchConversationRecordsByUserId(self, session: Session, user_id: str) -> list[ConversationRecord]:
        """
        Fetch all records belonging to an owner, ordered by creation time (newest first).

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_id : str
            Owner identifier.

        Returns
        -------
        list[ConversationRecord]
        """
        try:
            return (
                session.query(ConversationRecord)
                .filter(ConversationRecord.user_id == user_id)
                .order_by(desc(ConversationRecord.created_at))
                .all()
            )
        except Exception:
            logger.exception("Error in ConversationDao.fetchConversationRecordsByUserId")
            raise
