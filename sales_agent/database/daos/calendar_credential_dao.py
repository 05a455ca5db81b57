"""
Calendar Credential DAO

Data-access layer for the `CalendarCredential` ORM entity: lookup by owner
and in-place token updates (insert when the owner has no row yet).
"""

import logging
from datetime import datetime
from sqlalchemy.orm import Session
from sales_agent.database.entities.calendar_credentials import CalendarCredential

logger = logging.getLogger(__name__)

class CalendarCredentialDao:
    """
    Data Access Object (DAO) for stored calendar OAuth tokens.
    """

    def fetchCredentialByUserId(self, session: Session, user_id: str) -> CalendarCredential | None:
        """
        Return the credential row of an owner, or None when the calendar was never connected.
        """
        try:
            return (
                session.query(CalendarCredential)
                .filter(CalendarCredential.user_id == user_id)
                .one_or_none()
            )
        except Exception:
            logger.exception("Error in CalendarCredentialDao.fetchCredentialByUserId")
            raise

    def upsertCredential(
        self,
        session: Session,
        user_id: str,
        access_token: str,
        refresh_token: str,
        token_expiry: datetime | None,
        timestamp: datetime,
    ) -> CalendarCredential:
        """
        Store tokens for an owner, overwriting any existing row.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_id : str
            Owner identifier.
        access_token : str
            New access token.
        refresh_token : str
            Refresh token to keep.
        token_expiry : datetime | None
            Expiry of the access token.
        timestamp : datetime
            Write time, stored as `updated_at`.

        Returns
        -------
        CalendarCredential
            The inserted or updated row.
        """
        try:
            credential = self.fetchCredentialByUserId(session, user_id)
            if credential is None:
                credential = CalendarCredential(
                    user_id=user_id,
                    access_token=access_token,
                    refresh_token=refresh_token,
                    token_expiry=token_expiry,
                    updated_at=timestamp,
                )
                session.add(credential)
            else:
                credential.access_token = access_token
                credential.refresh_token = refresh_token
                credential.token_expiry = token_expiry
                credential.updated_at = timestamp
            return credential
        except Exception:
            logger.exception("Error in CalendarCredentialDao.upsertCredential")
            raise
