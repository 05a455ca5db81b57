"""
CalendarCredential ORM Model
============================

Stores the Google OAuth tokens of an owner who connected their calendar.
One row per owner (``user_id`` is the primary key); reconnecting or refreshing
overwrites the tokens in place.
"""

from sales_agent.database.config.connection_engine import declarativeBase
from sqlalchemy import DateTime, TEXT
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional

class CalendarCredential(declarativeBase):
    """
    ORM model for the `calendar_credentials` table.

    Attributes
    ----------
    user_id : str
        Owner identifier (primary key).
    access_token : str
        Current OAuth access token.
    refresh_token : str
        Long-lived refresh token.
    token_expiry : datetime | None
        Expiry of the access token (UTC).
    updated_at : datetime
        Last time the tokens were written.
    """

    __tablename__ = 'calendar_credentials'

    user_id: Mapped[str] = mapped_column(
        TEXT, primary_key=True
    )

    access_token: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    refresh_token: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    token_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    def __init__(self, user_id: str, access_token: str, refresh_token: str, token_expiry, updated_at):
        self.user_id = user_id
        self.access_token = access_token
        self.refresh_token = refresh_token
        if isinstance(token_expiry, str):
            self.token_expiry = datetime.fromisoformat(token_expiry)
        else:
            self.token_expiry = token_expiry
        self.updated_at = updated_at

    def __str__(self) -> str:
        # Tokens are not printed.
        return f"CalendarCredential: user: {self.user_id}, expires: {self.token_expiry}"
