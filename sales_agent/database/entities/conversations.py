"""
ConversationRecord ORM Model
============================

The ``ConversationRecord`` ORM model is the persisted, immutable result of one
chat turn: the triggering utterance, the reply actually delivered to the
client, the three annotations (qualification, sentiment, summary) and the
full transcript the turn was computed from. It maps to the ``conversations``
table.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``), returned to the client as ``conversationId``
- Opaque owner identifier (``user_id``); no foreign key, identities live in
  the external identity provider
- Closed-set labels (``qualification``, ``sentiment``), validated before
  the row is built
- JSON ``transcript`` (ordered list of ``{role, content}``)
- Timezone-aware ``created_at`` used for newest-first retrieval
"""

from sales_agent.database.config.connection_engine import declarativeBase
from sqlalchemy import DateTime, TEXT, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
from datetime import datetime

class ConversationRecord(declarativeBase):
    """
    ORM model for the `conversations` table.

    Attributes
    ----------
    id : UUID
        Primary key of the record.
    user_id : str
        Owner of the conversation (opaque identifier).
    user_message : str
        The user utterance that triggered the turn.
    bot_reply : str
        Final reply text, including the upsell suffix when the lead qualified.
    qualification : str
        "Qualified" or "NotQualified".
    sentiment : str
        "Positive", "Negative" or "Neutral".
    summary : str
        Short overview of the exchange.
    transcript : list[dict]
        Full ordered message list at the time of the turn.
    created_at : datetime
        Persistence timestamp (UTC, timezone-aware).
    """

    __tablename__ = 'conversations'

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True
    )
    """Primary key. UUID of the record."""

    user_id: Mapped[str] = mapped_column(
        TEXT, nullable=False, index=True
    )
    """Owner identifier."""

    user_message: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    bot_reply: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    qualification: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    sentiment: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    summary: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    transcript: Mapped[list] = mapped_column(
        JSON, nullable=False
    )
    """Ordered list of `{"role", "content"}` dicts."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    """Timestamp when the record was persisted (UTC)."""

    def __init__(
        self,
        record_id: UUID,
        user_id: str,
        user_message: str,
        bot_reply: str,
        qualification: str,
        sentiment: str,
        summary: str,
        transcript: list,
        created_at,
    ):
        """
        Initialize a new ConversationRecord object.

        Parameters
        ----------
        record_id : UUID
            Unique identifier for the record.
        user_id : str
            Owner identifier.
        user_message, bot_reply, qualification, sentiment, summary : str
            Turn outputs, already validated by the annotation pipeline.
        transcript : list[dict]
            Ordered message list.
        created_at : datetime | str
            Persistence timestamp. Accepts datetime or ISO8601 string.
        """
        self.id = record_id
        self.user_id = user_id
        self.user_message = user_message
        self.bot_reply = bot_reply
        self.qualification = qualification
        self.sentiment = sentiment
        self.summary = summary
        self.transcript = transcript
        if isinstance(created_at, str):
            self.created_at = datetime.fromisoformat(created_at)
        else:
            self.created_at = created_at

    def __str__(self) -> str:
        return (
            f"Conversation: id:{self.id}, user: {self.user_id}, "
            f"qualification: {self.qualification}, sentiment: {self.sentiment}, "
            f"time_created: {self.created_at}"
        )
