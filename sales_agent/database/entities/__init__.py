"""
Entities Package: SQLAlchemy 2.0 ORM Models (UUID + UTC)
=========================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes are consumed by DAOs (`daos` package).

Tech Stack & Conventions
------------------------
- Portable `Uuid` primary keys (native UUID on PostgreSQL, CHAR(32) on SQLite)
- Timezone-aware timestamps (UTC)
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`
- Owner ids are opaque strings from the external identity provider (no FK)

Contents
--------
- ConversationRecord
    One annotated chat turn (reply, qualification, sentiment, summary, transcript).
    Table: `conversations`. Append-only.

- Meeting
    A scheduled follow-up meeting with an optional calendar event id.
    Table: `meetings`. Append-only.

- CalendarCredential
    Google OAuth tokens per owner. Table: `calendar_credentials`.
"""
