"""
DAOs Package: Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package encapsulates all interactions with SQLAlchemy ORM
entities, providing CRUD APIs for the service layer.

Conventions
-----------
- Session lifecycle (open/commit/rollback) is handled by callers
- DAOs surface exceptions so upper layers decide error policy

Contents
--------
- ConversationDao
    * createConversationRecord: stages an annotated chat turn
    * fetchConversationRecordsByUserId: owner's records, newest first

- MeetingDao
    * createMeeting: stages a meeting
    * fetchMeetingsByUserId: owner's meetings by date then time

- CalendarCredentialDao
    * fetchCredentialByUserId: stored OAuth tokens or None
    * upsertCredential: insert or overwrite an owner's tokens
"""
