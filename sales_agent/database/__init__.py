"""
The `database` package is responsible for all interactions with the application's database.
It provides configuration, entity definitions, CRUD operations, and utility functions
that back the conversation store, the meeting store and the calendar token store.

Contents:
    - config:
        Settings and the SQLAlchemy engine.

    - entities:
        SQLAlchemy entity models: conversation records, meetings, calendar credentials.

    - daos:
        Data Access Objects (DAOs) providing CRUD operations for the entities.

    - core:
        Service functions that connect application routers with the database.

    - helpers:
        Transaction/session management.
"""
