"""
API Package: FastAPI Router • Models • Chat Turn Pipeline • Calendar Helpers
=============================================================================

Mission
-------
This package defines the backend's HTTP interface and its support stack:
FastAPI routing, the annotated chat turn (reply, lead qualification,
sentiment, summary), meeting scheduling and the Google Calendar OAuth flow.

Contents
--------
- fast_api
    FastAPI router with endpoints for:
      • Chat (/chat): one annotated turn per request, returns {reply, conversationId}
      • Conversations (/conversations): an owner's annotated records, newest first
      • Meetings (/meetings): schedule with an optional calendar event, list
      • Google Calendar (/auth/google, /auth/google/callback, /auth/google/status)

- llm_pipeline
    CompletionGateway, ReplyStage (identity shortcuts + model), Classifier
    (closed label sets), AnnotationOrchestrator (sequencing + append).

- prompt_utilities
    Canned replies, upsell suffix, classifier instructions and templates.

- errors
    TurnError taxonomy mapped to HTTP statuses.

- models
    Pydantic data contracts for request/response validation.

- utils
    Signed OAuth state tokens (python-jose).

- calendar_funcs.funcs
    Google OAuth client, token refresh, Calendar event insert (httpx).
"""
