"""
FastAPI Router: Chat • Conversations • Meetings • Google Calendar OAuth
=======================================================================

Purpose
-------
Defines the HTTP API for:
- Chat: one annotated turn per request (reply, qualification, sentiment, summary, record)
- Conversations: list an owner's annotated records
- Meetings: schedule (with an optional Google Calendar event) and list
- Google Calendar: consent redirect, OAuth callback, connection status

Key Notes
---------
- Input validation via Pydantic models in `sales_agent.api.models`.
- Error payloads are `{"error": message}`; chat turn errors are raised as
  `sales_agent.api.errors.TurnError` and rendered by the app's exception handler.
- The completion gateway lives on `app.state` and reaches the chat endpoint
  through the `get_gateway` dependency.
- The OAuth `state` parameter is a signed JWT carrying the owner id.
"""

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from sales_agent.api import errors
from sales_agent.api.calendar_funcs.funcs import (
    GoogleCalendarClient,
    GoogleOAuthClient,
    build_calendar_event,
    default_oauth_client,
    get_authorized_calendar_client,
)
from sales_agent.api.llm_pipeline import AnnotationOrchestrator, CompletionGateway
from sales_agent.api.models import CalendarStatus, ChatRequest, ChatResponse, MeetingRequest
from sales_agent.api.utils import create_state_token, verify_state_token
from sales_agent.database.config.config import settings
from sales_agent.database.core.funcs import (
    create_conversation_record,
    create_meeting,
    get_calendar_credentials,
    get_conversations,
    get_meetings,
    is_calendar_connected,
    store_calendar_tokens,
)

logger = logging.getLogger(__name__)

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""


# -----------------------
# Dependencies
# -----------------------

def get_gateway(request: Request) -> CompletionGateway:
    """Completion gateway created during the app lifespan."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise errors.GatewayError("completion gateway is not initialized")
    return gateway


def get_orchestrator(gateway: CompletionGateway = Depends(get_gateway)) -> AnnotationOrchestrator:
    """Per-request orchestrator over the shared gateway and the conversation store."""
    return AnnotationOrchestrator(
        gateway,
        append_record=create_conversation_record,
        label_matching=settings.LABEL_MATCHING,
        turn_deadline=settings.TURN_DEADLINE_SECONDS,
    )


def get_calendar_provider() -> Callable[[str], Optional[GoogleCalendarClient]]:
    """Owner id → authorized calendar client, or None when calendar access is unavailable."""
    return get_authorized_calendar_client


def get_owner_id(
    user_id: Optional[str] = Query(None, alias='userId'),
    owner_id: Optional[str] = Query(None, alias='ownerId'),
) -> str:
    """Owner id from the `userId` or `ownerId` query parameter, empty when neither is given."""
    return user_id or owner_id or ''


def get_oauth_client() -> GoogleOAuthClient:
    return default_oauth_client()


# -----------------------
# Chat
# -----------------------

@router.post('/chat', response_model=ChatResponse, response_model_by_alias=True)
async def chat(data: ChatRequest, orchestrator: AnnotationOrchestrator = Depends(get_orchestrator)):
    """Run one chat turn.

    Request body:
        ChatRequest {messages: [{role, content}], ownerId | userId}

    Behavior:
        - Replies (canned shortcut or model), classifies qualification and sentiment,
          appends the upsell invitation for qualified leads, summarizes, then stores the record.
        - Nothing is stored when any stage fails.

    Response:
        200: {'reply': str, 'conversationId': str}
        400: missing transcript or owner id
        502/504: completion failure or timeout
        500: the record could not be stored
    """
    result = await orchestrator.handle_turn(data.messages, data.owner_id)
    return ChatResponse(reply=result.reply, conversation_id=str(result.conversation_id))


# -----------------------
# Conversations
# -----------------------

@router.get('/conversations')
def list_conversations(user_id: str = Depends(get_owner_id)):
    """List of annotated conversation records of an owner, newest first."""
    if not user_id:
        return JSONResponse(status_code=400, content={"error": "User ID is required."})
    try:
        return get_conversations(owner_id=user_id)
    except Exception:
        logger.exception("Fetch conversations failed for %s", user_id)
        return JSONResponse(status_code=500, content={"error": "Failed to retrieve conversations."})


# -----------------------
# Meetings
# -----------------------

@router.post('/meetings', status_code=201)
def schedule_meeting(
    data: MeetingRequest,
    calendar_provider: Callable[[str], Optional[GoogleCalendarClient]] = Depends(get_calendar_provider),
):
    """Schedule a follow-up meeting.

    Request body:
        MeetingRequest {userId, title, description?, meeting_date, meeting_time}

    Behavior:
        - When the owner connected Google Calendar, inserts an event first.
          Calendar failures are logged and the meeting is stored without an event id.
        - Stores the meeting with status 'scheduled'.

    Response:
        201: {'message': str, 'meeting': {...}}
        400: a required field is missing
        500: the meeting could not be stored
    """
    if not data.owner_id or not data.title or data.meeting_date is None or data.meeting_time is None:
        return JSONResponse(
            status_code=400,
            content={"error": "User ID, title, date, and time are required to schedule a meeting."},
        )

    event_id = None
    try:
        calendar = calendar_provider(data.owner_id)
        if calendar is not None:
            event = build_calendar_event(data.title, data.description, data.meeting_date, data.meeting_time)
            event_id = calendar.insert_event(event)
            logger.info("Google Calendar event created: %s", event_id)
    except Exception as e:
        logger.warning("Google Calendar event creation failed for %s: %s", data.owner_id, e)
        event_id = None

    try:
        meeting = create_meeting(
            owner_id=data.owner_id,
            title=data.title,
            description=data.description,
            meeting_date=data.meeting_date,
            meeting_time=data.meeting_time,
            google_calendar_event_id=event_id,
        )
    except Exception:
        logger.exception("Insert meeting failed for %s", data.owner_id)
        return JSONResponse(status_code=500, content={"error": "Failed to schedule meeting."})

    return {"message": "Meeting scheduled successfully!", "meeting": meeting}


@router.get('/meetings')
def list_meetings(user_id: str = Depends(get_owner_id)):
    """List of meetings of an owner ordered by date, then time."""
    if not user_id:
        return JSONResponse(status_code=400, content={"error": "User ID is required."})
    try:
        return get_meetings(owner_id=user_id)
    except Exception:
        logger.exception("Fetch meetings failed for %s", user_id)
        return JSONResponse(status_code=500, content={"error": "Failed to retrieve meetings."})


# -----------------------
# Google Calendar OAuth
# -----------------------

@router.get('/auth/google')
def google_auth(user_id: str = Depends(get_owner_id), oauth_client: GoogleOAuthClient = Depends(get_oauth_client)):
    """Redirect the owner to Google's consent screen with a signed state token."""
    if not user_id:
        return JSONResponse(status_code=400, content={"error": "User ID is required."})
    return RedirectResponse(oauth_client.authorization_url(create_state_token(user_id)))


@router.get('/auth/google/callback')
def google_auth_callback(
    code: str = '',
    state: str = '',
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
):
    """OAuth redirect target: exchange the code, store the tokens, send the owner back to the dashboard."""
    if not code or not state:
        return PlainTextResponse('Authorization code or user ID missing.', status_code=400)
    owner_id = verify_state_token(state)
    if not owner_id:
        return PlainTextResponse('Invalid or expired OAuth state.', status_code=400)

    try:
        tokens = oauth_client.exchange_code(code)
    except Exception as e:
        logger.error("Google OAuth callback failed for %s: %s", owner_id, e)
        return PlainTextResponse('Authentication failed.', status_code=500)

    try:
        refresh_token = tokens.refresh_token
        if not refresh_token:
            stored = get_calendar_credentials(owner_id=owner_id)
            refresh_token = stored["refresh_token"] if stored else None
        if not refresh_token:
            raise ValueError("Google returned no refresh token and none is stored")
        store_calendar_tokens(
            owner_id=owner_id,
            access_token=tokens.access_token,
            refresh_token=refresh_token,
            token_expiry=tokens.expiry,
        )
    except Exception:
        logger.exception("Storing Google tokens failed for %s", owner_id)
        return PlainTextResponse('Failed to store Google tokens.', status_code=500)

    logger.info("Google Calendar connected for %s", owner_id)
    return RedirectResponse(settings.GOOGLE_AUTH_SUCCESS_REDIRECT)


@router.get('/auth/google/status', response_model=CalendarStatus)
def google_auth_status(user_id: str = Depends(get_owner_id)):
    """Whether the owner has stored Google Calendar tokens."""
    if not user_id:
        return JSONResponse(status_code=400, content={"error": "User ID is required."})
    try:
        connected = is_calendar_connected(owner_id=user_id)
    except Exception:
        logger.exception("Calendar status check failed for %s", user_id)
        return JSONResponse(
            status_code=500,
            content={"connected": False, "error": "Failed to check Google Calendar connection status."},
        )
    message = 'Google Calendar connected.' if connected else 'Google Calendar not connected.'
    return CalendarStatus(connected=connected, message=message)
