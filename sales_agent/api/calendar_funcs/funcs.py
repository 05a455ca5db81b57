"""
Google Calendar Utilities: OAuth Consent • Token Refresh • Event Insert
=======================================================================

Purpose
-------
Small helper module for the optional Google Calendar side effect of
meeting scheduling:
- Build the consent URL (offline access, forced consent so a refresh token is issued)
- Exchange an authorization code for tokens
- Refresh an access token that is about to expire and persist the result
- Insert an event into the owner's primary calendar

Configuration (from `sales_agent.database.config.config.settings`)
------------------------------------------------------------------
- GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET : OAuth client credentials
- GOOGLE_CALLBACK_URL                    : Redirect URI registered with Google
- CALENDAR_TIME_ZONE                     : Time zone of created events
- MEETING_DURATION_MINUTES               : Event length

Caveats
-------
- `get_authorized_calendar_client` never raises: any failure is logged and
  reported as None, and meeting scheduling continues without an event.
- Tokens are never logged.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

import httpx

from sales_agent.database.config.config import settings
from sales_agent.database.core.funcs import get_calendar_credentials, store_calendar_tokens

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
CALENDAR_API_URL = "https://www.googleapis.com/calendar/v3"
GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/userinfo.email",
]
EXPIRY_THRESHOLD = timedelta(minutes=5)
DEFAULT_EVENT_DESCRIPTION = "Meeting scheduled via AI Sales Agent"
HTTP_TIMEOUT_SECONDS = 10.0


@dataclass
class OAuthTokens:
    """Token set returned by the Google token endpoint."""
    access_token: str
    refresh_token: Optional[str]
    expiry: Optional[datetime]


class GoogleOAuthClient:
    """
    Minimal OAuth 2.0 client for Google's authorization-code flow.

    Args:
        client_id (str): OAuth client id.
        client_secret (str): OAuth client secret.
        redirect_uri (str): Callback URL registered with Google.
        http (httpx.Client | None): Injected transport; a short-lived client is used otherwise.
    """

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, http: Optional[httpx.Client] = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.http = http

    def authorization_url(self, state: str) -> str:
        """Consent-screen URL carrying `state` through the round trip."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> OAuthTokens:
        """
        Exchange an authorization code for tokens.

        Raises:
            httpx.HTTPError: Transport failure or non-2xx answer.
            KeyError: The answer carried no access token.
        """
        return self._token_request({
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        })

    def refresh(self, refresh_token: str) -> OAuthTokens:
        """Obtain a new access token. Google may omit the refresh token in the answer."""
        return self._token_request({
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
        })

    def _token_request(self, data: dict) -> OAuthTokens:
        if self.http is not None:
            resp = self.http.post(GOOGLE_TOKEN_URL, data=data)
        else:
            with httpx.Client(timeout=HTTP_TIMEOUT_SECONDS) as client:
                resp = client.post(GOOGLE_TOKEN_URL, data=data)
        resp.raise_for_status()
        payload = resp.json()
        expires_in = payload.get("expires_in")
        expiry = datetime.now(timezone.utc) + timedelta(seconds=int(expires_in)) if expires_in else None
        return OAuthTokens(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expiry=expiry,
        )


def default_oauth_client() -> GoogleOAuthClient:
    """OAuth client built from settings."""
    return GoogleOAuthClient(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        redirect_uri=settings.GOOGLE_CALLBACK_URL,
    )


class GoogleCalendarClient:
    """
    Calendar v3 client authorized with a bearer access token.

    Args:
        access_token (str): Valid (non-expiring) access token.
        http (httpx.Client | None): Injected transport.
    """

    def __init__(self, access_token: str, http: Optional[httpx.Client] = None):
        self.access_token = access_token
        self.http = http

    def insert_event(self, event: dict, calendar_id: str = "primary") -> str:
        """
        Insert `event` and return the id Google assigned to it.

        Raises:
            httpx.HTTPError: Transport failure or non-2xx answer.
        """
        url = f"{CALENDAR_API_URL}/calendars/{calendar_id}/events"
        headers = {"Authorization": f"Bearer {self.access_token}"}
        if self.http is not None:
            resp = self.http.post(url, json=event, headers=headers)
        else:
            with httpx.Client(timeout=HTTP_TIMEOUT_SECONDS) as client:
                resp = client.post(url, json=event, headers=headers)
        resp.raise_for_status()
        return resp.json()["id"]


def build_calendar_event(
    title: str,
    description: Optional[str],
    meeting_date: date,
    meeting_time: time,
    time_zone: Optional[str] = None,
    duration_minutes: Optional[int] = None,
) -> dict:
    """
    Event payload for a scheduled meeting.

    Start and end are local wall-clock times in `time_zone`; the end is the
    start plus `duration_minutes`. Reminders: email 60 minutes and popup 15
    minutes before.
    """
    time_zone = time_zone or settings.CALENDAR_TIME_ZONE
    duration = timedelta(minutes=duration_minutes if duration_minutes is not None else settings.MEETING_DURATION_MINUTES)
    start = datetime.combine(meeting_date, meeting_time.replace(second=0, microsecond=0))
    end = start + duration
    return {
        "summary": title,
        "description": description or DEFAULT_EVENT_DESCRIPTION,
        "start": {"dateTime": start.strftime("%Y-%m-%dT%H:%M:%S"), "timeZone": time_zone},
        "end": {"dateTime": end.strftime("%Y-%m-%dT%H:%M:%S"), "timeZone": time_zone},
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 60},
                {"method": "popup", "minutes": 15},
            ],
        },
    }


def token_is_expiring(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when `expiry` falls within EXPIRY_THRESHOLD of `now`. Unknown expiry counts as valid."""
    if expiry is None:
        return False
    now = now or datetime.now(timezone.utc)
    return expiry <= now + EXPIRY_THRESHOLD


def get_authorized_calendar_client(
    owner_id: str,
    oauth_client: Optional[GoogleOAuthClient] = None,
) -> Optional[GoogleCalendarClient]:
    """
    Calendar client for an owner, refreshing the access token when it is about to expire.

    Parameters
    ----------
    owner_id : str
        Owner whose stored tokens are used.
    oauth_client : GoogleOAuthClient | None
        Used for the refresh; defaults to `default_oauth_client()`.

    Returns
    -------
    GoogleCalendarClient | None
        None when the owner has no usable tokens or any step fails.

    Notes
    -----
    - A refreshed token set is persisted before use; when Google omits the
      refresh token the stored one is kept.
    """
    try:
        credentials = get_calendar_credentials(owner_id=owner_id)
    except Exception:
        logger.exception("Error fetching Google tokens for user %s", owner_id)
        return None

    if not credentials or not credentials["access_token"] or not credentials["refresh_token"]:
        logger.warning("Google tokens not found for user %s", owner_id)
        return None

    access_token = credentials["access_token"]
    if token_is_expiring(credentials["token_expiry"]):
        oauth_client = oauth_client or default_oauth_client()
        try:
            refreshed = oauth_client.refresh(credentials["refresh_token"])
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Error refreshing Google access token for user %s: %s", owner_id, e)
            return None
        try:
            store_calendar_tokens(
                owner_id=owner_id,
                access_token=refreshed.access_token,
                refresh_token=refreshed.refresh_token or credentials["refresh_token"],
                token_expiry=refreshed.expiry,
            )
        except Exception:
            logger.exception("Error storing refreshed Google tokens for user %s", owner_id)
            return None
        logger.info("Refreshed Google access token for user %s", owner_id)
        access_token = refreshed.access_token

    return GoogleCalendarClient(access_token)
