"""
JWT utilities for the signed OAuth `state` parameter.

The calendar OAuth round trip carries the owner id through Google in the
`state` query parameter. Signing it keeps a callback from attaching tokens
to an arbitrary owner.

Functions
---------
create_state_token(owner_id: str) -> str
    Creates a signed, short-lived JWT whose subject is the owner id.
verify_state_token(token: str) -> str | None
    Verify a state token's signature, purpose and expiration and return the owner id if valid.

Environment contract (from `settings`)
--------------------------------------
SECRET_KEY : str
    HMAC signing key for JWTs.
ALGORITHM : str
    JWT signing algorithm (e.g., "HS256").
STATE_TOKEN_EXPIRE_MINUTES : int
    Token lifetime window in minutes.
"""

import logging
from datetime import datetime
from typing import Optional

from jose import jwt, JWTError
from sales_agent.database.config.config import settings

logger = logging.getLogger(__name__)

STATE_PURPOSE = "calendar_oauth"


def create_state_token(owner_id: str) -> str:
    """
    Create a signed OAuth state token.

    Parameters
    ----------
    owner_id : str
        Owner starting the calendar authorization. Stored as the `sub` claim.

    Returns
    -------
    str
        Encoded JWT string.

    Notes
    ----------
    - Adds an `exp` (expiration) claim calculated from STATE_TOKEN_EXPIRE_MINUTES.
    - Adds a `purpose` claim so other tokens signed with the same key are rejected.
    """
    expires = int(datetime.now().timestamp()) + (int(settings.STATE_TOKEN_EXPIRE_MINUTES) * 60)
    claims = {"sub": owner_id, "purpose": STATE_PURPOSE, "exp": expires}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_state_token(token: str) -> Optional[str]:
    """
    Verify an OAuth state token and return its owner id.

    Parameters
    ----------
    token : str
        The `state` value echoed back by Google.

    Returns
    ----------
    str | None
        The owner id if the token is valid, otherwise None.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning("Rejected OAuth state token: %s", e)
        return None
    if payload.get("purpose") != STATE_PURPOSE:
        logger.warning("Rejected OAuth state token with purpose %r", payload.get("purpose"))
        return None
    return payload.get("sub")
