"""FastAPI dependencies shared by the routers."""

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from incident_bot.app_state import AppState

ADMIN_ACTOR = "admin"


def get_app_state(request: Request) -> AppState:
    return request.app.state.incident_bot


def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def require_admin(
    x_admin_token: Optional[str] = Header(default=None),
    state: AppState = Depends(get_app_state),
) -> str:
    """
    Check the X-Admin-Token header in constant time.

    Returns:
        The actor id recorded in audit entries
    """
    expected = state.settings.ADMIN_API_TOKEN
    if not expected:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin API is disabled")
    if not x_admin_token or not hmac.compare_digest(x_admin_token.encode(), expected.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")
    return ADMIN_ACTOR
