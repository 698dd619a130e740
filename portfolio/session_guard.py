"""
Session guard for owner-only views.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from portfolio.auth import AuthClient
from portfolio.errors import SessionRequired

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


@dataclass(frozen=True)
class OwnerContext:
    """The resolved owner identity, passed explicitly into each operation."""

    user_id: str
    email: str
    access_token: str


def require_owner(auth: AuthClient, access_token: str | None) -> OwnerContext:
    """
    Confirm an active session, then resolve the user behind it.

    Raises SessionRequired when there is no session; callers redirect to the
    login entry point instead of reporting an error.
    """
    session = auth.get_session(access_token)
    if session is None:
        logger.info("No active session, redirecting to %s", LOGIN_PATH)
        raise SessionRequired("Login required")

    user = auth.get_user(access_token)
    if user is None:
        logger.warning("Session %s has no user", session.user_id)
        raise SessionRequired("Login required")

    return OwnerContext(user_id=user.id, email=user.email, access_token=access_token)
