"""Access utility functions.

This module provides the static password gate for the InsightFlow operator pages.
"""

import hmac
from typing import cast

from flask import current_app, redirect, session, url_for
from flask.typing import ResponseReturnValue
from survey_assist_utils.logging import get_logger

from utils.app_types import InsightFlowFlask

logger = get_logger(__name__, level="DEBUG")

ADMIN_SESSION_KEY = "admin_authenticated"
ADMIN_PASSWORD_NOT_SET = "ADMIN_PASSWORD_NOT_SET"  # noqa: S105
LOGIN_DISABLED = "Administrator login is not available"


def validate_admin_password(password: str | None) -> tuple[bool, str]:
    """Check an entered password against the configured operator password.

    Args:
        password (str | None): The password entered on the login page.

    Returns:
        tuple[bool, str]: Tuple of (True, "") if valid, or (False, error message) if not.
    """
    if not password:
        logger.warning("Empty admin password entered")
        return False, "You must enter the password"

    app = cast(InsightFlowFlask, current_app)
    if not app.admin_password or app.admin_password == ADMIN_PASSWORD_NOT_SET:
        logger.error("ADMIN_PASSWORD is not set, operator login is disabled")
        return False, LOGIN_DISABLED

    if hmac.compare_digest(
        password.encode("utf-8"), app.admin_password.encode("utf-8")
    ):
        return True, ""

    logger.warning("Invalid admin password entered")
    return False, "Incorrect password. Please try again."


def grant_admin_access(remember: bool) -> None:
    """Mark the session as authenticated for the operator pages.

    Args:
        remember (bool): Keep the session beyond the browser session.
    """
    session[ADMIN_SESSION_KEY] = True
    session.permanent = remember
    session.modified = True


def revoke_admin_access() -> None:
    """Remove operator access from the session."""
    session.pop(ADMIN_SESSION_KEY, None)
    session.permanent = False
    session.modified = True


def require_admin() -> ResponseReturnValue | None:
    """Checks the session holds operator access.

    Returns:
        Response or None: Redirects to the login page if access is missing,
        otherwise None to allow further processing.
    """
    if not session.get(ADMIN_SESSION_KEY):
        return redirect(url_for("access.login"))
    # else allow
    return None
