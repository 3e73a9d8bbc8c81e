"""Session utility functions for Flask applications.

This module provides helper functions for debugging the Flask session, route
logging, and keeping track of the respondent's traversal through a session
token whose state is held server-side.
"""

import uuid
from collections.abc import Callable
from functools import wraps
from typing import Optional, cast

from flask import current_app, request, session
from flask.sessions import SecureCookieSessionInterface
from pydantic import ValidationError
from survey_assist_utils.logging import get_logger

from utils.app_types import InsightFlowFlask
from utils.traversal_utils import TraversalState

TRAVERSAL_TOKEN_KEY = "traversal_token"

logger = get_logger(__name__, level="DEBUG")


def session_debug(f: Callable) -> Callable:
    """Decorator to log session information after a view function is executed.

    Args:
        f (function): The view function to be decorated.

    Returns:
        function: The decorated view function.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = f(*args, **kwargs)
        print_session_info()
        return response

    return decorated_function


def get_respondent_label() -> str:
    """Return a label for the current visitor to use in log lines."""
    if session.get("admin_authenticated"):
        return "admin"
    token = session.get(TRAVERSAL_TOKEN_KEY)
    if token:
        return f"respondent-{str(token)[:8]}"
    return "anonymous"


def log_route(respondent_override: Optional[str] = None) -> Callable:
    """Decorator factory that logs each request to a route.

    Args:
        respondent_override (Optional[str]): Label used instead of the session
            derived label, for routes reached before a session exists.

    Returns:
        Callable: The decorator.
    """

    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            label = respondent_override or get_respondent_label()
            logger.info(f"respondent:{label} {request.method} route:{request.path}")
            return f(*args, **kwargs)

        return decorated_function

    return decorator


def get_encoded_session_size(session_obj):
    """Calculates the size of the encoded session object in bytes.

    Args:
        session_obj (dict): The session object to be encoded.

    Returns:
        int: The size of the encoded session object in bytes.
    """
    serializer = SecureCookieSessionInterface().get_signing_serializer(current_app)
    if serializer is None:
        return 0
    encoded = serializer.dumps(session_obj)
    return len(encoded.encode("utf-8"))


def print_session_info() -> None:
    """Logs debug information about the current Flask session.

    Only active when the application's config has SESSION_DEBUG set to True. The
    session content is included when JSON_DEBUG is also set.
    """
    if not current_app.config.get("SESSION_DEBUG", False):
        return

    try:
        session_data = dict(session)
        session_size = get_encoded_session_size(session_data)
        logger.debug("\n=== Session Debug Info ===")
        logger.debug(f"Session size: {session_size} bytes")
        if not current_app.config.get("JSON_DEBUG", False):
            return
        logger.debug("Session content:")
        logger.debug(session_data)
    except (KeyError, TypeError, ValueError) as err:
        logger.error(f"Error printing session debug info: {err}")


def remove_from_session(key: str) -> None:
    """Remove a key from the Flask session."""
    session.pop(key, None)
    session.modified = True


def get_traversal_cache():
    """Return the server-side traversal cache of the current app."""
    return cast(InsightFlowFlask, current_app).traversal_cache


def load_traversal() -> Optional[TraversalState]:
    """Return the respondent's traversal state, or None if there is none.

    The session only holds a token; the state itself is kept server-side. A
    token whose state has expired, or a state that no longer validates, is
    dropped from the session.
    """
    token = session.get(TRAVERSAL_TOKEN_KEY)
    if not token:
        return None

    cache = get_traversal_cache()
    document = cache.get(token)
    if document is None:
        logger.warning(f"Traversal {str(token)[:8]} expired or unknown")
        remove_from_session(TRAVERSAL_TOKEN_KEY)
        return None

    try:
        return TraversalState.model_validate(document)
    except ValidationError as err:
        logger.warning(f"Discarding unreadable traversal state: {err}")
        cache.discard(token)
        remove_from_session(TRAVERSAL_TOKEN_KEY)
        return None


def save_traversal(state: TraversalState) -> None:
    """Store the respondent's traversal state server-side under the session token."""
    token = session.get(TRAVERSAL_TOKEN_KEY)
    if not token:
        token = uuid.uuid4().hex
        session[TRAVERSAL_TOKEN_KEY] = token
        session.modified = True
    get_traversal_cache().put(token, state.model_dump(mode="json"))


def clear_traversal() -> None:
    """Discard the respondent's traversal state."""
    token = session.get(TRAVERSAL_TOKEN_KEY)
    if token:
        get_traversal_cache().discard(token)
    remove_from_session(TRAVERSAL_TOKEN_KEY)
