"""Error routes for the InsightFlow UI.

Provides error handling and rendering for common error pages.
"""

from http import HTTPStatus

from flask import Blueprint, render_template
from survey_assist_utils.logging import get_logger

from utils.session_utils import session_debug

error_blueprint = Blueprint("error", __name__)

logger = get_logger(__name__)

CANNOT_CONTINUE = "Sorry, this survey cannot continue."
STORAGE_UNAVAILABLE = "Sorry, survey storage is not available right now."


def render_error(message: str, status: int, detail: str = "") -> tuple[str, int]:
    """Render the generic error page.

    Args:
        message (str): Heading shown to the user.
        status (int): HTTP status code for the response.
        detail (str): Optional explanation shown below the heading.

    Returns:
        tuple[str, int]: Rendered HTML and the status code.
    """
    return render_template("error.html", message=message, detail=detail), status


@error_blueprint.app_errorhandler(HTTPStatus.NOT_FOUND)
@error_blueprint.route("/page-not-found")
@session_debug
def page_not_found(e=None):
    """Renders the 404 error page.

    Args:
        e (Exception, optional): The exception that triggered the error handler. Defaults to None.

    Returns:
        tuple: Rendered HTML for the 404 page and the HTTP status code.
    """
    return render_template("404.html"), 404 if e else 200
