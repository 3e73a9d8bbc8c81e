"""This module defines the landing routes for the InsightFlow UI.

The landing page asks the respondent which class they belong to and starts the
survey currently active for that class.
"""

from http import HTTPStatus
from typing import cast

from flask import Blueprint, current_app, redirect, render_template, request, url_for
from flask.typing import ResponseReturnValue
from survey_assist_utils.logging import get_logger

from models.survey import UserType
from utils.activation_utils import select_survey_for
from utils.app_types import InsightFlowFlask
from utils.session_utils import clear_traversal, log_route, save_traversal, session_debug
from utils.store_utils import StorageError
from utils.traversal_utils import TraversalEngine, TraversalError

from .error import CANNOT_CONTINUE, STORAGE_UNAVAILABLE, render_error

main_blueprint = Blueprint("main", __name__)

logger = get_logger(__name__)

NO_SURVEY_AVAILABLE = "No survey is currently available."


def render_landing(error: str | None = None) -> str:
    """Render the landing page with the respondent class choice."""
    return render_template(
        "index.html",
        user_types=[user_type.value for user_type in UserType],
        error=error,
    )


# Method to render the index page
@main_blueprint.route("/")
@session_debug
@log_route()
def index() -> ResponseReturnValue:
    """Renders the landing page.

    Any traversal in progress is discarded, so returning here always starts over.

    Returns:
        str: Rendered HTML content of the landing page.
    """
    clear_traversal()
    return render_landing()


@main_blueprint.route("/start", methods=["POST"])
@session_debug
@log_route()
def start() -> ResponseReturnValue:
    """Starts the survey that is active for the selected respondent class.

    Returns:
        Response: A redirect to the first question, or the landing page with a
        message when no survey is available for the class.
    """
    app = cast(InsightFlowFlask, current_app)

    try:
        user_type = UserType(request.form.get("user_type", ""))
    except ValueError:
        error = "Select who you are to start the survey."
        return render_landing(error), HTTPStatus.BAD_REQUEST

    try:
        survey = select_survey_for(app.survey_store.fetch_all_surveys(), user_type)
    except StorageError as err:
        logger.error(f"Failed to load surveys for landing: {err}")
        return render_error(STORAGE_UNAVAILABLE, HTTPStatus.BAD_GATEWAY)

    if survey is None:
        logger.info(f"user_type:{user_type.value} no survey available")
        return render_landing(NO_SURVEY_AVAILABLE)

    try:
        state = TraversalEngine(survey).start(user_type)
    except TraversalError as err:
        logger.error(f"Cannot start survey: {err}")
        return render_error(CANNOT_CONTINUE, HTTPStatus.INTERNAL_SERVER_ERROR)

    save_traversal(state)
    logger.info(f"user_type:{user_type.value} survey:{survey.id} started")
    return redirect(url_for("survey.survey"))
