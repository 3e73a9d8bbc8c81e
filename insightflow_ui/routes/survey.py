"""This module defines the survey routes for the InsightFlow UI.

A respondent's traversal state is kept in the session. On each request the
survey is read again from storage and a traversal engine is built for it.
"""

from http import HTTPStatus
from typing import Optional, cast

from flask import (
    Blueprint,
    current_app,
    redirect,
    render_template,
    request,
    url_for,
)
from flask.typing import ResponseReturnValue
from survey_assist_utils.logging import get_logger

from models.survey import Survey
from utils.app_types import InsightFlowFlask
from utils.input_utils import CUSTOM_DOMAIN, AnswerError, parse_answer
from utils.response_utils import submit_response
from utils.session_utils import (
    clear_traversal,
    load_traversal,
    log_route,
    save_traversal,
    session_debug,
)
from utils.store_utils import StorageError
from utils.traversal_utils import TraversalEngine, TraversalError, TraversalState

from .error import CANNOT_CONTINUE, STORAGE_UNAVAILABLE, render_error

survey_blueprint = Blueprint("survey", __name__)

logger = get_logger(__name__, level="INFO")

REQUIRED_ANSWER = "This question needs an answer."


def load_survey(state: TraversalState) -> Optional[Survey]:
    """Read the survey being answered from storage.

    Raises:
        StorageError: If storage cannot be read.
    """
    app = cast(InsightFlowFlask, current_app)
    return app.survey_store.fetch_survey_by_id(state.survey_id)


def render_question(
    engine: TraversalEngine,
    state: TraversalState,
    error: str | None = None,
    status: int = HTTPStatus.OK,
) -> tuple[str, int]:
    """Render the question the traversal is positioned on.

    Raises:
        TraversalError: If the current question is not in the survey.
    """
    app = cast(InsightFlowFlask, current_app)
    question = engine.current_question(state)
    previous = state.answers.get(question.id)

    return (
        render_template(
            "question_template.html",
            survey=engine.survey,
            question=question,
            progress=int(engine.progress(state)),
            previous_answer=previous.answer if previous else "",
            email_domains=app.email_domains,
            custom_domain=CUSTOM_DOMAIN,
            error=error,
        ),
        status,
    )


def finish_survey(survey: Survey, state: TraversalState) -> ResponseReturnValue:
    """Submit a completed traversal and send the respondent to the thank you page.

    On a storage failure the completed traversal stays in the session and the
    respondent is offered a retry.
    """
    app = cast(InsightFlowFlask, current_app)
    try:
        submit_response(app.survey_store, survey, state)
    except StorageError as err:
        logger.error(f"survey:{survey.id} response not saved: {err}")
        return (
            render_template("submit_retry.html", survey=survey),
            HTTPStatus.BAD_GATEWAY,
        )

    clear_traversal()
    return redirect(url_for("survey.thank_you"))


# Route to display the current survey question
@survey_blueprint.route("/survey", methods=["GET"])
@session_debug
@log_route()
def survey() -> ResponseReturnValue:
    """Renders the current question of the respondent's traversal.

    Returns:
        Response: The question page, a redirect to the landing page when no
        survey has been started, or an error page when the survey cannot continue.
    """
    state = load_traversal()
    if state is None:
        return redirect(url_for("main.index"))

    try:
        current_survey = load_survey(state)
    except StorageError as err:
        logger.error(f"Failed to load survey {state.survey_id}: {err}")
        return render_error(STORAGE_UNAVAILABLE, HTTPStatus.BAD_GATEWAY)

    if current_survey is None:
        logger.error(f"survey:{state.survey_id} no longer exists")
        return render_error(CANNOT_CONTINUE, HTTPStatus.INTERNAL_SERVER_ERROR)

    if state.complete:
        return render_template("submit_retry.html", survey=current_survey)

    try:
        return render_question(TraversalEngine(current_survey), state)
    except TraversalError as err:
        logger.error(f"Cannot render question: {err}")
        return render_error(CANNOT_CONTINUE, HTTPStatus.INTERNAL_SERVER_ERROR)


# Route called after each question to record the answer and move on.
@survey_blueprint.route("/save_response", methods=["POST"])
@session_debug
@log_route()
def save_response() -> ResponseReturnValue:
    """Records the answer to the current question and redirects appropriately.

    Returns:
        Response: A redirect to the next question or the thank you page, or the
        question re-rendered with an error when the answer is not acceptable.
    """
    state = load_traversal()
    if state is None:
        return redirect(url_for("main.index"))

    try:
        current_survey = load_survey(state)
    except StorageError as err:
        logger.error(f"Failed to load survey {state.survey_id}: {err}")
        return render_error(STORAGE_UNAVAILABLE, HTTPStatus.BAD_GATEWAY)

    if current_survey is None:
        logger.error(f"survey:{state.survey_id} no longer exists")
        return render_error(CANNOT_CONTINUE, HTTPStatus.INTERNAL_SERVER_ERROR)

    if state.complete:
        return redirect(url_for("survey.survey"))

    engine = TraversalEngine(current_survey)
    try:
        question = engine.current_question(state)

        # A stale form from the browser's back button is not recorded
        if request.form.get("question_id") != question.id:
            logger.warning(
                f"survey:{current_survey.id} answer for "
                f"'{request.form.get('question_id')}' while on '{question.id}' ignored"
            )
            return redirect(url_for("survey.survey"))

        try:
            value, option_id = parse_answer(question, request.form)
        except AnswerError as err:
            return render_question(engine, state, str(err), HTTPStatus.BAD_REQUEST)

        if value == "" and question.is_required:
            return render_question(
                engine, state, REQUIRED_ANSWER, HTTPStatus.BAD_REQUEST
            )

        if option_id is not None:
            engine.answer_option(state, option_id)
        else:
            engine.submit_answer(state, value)
    except TraversalError as err:
        logger.error(f"Cannot record answer: {err}")
        return render_error(CANNOT_CONTINUE, HTTPStatus.INTERNAL_SERVER_ERROR)

    save_traversal(state)

    if state.complete:
        return finish_survey(current_survey, state)

    return redirect(url_for("survey.survey"))


@survey_blueprint.route("/submit_response", methods=["POST"])
@session_debug
@log_route()
def submit_response_retry() -> ResponseReturnValue:
    """Retries submission of a completed traversal.

    Returns:
        Response: A redirect to the thank you page, the retry page if storage
        still fails, or the current question if the traversal is not complete.
    """
    state = load_traversal()
    if state is None:
        return redirect(url_for("main.index"))

    if not state.complete:
        return redirect(url_for("survey.survey"))

    try:
        current_survey = load_survey(state)
    except StorageError as err:
        logger.error(f"Failed to load survey {state.survey_id}: {err}")
        retry_page = render_template("submit_retry.html", survey=None)
        return retry_page, HTTPStatus.BAD_GATEWAY

    if current_survey is None:
        logger.error(f"survey:{state.survey_id} no longer exists")
        clear_traversal()
        return render_error(CANNOT_CONTINUE, HTTPStatus.INTERNAL_SERVER_ERROR)

    return finish_survey(current_survey, state)


@survey_blueprint.route("/back", methods=["POST"])
@session_debug
@log_route()
def back() -> ResponseReturnValue:
    """Returns to the previously visited question.

    Returns:
        Response: A redirect to the previous question, or to the landing page
        when the respondent steps back from the first question.
    """
    state = load_traversal()
    if state is None:
        return redirect(url_for("main.index"))

    try:
        current_survey = load_survey(state)
    except StorageError as err:
        logger.error(f"Failed to load survey {state.survey_id}: {err}")
        return render_error(STORAGE_UNAVAILABLE, HTTPStatus.BAD_GATEWAY)

    if current_survey is None or not TraversalEngine(current_survey).go_back(state):
        clear_traversal()
        return redirect(url_for("main.index"))

    save_traversal(state)
    return redirect(url_for("survey.survey"))


@survey_blueprint.route("/thank_you", methods=["GET"])
@session_debug
@log_route()
def thank_you() -> ResponseReturnValue:
    """Renders the thank you page shown after a response is stored.

    Returns:
        str: Rendered HTML for the thank you page.
    """
    return render_template("thank_you.html")
