"""Operator routes for the InsightFlow UI.

The operator pages list surveys, edit survey definitions, toggle which survey
is active for each audience, delete surveys and show aggregated results. Every
route requires the admin password to have been entered in this session.
"""

import json
from http import HTTPStatus
from typing import Any, cast

from flask import (
    Blueprint,
    Response,
    current_app,
    redirect,
    render_template,
    request,
    url_for,
)
from flask.typing import ResponseReturnValue
from survey_assist_utils.logging import get_logger

from models.survey import Survey, TargetAudience, find_definition_problems, now_ms
from utils.access_utils import require_admin
from utils.activation_utils import apply_activation
from utils.app_types import InsightFlowFlask
from utils.report_utils import build_survey_report, responses_to_csv
from utils.session_utils import log_route, session_debug
from utils.store_utils import StorageError

from .error import STORAGE_UNAVAILABLE, render_error

admin_blueprint = Blueprint("admin", __name__, url_prefix="/admin")
admin_blueprint.before_request(require_admin)

logger = get_logger(__name__, level="INFO")

NEW_SURVEY_TITLE = "New survey"
NEW_SURVEY_DESCRIPTION = "Enter a description of the survey"


def get_store():
    """Return the survey store of the current app."""
    return cast(InsightFlowFlask, current_app).survey_store


def survey_not_found(survey_id: str) -> tuple[str, int]:
    """Render the error page for a survey id that is not in storage."""
    logger.warning(f"survey:{survey_id} not found")
    return render_error(
        "Survey not found", HTTPStatus.NOT_FOUND, f"No survey has the id '{survey_id}'."
    )


def storage_failed(action: str, err: StorageError) -> tuple[str, int]:
    """Log a storage failure and render the error page."""
    logger.error(f"{action} failed: {err}")
    return render_error(STORAGE_UNAVAILABLE, HTTPStatus.BAD_GATEWAY, str(err))


def questions_to_json(survey: Survey) -> str:
    """Return the survey's questions as indented JSON for the editor."""
    questions = [question.to_document() for question in survey.questions]
    return json.dumps(questions, indent=2, ensure_ascii=False)


def parse_editor_form(stored: Survey, form: Any) -> tuple[Survey | None, list[str]]:
    """Build the edited survey from the editor form.

    The id, active flag, audience and creation time always come from the stored
    survey; they are changed only through the status route.

    Args:
        stored (Survey): The survey as currently stored.
        form: The submitted form data.

    Returns:
        tuple[Survey | None, list[str]]: The edited survey, or None with the
        problems that prevent reading it.
    """
    try:
        questions = json.loads(form.get("questions_json") or "[]")
    except json.JSONDecodeError as err:
        return None, [f"Questions are not valid JSON: {err.msg} (line {err.lineno})"]

    if not isinstance(questions, list):
        return None, ["Questions must be a JSON list"]

    problems = [
        f"Question {position} must be a JSON object"
        for position, question in enumerate(questions, start=1)
        if not isinstance(question, dict)
    ]
    if problems:
        return None, problems

    document = {
        "id": stored.id,
        "title": form.get("title", "").strip(),
        "description": form.get("description", "").strip(),
        "questions": questions,
        "isActive": stored.is_active,
        "targetAudience": stored.target_audience.value,
        "createdAt": stored.created_at,
    }
    return Survey.from_document(document), []


@admin_blueprint.route("", methods=["GET"])
@session_debug
@log_route()
def dashboard() -> ResponseReturnValue:
    """Renders the list of surveys with their audience and active state.

    Returns:
        str: Rendered HTML for the dashboard.
    """
    try:
        surveys = get_store().fetch_all_surveys()
    except StorageError as err:
        return storage_failed("Fetch surveys", err)

    return render_template(
        "admin_dashboard.html",
        surveys=surveys,
        audiences=[audience.value for audience in TargetAudience],
    )


@admin_blueprint.route("/surveys/new", methods=["POST"])
@log_route()
def create_survey() -> ResponseReturnValue:
    """Creates an empty inactive survey and opens it in the editor."""
    survey = Survey(
        id=f"survey_{now_ms()}",
        title=NEW_SURVEY_TITLE,
        description=NEW_SURVEY_DESCRIPTION,
        is_active=False,
        target_audience=TargetAudience.ALL,
    )
    try:
        get_store().upsert_survey(survey)
    except StorageError as err:
        return storage_failed("Create survey", err)

    logger.info(f"survey:{survey.id} created")
    return redirect(url_for("admin.edit_survey", survey_id=survey.id))


@admin_blueprint.route("/surveys/<survey_id>/edit", methods=["GET", "POST"])
@session_debug
@log_route()
def edit_survey(survey_id: str) -> ResponseReturnValue:
    """Shows and saves the survey editor.

    Problems such as duplicate question ids block saving and re-render the
    editor with the submitted text. Warnings such as unknown jump targets are
    shown after saving.

    Args:
        survey_id (str): The survey being edited.

    Returns:
        Response: The editor page.
    """
    store = get_store()
    try:
        stored = store.fetch_survey_by_id(survey_id)
    except StorageError as err:
        return storage_failed("Fetch survey", err)

    if stored is None:
        return survey_not_found(survey_id)

    if request.method == "GET":
        return render_template(
            "admin_editor.html",
            survey=stored,
            questions_json=questions_to_json(stored),
        )

    edited, problems = parse_editor_form(stored, request.form)
    warnings: list[str] = []
    if edited is not None:
        problems, warnings = find_definition_problems(edited)

    if edited is None or problems:
        logger.info(f"survey:{survey_id} not saved, {len(problems)} problems")
        return (
            render_template(
                "admin_editor.html",
                survey=edited or stored,
                questions_json=request.form.get("questions_json", ""),
                problems=problems,
            ),
            HTTPStatus.BAD_REQUEST,
        )

    try:
        store.upsert_survey(edited)
    except StorageError as err:
        return storage_failed("Save survey", err)

    logger.info(f"survey:{survey_id} saved with {len(edited.questions)} questions")
    return render_template(
        "admin_editor.html",
        survey=edited,
        questions_json=questions_to_json(edited),
        warnings=warnings,
        saved=True,
    )


@admin_blueprint.route("/surveys/<survey_id>/status", methods=["POST"])
@log_route()
def update_status(survey_id: str) -> ResponseReturnValue:
    """Sets a survey's active flag and audience.

    Activating a survey deactivates every other survey with an overlapping
    audience.

    Returns:
        Response: A redirect to the dashboard.
    """
    desired_active = request.form.get("active") in ("true", "on", "1")
    try:
        audience = TargetAudience(request.form.get("audience", TargetAudience.ALL))
    except ValueError:
        return render_error(
            "Unknown audience",
            HTTPStatus.BAD_REQUEST,
            f"'{request.form.get('audience')}' is not a survey audience.",
        )

    store = get_store()
    try:
        if store.fetch_survey_by_id(survey_id) is None:
            return survey_not_found(survey_id)
        apply_activation(store, survey_id, desired_active, audience)
    except StorageError as err:
        return storage_failed("Update survey status", err)

    return redirect(url_for("admin.dashboard"))


@admin_blueprint.route("/surveys/<survey_id>/delete", methods=["POST"])
@log_route()
def delete_survey(survey_id: str) -> ResponseReturnValue:
    """Deletes a survey. Its stored responses are left in place."""
    try:
        get_store().delete_survey(survey_id)
    except StorageError as err:
        return storage_failed("Delete survey", err)

    logger.info(f"survey:{survey_id} deleted")
    return redirect(url_for("admin.dashboard"))


@admin_blueprint.route("/surveys/<survey_id>/results", methods=["GET"])
@session_debug
@log_route()
def results(survey_id: str) -> ResponseReturnValue:
    """Renders the aggregated results of a survey."""
    store = get_store()
    try:
        survey = store.fetch_survey_by_id(survey_id)
        if survey is None:
            return survey_not_found(survey_id)
        responses = store.fetch_responses(survey_id)
    except StorageError as err:
        return storage_failed("Fetch results", err)

    return render_template(
        "admin_results.html",
        survey=survey,
        report=build_survey_report(survey, responses),
    )


@admin_blueprint.route("/surveys/<survey_id>/results.csv", methods=["GET"])
@log_route()
def results_csv(survey_id: str) -> ResponseReturnValue:
    """Downloads the responses to a survey as CSV."""
    store = get_store()
    try:
        survey = store.fetch_survey_by_id(survey_id)
        if survey is None:
            return survey_not_found(survey_id)
        responses = store.fetch_responses(survey_id)
    except StorageError as err:
        return storage_failed("Export results", err)

    logger.info(f"survey:{survey_id} exported {len(responses)} responses")
    return Response(
        responses_to_csv(survey, responses),
        mimetype="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={survey_id}_responses.csv"
        },
    )
