"""Access and login routes for the InsightFlow operator pages.

Verifies that the operator knows the static admin password.
"""

from flask import Blueprint, redirect, render_template, request, url_for
from survey_assist_utils.logging import get_logger

from utils.access_utils import (
    grant_admin_access,
    revoke_admin_access,
    validate_admin_password,
)
from utils.session_utils import log_route, session_debug

access_blueprint = Blueprint("access", __name__)

logger = get_logger(__name__, "DEBUG")


@access_blueprint.route("/admin/login", methods=["GET"])
@session_debug
@log_route(respondent_override="unavailable")
def login():
    """Renders the admin login page.

    Returns:
        str: Rendered HTML for the login page.
    """
    return render_template("admin_login.html")


@access_blueprint.route("/admin/login", methods=["POST"])
@log_route(respondent_override="unavailable")
def check_login():
    """Checks the admin password and redirects accordingly.

    If the password is valid the session is granted operator access, made
    permanent when "remember me" is ticked, and the operator is redirected to
    the dashboard. Otherwise the login page is re-rendered with an error.

    Returns:
        Response: A redirect to the dashboard if the password is valid, otherwise
        the rendered login page with an error message.
    """
    valid, error = validate_admin_password(request.form.get("password"))
    if valid:
        grant_admin_access(remember=request.form.get("remember") == "on")
        logger.info("admin logged in")
        return redirect(url_for("admin.dashboard"))
    else:
        return render_template("admin_login.html", error=error), 401


@access_blueprint.route("/admin/logout", methods=["GET"])
@log_route()
def logout():
    """Removes operator access and returns to the login page."""
    revoke_admin_access()
    logger.info("admin logged out")
    return redirect(url_for("access.login"))
