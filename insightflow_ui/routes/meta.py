"""Meta information routes for InsightFlow UI.

This module defines a Flask blueprint that exposes metadata about the InsightFlow
user interface, including version, build, and runtime details for health and debugging.
"""

import os

from flask import Blueprint, current_app, jsonify

from insightflow_ui.versioning import get_app_version

meta_blueprint = Blueprint("meta", __name__)


@meta_blueprint.route("/__meta", methods=["GET"])
def meta():
    """Return metadata related to the InsightFlow user interface."""
    return jsonify(
        {
            "app_version": get_app_version(),
            "git_sha": os.environ.get("APP_GIT_SHA", "unknown"),
            "build_date": os.environ.get("APP_BUILD_DATE", "unknown"),
            "survey_store": current_app.config.get("SURVEY_STORE", "unknown"),
        }
    )
