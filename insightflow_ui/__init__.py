"""Flask application setup for the InsightFlow UI.

This module initializes the Flask application, configures extensions, selects
the survey storage collaborator and registers the route blueprints.

Attributes:
    app (Flask): The Flask application instance.
"""

import os
from datetime import timedelta
from pathlib import Path

from flask_misaka import Misaka
from survey_assist_utils.logging import get_logger

from insightflow_ui.routes import register_blueprints
from utils.access_utils import ADMIN_PASSWORD_NOT_SET
from utils.app_types import InsightFlowFlask
from utils.app_utils import build_survey_store
from utils.input_utils import EMAIL_DOMAINS
from utils.store_utils import TRAVERSAL_TTL_SECONDS, TraversalCache

from .versioning import get_app_version

logger = get_logger(__name__)

DEFAULT_SEED_PATH = Path(__file__).parent / "survey" / "surveys.json"
REMEMBER_ME_DAYS = 30


def create_app(test_config: dict | None = None) -> InsightFlowFlask:
    """Initialises and configures the InsightFlow Flask application.

    This function sets up the Flask app, loads configuration from the environment,
    applies test overrides, creates the survey store and registers blueprints.

    Args:
        test_config (dict | None): Optional dictionary of test configuration overrides.

    Returns:
        InsightFlowFlask: The initialised and configured Flask application instance.
    """
    flask_app = InsightFlowFlask(__name__)
    flask_app.secret_key = os.getenv("FLASK_SECRET_KEY", os.urandom(24))
    flask_app.api_base = os.getenv("BACKEND_API_URL", "http://127.0.0.1:5000")
    flask_app.api_ver = os.getenv("BACKEND_API_VERSION", "/api")
    flask_app.app_title = os.getenv("APP_TITLE", "InsightFlow")
    flask_app.admin_password = os.getenv("ADMIN_PASSWORD", ADMIN_PASSWORD_NOT_SET)
    flask_app.email_domains = EMAIL_DOMAINS

    Misaka(flask_app)

    flask_app.jinja_env.add_extension("jinja2.ext.do")
    flask_app.jinja_env.trim_blocks = True
    flask_app.jinja_env.lstrip_blocks = True
    flask_app.permanent_session_lifetime = timedelta(days=REMEMBER_ME_DAYS)
    flask_app.config["SURVEY_STORE"] = os.getenv("SURVEY_STORE", "api")
    flask_app.config["SURVEY_SEED_PATH"] = os.getenv(
        "SURVEY_SEED_PATH", str(DEFAULT_SEED_PATH)
    )
    flask_app.config["BACKEND_API_TOKEN"] = os.getenv("BACKEND_API_TOKEN", "")
    flask_app.config["SESSION_DEBUG"] = (
        os.getenv("SESSION_DEBUG", "false").lower() == "true"
    )
    flask_app.config["JSON_DEBUG"] = os.getenv("JSON_DEBUG", "false").lower() == "true"
    flask_app.config["TRAVERSAL_TTL_SECONDS"] = int(
        os.getenv("TRAVERSAL_TTL_SECONDS", str(TRAVERSAL_TTL_SECONDS))
    )

    # Allow test overrides
    if test_config:
        flask_app.config.update(test_config)
        flask_app.admin_password = test_config.get(
            "ADMIN_PASSWORD", flask_app.admin_password
        )

    flask_app.survey_store = build_survey_store(flask_app)
    flask_app.traversal_cache = TraversalCache(
        ttl_seconds=flask_app.config["TRAVERSAL_TTL_SECONDS"]
    )

    register_blueprints(flask_app)

    # Method provides a dictionary to the jinja templates, allowing variables
    # inside the dictionary to be directly accessed within the template files
    @flask_app.context_processor
    def set_variables():
        """Provides the application title to every Jinja template.

        Returns:
            dict: A dictionary containing the `app_title` string.
        """
        return {"app_title": flask_app.app_title}

    @flask_app.after_request
    def add_version_header(resp):
        """Add a version header to requests to trace deployed software version."""
        resp.headers["X-App-Version"] = get_app_version()
        resp.headers["X-App-Revision"] = os.environ.get("APP_GIT_SHA", "unknown")
        return resp

    logger.info(f"InsightFlow UI initialised - version {get_app_version()}")

    return flask_app


# Create the Flask application instance
app = create_app()
