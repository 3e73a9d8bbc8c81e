"""Type definitions and custom Flask app class for the InsightFlow UI.

This module provides type aliases and a custom Flask app class with additional attributes
for use in the InsightFlow UI application.
"""

from typing import Union

from flask import Flask
from flask import Response as FlaskResponse
from werkzeug.wrappers import Response as WerkzeugResponse

from utils.store_utils import SurveyStore, TraversalCache

# Type alias for the response type used in the application
ResponseType = Union[FlaskResponse, WerkzeugResponse]


class InsightFlowFlask(Flask):
    """Custom Flask app class with additional attributes for InsightFlow.

    Attributes:
        survey_store (SurveyStore): Storage collaborator for surveys and responses.
        traversal_cache (TraversalCache): Server-side store of in-progress traversals.
        api_base (str): The base URL for the survey document API.
        api_ver (str): The path prefix of the API (defaults to /api).
        app_title (str): Title shown in page headers.
        admin_password (str): Static password for the operator pages.
        email_domains (list[str]): Domains offered for email questions.
    """

    survey_store: SurveyStore
    traversal_cache: TraversalCache
    api_base: str
    api_ver: str
    app_title: str
    admin_password: str
    email_domains: list[str]
