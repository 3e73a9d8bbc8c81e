"""Flask application utility functions.

This module provides helper functions setting up the Flask application.
"""

from pathlib import Path
from typing import Any

from survey_assist_utils.logging import get_logger

from utils.api_utils import APIClient, SurveyStoreService
from utils.store_utils import InMemorySurveyStore, SurveyStore

logger = get_logger(__name__, level="INFO")

STORE_API = "api"
STORE_MEMORY = "memory"


def build_survey_store(flask_app: Any) -> SurveyStore:
    """Create the storage collaborator selected by the app config.

    SURVEY_STORE selects "api" (the survey document API) or "memory" (an
    in-memory store seeded from SURVEY_SEED_PATH).

    Args:
        flask_app: The Flask app instance.

    Returns:
        SurveyStore: The configured store.

    Raises:
        ValueError: If SURVEY_STORE names an unknown store.
        FileNotFoundError: If the memory store seed file does not exist.
    """
    store_kind = str(flask_app.config.get("SURVEY_STORE", STORE_API)).lower()

    if store_kind == STORE_MEMORY:
        seed_path = flask_app.config.get("SURVEY_SEED_PATH")
        if not seed_path:
            logger.info("Using empty in-memory survey store")
            return InMemorySurveyStore()
        logger.info(f"Using in-memory survey store seeded from {seed_path}")
        return InMemorySurveyStore.from_file(Path(seed_path))

    if store_kind == STORE_API:
        base_url = f"{flask_app.api_base}{flask_app.api_ver}"
        logger.info(f"Using survey document API at {base_url}")
        api_client = APIClient(
            base_url=base_url,
            token=flask_app.config.get("BACKEND_API_TOKEN", ""),
            logger_handle=logger,
        )
        return SurveyStoreService(api_client)

    raise ValueError(f"Unknown SURVEY_STORE '{store_kind}'")
