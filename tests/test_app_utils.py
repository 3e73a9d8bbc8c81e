"""Unit tests for selecting the survey store from app config."""

import json
from types import SimpleNamespace

import pytest

from insightflow_ui import DEFAULT_SEED_PATH
from utils.api_utils import SurveyStoreService
from utils.app_utils import build_survey_store
from utils.store_utils import InMemorySurveyStore


def fake_app(**config):
    """Stand-in for the Flask app with only what store selection reads."""
    return SimpleNamespace(
        config=config, api_base="http://backend.test", api_ver="/api"
    )


@pytest.mark.utils
def test_empty_memory_store() -> None:
    """The memory store without a seed file starts empty."""
    store = build_survey_store(fake_app(SURVEY_STORE="memory", SURVEY_SEED_PATH=""))

    assert isinstance(store, InMemorySurveyStore)
    assert store.fetch_all_surveys() == []


@pytest.mark.utils
def test_seeded_memory_store(tmp_path, branching_survey) -> None:
    """The memory store is seeded from the configured file."""
    seed = tmp_path / "surveys.json"
    seed.write_text(json.dumps([branching_survey.to_document()]), encoding="utf-8")

    store = build_survey_store(
        fake_app(SURVEY_STORE="MEMORY", SURVEY_SEED_PATH=str(seed))
    )

    assert [s.id for s in store.fetch_all_surveys()] == [branching_survey.id]


@pytest.mark.utils
def test_api_store() -> None:
    """The api store talks to the configured backend."""
    store = build_survey_store(fake_app(SURVEY_STORE="api", BACKEND_API_TOKEN="t"))

    assert isinstance(store, SurveyStoreService)
    api_client = store._api  # pylint: disable=protected-access
    assert api_client.base_url == "http://backend.test/api"
    assert api_client.token == "t"  # noqa: S105


@pytest.mark.utils
def test_unknown_store() -> None:
    """An unknown store name is a configuration error."""
    with pytest.raises(ValueError, match="Unknown SURVEY_STORE"):
        build_survey_store(fake_app(SURVEY_STORE="postgres"))


@pytest.mark.utils
def test_bundled_seed_file_loads() -> None:
    """The surveys shipped with the app load into a memory store."""
    seeded = build_survey_store(
        fake_app(SURVEY_STORE="memory", SURVEY_SEED_PATH=str(DEFAULT_SEED_PATH))
    )
    active = [s for s in seeded.fetch_all_surveys() if s.is_active]
    assert {s.target_audience.value for s in active} == {"EMPLOYEE", "GENERAL"}
