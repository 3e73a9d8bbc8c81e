"""Pytest configuration and fixtures for InsightFlow UI tests.

This module provides fixtures for creating and configuring a Flask application
instance backed by an in-memory survey store, example survey definitions and a
lightweight logger double.
"""

from types import ModuleType
from typing import Any, Callable

import pytest
from flask import Flask

from insightflow_ui import create_app
from models.response import ResponseValue, SurveyResponse
from models.survey import Survey, UserType
from utils.store_utils import InMemorySurveyStore

# pylint cannot differentiate the use of fixtures in the test functions
# pylint: disable=unused-argument, disable=redefined-outer-name

ADMIN_PASSWORD = "test-admin-password"  # noqa: S105


def make_survey(**overrides: Any) -> Survey:
    """Build a survey document with defaults and normalise it."""
    doc: dict[str, Any] = {
        "id": "survey_test",
        "title": "Test survey",
        "description": "A survey used in tests",
        "isActive": False,
        "targetAudience": "ALL",
        "createdAt": 1_700_000_000_000,
        "questions": [],
    }
    doc.update(overrides)
    return Survey.from_document(doc)


@pytest.fixture
def branching_survey() -> Survey:
    """Q1 branches to Q3 on optA; optB falls through to Q2."""
    return make_survey(
        id="survey_branching",
        title="Branching survey",
        isActive=True,
        targetAudience="GENERAL",
        createdAt=1_700_000_000_002,
        questions=[
            {
                "id": "Q1",
                "text": "Pick one",
                "type": "SINGLE_CHOICE",
                "isRequired": True,
                "options": [
                    {"id": "optA", "text": "Option A", "nextQuestionId": "Q3"},
                    {"id": "optB", "text": "Option B", "nextQuestionId": None},
                ],
            },
            {"id": "Q2", "text": "Why B?", "type": "TEXT", "isRequired": False},
            {"id": "Q3", "text": "Rate us", "type": "RATING", "isRequired": True},
        ],
    )


@pytest.fixture
def linear_survey() -> Survey:
    """Four questions with no jumps."""
    return make_survey(
        id="survey_linear",
        title="Linear survey",
        createdAt=1_700_000_000_001,
        questions=[
            {"id": f"L{number}", "text": f"Question {number}", "type": "TEXT"}
            for number in range(1, 5)
        ],
    )


@pytest.fixture
def typed_survey() -> Survey:
    """One question of every answer type, active for employees."""
    return make_survey(
        id="survey_typed",
        title="Typed survey",
        isActive=True,
        targetAudience="EMPLOYEE",
        createdAt=1_700_000_000_003,
        questions=[
            {"id": "rating", "text": "Rate your week", "type": "RATING"},
            {"id": "comment", "text": "Any comments?", "type": "TEXT"},
            {
                "id": "email",
                "text": "Your email",
                "type": "EMAIL",
                "isRequired": True,
            },
            {"id": "phone", "text": "Your phone", "type": "PHONE"},
        ],
    )


@pytest.fixture
def survey_responses(branching_survey) -> list[SurveyResponse]:
    """Three responses to the branching survey."""

    def _response(index: int, user_type: UserType, answers: list[tuple]):
        return SurveyResponse(
            id=f"resp-{index}",
            survey_id=branching_survey.id,
            user_type=user_type,
            submitted_at=1_700_000_100_000 + index * 1000,
            answers=[
                ResponseValue(question_id=qid, answer=answer, question_text=text)
                for qid, answer, text in answers
            ],
        )

    return [
        _response(1, UserType.GENERAL, [("Q1", "optA", "Pick one"), ("Q3", 5, "Rate us")]),
        _response(
            2,
            UserType.GENERAL,
            [("Q1", "optB", "Pick one"), ("Q2", "Too slow", "Why B?")],
        ),
        _response(3, UserType.EMPLOYEE, [("Q1", "optA", "Pick one"), ("Q3", 4, "Rate us")]),
    ]


@pytest.fixture
def store(branching_survey, linear_survey, typed_survey) -> InMemorySurveyStore:
    """An in-memory store holding the example surveys."""
    survey_store = InMemorySurveyStore()
    for survey in (branching_survey, linear_survey, typed_survey):
        survey_store.upsert_survey(survey)
    return survey_store


# This fixture creates a Flask application instance for testing purposes.
@pytest.fixture
def app(store) -> Flask:
    """Creates and configures a Flask application instance for testing.

    Returns:
        Flask: A configured Flask application instance with testing enabled and
        the example surveys in an in-memory store.
    """
    test_app = create_app(
        {
            "TESTING": True,
            "SURVEY_STORE": "memory",
            "SURVEY_SEED_PATH": "",
            "ADMIN_PASSWORD": ADMIN_PASSWORD,
        }
    )
    test_app.survey_store = store
    return test_app


@pytest.fixture
def admin_client(client):
    """A test client whose session has operator access."""
    with client.session_transaction() as sess:
        sess["admin_authenticated"] = True
    return client


def _fmt(msg: str, *args: Any) -> str:
    """Format a log message with %-style args, falling back to the raw message."""
    if not args:
        return msg
    try:
        return msg % args
    except (TypeError, ValueError):
        return f"{msg} {args}"


class LogCapture:
    """Lightweight logger double for tests.

    Captures messages by level and supports %-style formatting to mirror the
    stdlib logging API. Accepts *args and **kwargs so calls with 'extra' work.
    """

    # pylint: disable=too-few-public-methods
    def __init__(self) -> None:
        self.infos: list[str] = []
        self.debugs: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Capture info logs."""
        self.infos.append(_fmt(msg, *args))

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Capture debug logs."""
        self.debugs.append(_fmt(msg, *args))

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Capture warning logs."""
        self.warnings.append(_fmt(msg, *args))

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Capture error logs."""
        self.errors.append(_fmt(msg, *args))


@pytest.fixture
def log_capture() -> LogCapture:
    """Provide a fresh LogCapture for each test."""
    return LogCapture()


@pytest.fixture
def patch_module_logger(
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[[ModuleType, LogCapture], LogCapture]:
    """Return a helper that patches `module.logger` with a LogCapture.

    Args:
        monkeypatch: Built-in pytest fixture for safe attribute patching.

    Returns:
        A callable that takes (module, log_capture) and applies the patch.
    """

    def _apply(module: ModuleType, stub: LogCapture) -> LogCapture:
        monkeypatch.setattr(module, "logger", stub, raising=True)
        return stub

    return _apply
