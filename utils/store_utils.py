"""Storage interface for surveys and responses.

This module defines the storage contract used by the InsightFlow UI and an
in-memory implementation of it for local runs and tests. The production
implementation, backed by the survey document API, is in utils.api_utils.
"""

import copy
import json
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, Protocol

from survey_assist_utils.logging import get_logger

from models.response import SurveyResponse
from models.survey import Survey

logger = get_logger(__name__, level="INFO")


class StorageError(RuntimeError):
    """Raised when the storage collaborator fails to read or write.

    Attributes:
        status_code (Optional[int]): HTTP-style status code of the failure.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SurveyStore(Protocol):
    """Operations the UI needs from storage."""

    def fetch_all_surveys(self) -> list[Survey]:
        """Return all surveys, newest first."""

    def fetch_survey_by_id(self, survey_id: str) -> Optional[Survey]:
        """Return a survey, or None if it does not exist."""

    def upsert_survey(self, survey: Survey) -> None:
        """Create or replace a survey."""

    def update_survey_fields(self, survey_id: str, fields: dict[str, Any]) -> None:
        """Set the given document fields on an existing survey."""

    def delete_survey(self, survey_id: str) -> None:
        """Delete a survey."""

    def insert_response(self, response: SurveyResponse) -> None:
        """Store a completed response."""

    def fetch_responses(self, survey_id: str) -> list[SurveyResponse]:
        """Return the responses for a survey, newest first."""


class InMemorySurveyStore:
    """Document store held in process memory.

    Surveys and responses are kept as camelCase documents, the same shape the
    document API stores, and normalised on every read. Each operation is atomic
    on its own; there is no transaction across operations.
    """

    def __init__(self, survey_documents: Optional[list[dict[str, Any]]] = None):
        self._lock = threading.Lock()
        self._surveys: dict[str, dict[str, Any]] = {}
        self._responses: list[dict[str, Any]] = []
        for doc in survey_documents or []:
            survey = Survey.from_document(doc)
            self._surveys[survey.id] = survey.to_document()

    @classmethod
    def from_file(cls, file_path: str | Path) -> "InMemorySurveyStore":
        """Create a store seeded with the survey documents in a JSON file.

        Args:
            file_path (str | Path): JSON file holding a list of survey documents.

        Returns:
            InMemorySurveyStore: The seeded store.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Survey seed file not found: {file_path}")

        with file_path.open(encoding="utf-8") as file:
            documents = json.load(file)

        logger.info(f"Seeding in-memory store with {len(documents)} surveys")
        return cls(documents)

    def fetch_all_surveys(self) -> list[Survey]:
        with self._lock:
            docs = list(self._surveys.values())
        surveys = [Survey.from_document(doc) for doc in docs]
        return sorted(surveys, key=lambda s: s.created_at, reverse=True)

    def fetch_survey_by_id(self, survey_id: str) -> Optional[Survey]:
        with self._lock:
            doc = self._surveys.get(survey_id)
        return None if doc is None else Survey.from_document(doc)

    def upsert_survey(self, survey: Survey) -> None:
        with self._lock:
            self._surveys[survey.id] = survey.to_document()

    def update_survey_fields(self, survey_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            doc = self._surveys.get(survey_id)
            if doc is None:
                raise StorageError(f"Survey '{survey_id}' not found", 404)
            doc.update(fields)

    def delete_survey(self, survey_id: str) -> None:
        with self._lock:
            self._surveys.pop(survey_id, None)

    def insert_response(self, response: SurveyResponse) -> None:
        with self._lock:
            if any(doc["id"] == response.id for doc in self._responses):
                raise StorageError(f"Response '{response.id}' already exists", 409)
            self._responses.append(response.to_document())

    def fetch_responses(self, survey_id: str) -> list[SurveyResponse]:
        with self._lock:
            docs = [doc for doc in self._responses if doc["surveyId"] == survey_id]
        responses = [SurveyResponse.from_document(doc) for doc in docs]
        return sorted(responses, key=lambda r: r.submitted_at, reverse=True)


TRAVERSAL_TTL_SECONDS = 24 * 60 * 60


class TraversalCache:
    """Server-side holder for respondents' in-progress traversals.

    Traversals are kept as JSON-ready documents keyed by an opaque token, so
    the session cookie only carries the token however long the answers get.
    Entries not written for ttl_seconds are dropped. The cache lives in process
    memory and is not shared between worker processes.
    """

    def __init__(
        self,
        ttl_seconds: float = TRAVERSAL_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def get(self, token: str) -> Optional[dict[str, Any]]:
        """Return a copy of the traversal document, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return None
            written_at, document = entry
            if self._clock() - written_at > self._ttl_seconds:
                del self._entries[token]
                return None
            return copy.deepcopy(document)

    def put(self, token: str, document: dict[str, Any]) -> None:
        """Store a traversal document, dropping any expired entries."""
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, (written_at, _) in self._entries.items()
                if now - written_at > self._ttl_seconds
            ]
            for key in expired:
                del self._entries[key]
            self._entries[token] = (now, copy.deepcopy(document))

    def discard(self, token: str) -> None:
        """Remove a traversal."""
        with self._lock:
            self._entries.pop(token, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
