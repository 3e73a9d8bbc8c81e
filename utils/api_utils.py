"""API utility functions and client for the InsightFlow UI.

This module provides an API client class for making HTTP requests to the survey
document API, and a storage service that maps the storage contract onto the
document API endpoints.
"""

from http import HTTPStatus
from typing import Any, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError
from survey_assist_utils.logging import get_logger

from models.response import SurveyResponse
from models.survey import Survey
from utils.store_utils import StorageError

API_TIMER_SEC = 20
ERROR_LEN = 2
logger = get_logger(__name__, level="INFO")


# Disabling pylint warning for too many arguments in APIClient class
# pylint: disable=too-many-arguments,too-many-positional-arguments
class APIClient:
    """API client for making HTTP requests to the survey document API.

    Errors are logged and returned as an ``({"error": message}, status_code)``
    tuple rather than raised, leaving the caller to decide how to surface them.
    """

    def __init__(self, base_url: str, token: str, logger_handle):
        """Initialises the API client with base URL, token, and logger.

        Args:
            base_url (str): The base URL for the API.
            token (str): The bearer token for API requests, empty for none.
            logger_handle: Logger instance for logging messages.
        """
        self.base_url = base_url
        self.token = token
        self.logger_handle = logger_handle

    def _default_headers(self):
        """Returns the default headers for API requests.

        Returns:
            dict: Dictionary containing the authorisation header when a token is set.
        """
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def get(self, endpoint: str, headers: Optional[dict] = None):
        """Sends a GET request to the specified API endpoint."""
        return self._request("GET", endpoint, headers=headers)

    def post(self, endpoint: str, body: Optional[dict] = None, headers=None):
        """Sends a POST request with a JSON body to the specified API endpoint."""
        return self._request("POST", endpoint, body=body, headers=headers)

    def patch(self, endpoint: str, body: Optional[dict] = None, headers=None):
        """Sends a PATCH request with a JSON body to the specified API endpoint."""
        return self._request("PATCH", endpoint, body=body, headers=headers)

    def delete(self, endpoint: str, headers: Optional[dict] = None):
        """Sends a DELETE request to the specified API endpoint."""
        return self._request("DELETE", endpoint, headers=headers)

    def _request(  # noqa: C901
        self,
        method: str,
        endpoint: str,
        body: Optional[dict] = None,
        headers: Optional[dict] = None,
    ):
        """Sends an HTTP request to the specified API endpoint.

        Args:
            method (str): The HTTP method ("GET", "POST", "PATCH" or "DELETE").
            endpoint (str): The API endpoint to send the request to.
            body (dict, optional): The JSON request body.
            headers (dict, optional): Additional headers for the request.

        Returns:
            Any: The decoded JSON response, or an error tuple if an error occurs.
        """
        url = f"{self.base_url}{endpoint}"
        combined_headers = {**self._default_headers(), **(headers or {})}

        self.logger_handle.debug(f"Sending {method} request to {url}")

        data = None
        error = None
        status_code = HTTPStatus.INTERNAL_SERVER_ERROR

        try:
            if method not in ("GET", "POST", "PATCH", "DELETE"):
                raise ValueError(f"Unsupported method: {method}")

            response = requests.request(
                method,
                url,
                json=body,
                headers=combined_headers,
                timeout=API_TIMER_SEC,
            )
            response.raise_for_status()
            data = response.json() if response.content else None
            self.logger_handle.debug(f"Received response from {url}")

        except requests.exceptions.Timeout:
            self.logger_handle.error(
                f"Request to {url} timed out after {API_TIMER_SEC} seconds"
            )
            error = "Request timed out"
            status_code = HTTPStatus.GATEWAY_TIMEOUT
        except requests.exceptions.ConnectionError:
            self.logger_handle.error(f"Failed to connect to API at {url}")
            error = "Failed to connect to API"
            status_code = HTTPStatus.BAD_GATEWAY
        except requests.exceptions.HTTPError as http_err:
            self.logger_handle.error(f"HTTP error occurred: {http_err}")
            if http_err.response is not None:
                status_code = http_err.response.status_code
            error = f"HTTP error: {status_code}"
        except ValueError as val_err:
            self.logger_handle.error(f"Value error: {val_err}")
            error = f"Value error: {val_err}"

        if error:
            return self._handle_error(error, status_code)

        return data

    def _handle_error(self, message, status_code):
        """Logs an API error and returns it as an error tuple.

        Args:
            message (str): The error message.
            status_code (int): The HTTP status code for the error.

        Returns:
            tuple[dict, int]: The error body and status code.
        """
        self.logger_handle.error(message)
        return {"error": message}, int(status_code)


def survey_path(survey_id: str) -> str:
    """Return the API path of a survey, with the id escaped as one path segment."""
    return f"/surveys/{quote(survey_id, safe='')}"


def is_error(raw: Any) -> bool:
    """Return True if raw is an APIClient error tuple."""
    return isinstance(raw, tuple) and len(raw) == ERROR_LEN and isinstance(raw[0], dict)


class SurveyStoreService:
    """Reuse APIClient as the storage collaborator for surveys and responses."""

    def __init__(self, api_client: APIClient) -> None:
        """api_client: the existing APIClient."""
        self._api = api_client

    def _call(self, action: str, raw: Any) -> Any:
        if is_error(raw):
            body, status_code = raw
            raise StorageError(f"{action} failed: {body.get('error')}", status_code)
        return raw

    def fetch_all_surveys(self) -> list[Survey]:
        """Fetch and normalise every survey, newest first.

        Raises:
            StorageError: If the API returns an error or a malformed payload.
        """
        raw = self._call("Fetch surveys", self._api.get("/surveys"))
        if not isinstance(raw, list):
            raise StorageError(f"Unexpected surveys payload: {type(raw).__name__}")
        surveys = [Survey.from_document(doc) for doc in raw if isinstance(doc, dict)]
        return sorted(surveys, key=lambda s: s.created_at, reverse=True)

    def fetch_survey_by_id(self, survey_id: str) -> Optional[Survey]:
        """Fetch and normalise one survey.

        Returns:
            Optional[Survey]: The survey, or None if the API reports it missing.

        Raises:
            StorageError: If the API returns any other error.
        """
        raw = self._api.get(survey_path(survey_id))
        if is_error(raw) and raw[1] == HTTPStatus.NOT_FOUND:
            return None
        raw = self._call("Fetch survey", raw)
        if not isinstance(raw, dict):
            raise StorageError(f"Unexpected survey payload: {type(raw).__name__}")
        return Survey.from_document(raw)

    def upsert_survey(self, survey: Survey) -> None:
        """Create or replace a survey."""
        self._call("Save survey", self._api.post("/surveys", body=survey.to_document()))

    def update_survey_fields(self, survey_id: str, fields: dict[str, Any]) -> None:
        """Set document fields on an existing survey."""
        self._call(
            "Update survey", self._api.patch(survey_path(survey_id), body=fields)
        )

    def delete_survey(self, survey_id: str) -> None:
        """Delete a survey."""
        self._call("Delete survey", self._api.delete(survey_path(survey_id)))

    def insert_response(self, response: SurveyResponse) -> None:
        """Store a completed response."""
        self._call(
            "Save response", self._api.post("/responses", body=response.to_document())
        )

    def fetch_responses(self, survey_id: str) -> list[SurveyResponse]:
        """Fetch the responses for a survey, newest first.

        Raises:
            StorageError: If the API returns an error or a malformed payload.
        """
        raw = self._call(
            "Fetch responses",
            self._api.get(f"/responses/survey/{quote(survey_id, safe='')}"),
        )
        if not isinstance(raw, list):
            raise StorageError(f"Unexpected responses payload: {type(raw).__name__}")
        try:
            responses = [SurveyResponse.from_document(doc) for doc in raw]
        except ValidationError as ve:
            raise StorageError(f"Unexpected responses payload: {ve}") from ve
        return sorted(responses, key=lambda r: r.submitted_at, reverse=True)
