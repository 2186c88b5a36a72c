"""Jira REST API client used by the prioritizer."""

from typing import Optional
import requests


class JiraRequestError(Exception):
    """A request to the Jira REST API was not accepted."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 reason: Optional[str] = None, response_content: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.response_content = response_content

    def __str__(self):
        message = super().__str__()
        if self.status_code is None:
            return message
        return f"{message} ({self.status_code}: {self.reason})"


class JiraGetRequestError(JiraRequestError):
    """A GET request failed."""


class JiraPutRequestError(JiraRequestError):
    """A PUT request failed."""


class JiraClient:
    """Thin authenticated wrapper around the Jira REST API."""

    def __init__(self, server: str, email: str, token: str, timeout: int = 30):
        self.server = server.rstrip("/")
        self.email = email
        self.token = token
        self.timeout = timeout

    def _url(self, endpoint: str) -> str:
        return f"{self.server}/{endpoint.lstrip('/')}"

    def get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """Make authenticated GET request to Jira API.

        Raises:
            ValueError: endpoint is None
            JiraGetRequestError: transport failure or non-2xx response
        """
        if endpoint is None:
            raise ValueError("An exception occurred during the GET request - Provided URL was null.")

        try:
            response = requests.get(
                self._url(endpoint),
                auth=(self.email, self.token),
                headers={"Accept": "application/json"},
                params=params,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise JiraGetRequestError(
                f"An exception occurred during the GET request: {e}"
            ) from e

        if not response.ok:
            raise JiraGetRequestError(
                "An exception occurred during the GET request",
                response.status_code, response.reason, response.text
            )

        try:
            return response.json()
        except ValueError as e:
            raise JiraGetRequestError(
                "The GET response was not JSON",
                response.status_code, response.reason, response.text
            ) from e

    def put(self, endpoint: str, payload: dict) -> Optional[dict]:
        """Make authenticated PUT request with a JSON body.

        Jira answers a successful issue edit with 204 No Content, in which
        case None is returned.

        Raises:
            ValueError: endpoint or payload is None
            JiraPutRequestError: transport failure or non-2xx response
        """
        if endpoint is None or payload is None:
            raise ValueError(
                "An exception occurred during the PUT request - Some of provided arguments were null."
            )

        try:
            response = requests.put(
                self._url(endpoint),
                auth=(self.email, self.token),
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise JiraPutRequestError(
                f"An exception occurred during the PUT request: {e}"
            ) from e

        if not response.ok:
            raise JiraPutRequestError(
                "An exception occurred during the PUT request",
                response.status_code, response.reason, response.text
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise JiraPutRequestError(
                "The PUT response was not JSON",
                response.status_code, response.reason, response.text
            ) from e
