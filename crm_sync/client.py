"""
HTTP client for the CRM backend routes used during device sync.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

REQUEST_TIMEOUT = 30  # seconds


class CrmApiError(Exception):
    """A non-2xx response from the backend."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class CrmClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
        authenticated: bool = True,
    ) -> Any:
        headers = {}
        if authenticated:
            if not self.token:
                raise CrmApiError(401, "Not logged in")
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.session.request(
            method,
            f"{self.base_url}{path}",
            json=json,
            params=params,
            headers=headers,
            timeout=self.timeout,
        )
        if not response.ok:
            raise CrmApiError(response.status_code, _error_message(response))
        return response.json()

    def login(self, email: str, password: str) -> dict:
        """Log in and keep the token for later calls. Returns the user."""
        data = self._request(
            "POST",
            "/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        self.token = data["token"]
        return data["user"]

    def me(self) -> dict:
        return self._request("GET", "/me")

    def list_contacts(self) -> list[dict]:
        return self._request("GET", "/contacts")

    def push_contacts(self, contacts: list[dict]) -> dict:
        return self._request("POST", "/sync/contacts", json={"contacts": contacts})

    def pull_contacts(self, since: Optional[str] = None) -> dict:
        params = {"since": since} if since else None
        return self._request("GET", "/sync/contacts", params=params)

    def push_calls(self, calls: list[dict]) -> dict:
        return self._request("POST", "/sync/calls", json={"calls": calls})

    def pull_calls(self, since: Optional[str] = None) -> dict:
        params = {"since": since} if since else None
        return self._request("GET", "/sync/calls", params=params)

    def call_stats(self) -> dict:
        return self._request("GET", "/calls/stats")


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason or "Request failed"
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.reason or "Request failed"
