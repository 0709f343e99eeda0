"""HTTP client for the bucket-list API."""

import logging
from typing import Any, Dict, List, Optional

import requests

from .core import get_settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A request the API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ApiClient:
    """Client for communicating with the backend API.

    ``session`` defaults to a ``requests.Session``; anything exposing the
    same ``get``/``post``/``put``/``patch``/``delete`` calls works.
    """

    def __init__(self, base_url: Optional[str] = None, session=None):
        self.base_url = (
            get_settings().API_BASE_URL if base_url is None else base_url
        ).rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.token: Optional[str] = None

    def set_auth_token(self, token: str):
        """Set the bearer token sent with every request."""
        self.token = token

    def clear_auth_token(self):
        """Forget the bearer token."""
        self.token = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _handle_response(self, response) -> Any:
        """Return the decoded body or raise ``ApiError``."""
        if 200 <= response.status_code < 300:
            if response.status_code == 204 or not response.content:
                return None
            return response.json()
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = (
            body.get("error") or body.get("message") or body.get("detail")
            if isinstance(body, dict)
            else None
        ) or response.text or "Request failed"
        logger.error("API request failed: HTTP %s %s", response.status_code, message)
        raise ApiError(response.status_code, str(message))

    # Users

    def register(
        self, name: str, email: str, password: str, role: str = "user"
    ) -> Dict[str, Any]:
        """Create an account."""
        response = self.session.post(
            self._url("/api/users/register"),
            json={"name": name, "email": email, "password": password, "role": role},
            headers=self._headers(),
        )
        return self._handle_response(response)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate and remember the returned access token."""
        response = self.session.post(
            self._url("/api/users/login"),
            json={"email": email, "password": password},
            headers=self._headers(),
        )
        user = self._handle_response(response)
        self.set_auth_token(user["accessToken"])
        return user

    def get_me(self) -> Dict[str, Any]:
        response = self.session.get(self._url("/api/users/me"), headers=self._headers())
        return self._handle_response(response)

    def get_users(self) -> List[Dict[str, Any]]:
        response = self.session.get(self._url("/api/users"), headers=self._headers())
        return self._handle_response(response)

    def update_user(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        response = self.session.put(
            self._url(f"/api/users/{user_id}"), json=changes, headers=self._headers()
        )
        return self._handle_response(response)

    def delete_user(self, user_id: str) -> None:
        response = self.session.delete(
            self._url(f"/api/users/{user_id}"), headers=self._headers()
        )
        self._handle_response(response)

    # Destinations

    def get_destinations(self, **params) -> Dict[str, Any]:
        """List destinations; keyword arguments become query parameters."""
        response = self.session.get(
            self._url("/api/destinations"), params=params, headers=self._headers()
        )
        return self._handle_response(response)

    def get_destination(self, destination_id: str) -> Dict[str, Any]:
        response = self.session.get(
            self._url(f"/api/destinations/{destination_id}"), headers=self._headers()
        )
        return self._handle_response(response)

    def create_destination(self, destination: Dict[str, Any]) -> Dict[str, Any]:
        response = self.session.post(
            self._url("/api/destinations"), json=destination, headers=self._headers()
        )
        return self._handle_response(response)

    def update_destination(
        self, destination_id: str, changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        response = self.session.put(
            self._url(f"/api/destinations/{destination_id}"),
            json=changes,
            headers=self._headers(),
        )
        return self._handle_response(response)

    def delete_destination(self, destination_id: str) -> Dict[str, Any]:
        response = self.session.delete(
            self._url(f"/api/destinations/{destination_id}"), headers=self._headers()
        )
        return self._handle_response(response)

    def toggle_featured(self, destination_id: str) -> Dict[str, Any]:
        response = self.session.patch(
            self._url(f"/api/destinations/{destination_id}/featured"),
            headers=self._headers(),
        )
        return self._handle_response(response)

    def copy_destination(
        self, destination_id: str, user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a personal copy of an admin-created destination."""
        response = self.session.post(
            self._url(f"/api/destinations/{destination_id}/copy"),
            json={"userId": user_id} if user_id else {},
            headers=self._headers(),
        )
        return self._handle_response(response)

    def get_user_stats(self, user_id: str) -> Dict[str, Any]:
        response = self.session.get(
            self._url(f"/api/destinations/user/{user_id}/stats"),
            headers=self._headers(),
        )
        return self._handle_response(response)
