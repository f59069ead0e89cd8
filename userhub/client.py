"""HTTP client for the user directory API."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import httpx

DEFAULT_SERVICE_URL = "http://localhost:4000"

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_CREDENTIAL_ERRORS = {401, 403}


def is_valid_email(value: str) -> bool:
    """Convenience check applied before submitting a new user.

    The service itself accepts any non-empty email.
    """

    return bool(_EMAIL_PATTERN.match(value))


class APIError(RuntimeError):
    """Raised when the service answers with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def credential_rejected(self) -> bool:
        return self.status_code in _CREDENTIAL_ERRORS


class DirectoryClient:
    """Talks to the directory API, holding the bearer token between calls.

    A 401 or 403 from any call discards the held token, so callers can treat
    :attr:`is_authenticated` turning false as "log in again".
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVICE_URL,
        *,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        self.token: Optional[str] = None
        self.username: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "DirectoryClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def logout(self) -> None:
        self.token = None
        self.username = None

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        response = self._http.request(method, path, headers=self._headers(), **kwargs)
        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_success:
            return payload if isinstance(payload, dict) else {}

        if response.status_code in _CREDENTIAL_ERRORS:
            self.logout()

        message = None
        if isinstance(payload, dict):
            message = payload.get("error")
        raise APIError(response.status_code, str(message or f"Request failed with status {response.status_code}"))

    def login(self, username: str) -> Dict[str, Any]:
        data = self._request("POST", "/login", json={"username": username})
        self.token = data["token"]
        self.username = data.get("username", username)
        return data

    def list_users(self, page: int = 1, limit: int = 5) -> Dict[str, Any]:
        return self._request("GET", "/users", params={"page": page, "limit": limit})

    def create_user(self, name: str, email: str) -> Dict[str, Any]:
        return self._request("POST", "/users", json={"name": name, "email": email})

    def delete_user(self, user_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/users/{user_id}")


__all__ = ["APIError", "DEFAULT_SERVICE_URL", "DirectoryClient", "is_valid_email"]
