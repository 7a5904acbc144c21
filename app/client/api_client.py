"""
Python client for the Klingo Cleanup API.

Mirrors the mobile app's API service so the backend can be scripted and
exercised end to end. Read calls are coalesced; writes always go out.
"""

from typing import Any, Dict, List, Optional
import logging

import requests

from app.client.coalescing import coalesce_requests
from app.core.settings import settings

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    """Non-2xx response or transport failure."""

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[List[Dict]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


class CleanupApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token
        self.timeout = timeout or settings.CLIENT_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, endpoint: str, json: Optional[Dict] = None, params: Optional[Dict] = None) -> Any:
        """
        Send a request and return the response envelope's data.

        Raises ApiClientError carrying the server's message on failure.
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method, url, json=json, params=params, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"Request to {url} failed: {e}")
            raise ApiClientError(f"Could not reach the server: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok:
            raise ApiClientError(
                body.get("message") or "Something went wrong",
                status_code=response.status_code,
                errors=body.get("errors"),
            )
        return body.get("data", body)

    # Auth
    def register(self, full_name: str, email: str, password: str, device_info: str = "") -> Dict:
        data = self.request("POST", "/api/auth/register", json={
            "fullName": full_name, "email": email, "password": password, "deviceInfo": device_info,
        })
        self.token = data["token"]
        return data

    def login(self, email: str, password: str) -> Dict:
        data = self.request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data

    def logout(self) -> None:
        self.token = None

    @coalesce_requests
    def me(self) -> Dict:
        return self.request("GET", "/api/auth/me")

    def forgot_password(self, email: str) -> Any:
        return self.request("POST", "/api/auth/forgot-password", json={"email": email})

    def reset_password(self, token: str, new_password: str) -> Any:
        return self.request("POST", "/api/auth/reset-password", json={"token": token, "newPassword": new_password})

    # Cleanup requests
    def submit_cleanup_request(self, payload: Dict) -> Dict:
        return self.request("POST", "/api/cleanup-requests", json=payload)

    @coalesce_requests
    def list_cleanup_requests(self, query: str = "", page: int = 1, limit: int = 50, **filters) -> Dict:
        params = {"q": query, "page": page, "limit": limit}
        params.update({k: v for k, v in filters.items() if v})
        return self.request("GET", "/api/cleanup-requests", params=params)

    @coalesce_requests
    def get_cleanup_request(self, request_id: str) -> Dict:
        return self.request("GET", f"/api/cleanup-requests/{request_id}")

    @coalesce_requests
    def get_cleanup_stats(self) -> Dict:
        return self.request("GET", "/api/cleanup-requests/stats")

    @coalesce_requests
    def get_recent_requests(self, limit: int = 10) -> List[Dict]:
        return self.request("GET", "/api/cleanup-requests/recent", params={"limit": limit})

    def update_request_status(self, request_id: str, status: str, admin_notes: Optional[str] = None) -> Dict:
        return self.request("PATCH", f"/api/cleanup-requests/{request_id}/status",
                            json={"status": status, "adminNotes": admin_notes})

    def assign_request(self, request_id: str, assigned_to: str, estimated_completion: Optional[str] = None) -> Dict:
        return self.request("PATCH", f"/api/cleanup-requests/{request_id}/assign",
                            json={"assignedTo": assigned_to, "estimatedCompletion": estimated_completion})

    def update_cleanup_request(self, request_id: str, **changes) -> Dict:
        """Admin edit; pass camelCase fields (severity, otherDetails, ...)."""
        return self.request("PATCH", f"/api/cleanup-requests/{request_id}", json=changes)

    def delete_cleanup_request(self, request_id: str) -> Dict:
        return self.request("DELETE", f"/api/cleanup-requests/{request_id}")

    # Users
    @coalesce_requests
    def get_users(self) -> List[Dict]:
        return self.request("GET", "/api/users")

    @coalesce_requests
    def get_user(self, user_id: str) -> Dict:
        return self.request("GET", f"/api/users/{user_id}")

    def update_profile(self, **changes) -> Dict:
        return self.request("PATCH", "/api/users/profile", json=changes)

    def update_user(self, user_id: str, **changes) -> Dict:
        return self.request("PATCH", f"/api/users/{user_id}", json=changes)

    def update_user_status(self, user_id: str, status: str) -> Dict:
        return self.request("PATCH", f"/api/users/{user_id}/status", json={"status": status})

    def change_password(self, current_password: str, new_password: str) -> Any:
        return self.request("POST", "/api/users/change-password",
                            json={"currentPassword": current_password, "newPassword": new_password})

    def delete_user(self, user_id: str) -> Dict:
        return self.request("DELETE", f"/api/users/{user_id}")

    @coalesce_requests
    def get_user_stats(self) -> Dict:
        return self.request("GET", "/api/stats/users")

    @coalesce_requests
    def health_check(self) -> Dict:
        return self.request("GET", "/api/health")
