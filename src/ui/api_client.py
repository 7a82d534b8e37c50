"""
Synchronous HTTP client for the OratoriaFlow backend API.

Uses ``httpx.Client`` (sync) because Streamlit scripts run synchronously.
"""

import logging

import httpx
import streamlit as st

logger = logging.getLogger(__name__)

# Provider calls run sequentially server-side; allow for a full fallback chain
ANALYSIS_TIMEOUT = 180.0


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "unknown".
    Used by the UI to display appropriate error messages.
    """

    def __init__(self, message: str, category: str = "unknown", status_code: int | None = None) -> None:
        self.message = message
        self.category = category
        self.status_code = status_code
        super().__init__(message)


class APIClient:
    """Thin synchronous wrapper around httpx for calling the FastAPI backend.

    All methods return parsed JSON or raise ``APIError`` with user-friendly
    messages for display in the UI.
    """

    def __init__(self, base_url: str = "http://localhost:8000") -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=30.0)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with user-friendly error handling.

        Args:
            method: HTTP method name ("get", "post").
            path: API endpoint path (e.g. "/api/v1/users").
            **kwargs: Passed through to httpx (json, params, files, timeout, etc.).

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "Servidor indisponível. "
                "Inicie com: `uvicorn src.api.app:app --reload --port 8000`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "A requisição demorou demais. Tente novamente.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                detail = exc.response.json().get("detail", exc.response.text)
            except ValueError:
                detail = exc.response.text or str(exc)
            raise APIError(str(detail), category="http", status_code=exc.response.status_code) from None
        except httpx.HTTPError as exc:
            raise APIError(f"Erro de rede: {exc}", category="network") from None

    # -- health --

    def health_check(self) -> dict:
        return self._request("get", "/health").json()

    def check_connection(self) -> tuple[bool, str]:
        """Check if the backend is reachable. Returns (ok, message)."""
        try:
            self.health_check()
            return True, "Conectado"
        except APIError as exc:
            return False, exc.message

    # -- providers --

    def list_providers(self, online: bool = True) -> dict:
        return self._request("get", "/api/v1/providers", params={"online": online}).json()

    # -- analysis --

    def analyze(
        self,
        audio: bytes,
        encoding: str,
        duration_seconds: int = 0,
        preferred: str = "auto",
        online: bool = True,
    ) -> dict:
        """Analyze a clip without storing it."""
        return self._request(
            "post",
            "/api/v1/analysis",
            files={"file": ("recording", audio, encoding)},
            data={"duration_seconds": duration_seconds, "preferred": preferred, "online": online},
            timeout=ANALYSIS_TIMEOUT,
        ).json()

    # -- users --

    def create_user(self, email: str, name: str) -> dict:
        return self._request("post", "/api/v1/users", json={"email": email, "name": name}).json()

    def get_user(self, user_id: int) -> dict:
        return self._request("get", f"/api/v1/users/{user_id}").json()

    def find_user(self, email: str) -> dict | None:
        """Look a user up by email; None when no such user exists."""
        try:
            return self._request("get", "/api/v1/users", params={"email": email}).json()
        except APIError as exc:
            if exc.status_code == 404:
                return None
            raise

    def upgrade_user(self, user_id: int) -> dict:
        return self._request("post", f"/api/v1/users/{user_id}/upgrade").json()

    def get_user_stats(self, user_id: int) -> dict:
        return self._request("get", f"/api/v1/users/{user_id}/stats").json()

    def get_user_limits(self, user_id: int) -> dict:
        return self._request("get", f"/api/v1/users/{user_id}/limits").json()

    def get_analysis_history(self, user_id: int, limit: int = 20) -> list[dict]:
        return self._request(
            "get", f"/api/v1/users/{user_id}/history", params={"limit": limit}
        ).json()

    # -- practice sessions --

    def create_practice_session(
        self,
        user_id: int,
        audio: bytes,
        encoding: str,
        duration_seconds: int = 0,
        preferred: str = "auto",
        online: bool = True,
    ) -> dict:
        """Analyze a clip and store it as a practice session."""
        return self._request(
            "post",
            f"/api/v1/users/{user_id}/sessions",
            files={"file": ("recording", audio, encoding)},
            data={"duration_seconds": duration_seconds, "preferred": preferred, "online": online},
            timeout=ANALYSIS_TIMEOUT,
        ).json()

    def list_practice_sessions(self, user_id: int, limit: int = 10) -> list[dict]:
        return self._request(
            "get", f"/api/v1/users/{user_id}/sessions", params={"limit": limit}
        ).json()

    def get_session_analysis(self, session_id: int) -> dict:
        return self._request("get", f"/api/v1/sessions/{session_id}/analysis").json()

    # -- feedback --

    def submit_feedback(self, session_id: int, rating: int, comments_text: str | None = None) -> dict:
        body: dict = {"rating": rating}
        if comments_text:
            body["comments_text"] = comments_text
        return self._request("post", f"/api/v1/sessions/{session_id}/feedback", json=body).json()

    def get_feedback(self, session_id: int) -> dict | None:
        return self._request("get", f"/api/v1/sessions/{session_id}/feedback").json()


@st.cache_resource
def get_api_client(base_url: str = "http://localhost:8000") -> APIClient:
    """Return a cached APIClient, keyed by base_url.

    Uses Streamlit's ``cache_resource`` to persist the client across reruns.
    When the base URL changes, a new client is created because the cache
    key includes the parameter.
    """
    return APIClient(base_url=base_url)
