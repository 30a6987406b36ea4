"""SoulSync client implementation"""
import time
from typing import Any, Dict, List, Optional

import requests


class SoulSyncClientError(Exception):
    """Non-2xx response that is not a normal match outcome"""

    def __init__(self, status_code: int, body: Any):
        super().__init__(f"SoulSync API error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class AuthenticationRequired(SoulSyncClientError):
    """The session is gone; call ``login`` again"""


class SoulSyncClient:
    """Client for interacting with the SoulSync API.

    Authentication is handled transparently:
    - ``login`` (or ``register``) stores the returned token pair.
    - The access token is rotated via ``POST /auth/refresh`` 30 seconds before
      expiry, or once after a 401.
    - Each rotation replaces the cached refresh token; the old one is dead on
      the server, so never share one client's refresh token with another.

    A 401 after rotation raises :class:`AuthenticationRequired` and clears the
    cached pair.
    """

    REFRESH_MARGIN_SECONDS = 30

    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        """
        Initialize SoulSync client.

        Args:
            base_url: Base URL of the SoulSync backend (e.g. ``http://localhost:8000``).
            session:  Optional preconfigured ``requests.Session``.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

        self.identity_id: Optional[str] = None
        self._access_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._expires_at: float = 0.0

    # ---------------------------------------------------------------------------
    # Token management
    # ---------------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self._refresh_token is not None

    def _store_pair(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.identity_id = data["identity_id"]
        self._access_token = data["access_token"]
        self._refresh_token = data["refresh_token"]
        self._expires_at = time.time() + data["expires_in"]
        return data

    def _clear_pair(self) -> None:
        self._access_token = None
        self._refresh_token = None
        self._expires_at = 0.0

    def _post_public(self, endpoint: str, payload: Dict[str, Any]) -> requests.Response:
        return self.session.post(f"{self.base_url}{endpoint}", json=payload)

    def refresh(self) -> Dict[str, Any]:
        """Rotate the cached refresh token for a new pair.

        Raises:
            AuthenticationRequired: no session, or the server refused the token.
        """
        if not self._refresh_token:
            raise AuthenticationRequired(401, "not logged in")

        resp = self._post_public("/auth/refresh", {"refresh_token": self._refresh_token})
        if resp.status_code == 401:
            self._clear_pair()
            raise AuthenticationRequired(401, _body(resp))
        _raise_for_status(resp)
        return self._store_pair(resp.json())

    def _ensure_token(self) -> str:
        if not self._refresh_token:
            raise AuthenticationRequired(401, "not logged in")
        if self._access_token is None or time.time() >= self._expires_at - self.REFRESH_MARGIN_SECONDS:
            self.refresh()
        return self._access_token  # type: ignore[return-value]

    def _request(self, method: str, endpoint: str, ok_statuses=(), **kwargs: Any) -> requests.Response:
        """Make an authenticated HTTP request, rotating once on 401.

        Args:
            method:      HTTP method.
            endpoint:    API path (e.g. ``/matches/quota``).
            ok_statuses: Non-2xx statuses returned to the caller instead of raised.
            **kwargs:    Forwarded to ``requests.Session.request``.
        """
        url = f"{self.base_url}{endpoint}"
        extra_headers = kwargs.pop("headers", None) or {}
        for attempt in range(2):
            headers = dict(extra_headers)
            headers["Authorization"] = f"Bearer {self._ensure_token()}"
            response = self.session.request(method, url, headers=headers, **kwargs)

            if response.status_code == 401 and attempt == 0:
                self._access_token = None  # forces rotation on the retry
                continue
            if response.status_code == 401:
                self._clear_pair()
                raise AuthenticationRequired(401, _body(response))
            if response.status_code in ok_statuses:
                return response
            _raise_for_status(response)
            return response

    # ========== Account ==========

    def register(self, email: str, password: str, name: str, **profile: Any) -> Dict[str, Any]:
        """Create an account and log in as it.

        Extra keyword arguments (``age``, ``bio``, ``location``, ``interests``)
        are sent as profile fields.
        """
        resp = self._post_public("/auth/register", {"email": email, "password": password, "name": name, **profile})
        _raise_for_status(resp)
        return self._store_pair(resp.json())

    def login(self, email: str, password: str) -> Dict[str, Any]:
        resp = self._post_public("/auth/login", {"email": email, "password": password})
        if resp.status_code == 401:
            raise AuthenticationRequired(401, _body(resp))
        _raise_for_status(resp)
        return self._store_pair(resp.json())

    def logout(self) -> None:
        """Revoke the cached refresh token and forget the pair."""
        if not self._refresh_token:
            return
        resp = self._post_public("/auth/revoke", {"refresh_token": self._refresh_token})
        _raise_for_status(resp)
        self._clear_pair()

    def logout_everywhere(self) -> int:
        """Revoke every session of this account. Returns how many were live."""
        data = self._request("POST", "/auth/revoke-all").json()
        self._clear_pair()
        return data["revoked"]

    # ========== Quiz ==========

    def personality_quiz(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/quiz/personality").json()

    def compatibility_quiz(self, seed: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"seed": seed} if seed is not None else None
        return self._request("GET", "/quiz/compatibility", params=params).json()

    def submit_answers(self, answers: Dict[str, Any]) -> Dict[str, Any]:
        """
        Store quiz answers.

        Args:
            answers: ``{question_id: value}`` with an int for scale questions,
                     the option text for multiple choice and a bool for yes/no.
        """
        return self._request("PUT", "/quiz/answers", json={"answers": answers}).json()

    def get_answers(self) -> Dict[str, Any]:
        return self._request("GET", "/quiz/answers").json()

    # ========== Matching ==========

    def resolve_match(self) -> Dict[str, Any]:
        """
        Spend one daily slot on finding the best match.

        Returns the outcome body; check ``status``:
        - ``"resolved"``: ``candidate_id``, ``score``, ``remaining_quota_today``
        - ``"exhausted"``: nobody left today
        - ``"denied"``: quota used up until ``reset_at``
        """
        return self._request("POST", "/matches/resolve", ok_statuses=(429,)).json()

    def accept_match(self, candidate_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/matches/{candidate_id}/accept").json()

    def reject_match(self, candidate_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/matches/{candidate_id}/reject").json()

    def reset_rejections(self) -> int:
        return self._request("POST", "/matches/rejections/reset").json()["cleared"]

    def get_quota(self) -> Dict[str, Any]:
        return self._request("GET", "/matches/quota").json()

    def list_matches(self, status: Optional[str] = None, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"skip": skip, "limit": limit}
        if status:
            params["match_status"] = status
        return self._request("GET", "/matches", params=params).json()

    # ========== Health ==========

    def health_check(self) -> Dict[str, Any]:
        """Check backend health (no authentication)."""
        response = self.session.get(f"{self.base_url}/health")
        _raise_for_status(response)
        return response.json()


def _body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _raise_for_status(response: requests.Response) -> None:
    if response.status_code >= 400:
        raise SoulSyncClientError(response.status_code, _body(response))
