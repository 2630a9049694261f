# Localsync Remote Client
# REST transport for one table of the remote service

import logging
from typing import Any, Optional

import requests

from localsync.config.schema import RemoteConfig
from localsync.errors import RemoteDisabled, RemoteRequestFailed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class RemoteClient:
    """
    Client for ``<base_url>/<table>`` REST endpoints.

    Reads degrade to None / [] on any failure and only log it. Writes raise
    RemoteDisabled when mirroring is off and RemoteRequestFailed on non-2xx
    responses or transport errors.
    """

    def __init__(
        self,
        table: str,
        config: Optional[RemoteConfig] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.table = table
        self.config = config
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.config is not None and self.config.enabled

    def _headers(self, *, with_body: bool = False) -> dict[str, str]:
        """Build request headers, with the Bearer token when an API key is set."""
        headers: dict[str, str] = {}
        if with_body:
            headers["Content-Type"] = "application/json"
        if self.config is not None and self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _url(self, remote_id: Optional[str] = None) -> str:
        if self.config is None:
            raise RemoteDisabled(self.table)
        url = f"{self.config.base_url}/{self.table}"
        if remote_id is not None:
            url += f"/{remote_id}"
        return url

    def _request(
        self,
        method: str,
        remote_id: Optional[str] = None,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> requests.Response:
        return self.session.request(
            method=method,
            url=self._url(remote_id),
            headers=self._headers(with_body=json is not None),
            params=params,
            json=json,
            timeout=self.timeout,
        )

    def _write(self, operation: str, method: str, remote_id: Optional[str] = None, payload: Any = None) -> Any:
        """Execute a write request and return the decoded body (None if empty)."""
        if not self.enabled:
            raise RemoteDisabled(self.table)

        try:
            resp = self._request(method, remote_id, json=payload)
        except requests.RequestException as e:
            raise RemoteRequestFailed(f"Remote {operation} failed: {e}") from e

        if not resp.ok:
            try:
                detail = resp.json()
            except ValueError:
                detail = resp.text or None
            raise RemoteRequestFailed(
                f"Remote {operation} failed: {resp.status_code} {resp.reason}",
                status_code=resp.status_code,
                detail=detail,
            )

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def get(self, remote_id: str) -> Optional[dict[str, Any]]:
        """Fetch one remote record, or None."""
        if not self.enabled:
            return None

        try:
            resp = self._request("GET", remote_id)
            if resp.ok:
                body = resp.json()
                if isinstance(body, dict):
                    return body
                logger.warning("Remote get %s/%s returned a non-object body", self.table, remote_id)
            else:
                logger.warning("Remote get %s/%s failed: %s %s", self.table, remote_id, resp.status_code, resp.reason)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Remote get %s/%s failed: %s", self.table, remote_id, e)
        return None

    def list(
        self,
        params: Optional[dict[str, str]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Fetch one page of remote records, or [] on failure."""
        if not self.enabled:
            return []

        query: dict[str, Any] = {"limit": str(limit), "offset": str(offset)}
        query.update(params or {})

        try:
            resp = self._request("GET", params=query)
            if resp.ok:
                body = resp.json()
                if isinstance(body, list):
                    return [item for item in body if isinstance(item, dict)]
                logger.warning("Remote list %s returned a non-array body", self.table)
            else:
                logger.warning("Remote list %s failed: %s %s", self.table, resp.status_code, resp.reason)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Remote list %s failed: %s", self.table, e)
        return []

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a remote record; the response carries the server id."""
        body = self._write("save", "POST", payload=payload)
        if not isinstance(body, dict):
            raise RemoteRequestFailed("Remote save failed: response is not a JSON object")
        return body

    def update(self, remote_id: str, payload: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Update a remote record."""
        body = self._write("update", "PUT", remote_id, payload=payload)
        return body if isinstance(body, dict) else None

    def delete(self, remote_id: str) -> None:
        """Delete a remote record."""
        self._write("delete", "DELETE", remote_id)
