"""
Synchronous REST helper shared by the user directory and the issue tracker clients.
"""

import logging
from typing import Any, Dict, Optional

import requests

from refgate.errors import AuthenticationRequiredError, ServiceError

logger = logging.getLogger(__name__)


class HostClient:
    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        :param base_url: Base URL of the host, e.g. https://jira.example.com
        :param username: If set together with token, sent as basic auth.
        :param token: Without a username it is sent as a bearer token.
        :param timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token and username:
            self.session.auth = (username, token)
        elif token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self.session.headers.setdefault("Accept", "application/json")

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("Request: GET %s params=%s", url, params)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ServiceError(f"Request to {url} failed: {e}") from e

        self._raise_for_status(response)
        try:
            return response.json()
        except ValueError as e:
            raise ServiceError(f"Response from {url} is not JSON: {e}") from e

    def _raise_for_status(self, response: requests.Response) -> None:
        """
        Raise the appropriate exception if response.status_code is not 2xx.
        """
        status = response.status_code
        if 200 <= status < 300:
            return

        if status in (401, 403):
            raise AuthenticationRequiredError(
                f"Authentication/permission error (HTTP {status}) from {response.url}"
            )
        raise ServiceError(f"HTTP {status} from {response.url}: {response.text[:200]}")
