"""ShipHero GraphQL client.

Handles bearer authentication (with a single refresh-and-retry on 401),
GraphQL error detection, and plain downloads of generated snapshot files.
"""

import logging

import requests

from .config import Settings
from .exceptions import FormatError, UpstreamError
from .shiphero_auth import TokenManager

logger = logging.getLogger(__name__)


class ShipHeroClient:
    def __init__(
        self,
        token_manager: TokenManager,
        settings: Settings,
        http: requests.Session | None = None,
    ):
        self.token_manager = token_manager
        self.settings = settings
        self.http = http or requests.Session()

    def _post(self, query: str, token: str) -> requests.Response:
        try:
            return self.http.post(
                self.settings.shiphero_api_url,
                json={"query": query},
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=self.settings.http_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"ShipHero API request failed: {e}")
            raise UpstreamError(f"ShipHero API request failed: {e}") from e

    def execute(self, query: str) -> dict:
        """Run a GraphQL query or mutation and return the decoded body.

        Raises:
            UpstreamError: On HTTP failure, a non-JSON body, or GraphQL errors.
        """
        response = self._post(query, self.token_manager.get_access_token())

        if response.status_code == 401:
            logger.warning("ShipHero API rejected the access token, refreshing once")
            response = self._post(query, self.token_manager.force_refresh())

        if not response.ok:
            logger.error(f"ShipHero API error {response.status_code}: {response.text}")
            raise UpstreamError(
                f"ShipHero API error: {response.status_code} - {response.text}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError("ShipHero API returned a non-JSON response") from e

        if not isinstance(body, dict):
            raise UpstreamError("ShipHero API returned an unexpected response shape")

        errors = body.get("errors")
        if errors:
            messages = ", ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise UpstreamError(f"GraphQL errors: {messages}")

        return body

    def download(self, url: str):
        """Fetch a generated file and return its decoded JSON content."""
        try:
            response = self.http.get(url, timeout=self.settings.http_timeout_seconds)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Snapshot download failed: {e}")
            raise UpstreamError(f"Snapshot download failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise FormatError("Invalid snapshot data format: not valid JSON") from e
