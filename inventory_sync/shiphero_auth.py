"""ShipHero access token management.

Access tokens are derived from the stored refresh token and cached in memory
for the lifetime of the process. A cached token is only handed out while it
is unexpired (minus a safety buffer) and was issued for the refresh token
currently on file.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

import requests

from .config import Settings
from .credentials import CredentialStore, Credentials
from .exceptions import ConfigurationError, UpstreamAuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    token: str
    expires_at: float
    issued_for_refresh_token: str


class TokenCache:
    """Holds at most one access token."""

    def __init__(self):
        self._token: AccessToken | None = None

    def get(self) -> AccessToken | None:
        return self._token

    def set(self, token: AccessToken) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class TokenManager:
    """Exchanges the refresh token for access tokens and caches the result."""

    def __init__(
        self,
        credential_store: CredentialStore,
        settings: Settings,
        http: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
        cache: TokenCache | None = None,
    ):
        self.credential_store = credential_store
        self.settings = settings
        self.http = http or requests.Session()
        self.clock = clock
        self.cache = cache or TokenCache()

    def _is_usable(self, cached: AccessToken | None, credentials: Credentials) -> bool:
        if cached is None:
            return False
        if cached.issued_for_refresh_token != credentials.refresh_token:
            return False
        buffer = self.settings.token_refresh_buffer_seconds
        return self.clock() < cached.expires_at - buffer

    def _load_credentials(self) -> Credentials:
        credentials = self.credential_store.get()
        if credentials is None:
            raise ConfigurationError(
                "ShipHero credentials not configured. "
                "Please enter your refresh token and warehouse ID in Settings."
            )
        return credentials

    def get_access_token(self) -> str:
        """Get a valid access token, refreshing it when needed.

        Raises:
            ConfigurationError: If no credentials are stored.
            UpstreamAuthError: If the token endpoint rejects the refresh token.
        """
        credentials = self._load_credentials()
        cached = self.cache.get()
        if self._is_usable(cached, credentials):
            return cached.token

        if cached is not None:
            logger.info("Cached ShipHero token expired or credentials changed")
        return self._refresh(credentials)

    def force_refresh(self) -> str:
        """Drop the cached token and exchange the refresh token again."""
        self.cache.clear()
        return self._refresh(self._load_credentials())

    def clear_cache(self) -> None:
        self.cache.clear()

    def _refresh(self, credentials: Credentials) -> str:
        logger.info("Refreshing ShipHero access token...")

        try:
            response = self.http.post(
                self.settings.shiphero_refresh_url,
                json={"refresh_token": credentials.refresh_token},
                timeout=self.settings.http_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to reach ShipHero auth endpoint: {e}")
            raise UpstreamAuthError(f"ShipHero auth failed: {e}") from e

        if not response.ok:
            logger.error(
                f"Failed to refresh ShipHero token: {response.status_code} {response.text}"
            )
            raise UpstreamAuthError(
                f"ShipHero auth failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            token_data = response.json()
        except ValueError as e:
            raise UpstreamAuthError(
                "ShipHero auth returned a non-JSON response",
                status_code=response.status_code,
                body=response.text,
            ) from e

        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not access_token:
            raise UpstreamAuthError(
                "No access_token received from ShipHero auth endpoint",
                status_code=response.status_code,
                body=response.text,
            )

        raw_expires_in = token_data.get("expires_in") or 0
        try:
            expires_in = float(raw_expires_in)
        except (TypeError, ValueError) as e:
            raise UpstreamAuthError(
                f"Invalid expires_in received from ShipHero auth endpoint: {raw_expires_in!r}",
                status_code=response.status_code,
                body=response.text,
            ) from e
        if not math.isfinite(expires_in):
            raise UpstreamAuthError(
                f"Invalid expires_in received from ShipHero auth endpoint: {raw_expires_in!r}",
                status_code=response.status_code,
                body=response.text,
            )

        self.cache.set(
            AccessToken(
                token=access_token,
                expires_at=self.clock() + expires_in,
                issued_for_refresh_token=credentials.refresh_token,
            )
        )

        logger.info(
            f"ShipHero access token refreshed. Expires in {int(expires_in) // 86400} days"
        )
        return access_token
