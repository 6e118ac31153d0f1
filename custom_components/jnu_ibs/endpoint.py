"""Base URL selection and failover for the IBS web service."""

from __future__ import annotations

import logging

from .const import API_BASE_URL, FALLBACK_URL

_LOGGER = logging.getLogger(__name__)


def normalize_base_url(url: str) -> str:
    """Ensure a base URL ends with a slash so procedure names can be appended."""
    return url if url.endswith("/") else f"{url}/"


class EndpointResolver:
    """Tracks which IBS endpoint requests should go to.

    An operator override always wins and disables failover. Otherwise requests
    start on the primary URL; once the fallback has served a request it stays
    active until reset().
    """

    def __init__(
        self,
        primary_url: str = API_BASE_URL,
        fallback_url: str = FALLBACK_URL,
    ) -> None:
        """Initialize the resolver."""
        self._primary_url = normalize_base_url(primary_url)
        self._fallback_url = normalize_base_url(fallback_url)
        self._active_url = self._primary_url
        self._override_url: str | None = None

    @property
    def is_overridden(self) -> bool:
        """Return True if an operator override is set."""
        return self._override_url is not None

    @property
    def is_on_primary(self) -> bool:
        """Return True if requests currently go to the primary default."""
        return not self.is_overridden and self._active_url == self._primary_url

    def resolve(self) -> str:
        """Return the base URL for the next request."""
        if self._override_url is not None:
            return self._override_url
        return self._active_url

    def override(self, url: str | None) -> None:
        """Pin all requests to an operator-supplied URL.

        An empty value clears the override.
        """
        if not url:
            self.clear_override()
            return
        self._override_url = normalize_base_url(url)
        _LOGGER.debug("Endpoint override set to %s", self._override_url)

    def clear_override(self) -> None:
        """Drop the override and return to the primary default."""
        self._override_url = None
        self._active_url = self._primary_url

    def failover_url(self) -> str | None:
        """Return the URL to retry on after a failure, if failover is allowed."""
        if self.is_on_primary:
            return self._fallback_url
        return None

    def switch_to_fallback(self) -> None:
        """Make the fallback the active endpoint for subsequent requests."""
        if self._active_url != self._fallback_url:
            _LOGGER.warning("Switching IBS endpoint to fallback %s", self._fallback_url)
        self._active_url = self._fallback_url

    def reset(self) -> None:
        """Return to the primary endpoint, keeping any override."""
        self._active_url = self._primary_url
