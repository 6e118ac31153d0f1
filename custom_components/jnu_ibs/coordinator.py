"""Data update coordinators for JNU IBS integration."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any
import logging

from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import IBSAPI, IBSAPIError, IBSAuthenticationError
from .const import (
    DEFAULT_RECORD_COUNT,
    DOMAIN,
    UPDATE_INTERVAL_OVERVIEW,
    UPDATE_INTERVAL_TRENDS,
)

_LOGGER = logging.getLogger(__name__)


async def async_ensure_login(api: IBSAPI, room: str) -> None:
    """Log in unless the API already holds a session."""
    if not api.is_authenticated():
        _LOGGER.debug("Logging in to IBS as room %s", room)
        await api.login(room)


class IBSDataUpdateCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Class to manage fetching the overview and payment records."""

    def __init__(
        self,
        hass: HomeAssistant,
        api: IBSAPI,
        room: str,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(seconds=UPDATE_INTERVAL_OVERVIEW),
        )
        self.api = api
        self.room = room

    async def _async_update_data(self) -> dict[str, Any]:
        """Fetch a fresh overview and the latest payment records.

        An authentication failure drops the session so the next update logs in
        again.
        """
        try:
            await async_ensure_login(self.api, self.room)
            overview = await self.api.fetch_overview()
        except IBSAuthenticationError as err:
            self.api.logout()
            raise UpdateFailed(f"Authentication failed for room {self.room}: {err}") from err
        except IBSAPIError as err:
            raise UpdateFailed(f"Error fetching IBS overview: {err}") from err

        # Records are secondary; keep the last page when they cannot be fetched
        try:
            records = await self.api.fetch_records(1, DEFAULT_RECORD_COUNT)
        except IBSAPIError as err:
            _LOGGER.warning("Failed to fetch payment records: %s", err)
            records = (self.data or {}).get("records", [])

        _LOGGER.debug(
            "Fetched overview for %s: balance=%.2f total=%.2f, %d records",
            overview["room"],
            overview["balance"],
            overview["costs"]["total"],
            len(records),
        )
        return {
            "overview": overview,
            "records": records,
            "endpoint": self.api.resolver.resolve(),
        }

    def get_overview(self) -> dict[str, Any] | None:
        """Return the last fetched overview."""
        if not self.data:
            return None
        return self.data.get("overview")


class IBSTrendsCoordinator(DataUpdateCoordinator[list[dict[str, Any]]]):
    """Coordinator for the current month's daily usage series."""

    def __init__(
        self,
        hass: HomeAssistant,
        api: IBSAPI,
        room: str,
    ) -> None:
        """Initialize the trends coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            name=f"{DOMAIN}_trends",
            update_interval=timedelta(seconds=UPDATE_INTERVAL_TRENDS),
        )
        self.api = api
        self.room = room

    async def _async_update_data(self) -> list[dict[str, Any]]:
        """Fetch daily series for the current month."""
        today = date.today()
        try:
            await async_ensure_login(self.api, self.room)
            trends = await self.api.fetch_trends(today.year, today.month)
        except IBSAuthenticationError as err:
            self.api.logout()
            raise UpdateFailed(f"Authentication failed for room {self.room}: {err}") from err
        except IBSAPIError as err:
            raise UpdateFailed(f"Error fetching IBS trends: {err}") from err

        _LOGGER.debug("Fetched %d trend series", len(trends))
        return trends
