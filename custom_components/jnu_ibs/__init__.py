"""The JNU IBS integration."""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers.typing import ConfigType

from .api import IBSAPI
from .const import CONF_BASE_URL, CONF_ROOM, DOMAIN
from .coordinator import IBSDataUpdateCoordinator, IBSTrendsCoordinator

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.SENSOR]


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the JNU IBS component."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up JNU IBS from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    room = entry.data[CONF_ROOM]

    # Create API client; the endpoint override lives in the entry options
    api = IBSAPI(base_url=entry.options.get(CONF_BASE_URL) or None)

    coordinator = IBSDataUpdateCoordinator(hass=hass, api=api, room=room)

    # Trends refresh on their own schedule, independent of the overview
    trends_coordinator = IBSTrendsCoordinator(hass=hass, api=api, room=room)

    hass.data[DOMAIN][entry.entry_id] = {
        "coordinator": coordinator,
        "trends_coordinator": trends_coordinator,
        "api": api,
    }

    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    # Forward entry setup to sensor platform
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry when options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        # Log out and clean up API client
        if entry.entry_id in hass.data[DOMAIN]:
            api = hass.data[DOMAIN][entry.entry_id].get("api")
            if api:
                api.logout()
                await api.async_close()
            hass.data[DOMAIN].pop(entry.entry_id)

    return unload_ok
