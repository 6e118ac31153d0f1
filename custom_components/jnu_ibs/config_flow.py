"""Config flow for JNU IBS integration."""

from __future__ import annotations

from typing import Any, Optional
import asyncio
import voluptuous as vol
from aiohttp import ClientError

from homeassistant import config_entries
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError

from .const import (
    CONF_BASE_URL,
    CONF_DAYS_TO_COVER,
    CONF_ROOM,
    CONF_ROOMMATES,
    DEFAULT_DAYS_TO_COVER,
    DEFAULT_ROOMMATES,
    DOMAIN,
)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_ROOM): str,
        vol.Optional(CONF_BASE_URL): str,
    }
)


async def validate_input(hass: HomeAssistant, data: dict[str, Any]) -> dict[str, Any]:
    """Validate the user input allows us to log in."""
    # Lazy import to avoid circular dependency
    from .api import IBSAPI, IBSAuthenticationError

    api = IBSAPI(base_url=data.get(CONF_BASE_URL) or None)

    try:
        await api.login(data[CONF_ROOM])
        return {
            "title": f"JNU IBS - {api.room}",
            "room": api.room,
        }
    except IBSAuthenticationError as err:
        # Login wraps transport failures as authentication errors
        if isinstance(err.__cause__, (ClientError, asyncio.TimeoutError)):
            raise CannotConnect(f"Cannot reach IBS: {err}") from err
        raise InvalidAuth(str(err)) from err
    finally:
        await api.async_close()


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for JNU IBS."""

    VERSION = 1

    async def async_step_user(
        self, user_input: Optional[dict[str, Any]] = None
    ):
        """Handle the initial step."""
        if user_input is None:
            return self.async_show_form(
                step_id="user",
                data_schema=STEP_USER_DATA_SCHEMA,
            )

        errors = {}

        try:
            info = await validate_input(self.hass, user_input)
        except CannotConnect:
            errors["base"] = "cannot_connect"
        except InvalidAuth:
            errors["base"] = "invalid_auth"
        except Exception:  # pylint: disable=broad-except
            errors["base"] = "unknown"
        else:
            # One entry per room
            await self.async_set_unique_id(info["room"])
            self._abort_if_unique_id_configured()

            return self.async_create_entry(
                title=info["title"],
                data={CONF_ROOM: info["room"]},
                options={CONF_BASE_URL: user_input.get(CONF_BASE_URL) or ""},
            )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> OptionsFlowHandler:
        """Get the options flow for this handler."""
        return OptionsFlowHandler()


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle endpoint override and recharge options."""

    async def async_step_init(
        self, user_input: Optional[dict[str, Any]] = None
    ):
        """Manage the options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        options = self.config_entry.options
        schema = vol.Schema(
            {
                vol.Optional(
                    CONF_BASE_URL, default=options.get(CONF_BASE_URL, "")
                ): str,
                vol.Optional(
                    CONF_DAYS_TO_COVER,
                    default=options.get(CONF_DAYS_TO_COVER, DEFAULT_DAYS_TO_COVER),
                ): vol.All(vol.Coerce(int), vol.Range(min=1, max=365)),
                vol.Optional(
                    CONF_ROOMMATES,
                    default=options.get(CONF_ROOMMATES, DEFAULT_ROOMMATES),
                ): vol.All(vol.Coerce(int), vol.Range(min=1, max=12)),
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema)


class CannotConnect(HomeAssistantError):
    """Error to indicate we cannot connect."""


class InvalidAuth(HomeAssistantError):
    """Error to indicate there is invalid auth."""
