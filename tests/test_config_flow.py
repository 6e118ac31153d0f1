"""Tests for the JNU IBS config flow."""

from unittest.mock import AsyncMock, MagicMock, patch
import pytest
from aiohttp import ClientError

from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType

from custom_components.jnu_ibs.api import IBSAuthenticationError
from custom_components.jnu_ibs.config_flow import (
    ConfigFlow,
    CannotConnect,
    InvalidAuth,
    validate_input,
)


@pytest.fixture(autouse=True)
async def ensure_config_flow_registered(hass: HomeAssistant):
    """Ensure the config flow is registered before each test."""
    import custom_components.jnu_ibs.config_flow  # noqa: F401


@pytest.fixture
def mock_validate_input_success():
    """Mock successful validation."""
    with patch(
        "custom_components.jnu_ibs.config_flow.validate_input"
    ) as mock_validate:
        mock_validate.return_value = {"title": "JNU IBS - T8201", "room": "T8201"}
        yield mock_validate


def _flow(hass: HomeAssistant) -> ConfigFlow:
    flow = ConfigFlow()
    flow.hass = hass
    flow.init_step = "user"
    # Make context mutable (it's normally a mappingproxy)
    flow.context = {}
    return flow


async def test_form(hass: HomeAssistant):
    """Test we get the form."""
    result = await _flow(hass).async_step_user()

    assert result["type"] == FlowResultType.FORM
    assert result.get("errors") in (None, {})


async def test_form_user_input(hass: HomeAssistant, mock_validate_input_success):
    """Test form submission with a valid room."""
    result = await _flow(hass).async_step_user(
        {"room": "t8201", "base_url": "https://custom.example/svc"}
    )
    await hass.async_block_till_done()

    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert result["title"] == "JNU IBS - T8201"
    assert result["data"] == {"room": "T8201"}
    assert result["options"] == {"base_url": "https://custom.example/svc"}
    mock_validate_input_success.assert_called_once()


@pytest.mark.parametrize(
    ("side_effect", "error"),
    [
        (InvalidAuth("bad room"), "invalid_auth"),
        (CannotConnect("down"), "cannot_connect"),
        (RuntimeError("boom"), "unknown"),
    ],
)
async def test_form_errors(hass: HomeAssistant, side_effect, error):
    """Test validation failures are shown on the form."""
    with patch(
        "custom_components.jnu_ibs.config_flow.validate_input",
        side_effect=side_effect,
    ):
        result = await _flow(hass).async_step_user({"room": "T8201"})

    assert result["type"] == FlowResultType.FORM
    assert result["errors"] == {"base": error}


def _patched_api(login_side_effect=None):
    api = MagicMock()
    api.room = "T8201"
    api.login = AsyncMock(side_effect=login_side_effect)
    api.async_close = AsyncMock()
    return patch("custom_components.jnu_ibs.api.IBSAPI", return_value=api), api


async def test_validate_input_success(hass: HomeAssistant):
    """Test validation logs in and closes the session."""
    patcher, api = _patched_api()
    with patcher as api_class:
        info = await validate_input(hass, {"room": "t8201", "base_url": "https://custom.example/"})

    api_class.assert_called_once_with(base_url="https://custom.example/")
    api.login.assert_awaited_once_with("t8201")
    api.async_close.assert_awaited_once()
    assert info == {"title": "JNU IBS - T8201", "room": "T8201"}


async def test_validate_input_rejected(hass: HomeAssistant):
    """Test a rejected login maps to InvalidAuth."""
    patcher, api = _patched_api(IBSAuthenticationError("房间不存在"))
    with patcher, pytest.raises(InvalidAuth):
        await validate_input(hass, {"room": "X0000"})

    api.async_close.assert_awaited_once()


async def test_validate_input_network_error(hass: HomeAssistant):
    """Test a login that could not be sent maps to CannotConnect."""
    err = IBSAuthenticationError("Network error during login")
    err.__cause__ = ClientError("unreachable")
    patcher, _ = _patched_api(err)
    with patcher, pytest.raises(CannotConnect):
        await validate_input(hass, {"room": "T8201"})
