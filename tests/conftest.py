"""Test configuration and fixtures for JNU IBS integration tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock
import inspect
import pytest

from homeassistant.core import HomeAssistant
from homeassistant.config_entries import ConfigEntry

from custom_components.jnu_ibs import DOMAIN
from custom_components.jnu_ibs.api import IBSAPI

# Import pytest-homeassistant-custom-component fixtures
pytest_plugins = ("pytest_homeassistant_custom_component",)


def _create_config_entry(**kwargs) -> ConfigEntry:
    """Create a ConfigEntry that works with different Home Assistant versions.

    Some versions require discovery_keys and subentries_data, others don't accept them.
    This function inspects the signature and conditionally includes them.
    """
    sig = inspect.signature(ConfigEntry.__init__)
    params = sig.parameters

    if "discovery_keys" in params and "discovery_keys" not in kwargs:
        kwargs["discovery_keys"] = None
    if "subentries_data" in params and "subentries_data" not in kwargs:
        kwargs["subentries_data"] = None

    return ConfigEntry(**kwargs)


def make_response(status: int = 200, payload: Any = None, text: str = "") -> MagicMock:
    """Create a mock aiohttp response usable as an async context manager."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value=text)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def ibs_payload(result_list: Any = None, success: bool = True, msg: str | None = None) -> dict:
    """Build a JNUService response body."""
    body: dict[str, Any] = {"Success": success}
    if result_list is not None:
        body["ResultList"] = result_list
    if msg is not None:
        body["Msg"] = msg
    return {"d": body}


@pytest.fixture(autouse=True)
async def setup_integration(hass: HomeAssistant):
    """Set up the integration for testing."""
    from custom_components.jnu_ibs import async_setup

    await async_setup(hass, {})


@pytest.fixture
def sample_info_response() -> dict:
    """GetUserInfo payload with a balance entry."""
    return ibs_payload(
        [
            {
                "customerId": "C1001",
                "roomInfo": [
                    {"keyName": "房间", "keyValue": "T8201"},
                    {"keyName": "账户余额", "keyValue": "124.50"},
                ],
            }
        ]
    )


@pytest.fixture
def sample_subsidy_response() -> dict:
    """GetSubsidy payload with electricity and cold water allowances."""
    return ibs_payload(
        [
            {"itemType": 2, "totalValue": 30, "avalibleValue": 15.5},
            {"itemType": 3, "totalValue": 10, "avalibleValue": 5},
        ]
    )


@pytest.fixture
def sample_bill_response() -> dict:
    """GetBillCost payload for all three utilities."""
    return ibs_payload(
        [
            {
                "energyType": 2,
                "unitPrice": 0.647,
                "energyCostDetails": [{"billItemValues": [{"energyValue": 131.6}]}],
            },
            {
                "energyType": 3,
                "unitPrice": 2.82,
                "energyCostDetails": [{"billItemValues": [{"energyValue": 8.7}]}],
            },
            {
                "energyType": 4,
                "unitPrice": 25.0,
                "energyCostDetails": [{"billItemValues": [{"energyValue": 0.48}]}],
            },
        ]
    )


@pytest.fixture
def sample_overview() -> dict:
    """Overview as produced for the sample responses."""
    return {
        "room": "T8201",
        "balance": 124.5,
        "costs": {"elec": 85.15, "cold": 24.53, "hot": 12.0, "total": 121.68},
        "subsidy": {"elec": 15.5, "cold": 5.0, "hot": 0.0},
        "subsidy_money": {"elec": 10.03, "cold": 14.1, "hot": 0.0},
        "details": {
            "elec": (131.6, 0.647),
            "cold": (8.7, 2.82),
            "hot": (0.48, 25.0),
        },
    }


@pytest.fixture
def sample_trends() -> list:
    """GetCustomerMetricalData result list."""
    return [
        {
            "energyType": 2,
            "datas": [
                {"recordTime": 1759248000000 + i * 86400000, "dataValue": 4.0}
                for i in range(7)
            ],
        },
        {
            "energyType": 3,
            "datas": [
                {"recordTime": 1759248000000 + i * 86400000, "dataValue": 1.0}
                for i in range(7)
            ],
        },
    ]


@pytest.fixture
def mock_api(sample_overview: dict, sample_trends: list) -> MagicMock:
    """Create a mock IBS API."""
    api = MagicMock(spec=IBSAPI)
    api.room = "T8201"
    api.is_authenticated = MagicMock(return_value=False)
    api.login = AsyncMock(return_value=None)
    api.logout = MagicMock()
    api.fetch_overview = AsyncMock(return_value=sample_overview)
    api.fetch_records = AsyncMock(
        return_value=[
            {"logTime": 1760000000000, "paymentType": "微信充值", "itemType": 2, "dataValue": 100.0}
        ]
    )
    api.fetch_trends = AsyncMock(return_value=sample_trends)
    api.resolver = MagicMock()
    api.resolver.resolve = MagicMock(return_value="https://primary.example/")
    api.async_close = AsyncMock()
    return api


@pytest.fixture
def mock_config_entry() -> ConfigEntry:
    """Create a mock config entry."""
    return _create_config_entry(
        version=1,
        domain=DOMAIN,
        title="JNU IBS - T8201",
        data={"room": "T8201"},
        source="user",
        entry_id="test_entry_id",
        unique_id="T8201",
        options={"base_url": ""},
        minor_version=1,
    )
