"""Sensor platform for JNU IBS integration."""

from __future__ import annotations

from typing import Any
import logging

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import (
    CONF_DAYS_TO_COVER,
    CONF_ROOMMATES,
    CURRENCY,
    DEFAULT_DAYS_TO_COVER,
    DEFAULT_ROOMMATES,
    DOMAIN,
    RATES,
    UNITS,
    UTILITY_KEYS,
    EnergyType,
)
from .coordinator import IBSDataUpdateCoordinator, IBSTrendsCoordinator
from .recharge_estimator import estimate_recharge

_LOGGER = logging.getLogger(__name__)

UTILITY_NAMES = {
    EnergyType.ELEC: "Electricity",
    EnergyType.COLD_WATER: "Cold Water",
    EnergyType.HOT_WATER: "Hot Water",
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up JNU IBS sensors from a config entry."""
    entry_data = hass.data[DOMAIN][entry.entry_id]
    coordinator: IBSDataUpdateCoordinator = entry_data["coordinator"]
    trends_coordinator: IBSTrendsCoordinator = entry_data["trends_coordinator"]

    try:
        await coordinator.async_config_entry_first_refresh()
    except Exception as err:
        _LOGGER.error("Failed to refresh coordinator data: %s", err)

    try:
        await trends_coordinator.async_config_entry_first_refresh()
    except Exception as err:
        _LOGGER.error("Failed to refresh trend data: %s", err)

    sensors: list[SensorEntity] = [
        IBSBalanceSensor(coordinator),
        IBSCostSensor(coordinator, "total", "Total"),
    ]
    for energy_type, key in UTILITY_KEYS.items():
        sensors.append(IBSCostSensor(coordinator, key, UTILITY_NAMES[energy_type]))
        sensors.append(IBSSubsidySensor(coordinator, energy_type))

    sensors.append(
        IBSRechargeSensor(
            coordinator,
            trends_coordinator,
            days_to_cover=entry.options.get(CONF_DAYS_TO_COVER, DEFAULT_DAYS_TO_COVER),
            roommates=entry.options.get(CONF_ROOMMATES, DEFAULT_ROOMMATES),
        )
    )

    _LOGGER.debug("Adding %d IBS sensors for room %s", len(sensors), coordinator.room)
    async_add_entities(sensors)


class IBSBaseSensor(CoordinatorEntity[IBSDataUpdateCoordinator], SensorEntity):
    """Base class for sensors that read the overview."""

    _attr_has_entity_name = True

    def __init__(self, coordinator: IBSDataUpdateCoordinator, key: str) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.room}_{key}"
        self._attr_device_info = {
            "identifiers": {(DOMAIN, coordinator.room)},
            "name": f"Dorm {coordinator.room}",
            "manufacturer": "JNU IBS",
        }

    @property
    def _overview(self) -> dict[str, Any] | None:
        return self.coordinator.get_overview()

    @property
    def available(self) -> bool:
        """Return True when an overview has been fetched."""
        return super().available and self._overview is not None


class IBSBalanceSensor(IBSBaseSensor):
    """Remaining account balance."""

    _attr_device_class = SensorDeviceClass.MONETARY
    _attr_native_unit_of_measurement = CURRENCY
    _attr_icon = "mdi:wallet"

    def __init__(self, coordinator: IBSDataUpdateCoordinator) -> None:
        """Initialize the balance sensor."""
        super().__init__(coordinator, "balance")
        self._attr_name = "Balance"

    @property
    def native_value(self) -> float | None:
        """Return the balance."""
        overview = self._overview
        return overview["balance"] if overview else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the latest payment records and the active endpoint."""
        data = self.coordinator.data or {}
        return {
            "records": data.get("records", []),
            "endpoint": data.get("endpoint"),
        }


class IBSCostSensor(IBSBaseSensor):
    """Billed cost for one utility, or the total."""

    _attr_device_class = SensorDeviceClass.MONETARY
    _attr_state_class = SensorStateClass.TOTAL
    _attr_native_unit_of_measurement = CURRENCY

    def __init__(
        self, coordinator: IBSDataUpdateCoordinator, cost_key: str, label: str
    ) -> None:
        """Initialize the cost sensor."""
        super().__init__(coordinator, f"cost_{cost_key}")
        self._cost_key = cost_key
        self._attr_name = f"Cost {label}"

    @property
    def native_value(self) -> float | None:
        """Return the cost."""
        overview = self._overview
        return overview["costs"][self._cost_key] if overview else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return usage and unit price."""
        overview = self._overview
        if not overview or self._cost_key not in overview["details"]:
            return {}
        usage, price = overview["details"][self._cost_key]
        return {"usage": usage, "unit_price": price}


class IBSSubsidySensor(IBSBaseSensor):
    """Remaining free allowance for one utility."""

    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:gift-outline"

    def __init__(
        self, coordinator: IBSDataUpdateCoordinator, energy_type: EnergyType
    ) -> None:
        """Initialize the subsidy sensor."""
        key = UTILITY_KEYS[energy_type]
        super().__init__(coordinator, f"subsidy_{key}")
        self._key = key
        self._energy_type = energy_type
        self._attr_name = f"Subsidy {UTILITY_NAMES[energy_type]}"
        self._attr_native_unit_of_measurement = UNITS[energy_type]

    @property
    def native_value(self) -> float | None:
        """Return the remaining allowance."""
        overview = self._overview
        return overview["subsidy"][self._key] if overview else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the money value of the allowance."""
        overview = self._overview
        if not overview:
            return {}
        return {
            "money": overview["subsidy_money"][self._key],
            "rate": RATES[self._energy_type],
        }


class IBSRechargeSensor(IBSBaseSensor):
    """Suggested recharge amount to cover the configured number of days."""

    _attr_device_class = SensorDeviceClass.MONETARY
    _attr_native_unit_of_measurement = CURRENCY
    _attr_icon = "mdi:cash-plus"

    def __init__(
        self,
        coordinator: IBSDataUpdateCoordinator,
        trends_coordinator: IBSTrendsCoordinator,
        days_to_cover: int,
        roommates: int,
    ) -> None:
        """Initialize the recharge sensor."""
        super().__init__(coordinator, "recharge_suggestion")
        self._trends_coordinator = trends_coordinator
        self._days_to_cover = days_to_cover
        self._roommates = roommates
        self._attr_name = "Recharge Suggestion"

    async def async_added_to_hass(self) -> None:
        """Also update when trend data changes."""
        await super().async_added_to_hass()
        self.async_on_remove(
            self._trends_coordinator.async_add_listener(self._handle_coordinator_update)
        )

    def _estimate(self) -> dict[str, Any] | None:
        overview = self._overview
        if not overview:
            return None
        return estimate_recharge(
            overview,
            self._trends_coordinator.data or [],
            self._days_to_cover,
            self._roommates,
        )

    @property
    def native_value(self) -> float | None:
        """Return the suggested recharge, rounded up to 10."""
        estimate = self._estimate()
        return estimate["suggested_recharge"] if estimate else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the estimate breakdown."""
        return self._estimate() or {}
