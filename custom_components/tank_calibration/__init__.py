"""Tank Calibration Integration."""

from __future__ import annotations

import logging
import math
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.typing import ConfigType

from .const import (
    DOMAIN,
    ATTR_APPLY,
    ATTR_DIAMETER,
    ATTR_ENTRY_ID,
    ATTR_HEIGHT,
    ATTR_METER_CODE,
    ATTR_PERIMETER,
    ATTR_PRODUCT_HEIGHT,
    ATTR_SENSOR_DISTANCE,
    ATTR_STEP,
    ATTR_USEFUL_HEIGHT,
    ATTR_USEFUL_VOLUME,
    ATTR_VOLUME,
    CONF_DIAMETER,
    CONF_FILE_BASE,
    CONF_SHAPE,
    DEFAULT_FILE_BASE,
    DEFAULT_TABLE_STEP,
    SERVICE_CALCULATE_HEIGHT,
    SERVICE_DIAMETER_FROM_PERIMETER,
    SERVICE_EXPORT_CALIBRATIONS,
    SERVICE_GENERATE_TABLE,
    SERVICE_SAVE_CALIBRATION,
    SHAPE_DIMENSIONS,
)
from .coordinator import TankCalibrationCoordinator
from .formatting import parse_number, round_half_up
from .geometry import tank_from_config

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.SENSOR]

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)


def locale_float(value: Any) -> float:
    """Validate a number given with a decimal comma or point."""
    number = parse_number(value)
    if math.isnan(number):
        raise vol.Invalid(f"Invalid number: {value!r}")
    return number


NON_NEGATIVE_NUMBER = vol.All(locale_float, vol.Range(min=0))

CALCULATE_HEIGHT_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_VOLUME): NON_NEGATIVE_NUMBER,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

GENERATE_TABLE_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_STEP, default=DEFAULT_TABLE_STEP): locale_float,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

SAVE_CALIBRATION_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_PRODUCT_HEIGHT): NON_NEGATIVE_NUMBER,
        vol.Required(ATTR_SENSOR_DISTANCE): NON_NEGATIVE_NUMBER,
        vol.Optional(ATTR_USEFUL_HEIGHT): NON_NEGATIVE_NUMBER,
        vol.Optional(ATTR_USEFUL_VOLUME): NON_NEGATIVE_NUMBER,
        vol.Optional(ATTR_METER_CODE): cv.string,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

EXPORT_CALIBRATIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

DIAMETER_FROM_PERIMETER_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_PERIMETER): vol.All(
            locale_float, vol.Range(min=0, min_included=False)
        ),
        vol.Optional(ATTR_APPLY, default=False): cv.boolean,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)


def _get_coordinator(
    hass: HomeAssistant, entry_id: str | None
) -> TankCalibrationCoordinator:
    """Resolve the coordinator a service call targets."""
    coordinators = hass.data.get(DOMAIN, {})

    if entry_id:
        coord = coordinators.get(entry_id)
        if isinstance(coord, TankCalibrationCoordinator):
            return coord
        _LOGGER.warning("No coordinator found for entry_id: %s", entry_id)
        raise ServiceValidationError(f"No tank configured with entry_id {entry_id}")

    for coord in coordinators.values():
        if isinstance(coord, TankCalibrationCoordinator):
            return coord

    raise ServiceValidationError("No tank is configured")


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the Tank Calibration component."""
    hass.data.setdefault(DOMAIN, {})

    async def handle_calculate_height(call: ServiceCall) -> ServiceResponse:
        """Handle the calculate_height service call."""
        coord = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        volume = call.data[ATTR_VOLUME]
        height = coord.calculate_height(volume)
        return {ATTR_VOLUME: volume, ATTR_HEIGHT: round_half_up(height)}

    async def handle_generate_table(call: ServiceCall) -> ServiceResponse:
        """Handle the generate_table service call."""
        coord = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        try:
            return await hass.async_add_executor_job(
                coord.generate_table, call.data.get(ATTR_STEP)
            )
        except ValueError as err:
            raise ServiceValidationError(str(err)) from err

    async def handle_save_calibration(call: ServiceCall) -> ServiceResponse:
        """Handle the save_calibration service call."""
        coord = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        record = coord.save_calibration(
            product_height=call.data[ATTR_PRODUCT_HEIGHT],
            sensor_distance=call.data[ATTR_SENSOR_DISTANCE],
            useful_height=call.data.get(ATTR_USEFUL_HEIGHT),
            useful_volume=call.data.get(ATTR_USEFUL_VOLUME),
            meter_code=call.data.get(ATTR_METER_CODE),
        )
        if record is None:
            raise ServiceValidationError(
                "Product height and sensor distance are required to compute B"
            )
        return record.as_dict()

    async def handle_export_calibrations(call: ServiceCall) -> ServiceResponse:
        """Handle the export_calibrations service call."""
        coord = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        return coord.export_calibrations()

    async def handle_diameter_from_perimeter(call: ServiceCall) -> ServiceResponse:
        """Handle the diameter_from_perimeter service call."""
        coord = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        perimeter = call.data[ATTR_PERIMETER]
        diameter = coord.diameter_from_perimeter(perimeter)

        if diameter is not None and call.data.get(ATTR_APPLY):
            entry = hass.config_entries.async_get_entry(coord.entry_id)
            shape = entry.data.get(CONF_SHAPE) if entry else None
            if CONF_DIAMETER not in SHAPE_DIMENSIONS.get(shape, ()):
                raise ServiceValidationError("The configured tank shape has no diameter")
            _LOGGER.info(
                "Applying diameter %.0f mm (perimeter %.0f mm) to %s",
                diameter,
                perimeter,
                entry.title,
            )
            hass.config_entries.async_update_entry(
                entry, data={**entry.data, CONF_DIAMETER: round_half_up(diameter)}
            )

        return {
            ATTR_PERIMETER: perimeter,
            ATTR_DIAMETER: round_half_up(diameter) if diameter is not None else None,
        }

    for service, handler, schema, supports_response in (
        (
            SERVICE_CALCULATE_HEIGHT,
            handle_calculate_height,
            CALCULATE_HEIGHT_SCHEMA,
            SupportsResponse.ONLY,
        ),
        (
            SERVICE_GENERATE_TABLE,
            handle_generate_table,
            GENERATE_TABLE_SCHEMA,
            SupportsResponse.ONLY,
        ),
        (
            SERVICE_SAVE_CALIBRATION,
            handle_save_calibration,
            SAVE_CALIBRATION_SCHEMA,
            SupportsResponse.OPTIONAL,
        ),
        (
            SERVICE_EXPORT_CALIBRATIONS,
            handle_export_calibrations,
            EXPORT_CALIBRATIONS_SCHEMA,
            SupportsResponse.ONLY,
        ),
        (
            SERVICE_DIAMETER_FROM_PERIMETER,
            handle_diameter_from_perimeter,
            DIAMETER_FROM_PERIMETER_SCHEMA,
            SupportsResponse.OPTIONAL,
        ),
    ):
        hass.services.async_register(
            DOMAIN,
            service,
            handler,
            schema=schema,
            supports_response=supports_response,
        )

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Tank Calibration from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    try:
        tank = tank_from_config(entry.data)
    except ValueError as exc:
        _LOGGER.error("Invalid configuration for entry %s: %s", entry.entry_id, exc)
        return False

    coordinator = TankCalibrationCoordinator(
        hass,
        tank=tank,
        file_base=entry.data.get(CONF_FILE_BASE, DEFAULT_FILE_BASE),
        entry_id=entry.entry_id,
        config_entry=entry,
    )

    hass.data[DOMAIN][entry.entry_id] = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Apply geometry changes in place so the session survives them
    entry.async_on_unload(entry.add_update_listener(async_update_tank))

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        hass.data[DOMAIN].pop(entry.entry_id)

    return unload_ok


async def async_update_tank(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Push edited dimensions or file name to the running coordinator."""
    coordinator = hass.data[DOMAIN].get(entry.entry_id)
    if not isinstance(coordinator, TankCalibrationCoordinator):
        return

    coordinator.update_tank(
        tank_from_config(entry.data),
        entry.data.get(CONF_FILE_BASE, DEFAULT_FILE_BASE),
    )
