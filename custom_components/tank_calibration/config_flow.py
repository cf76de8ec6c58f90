"""Config flow for Tank Calibration integration."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector

from .const import (
    DOMAIN,
    CONF_FILE_BASE,
    CONF_SHAPE,
    DEFAULT_DIMENSIONS,
    DEFAULT_FILE_BASE,
    DEFAULT_SHAPE,
    MAX_DIMENSION_MM,
    SHAPE_DIMENSIONS,
    SHAPES,
)
from .formatting import sanitize_file_name

_LOGGER = logging.getLogger(__name__)


def _build_user_schema(defaults: dict[str, Any]) -> vol.Schema:
    """Build the schema for naming the tank and picking its shape."""
    return vol.Schema(
        {
            vol.Required(
                CONF_FILE_BASE,
                default=defaults.get(CONF_FILE_BASE, DEFAULT_FILE_BASE),
            ): selector.TextSelector(),
            vol.Required(
                CONF_SHAPE,
                default=defaults.get(CONF_SHAPE, DEFAULT_SHAPE),
            ): selector.SelectSelector(
                selector.SelectSelectorConfig(
                    options=SHAPES,
                    mode=selector.SelectSelectorMode.LIST,
                    translation_key=CONF_SHAPE,
                )
            ),
        }
    )


def _build_dimensions_schema(shape: str, defaults: dict[str, Any]) -> vol.Schema:
    """Build the shared dimensions schema for config and options flows.

    Only the dimensions the shape needs are asked for.
    """
    return vol.Schema(
        {
            vol.Required(
                key,
                default=defaults.get(key, DEFAULT_DIMENSIONS[key]),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=1,
                    max=MAX_DIMENSION_MM,
                    mode=selector.NumberSelectorMode.BOX,
                    unit_of_measurement="mm",
                )
            )
            for key in SHAPE_DIMENSIONS[shape]
        }
    )


def _validate_dimensions(shape: str, user_input: dict[str, Any]) -> dict[str, str]:
    """Return form errors for missing or non-positive dimensions."""
    errors = {}
    for key in SHAPE_DIMENSIONS[shape]:
        try:
            value = float(user_input.get(key))
        except (TypeError, ValueError):
            value = 0.0
        if not value > 0:
            errors[key] = "invalid_dimension"
    return errors


def _entry_update(
    data: Mapping[str, Any], user_input: dict[str, Any]
) -> dict[str, Any]:
    """Return the new data and title for an edited entry.

    The unique id keeps the name the entry was created with.
    """
    file_base = sanitize_file_name(user_input.get(CONF_FILE_BASE))
    return {
        "data": {**data, **user_input, CONF_FILE_BASE: file_base},
        "title": f"Tank {file_base}",
    }


class TankCalibrationConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Tank Calibration."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the flow."""
        self._data: dict[str, Any] = {}

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Name the calibration and choose the tank shape."""
        if user_input is not None:
            file_base = sanitize_file_name(user_input[CONF_FILE_BASE])

            await self.async_set_unique_id(file_base)
            self._abort_if_unique_id_configured()

            self._data = {
                CONF_FILE_BASE: file_base,
                CONF_SHAPE: user_input[CONF_SHAPE],
            }
            return await self.async_step_dimensions()

        return self.async_show_form(
            step_id="user",
            data_schema=_build_user_schema({}),
        )

    async def async_step_dimensions(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Collect the dimensions of the chosen shape."""
        shape = self._data[CONF_SHAPE]
        errors = {}

        if user_input is not None:
            errors = _validate_dimensions(shape, user_input)
            if not errors:
                _LOGGER.debug(
                    "Creating %s tank %s", shape, self._data[CONF_FILE_BASE]
                )
                return self.async_create_entry(
                    title=f"Tank {self._data[CONF_FILE_BASE]}",
                    data={**self._data, **user_input},
                )

        return self.async_show_form(
            step_id="dimensions",
            data_schema=_build_dimensions_schema(shape, user_input or {}),
            errors=errors,
            description_placeholders={"shape": shape},
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        """Get the options flow for this handler."""
        return TankCalibrationOptionsFlow()


class TankCalibrationOptionsFlow(config_entries.OptionsFlow):
    """Handle options flow for Tank Calibration.

    The shape is fixed once configured; a different shape is a new entry.
    """

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Manage the file base name and dimensions."""
        shape = self.config_entry.data[CONF_SHAPE]
        errors = {}

        if user_input is not None:
            errors = _validate_dimensions(shape, user_input)
            if not errors:
                self.hass.config_entries.async_update_entry(
                    self.config_entry,
                    **_entry_update(self.config_entry.data, user_input),
                )
                return self.async_create_entry(title="", data={})

        defaults = {**self.config_entry.data, **(user_input or {})}
        data_schema = _build_dimensions_schema(shape, defaults).extend(
            {
                vol.Required(
                    CONF_FILE_BASE,
                    default=defaults.get(CONF_FILE_BASE, DEFAULT_FILE_BASE),
                ): selector.TextSelector(),
            }
        )

        return self.async_show_form(
            step_id="init",
            data_schema=data_schema,
            errors=errors,
        )
