"""Apply one change to every light of every device.

Devices are handled one after another. A failing fetch aborts the command
before anything is written; a failing update stops the command, leaving the
devices updated before it as they are. There is no rollback.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .device import Device, device_string
from .models import ControlField, LightGroup, LightState

_LOGGER = logging.getLogger(__name__)

STEP = 10
FIELD_MIN = 0
FIELD_MAX = 100


async def fetch_light_groups(devices: Sequence[Device]) -> List[Tuple[Device, LightGroup]]:
    """Fetch the light group of every device, in order."""
    groups: List[Tuple[Device, LightGroup]] = []
    for device in devices:
        _LOGGER.debug("Fetching light group from %s", device.address)
        groups.append((device, await device.fetch_light_group()))
    return groups


async def _write_light_groups(groups: List[Tuple[Device, LightGroup]]) -> None:
    for device, group in groups:
        _LOGGER.debug("Updating light group for %s", device.address)
        await device.update_light_group(group)


async def set_light_state(devices: Sequence[Device], state: LightState) -> None:
    """Switch lights on, off, or flip each light's current state."""
    groups = await fetch_light_groups(devices)

    for device, group in groups:
        for light in group.lights:
            if state is LightState.TOGGLE:
                light.on = 1 - light.on
            else:
                light.on = int(state)
            _LOGGER.debug(
                "Setting %s to %s",
                device.address,
                LightState.ON if light.on else LightState.OFF,
            )

    await _write_light_groups(groups)


async def set_control_field(devices: Sequence[Device], control: ControlField, value: int) -> None:
    """Write ``value`` to ``control`` on every light.

    The value is sent as given; devices decide what to do with values outside
    their range.
    """
    groups = await fetch_light_groups(devices)

    for device, group in groups:
        for light in group.lights:
            light.set_field(control, value)
        _LOGGER.debug("Setting %s %s to %d", device.address, control, value)

    await _write_light_groups(groups)


async def get_control_field(devices: Sequence[Device], control: ControlField) -> int:
    """Read ``control`` from the first light of the first device, or 0."""
    groups = await fetch_light_groups(devices)

    for _, group in groups:
        for light in group.lights:
            return light.get_field(control)
    return 0


async def adjust_control_field(devices: Sequence[Device], control: ControlField, change: int) -> int:
    """Step ``control`` relative to the first light and apply it everywhere.

    Returns the value that was written.
    """
    value = await get_control_field(devices, control) + change
    value = max(FIELD_MIN, min(FIELD_MAX, value))
    await set_control_field(devices, control, value)
    return value


async def get_device_status(devices: Sequence[Device]) -> str:
    blocks = []
    for device in devices:
        _LOGGER.debug("Fetching device info for %s", device.address)
        info = await device.fetch_device_info()
        _LOGGER.debug("Fetching device settings for %s", device.address)
        settings = await device.fetch_settings()
        _LOGGER.debug("Fetching light group for %s", device.address)
        group = await device.fetch_light_group()
        blocks.append(device_string(device, info, settings, group))
    return "\n\n".join(blocks)
