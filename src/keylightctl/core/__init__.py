"""Discovery, device access and multi-device control for Key Lights."""

from .device import Device, device_string
from .discovery import Discovery, ZeroconfDiscovery, discover
from .models import (
    DEFAULT_PORT,
    ControlField,
    DeviceInfo,
    DeviceSettings,
    Light,
    LightGroup,
    LightState,
)
from .orchestrator import (
    adjust_control_field,
    fetch_light_groups,
    get_control_field,
    get_device_status,
    set_control_field,
    set_light_state,
)
from .resolver import parse_address, resolve_devices
from .service import KeyLightDevice

__all__ = [
    "DEFAULT_PORT",
    "ControlField",
    "Device",
    "DeviceInfo",
    "DeviceSettings",
    "Discovery",
    "KeyLightDevice",
    "Light",
    "LightGroup",
    "LightState",
    "ZeroconfDiscovery",
    "adjust_control_field",
    "device_string",
    "discover",
    "fetch_light_groups",
    "get_control_field",
    "get_device_status",
    "parse_address",
    "resolve_devices",
    "set_control_field",
    "set_light_state",
]
