from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List

DEFAULT_PORT = 9123


class LightState(enum.IntEnum):
    """Requested power state for a light."""

    OFF = 0
    ON = 1
    TOGGLE = 2

    def __str__(self) -> str:
        return self.name.lower()


class ControlField(enum.Enum):
    """Continuously adjustable light attribute."""

    BRIGHTNESS = "brightness"
    TEMPERATURE = "temperature"

    def __str__(self) -> str:
        return self.value


@dataclass
class Light:
    """State of a single light in a light group."""
    on: int = 0
    brightness: int = 0
    temperature: int = 0  # 143-344 on Key Lights (~7000K-2900K)

    @property
    def kelvin(self) -> int:
        """Approximate colour temperature in Kelvin."""
        return round((-4100 * self.temperature) / 201 + 1993300 / 201)

    def get_field(self, control: ControlField) -> int:
        return getattr(self, control.value)

    def set_field(self, control: ControlField, value: int) -> None:
        setattr(self, control.value, value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Light":
        return cls(
            on=int(data.get("on", 0)),
            brightness=int(data.get("brightness", 0)),
            temperature=int(data.get("temperature", 0)),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "on": self.on,
            "brightness": self.brightness,
            "temperature": self.temperature,
        }


@dataclass
class LightGroup:
    """Ordered lights behind one device, as served by ``/elgato/lights``."""
    lights: List[Light] = field(default_factory=list)

    @property
    def number_of_lights(self) -> int:
        return len(self.lights)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LightGroup":
        return cls(lights=[Light.from_dict(light) for light in data.get("lights", [])])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "numberOfLights": self.number_of_lights,
            "lights": [light.to_dict() for light in self.lights],
        }


@dataclass
class DeviceInfo:
    """Accessory information reported by ``/elgato/accessory-info``."""
    product_name: str = ""
    hardware_board_type: int = 0
    firmware_build_number: int = 0
    firmware_version: str = ""
    serial_number: str = ""
    display_name: str = ""
    features: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceInfo":
        return cls(
            product_name=data.get("productName", ""),
            hardware_board_type=data.get("hardwareBoardType", 0),
            firmware_build_number=data.get("firmwareBuildNumber", 0),
            firmware_version=data.get("firmwareVersion", ""),
            serial_number=data.get("serialNumber", ""),
            display_name=data.get("displayName", ""),
            features=list(data.get("features", [])),
        )


@dataclass
class DeviceSettings:
    """Power-on and transition settings from ``/elgato/lights/settings``."""
    power_on_behavior: int = 0
    power_on_brightness: int = 0
    power_on_temperature: int = 0
    switch_on_duration_ms: int = 0
    switch_off_duration_ms: int = 0
    color_change_duration_ms: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceSettings":
        return cls(
            power_on_behavior=data.get("powerOnBehavior", 0),
            power_on_brightness=data.get("powerOnBrightness", 0),
            power_on_temperature=data.get("powerOnTemperature", 0),
            switch_on_duration_ms=data.get("switchOnDurationMs", 0),
            switch_off_duration_ms=data.get("switchOffDurationMs", 0),
            color_change_duration_ms=data.get("colorChangeDurationMs", 0),
        )
