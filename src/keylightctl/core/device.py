from __future__ import annotations

from typing import Protocol

from .models import DeviceInfo, DeviceSettings, LightGroup


class Device(Protocol):
    """A controllable light endpoint.

    Implemented over HTTP by :class:`keylightctl.core.service.KeyLightDevice`
    and in memory by :class:`keylightctl.testing.FakeDevice`.
    """

    host: str
    port: int

    @property
    def address(self) -> str: ...

    async def fetch_device_info(self) -> DeviceInfo: ...

    async def fetch_settings(self) -> DeviceSettings: ...

    async def fetch_light_group(self) -> LightGroup: ...

    async def update_light_group(self, group: LightGroup) -> LightGroup: ...


def format_address(host: str, port: int) -> str:
    """Join host and port, bracketing IPv6 literals."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def device_string(
    device: Device,
    info: DeviceInfo,
    settings: DeviceSettings,
    group: LightGroup,
) -> str:
    """Render the status block for one device."""
    lines = [
        f"Device: {device.address}",
        f"DeviceInfo: {info}",
        f"DeviceSettings: {settings}",
        f"LightGroup: {group.number_of_lights} light(s)",
    ]
    for index, light in enumerate(group.lights):
        lines.append(
            f"  Light {index}: on={light.on} brightness={light.brightness} "
            f"temperature={light.temperature} (~{light.kelvin}K)"
        )
    return "\n".join(lines)
