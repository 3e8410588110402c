"""In-memory stand-ins for devices and discovery, for tests and dry runs."""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass, field
from typing import List, Optional

from keylightctl.core.device import Device, format_address
from keylightctl.core.models import DEFAULT_PORT, DeviceInfo, DeviceSettings, LightGroup


@dataclass(eq=False)
class FakeDevice:
    """Device that keeps its light group in memory.

    Each ``*_error`` is raised by the matching call when set. Written groups
    are kept in ``updates``.
    """

    host: str
    port: int = DEFAULT_PORT
    device_info: DeviceInfo = field(default_factory=DeviceInfo)
    settings: DeviceSettings = field(default_factory=DeviceSettings)
    light_group: LightGroup = field(default_factory=LightGroup)
    fetch_device_info_error: Optional[Exception] = None
    fetch_settings_error: Optional[Exception] = None
    fetch_light_group_error: Optional[Exception] = None
    update_light_group_error: Optional[Exception] = None
    updates: List[LightGroup] = field(default_factory=list)
    fetch_count: int = 0

    @property
    def address(self) -> str:
        return format_address(self.host, self.port)

    async def fetch_device_info(self) -> DeviceInfo:
        if self.fetch_device_info_error is not None:
            raise self.fetch_device_info_error
        return self.device_info

    async def fetch_settings(self) -> DeviceSettings:
        if self.fetch_settings_error is not None:
            raise self.fetch_settings_error
        return self.settings

    async def fetch_light_group(self) -> LightGroup:
        self.fetch_count += 1
        if self.fetch_light_group_error is not None:
            raise self.fetch_light_group_error
        return copy.deepcopy(self.light_group)

    async def update_light_group(self, group: LightGroup) -> LightGroup:
        if self.update_light_group_error is not None:
            raise self.update_light_group_error
        self.light_group = copy.deepcopy(group)
        self.updates.append(copy.deepcopy(group))
        return copy.deepcopy(self.light_group)


class FakeDiscovery:
    """Discovery that announces a fixed list of devices.

    Devices are announced ``interval`` seconds apart, then ``run`` waits to be
    cancelled like a real browser. With ``error`` set, ``run`` fails at once.
    """

    def __init__(
        self,
        devices: Optional[List[Device]] = None,
        error: Optional[Exception] = None,
        interval: float = 0.0,
    ) -> None:
        self.devices = list(devices or [])
        self.error = error
        self.interval = interval
        self.run_count = 0
        self.running = False
        self._queue: Optional[asyncio.Queue[Device]] = None

    def results(self) -> "asyncio.Queue[Device]":
        if self._queue is None:
            self._queue = asyncio.Queue()
        return self._queue

    async def run(self) -> None:
        self.run_count += 1
        if self.error is not None:
            raise self.error

        self.running = True
        try:
            for device in self.devices:
                if self.interval:
                    await asyncio.sleep(self.interval)
                self.results().put_nowait(device)
            await asyncio.Event().wait()
        finally:
            self.running = False
