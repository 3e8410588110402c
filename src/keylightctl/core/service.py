from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Type, TypeVar

import aiohttp

from keylightctl.exceptions import KeyLightDeviceError

from .device import format_address
from .models import DEFAULT_PORT, DeviceInfo, DeviceSettings, LightGroup

_LOGGER = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 5.0

T = TypeVar("T", DeviceInfo, DeviceSettings, LightGroup)


@dataclass(frozen=True)
class KeyLightDevice:
    """Key Light reachable over its HTTP API."""

    host: str
    port: int = DEFAULT_PORT
    name: str = field(default="", compare=False)
    timeout: float = field(default=DEFAULT_HTTP_TIMEOUT, compare=False, repr=False)

    @property
    def address(self) -> str:
        return format_address(self.host, self.port)

    @property
    def base_url(self) -> str:
        return f"http://{self.address}"

    async def fetch_device_info(self) -> DeviceInfo:
        return await self._fetch(DeviceInfo, "GET", "/elgato/accessory-info")

    async def fetch_settings(self) -> DeviceSettings:
        return await self._fetch(DeviceSettings, "GET", "/elgato/lights/settings")

    async def fetch_light_group(self) -> LightGroup:
        return await self._fetch(LightGroup, "GET", "/elgato/lights")

    async def update_light_group(self, group: LightGroup) -> LightGroup:
        return await self._fetch(LightGroup, "PUT", "/elgato/lights", group.to_dict())

    async def _fetch(self, model: Type[T], method: str, path: str, payload: Optional[dict] = None) -> T:
        """Send one request and decode the body into ``model``."""
        data = await self._request(method, path, payload)
        try:
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object, got {type(data).__name__}")
            return model.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as err:
            raise KeyLightDeviceError(
                self.address, f"{method} {path} returned malformed data: {err}"
            ) from err

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        """Send one request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        _LOGGER.debug("%s %s", method, url)
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, json=payload) as response:
                    response.raise_for_status()
                    return await response.json(content_type=None)
        except asyncio.TimeoutError as err:
            raise KeyLightDeviceError(self.address, f"{method} {path} timed out") from err
        except aiohttp.ClientResponseError as err:
            raise KeyLightDeviceError(
                self.address, f"{method} {path} returned {err.status} {err.message}"
            ) from err
        except (aiohttp.ClientError, ValueError) as err:
            raise KeyLightDeviceError(self.address, f"{method} {path} failed: {err}") from err
