from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import List, Optional, Protocol, Set

from zeroconf import ServiceStateChange, Zeroconf
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from keylightctl.exceptions import DiscoveryTimeoutError

from .device import Device
from .service import DEFAULT_HTTP_TIMEOUT, KeyLightDevice

_LOGGER = logging.getLogger(__name__)

SERVICE_TYPE = "_elg._tcp.local."
DISCOVERY_IDLE_WINDOW = 1.0
SERVICE_INFO_TIMEOUT_MS = 3000


class Discovery(Protocol):
    """Push-based source of device advertisements.

    ``run`` keeps browsing until it is cancelled and raises if the underlying
    listener fails. Every device it sees is put on the queue returned by
    ``results``.
    """

    async def run(self) -> None: ...

    def results(self) -> "asyncio.Queue[Device]": ...


class ZeroconfDiscovery:
    """Discovers Key Light devices on the network using mDNS."""

    def __init__(self, http_timeout: float = DEFAULT_HTTP_TIMEOUT) -> None:
        self._http_timeout = http_timeout
        self._queue: Optional[asyncio.Queue[Device]] = None
        self._pending: Set[asyncio.Task] = set()

    def results(self) -> "asyncio.Queue[Device]":
        if self._queue is None:
            self._queue = asyncio.Queue()
        return self._queue

    async def run(self) -> None:
        """Browse for Key Lights until cancelled."""
        aiozc = AsyncZeroconf()
        browser = AsyncServiceBrowser(
            aiozc.zeroconf,
            [SERVICE_TYPE],
            handlers=[self._on_service_state_change],
        )
        _LOGGER.debug("Browsing for %s", SERVICE_TYPE)
        try:
            await asyncio.Event().wait()
        finally:
            pending = list(self._pending)
            for task in pending:
                task.cancel()
            # resolvers must not outlive the zeroconf instance they query
            await asyncio.gather(*pending, return_exceptions=True)
            await browser.async_cancel()
            await aiozc.async_close()
            _LOGGER.debug("Stopped browsing for %s", SERVICE_TYPE)

    def _on_service_state_change(
        self,
        zeroconf: Zeroconf,
        service_type: str,
        name: str,
        state_change: ServiceStateChange,
    ) -> None:
        """Handle service discovery events."""
        if state_change is not ServiceStateChange.Added:
            return
        task = asyncio.ensure_future(self._resolve(zeroconf, service_type, name))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _resolve(self, zeroconf: Zeroconf, service_type: str, name: str) -> None:
        info = AsyncServiceInfo(service_type, name)
        if not await info.async_request(zeroconf, SERVICE_INFO_TIMEOUT_MS):
            _LOGGER.debug("No service info for %s", name)
            return

        addresses = info.parsed_addresses()
        host = addresses[0] if addresses else (info.server or "").rstrip(".")
        if not host or not info.port:
            _LOGGER.debug("Ignoring %s without an address", name)
            return

        device = KeyLightDevice(
            host=host,
            port=info.port,
            name=name.replace(f".{service_type}", ""),
            timeout=self._http_timeout,
        )
        _LOGGER.debug("Found %s at %s", device.name, device.address)
        self.results().put_nowait(device)


async def discover(
    discoverer: Discovery,
    *,
    deadline: Optional[float] = None,
    idle_window: float = DISCOVERY_IDLE_WINDOW,
) -> List[Device]:
    """Collect advertised devices until discovery goes quiet.

    Devices are returned in the order they were announced, once a full
    ``idle_window`` passes without a new one. ``deadline`` is an absolute
    event loop time; reaching it raises :class:`DiscoveryTimeoutError`.
    Cancelling the calling task and failures of the discoverer propagate
    unchanged. The discoverer is stopped before this returns.

    Advertisements left on the queue by an earlier run are discarded, so a
    discoverer can be reused.
    """
    loop = asyncio.get_running_loop()
    results = discoverer.results()
    devices: List[Device] = []
    while not results.empty():
        results.get_nowait()

    runner = asyncio.ensure_future(discoverer.run())
    getter: Optional[asyncio.Future] = None
    try:
        idle_deadline = loop.time() + idle_window
        while True:
            now = loop.time()
            # The command deadline is checked before anything else, so it wins
            # over an idle window that expired at the same moment.
            if deadline is not None and now >= deadline:
                raise DiscoveryTimeoutError()

            if runner.done():
                runner.result()
                while not results.empty():
                    devices.append(results.get_nowait())
                _LOGGER.debug("Discovery finished early")
                return devices

            if now >= idle_deadline:
                _LOGGER.debug("No new devices for %.1fs, discovery complete", idle_window)
                return devices

            wake_at = idle_deadline if deadline is None else min(idle_deadline, deadline)
            if getter is None:
                getter = asyncio.ensure_future(results.get())
            done, _ = await asyncio.wait(
                {getter, runner},
                timeout=wake_at - now,
                return_when=asyncio.FIRST_COMPLETED,
            )

            if getter in done:
                device = getter.result()
                getter = None
                devices.append(device)
                _LOGGER.debug("Discovered %s", device.address)
                idle_deadline = loop.time() + idle_window
    finally:
        if getter is not None:
            getter.cancel()
        if not runner.done():
            runner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await runner
        elif not runner.cancelled():
            # mark a failure that lost the race to the deadline as retrieved
            runner.exception()
