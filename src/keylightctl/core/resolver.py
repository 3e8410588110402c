from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from keylightctl.exceptions import InvalidAddressError

from .device import Device
from .discovery import Discovery, discover
from .models import DEFAULT_PORT
from .service import DEFAULT_HTTP_TIMEOUT, KeyLightDevice

_LOGGER = logging.getLogger(__name__)


def split_host_port(address: str) -> Tuple[str, Optional[str]]:
    """Split ``host[:port]`` into its parts; port is None when absent.

    IPv6 literals take a port only in bracketed form (``[::1]:9123``); a bare
    IPv6 address is treated as a host without a port.
    """
    if address.startswith("["):
        host, closed, rest = address[1:].partition("]")
        if not closed:
            raise InvalidAddressError(f"missing ']' in address {address!r}")
        if not rest:
            return host, None
        if not rest.startswith(":"):
            raise InvalidAddressError(f"unexpected {rest!r} after host in address {address!r}")
        return host, rest[1:]

    if address.count(":") == 1:
        host, _, port = address.partition(":")
        return host, port
    return address, None


def parse_port(port: Optional[str]) -> int:
    if port is None:
        return DEFAULT_PORT
    if not (port.isascii() and port.isdigit()) or not 1 <= int(port) <= 65535:
        raise InvalidAddressError(f"port must be a number between 1 and 65535 (got {port})")
    return int(port)


def parse_address(address: str, http_timeout: float = DEFAULT_HTTP_TIMEOUT) -> KeyLightDevice:
    """Build a device handle from a ``host[:port]`` string."""
    host, port = split_host_port(address.strip())
    if not host:
        raise InvalidAddressError(f"missing host in address {address!r}")
    return KeyLightDevice(host=host, port=parse_port(port), timeout=http_timeout)


async def resolve_devices(
    addresses: Iterable[str],
    discoverer: Discovery,
    *,
    deadline: Optional[float] = None,
    http_timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> List[Device]:
    """Return the devices a command should act on.

    Explicit addresses always win and are all validated before anything goes
    on the network. Without any, a single discovery session decides.
    """
    devices: List[Device] = [parse_address(address, http_timeout) for address in addresses]
    if devices:
        return devices

    _LOGGER.debug("No lights provided, running discovery")
    discovered = await discover(discoverer, deadline=deadline)
    _LOGGER.info("Discovered %d light(s)", len(discovered))
    return discovered
