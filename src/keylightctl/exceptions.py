"""Exceptions raised by keylightctl."""

from __future__ import annotations


class KeyLightError(Exception):
    """Base class for keylightctl errors.

    Every error carries the process exit code the CLI uses when it is the
    reason the command failed.
    """

    exit_code: int = 1


class InvalidAddressError(KeyLightError, ValueError):
    """A light address could not be parsed into host and port."""


class DiscoveryTimeoutError(KeyLightError):
    """The command deadline passed while still discovering devices."""

    exit_code = 3

    def __init__(self, message: str = "timed out while discovering devices") -> None:
        super().__init__(message)


class KeyLightDeviceError(KeyLightError):
    """A request to a Key Light failed."""

    def __init__(self, address: str, message: str) -> None:
        super().__init__(f"{address}: {message}")
        self.address = address


class ConfigError(KeyLightError):
    """A configuration file could not be read."""
