"""
keylightctl - control Key Lights on the local network from the command line
"""

from __future__ import annotations

import argparse
import asyncio
import functools
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence

from keylightctl import __version__
from keylightctl.config import LOG_LEVELS, CommandConfig, load_config_file
from keylightctl.core.device import Device
from keylightctl.core.discovery import Discovery, ZeroconfDiscovery
from keylightctl.core.models import ControlField, LightState
from keylightctl.core.orchestrator import (
    STEP,
    adjust_control_field,
    get_control_field,
    get_device_status,
    set_control_field,
    set_light_state,
)
from keylightctl.core.resolver import resolve_devices
from keylightctl.exceptions import DiscoveryTimeoutError, KeyLightError

_LOGGER = logging.getLogger(__name__)

Handler = Callable[[Sequence[Device]], Awaitable[Optional[str]]]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keylightctl",
        description="Control Key Lights on the local network",
    )
    parser.add_argument("--version", action="version", version=f"keylightctl {__version__}")
    parser.add_argument(
        "--light",
        action="append",
        metavar="HOST[:PORT]",
        help="Light to control (host:port), may be repeated; discovered when omitted",
    )
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=list(LOG_LEVELS),
        help="Level of logging (default: info)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Timeout in seconds for operations (default: 10)",
    )
    parser.add_argument("--config", type=Path, help="Path to a JSON config file")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.add_parser("toggle", help="Toggle lights on and off")
    commands.add_parser("on", help="Turn lights on")
    commands.add_parser("off", help="Turn lights off")
    for control in ControlField:
        control_parser = commands.add_parser(str(control), help=f"Control light {control}")
        actions = control_parser.add_subparsers(dest="action", metavar="ACTION", required=True)
        actions.add_parser("step-up", help=f"Increase {control}")
        actions.add_parser("step-down", help=f"Decrease {control}")
        actions.add_parser("get", help=f"Get {control}")
        set_parser = actions.add_parser("set", help=f"Set {control}")
        set_parser.add_argument("value", type=int)
    commands.add_parser("status", help="Get device information")
    return parser


async def _set_state(devices: Sequence[Device], state: LightState) -> None:
    await set_light_state(devices, state)


async def _step(devices: Sequence[Device], control: ControlField, change: int) -> None:
    await adjust_control_field(devices, control, change)


async def _set(devices: Sequence[Device], control: ControlField, value: int) -> None:
    await set_control_field(devices, control, value)


async def _get(devices: Sequence[Device], control: ControlField) -> str:
    return str(await get_control_field(devices, control))


def select_handler(args: argparse.Namespace) -> Handler:
    """Map parsed arguments to the coroutine running the command."""
    if args.command == "toggle":
        return functools.partial(_set_state, state=LightState.TOGGLE)
    if args.command == "on":
        return functools.partial(_set_state, state=LightState.ON)
    if args.command == "off":
        return functools.partial(_set_state, state=LightState.OFF)
    if args.command == "status":
        return get_device_status

    control = ControlField(args.command)
    if args.action == "step-up":
        return functools.partial(_step, control=control, change=STEP)
    if args.action == "step-down":
        return functools.partial(_step, control=control, change=-STEP)
    if args.action == "get":
        return functools.partial(_get, control=control)
    return functools.partial(_set, control=control, value=args.value)


async def run_command(config: CommandConfig, handler: Handler, discoverer: Discovery) -> Optional[str]:
    """Resolve the devices and run ``handler`` within the command deadline."""
    deadline = asyncio.get_running_loop().time() + config.timeout
    devices: List[Device] = await resolve_devices(
        config.lights,
        discoverer,
        deadline=deadline,
        http_timeout=config.http_timeout,
    )
    async with asyncio.timeout_at(deadline):
        return await handler(devices)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        config = CommandConfig.build(
            load_config_file(args.config),
            lights=args.light,
            log_level=args.log_level,
            timeout=args.timeout,
        )
    except KeyLightError as e:
        _LOGGER.critical("%s", e)
        return e.exit_code
    logging.getLogger().setLevel(config.logging_level)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        output = asyncio.run(
            run_command(config, select_handler(args), ZeroconfDiscovery(config.http_timeout))
        )
    except KeyboardInterrupt:
        _LOGGER.info("Interrupted")
        return 0
    except DiscoveryTimeoutError as e:
        _LOGGER.error("%s after %gs", e, config.timeout)
        return e.exit_code
    except KeyLightError as e:
        _LOGGER.critical("%s", e)
        return e.exit_code
    except TimeoutError:
        _LOGGER.critical("timed out after %gs", config.timeout)
        return 1
    except OSError as e:
        _LOGGER.critical("%s", e)
        return 1

    if output is not None:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
