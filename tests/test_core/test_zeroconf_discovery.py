"""Tests for the zeroconf discovery transport."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from zeroconf import ServiceStateChange

from keylightctl.core.discovery import SERVICE_TYPE, ZeroconfDiscovery
from keylightctl.core.service import KeyLightDevice

NAME = f"Elgato Key Light 7A2B.{SERVICE_TYPE}"


def service_info(addresses, port=9123, server="elgato-key-light-7a2b.local.", found=True) -> MagicMock:
    info = MagicMock()
    info.async_request = AsyncMock(return_value=found)
    info.parsed_addresses.return_value = addresses
    info.port = port
    info.server = server
    return info


class TestResolve:
    """Tests for turning service announcements into devices."""

    @pytest.mark.asyncio
    async def test_resolved_service_is_queued(self) -> None:
        discovery = ZeroconfDiscovery(http_timeout=2.0)
        info = service_info(["192.168.1.50"])

        with patch("keylightctl.core.discovery.AsyncServiceInfo", return_value=info):
            await discovery._resolve(MagicMock(), SERVICE_TYPE, NAME)

        device = discovery.results().get_nowait()
        assert device == KeyLightDevice(host="192.168.1.50", port=9123)
        assert device.name == "Elgato Key Light 7A2B"
        assert device.timeout == 2.0

    @pytest.mark.asyncio
    async def test_server_name_used_without_addresses(self) -> None:
        discovery = ZeroconfDiscovery()
        info = service_info([])

        with patch("keylightctl.core.discovery.AsyncServiceInfo", return_value=info):
            await discovery._resolve(MagicMock(), SERVICE_TYPE, NAME)

        assert discovery.results().get_nowait().host == "elgato-key-light-7a2b.local"

    @pytest.mark.asyncio
    async def test_unresolved_service_is_skipped(self) -> None:
        discovery = ZeroconfDiscovery()
        info = service_info(["192.168.1.50"], found=False)

        with patch("keylightctl.core.discovery.AsyncServiceInfo", return_value=info):
            await discovery._resolve(MagicMock(), SERVICE_TYPE, NAME)

        assert discovery.results().empty()

    @pytest.mark.asyncio
    async def test_only_added_services_are_resolved(self) -> None:
        discovery = ZeroconfDiscovery()

        with patch.object(discovery, "_resolve", new_callable=AsyncMock) as mock_resolve:
            for change in (ServiceStateChange.Added, ServiceStateChange.Removed, ServiceStateChange.Updated):
                discovery._on_service_state_change(
                    zeroconf=MagicMock(),
                    service_type=SERVICE_TYPE,
                    name=NAME,
                    state_change=change,
                )
            await asyncio.sleep(0)

        mock_resolve.assert_awaited_once()


class TestRun:
    """Tests for the browsing lifecycle."""

    @pytest.mark.asyncio
    async def test_run_until_cancelled_then_cleans_up(self) -> None:
        discovery = ZeroconfDiscovery()
        aiozc = MagicMock()
        aiozc.async_close = AsyncMock()
        browser = MagicMock()
        browser.async_cancel = AsyncMock()

        with patch("keylightctl.core.discovery.AsyncZeroconf", return_value=aiozc), patch(
            "keylightctl.core.discovery.AsyncServiceBrowser", return_value=browser
        ) as mock_browser:
            task = asyncio.create_task(discovery.run())
            await asyncio.sleep(0.01)
            assert not task.done()

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert mock_browser.call_args.args[1] == [SERVICE_TYPE]
        browser.async_cancel.assert_awaited_once()
        aiozc.async_close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pending_resolves_finish_before_close(self) -> None:
        """Resolves still in flight are cancelled and awaited before zeroconf closes."""
        discovery = ZeroconfDiscovery()
        aiozc = MagicMock()
        aiozc.async_close = AsyncMock()
        browser = MagicMock()
        info = service_info(["192.168.1.50"])
        resolving = set()
        state_at_cancel = []

        async def never_answers(*args) -> bool:
            await asyncio.Event().wait()
            return True

        info.async_request = AsyncMock(side_effect=never_answers)

        async def cancel_browser() -> None:
            state_at_cancel.extend(task.done() for task in resolving)

        browser.async_cancel = AsyncMock(side_effect=cancel_browser)

        with patch("keylightctl.core.discovery.AsyncZeroconf", return_value=aiozc), patch(
            "keylightctl.core.discovery.AsyncServiceBrowser", return_value=browser
        ), patch("keylightctl.core.discovery.AsyncServiceInfo", return_value=info):
            task = asyncio.create_task(discovery.run())
            await asyncio.sleep(0)
            discovery._on_service_state_change(
                zeroconf=MagicMock(),
                service_type=SERVICE_TYPE,
                name=NAME,
                state_change=ServiceStateChange.Added,
            )
            await asyncio.sleep(0.01)
            resolving.update(discovery._pending)
            assert len(resolving) == 1

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert state_at_cancel == [True]
        assert all(resolve.cancelled() for resolve in resolving)
        assert discovery.results().empty()
        aiozc.async_close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_listener_failure_propagates(self) -> None:
        discovery = ZeroconfDiscovery()
        error = OSError("Address already in use")

        with patch("keylightctl.core.discovery.AsyncZeroconf", side_effect=error):
            with pytest.raises(OSError) as excinfo:
                await discovery.run()

        assert excinfo.value is error
