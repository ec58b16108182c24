"""Timing/usage reporting sinks for launch results."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from devlaunch.devices.interfaces import TargetDevice
from devlaunch.shared.models import LaunchResult

logger = logging.getLogger(__name__)


async def usage_path(command: str, devices: Sequence[TargetDevice] | None) -> str:
    """``run`` → ``run/all`` for several devices, ``run/<platform>`` for one."""
    if not devices:
        return command
    if len(devices) > 1:
        return f"{command}/all"
    return f"{command}/{(await devices[0].target_platform()).value}"


async def usage_values(devices: Sequence[TargetDevice]) -> dict[str, str]:
    """Custom dimensions: ``cd3`` is-emulator of the first device, ``cd4`` device type."""
    is_emulator = await devices[0].is_local_emulator()
    if len(devices) == 1:
        device_type = (await devices[0].target_platform()).value
    else:
        device_type = "multiple"
    return {"cd3": str(is_emulator).lower(), "cd4": device_type}


class LoggingReporter:
    """Log the result. Implements the ``ReportingSink`` protocol."""

    async def report(
        self,
        command_path: str,
        result: LaunchResult,
        *,
        elapsed_seconds: float | None = None,
        custom_dimensions: Mapping[str, str] | None = None,
    ) -> None:
        label = "-".join(result.label_parts)
        if elapsed_seconds is None:
            logger.info("%s (%s) exit=%d", command_path, label, result.exit_code)
        else:
            logger.info("%s (%s) exit=%d in %.3fs", command_path, label, result.exit_code, elapsed_seconds)


class HttpUsageReporter:
    """POST a JSON timing event to a collection endpoint.

    Implements the ``ReportingSink`` protocol. Delivery failures are logged
    and never fail the launch.
    """

    def __init__(self, endpoint: str, *, timeout: int = 5) -> None:
        self._endpoint = endpoint
        self._timeout = timeout

    async def report(
        self,
        command_path: str,
        result: LaunchResult,
        *,
        elapsed_seconds: float | None = None,
        custom_dimensions: Mapping[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "command": command_path,
            "exit_code": result.exit_code,
            "label": "-".join(result.label_parts),
            "label_parts": list(result.label_parts),
            "started_at": result.started_at.isoformat() if result.started_at else None,
            "elapsed_ms": int(elapsed_seconds * 1000) if elapsed_seconds is not None else None,
            "dimensions": dict(custom_dimensions or {}),
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._endpoint, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("usage endpoint returned %d", exc.response.status_code)
            return
        except httpx.HTTPError as exc:
            logger.warning("usage report failed: %s", exc)
            return
        logger.debug("reported %s to %s", command_path, self._endpoint)


class CompositeReporter:
    """Fan one result out to several sinks."""

    def __init__(self, *sinks: Any) -> None:
        self._sinks = sinks

    async def report(
        self,
        command_path: str,
        result: LaunchResult,
        *,
        elapsed_seconds: float | None = None,
        custom_dimensions: Mapping[str, str] | None = None,
    ) -> None:
        for sink in self._sinks:
            await sink.report(
                command_path,
                result,
                elapsed_seconds=elapsed_seconds,
                custom_dimensions=custom_dimensions,
            )
