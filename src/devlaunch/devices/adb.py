"""ADB command runner for attached Android devices."""

from __future__ import annotations

import asyncio
import logging

from devlaunch.shared.exceptions import AdbError

logger = logging.getLogger(__name__)


class AdbConnection:
    """Runs ``adb`` CLI commands through async subprocess calls.

    Every device-scoped call takes the device serial and passes it with ``-s``.
    """

    def __init__(self, *, adb_bin: str = "adb", timeout: int = 30) -> None:
        self._adb_bin = adb_bin
        self._timeout = timeout

    async def devices(self) -> list[dict[str, str]]:
        """List attached devices in the ``device`` state.

        Returns:
            One dict per device with ``serial`` plus the ``key:value`` fields
            of ``adb devices -l`` (``model``, ``product``, ...).

        Raises:
            AdbError: If the listing fails.
        """
        stdout, stderr, rc = await self._run("devices", "-l")
        if rc != 0:
            raise AdbError(f"ADB devices failed (rc={rc}): {stderr}")
        return parse_device_list(stdout)

    async def getprop(self, serial: str, prop: str) -> str:
        """Read one system property; empty string when unset."""
        return await self.shell(serial, f"getprop {prop}")

    async def shell(self, serial: str, cmd: str) -> str:
        """Execute shell command on a device.

        Raises:
            AdbError: If the command fails.
        """
        stdout, stderr, rc = await self._run("-s", serial, "shell", cmd)
        if rc != 0:
            raise AdbError(f"ADB shell failed on {serial} (rc={rc}): {stderr}")
        return stdout

    async def push(self, serial: str, local: str, remote: str) -> None:
        """Push file to a device.

        Raises:
            AdbError: If push fails.
        """
        stdout, stderr, rc = await self._run("-s", serial, "push", local, remote)
        if rc != 0:
            raise AdbError(f"ADB push failed: {stderr}")
        logger.info("pushed %s → %s on %s", local, remote, serial)

    async def pull(self, serial: str, remote: str, local: str) -> None:
        """Copy a file from a device.

        Raises:
            AdbError: If pull fails.
        """
        stdout, stderr, rc = await self._run("-s", serial, "pull", remote, local)
        if rc != 0:
            raise AdbError(f"ADB pull failed: {stderr}")
        logger.info("pulled %s ← %s on %s", local, remote, serial)

    async def install(self, serial: str, apk_path: str) -> None:
        """Install (or replace) an application package.

        Raises:
            AdbError: If installation fails.
        """
        stdout, stderr, rc = await self._run("-s", serial, "install", "-r", apk_path)
        if rc != 0 or "Failure" in stdout:
            raise AdbError(f"ADB install failed on {serial}: {stdout} {stderr}")
        logger.info("installed %s on %s", apk_path, serial)

    async def _run(self, *args: str) -> tuple[str, str, int]:
        """Return (stdout, stderr, returncode) for one adb invocation."""
        cmd = [self._adb_bin, *args]
        logger.debug("adb %s", " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise AdbError(f"adb {' '.join(args)} timed out after {self._timeout}s") from exc
        except FileNotFoundError as exc:
            raise AdbError(f"adb executable not found: {self._adb_bin} (set DEVLAUNCH_ADB_BIN)") from exc

        return (
            stdout_b.decode(errors="replace").strip(),
            stderr_b.decode(errors="replace").strip(),
            proc.returncode or 0,
        )


def parse_device_list(output: str) -> list[dict[str, str]]:
    """Parse ``adb devices -l`` output, skipping offline/unauthorized entries."""
    devices: list[dict[str, str]] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) < 2 or parts[1] != "device":
            logger.debug("skipping adb entry: %s", line)
            continue
        entry = {"serial": parts[0]}
        for token in parts[2:]:
            key, sep, value = token.partition(":")
            if sep:
                entry[key] = value
        devices.append(entry)
    return devices
