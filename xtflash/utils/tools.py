import logging
import subprocess
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Tuple

from ..config import ToolSettings
from ..core.exceptions import ToolNotFoundError

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
EXECUTABLE_NOT_FOUND = 127

# adb marks an online, authorized device with a tab followed by "device"
ONLINE_DEVICE_MARKER = "\tdevice"

DEVICE_PROPERTIES = {
    "model": "ro.product.model",
    "brand": "ro.product.brand",
    "device": "ro.product.device",
    "android_version": "ro.build.version.release",
    "sdk_version": "ro.build.version.sdk",
}


@dataclass
class DeviceInfo:
    serial: str
    model: str = ""
    brand: str = ""
    device: str = ""
    android_version: str = ""
    sdk_version: str = ""

    @property
    def display_name(self) -> str:
        """Name recorded in the action log"""
        name = " ".join(part for part in (self.brand, self.model) if part)
        return name or self.serial

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


def run_command(cmd: List[str], timeout: Optional[int] = None) -> subprocess.CompletedProcess:
    """Run a command and capture stdout and stderr combined as text.

    Never raises for a missing or failing executable: a CompletedProcess with
    the error text in stdout is returned instead. The returncode is
    EXECUTABLE_NOT_FOUND when the program does not exist, -1 for other
    launch errors and timeouts.
    """
    logger.debug(f"Executing: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        return subprocess.CompletedProcess(
            cmd, returncode=-1, stdout=f"Command timed out after {timeout} seconds", stderr=""
        )
    except FileNotFoundError:
        logger.error(f"Executable not found: {cmd[0]}")
        return subprocess.CompletedProcess(
            cmd, returncode=EXECUTABLE_NOT_FOUND, stdout=f"Executable not found: {cmd[0]}", stderr=""
        )
    except OSError as e:
        logger.error(f"Error running {' '.join(cmd)}: {e}")
        return subprocess.CompletedProcess(cmd, returncode=-1, stdout=str(e), stderr="")

    if result.returncode != 0:
        logger.debug(f"Command exited with {result.returncode}: {(result.stdout or '')[:200]}")
    return result


def run_adb_command(
    config: ToolSettings, args: List[str], serial: Optional[str] = None
) -> subprocess.CompletedProcess:
    """Run an ADB command"""
    cmd = [config.adb_path]
    if serial:
        cmd.extend(["-s", serial])
    cmd.extend(args)
    return run_command(cmd, timeout=config.timeout_or_none)


def run_fastboot_command(
    config: ToolSettings, args: List[str], serial: Optional[str] = None
) -> subprocess.CompletedProcess:
    """Run a Fastboot command.

    fastboot writes most of its progress to stderr, which run_command merges
    into stdout.
    """
    cmd = [config.fastboot_path]
    if serial:
        cmd.extend(["-s", serial])
    cmd.extend(args)
    return run_command(cmd, timeout=config.timeout_or_none)


def ensure_tool_found(result: subprocess.CompletedProcess) -> None:
    """Raise ToolNotFoundError when result comes from a program that does not exist"""
    if result.returncode == EXECUTABLE_NOT_FOUND:
        raise ToolNotFoundError(
            f"{result.args[0]} not found; install it or set its path in the [tools] config"
        )


def list_fastboot_devices(config: ToolSettings) -> List[str]:
    """Serials of devices attached in bootloader mode"""
    result = run_fastboot_command(config, ["devices"])
    ensure_tool_found(result)
    if result.returncode != 0:
        logger.warning(f"fastboot devices failed: {(result.stdout or '').strip()}")
        return []

    devices = []
    for line in (result.stdout or "").splitlines():
        parts = line.split()
        if parts:
            devices.append(parts[0])
    logger.debug(f"Fastboot devices: {devices}")
    return devices


def detect_bridge_device(config: ToolSettings) -> Tuple[bool, str]:
    """Find the first online, authorized adb device.

    Returns (found, serial); serial is empty when nothing was found.
    """
    result = run_adb_command(config, ["devices"])
    ensure_tool_found(result)
    for line in (result.stdout or "").splitlines():
        line = line.rstrip()
        if ONLINE_DEVICE_MARKER in line:
            serial = line[: line.index(ONLINE_DEVICE_MARKER)].strip()
            logger.info(f"ADB device detected: {serial}")
            return True, serial
    return False, ""


def read_property(config: ToolSettings, name: str, serial: Optional[str] = None) -> str:
    """Read a system property, empty string on any failure"""
    try:
        result = run_adb_command(config, ["shell", "getprop", name], serial=serial)
    except Exception as e:
        logger.warning(f"Could not read property {name}: {e}")
        return ""
    if result.returncode != 0:
        logger.debug(f"getprop {name} failed: {(result.stdout or '').strip()}")
        return ""
    return (result.stdout or "").strip()


def read_device_info(config: ToolSettings, serial: str) -> DeviceInfo:
    """Read the identifying properties of an adb device"""
    values = {
        field: read_property(config, prop, serial=serial)
        for field, prop in DEVICE_PROPERTIES.items()
    }
    return DeviceInfo(serial=serial, **values)
