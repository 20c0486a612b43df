import logging
from pathlib import Path
from typing import Union

from ..utils.tools import DeviceInfo

logger = logging.getLogger(__name__)

BANNER = r"""
    ___    ____   ______  __  __  __  _______
   /   |  / __ \ / ____/ |  \/  | \ \/ / ____|
  / /| | / / / // /      | \  / |  \  /| |
 / ___ |/ /_/ // /___    | |\/| |  /  \| |___
/_/  |_|\____/ \____/    |_|  |_| /_/\_\\_____|

        ANDROID FLASH TOOL XT
"""

REPORT_FIELDS = [
    ("Serial", "serial"),
    ("Model", "model"),
    ("Brand", "brand"),
    ("Device", "device"),
    ("Android Version", "android_version"),
    ("SDK Version", "sdk_version"),
]


def format_device_details(info: DeviceInfo) -> str:
    """Aligned details table for the console"""
    lines = ["========== Device Details =========="]
    for label, attr in REPORT_FIELDS:
        lines.append(f"{label:<19}: {getattr(info, attr)}")
    lines.append("=" * 36)
    return "\n".join(lines)


def write_device_report(info: DeviceInfo, path: Union[str, Path]) -> bool:
    """Write the plain-text device report; False when the file can't be written"""
    path = Path(path)
    try:
        with open(path, "w", encoding="utf-8") as f:
            for label, attr in REPORT_FIELDS:
                f.write(f"{label}: {getattr(info, attr)}\n")
    except OSError as e:
        logger.warning(f"Unable to write {path}: {e}")
        return False
    return True
