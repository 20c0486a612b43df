"""
Fastboot transport for the flash sequencer.

Wraps the fastboot binary behind ``invoke_flash(...) -> bool`` so the
sequencer never looks at tool output itself. Success is judged either by
output tokens (the default) or by the process exit status.
"""

import logging
import subprocess
from typing import Callable, Dict

from ..config import ToolSettings
from ..utils.tools import run_fastboot_command

logger = logging.getLogger(__name__)

SUCCESS_TOKENS = ("OKAY", "Flashing")


def output_indicates_success(result: subprocess.CompletedProcess) -> bool:
    output = (result.stdout or "") + (result.stderr or "")
    return any(token in output for token in SUCCESS_TOKENS)


def exit_status_indicates_success(result: subprocess.CompletedProcess) -> bool:
    return result.returncode == 0


SUCCESS_CHECKS: Dict[str, Callable[[subprocess.CompletedProcess], bool]] = {
    "output": output_indicates_success,
    "exit_status": exit_status_indicates_success,
}


class FastbootTransport:
    """Flash and reboot through the fastboot binary"""

    def __init__(self, config: ToolSettings):
        self.config = config
        self.success_check = SUCCESS_CHECKS[config.flash_success_check]

    def invoke_flash(self, device: str, partition: str, image_path: str) -> bool:
        result = run_fastboot_command(
            self.config, ["flash", partition, str(image_path)], serial=device
        )
        succeeded = self.success_check(result)
        if not succeeded:
            output = (result.stdout or "").strip()
            logger.error(f"Flash of {partition} failed (exit {result.returncode}): {output[:500]}")
        return succeeded

    def reboot(self, device: str) -> None:
        result = run_fastboot_command(self.config, ["reboot"], serial=device)
        if result.returncode != 0:
            logger.warning(f"Reboot request failed: {(result.stdout or '').strip()}")


__all__ = ["FastbootTransport", "output_indicates_success", "exit_status_indicates_success"]
