"""
Operator menu session.

The session is a small state machine: ``handle_menu_selection`` takes one
menu choice, runs the matching action and returns the next state. Console
input and output are injected, so the whole menu runs without a terminal.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from .config import Settings
from .core.exceptions import XTFlashError
from .flash.classifier import classify, discover_images
from .flash.sequencer import FlashOutcome, FlashProgress, FlashRun, FlashSequencer, FlashState
from .flash.transport import FastbootTransport
from .services.action_logger import ActionLogger
from .services.report import BANNER, format_device_details, write_device_report
from .utils.archive import ArchiveExtractor, extraction_dir_for
from .utils.downloader import ArchiveFetcher
from .utils.tools import (
    detect_bridge_device,
    list_fastboot_devices,
    read_device_info,
)

logger = logging.getLogger(__name__)

MENU = """
1. Detect device and read properties
2. Download and flash firmware package
3. Flash images from a local directory
4. List bootloader (fastboot) devices
5. Show recent action log
0. Exit
"""

PROMPT = "Select an option: "


class SessionState(Enum):
    MENU = "menu"
    EXIT = "exit"


class MenuSession:
    def __init__(
        self,
        settings: Settings,
        action_logger: ActionLogger,
        prompt: Callable[[str], str] = input,
        echo: Callable[[str], None] = print,
        sequencer: Optional[FlashSequencer] = None,
        fetcher: Optional[ArchiveFetcher] = None,
        extractor: Optional[ArchiveExtractor] = None,
    ):
        self.settings = settings
        self.action_logger = action_logger
        self.prompt = prompt
        self.echo = echo

        self.sequencer = sequencer or FlashSequencer(
            FastbootTransport(settings.tools),
            pacing_seconds=settings.tools.pacing_seconds,
        )
        self.sequencer.set_callbacks(on_progress=self._on_progress, on_log=self._on_log)
        self.fetcher = fetcher or ArchiveFetcher(settings.tools)
        self.extractor = extractor or ArchiveExtractor()

        self.state = SessionState.MENU
        self._download_step = 0
        self._actions: Dict[str, Callable[[], None]] = {
            "1": self.detect_device,
            "2": self.download_and_flash,
            "3": self.flash_local_directory,
            "4": self.list_bootloader_devices,
            "5": self.show_action_log,
        }

    def run(self) -> None:
        """Prompt for selections until the operator quits"""
        self.echo(BANNER)
        while self.state is SessionState.MENU:
            self.echo(MENU)
            selection = self.prompt(PROMPT)
            self.state = self.handle_menu_selection(selection)

    def handle_menu_selection(self, selection: str) -> SessionState:
        selection = (selection or "").strip()
        if selection == "0":
            self.echo("Goodbye.")
            return SessionState.EXIT

        action = self._actions.get(selection)
        if action is None:
            self.echo("Invalid choice. Please try again.")
            return SessionState.MENU

        try:
            action()
        except (XTFlashError, OSError) as e:
            self.echo(f"✗ {e}")
            self.action_logger.log_action("", action.__name__, f"failed: {e}")
        return SessionState.MENU

    # Menu actions

    def detect_device(self) -> None:
        self.echo("[Step 1] Detecting device...")
        found, serial = detect_bridge_device(self.settings.tools)
        if not found:
            self.echo("✗ No device detected. Make sure USB debugging is enabled and authorized.")
            self.action_logger.log_action("", "detect_device", "failed: no device")
            return

        self.echo(f"✓ Device detected: {serial}")
        self.echo("[Step 2] Reading device properties...")
        info = read_device_info(self.settings.tools, serial)
        self.echo(format_device_details(info))

        if self.action_logger.save_device_info(info).ok:
            self.echo("✓ Device info saved to database")
        else:
            self.echo("⚠️  Device info could not be saved to database")

        details_file = self.settings.report.details_file
        if write_device_report(info, details_file):
            self.echo(f"✓ Device info saved to {details_file}")
        else:
            self.echo(f"⚠️  Unable to write {details_file}")

        self.action_logger.log_action(info.display_name, "detect_device", "success")

    def download_and_flash(self) -> None:
        url = self.prompt("Firmware package URL: ").strip()
        if not url:
            self.echo("No URL given, cancelled.")
            self.action_logger.log_action("", "download", "cancelled")
            return

        self._download_step = 0
        archive_path = self.fetcher.fetch(url, progress_callback=self._on_download_progress)
        self.echo(f"✓ Downloaded {archive_path.name} ({archive_path.stat().st_size} bytes)")
        self.action_logger.log_action("", "download", f"success: {archive_path.name}")

        target_dir = extraction_dir_for(archive_path)
        self.echo(f"Extracting to {target_dir}...")
        image_dir = self.extractor.extract(archive_path, target_dir)
        self.echo(f"✓ Images ready in {image_dir}")
        self.action_logger.log_action("", "extract", f"success: {image_dir}")

        self._flash_directory(image_dir)

    def flash_local_directory(self) -> None:
        raw = self.prompt("Directory containing image files: ").strip()
        directory = Path(raw).expanduser() if raw else None
        if directory is None or not directory.is_dir():
            self.echo(f"✗ Not a directory: {raw}")
            self.action_logger.log_action("", "flash", "failed: directory not found")
            return
        self._flash_directory(directory)

    def list_bootloader_devices(self) -> None:
        devices = list_fastboot_devices(self.settings.tools)
        if devices:
            for serial in devices:
                self.echo(f"  {serial}\tfastboot")
        else:
            self.echo("No devices in bootloader mode.")
        self.action_logger.log_action(",".join(devices), "list_fastboot_devices", f"{len(devices)} found")

    def show_action_log(self) -> None:
        result = self.action_logger.recent_actions(self.settings.report.history_limit)
        if not result.ok:
            self.echo(f"⚠️  {result.message}")
            return
        if not result.value:
            self.echo("Action log is empty.")
            return
        for entry in result.value:
            self.echo(f"{entry.created_at}  {entry.device_name or '-':<20} {entry.action:<24} {entry.result}")

    # Flash flow

    def _flash_directory(self, directory: Path) -> Optional[FlashRun]:
        devices = list_fastboot_devices(self.settings.tools)
        if not devices:
            self.echo("✗ No device in bootloader mode. Reboot the device to fastboot and retry.")
            self.action_logger.log_action("", "flash", "no_device")
            return None

        device = devices[0]
        if len(devices) > 1:
            self.echo(f"⚠️  {len(devices)} devices attached, using {device}")

        images = discover_images(directory)
        for image in images:
            self.echo(f"  {image.file_name:<40} -> {classify(image.file_name) or '(skipped)'}")
        run = self.sequencer.run_flash_sequence(device, images, self._confirm_flash)

        messages = {
            FlashOutcome.NO_IMAGES: f"No image files found in {directory}.",
            FlashOutcome.ABORTED: "Flashing aborted.",
            FlashOutcome.HALTED: f"❌ Flashing stopped: {run.failed_partition} failed.",
            FlashOutcome.COMPLETED: "✅ Flashing completed, device rebooting.",
        }
        self.echo(messages[run.outcome])

        self.action_logger.log_flash_results(device, run.results)
        self.action_logger.log_action(device, "flash", run.summary)
        return run

    def _confirm_flash(self) -> bool:
        self.echo("WARNING: flashing overwrites the device partitions listed above.")
        answer = self.prompt("Proceed? [y/N]: ")
        return answer.strip().lower() in ("y", "yes")

    # Callbacks

    def _on_progress(self, progress: FlashProgress) -> None:
        if progress.state is FlashState.FLASHING and progress.partition:
            self.echo(
                f"[{progress.image_index}/{progress.total_images}] "
                f"{progress.partition}: {progress.message}"
            )

    def _on_log(self, message: str, level: str = "info") -> None:
        # Per-image info lines are covered by _on_progress
        logger.log(getattr(logging, level.upper(), logging.INFO), message)
        if level == "error":
            self.echo(f"❌ {message}")
        elif level == "warning":
            self.echo(f"⚠️  {message}")

    def _on_download_progress(self, downloaded: int, total: int) -> None:
        # One line per 10% step; unknown sizes are reported once fetched
        if not total:
            return
        step = int(downloaded * 10 / total)
        if step > self._download_step:
            self._download_step = step
            self.echo(f"Progress: {step * 10}% ({downloaded}/{total} bytes)")
