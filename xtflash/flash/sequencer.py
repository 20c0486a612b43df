"""
Flash sequencer - ordered, confirm-gated partition flashing.

One run walks the image list in order and stops at the first failed flash:

    IDLE → AWAITING_CONFIRMATION → {ABORTED | FLASHING}
    FLASHING → {HALTED | COMPLETED}

An empty image list ends in NO_IMAGES before the operator is asked anything.
Unrecognized files are skipped with a warning, never counted as failures.
Nothing is rolled back or retried.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence

from .classifier import ImageFile, classify

logger = logging.getLogger(__name__)

DEFAULT_PACING_SECONDS = 0.3


class FlashState(Enum):
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    FLASHING = "flashing"
    NO_IMAGES = "no_images"
    ABORTED = "aborted"
    HALTED = "halted"
    COMPLETED = "completed"


class FlashOutcome(Enum):
    """Terminal signal of a run"""
    NO_IMAGES = "no_images"
    ABORTED = "aborted"
    HALTED = "halted"
    COMPLETED = "completed"


@dataclass(frozen=True)
class FlashResult:
    partition: str
    succeeded: bool


@dataclass
class FlashRun:
    outcome: FlashOutcome
    results: List[FlashResult] = field(default_factory=list)
    skipped: List[ImageFile] = field(default_factory=list)
    failed_partition: Optional[str] = None

    @property
    def summary(self) -> str:
        """Short result string for the action log"""
        if self.outcome is FlashOutcome.HALTED:
            return f"halted:{self.failed_partition}"
        return self.outcome.value


@dataclass
class FlashProgress:
    """Progress information during flashing"""
    state: FlashState
    message: str = ""
    partition: Optional[str] = None
    image_index: Optional[int] = None
    total_images: Optional[int] = None


class FlashTransport(Protocol):
    """Device side of a flash run"""

    def invoke_flash(self, device: str, partition: str, image_path: str) -> bool:
        """Write one image; True when the bootloader accepted it"""
        ...

    def reboot(self, device: str) -> None:
        """Fire-and-forget reboot request"""
        ...


class FlashSequencer:
    """
    Runs one flashing pass over an ordered list of images.

    Usage:
        sequencer = FlashSequencer(FastbootTransport(settings.tools))
        run = sequencer.run_flash_sequence(serial, discover_images(path), confirm)
        if run.outcome is FlashOutcome.HALTED:
            print(f"stopped at {run.failed_partition}")
    """

    def __init__(
        self,
        transport: FlashTransport,
        pacing_seconds: float = DEFAULT_PACING_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.pacing_seconds = pacing_seconds
        self._sleep = sleep

        self.state = FlashState.IDLE

        self.on_progress: Optional[Callable[[FlashProgress], None]] = None
        self.on_log: Optional[Callable[[str, str], None]] = None  # (message, level)

    def set_callbacks(
        self,
        on_progress: Optional[Callable[[FlashProgress], None]] = None,
        on_log: Optional[Callable[[str, str], None]] = None,
    ):
        """Set callbacks for progress updates and operator messages"""
        self.on_progress = on_progress
        self.on_log = on_log

    def _log(self, message: str, level: str = "info"):
        if self.on_log:
            self.on_log(message, level)
        else:
            logger.log(getattr(logging, level.upper(), logging.INFO), message)

    def _transition(self, state: FlashState, message: str = "", **progress):
        self.state = state
        if self.on_progress:
            self.on_progress(FlashProgress(state=state, message=message, **progress))

    def run_flash_sequence(
        self,
        device: str,
        images: Sequence[ImageFile],
        confirm: Callable[[], bool],
    ) -> FlashRun:
        """Flash each recognized image in order, halting on the first failure"""
        self.state = FlashState.IDLE

        if not images:
            self._log("No image files to flash", "warning")
            self._transition(FlashState.NO_IMAGES, "Nothing to do")
            return FlashRun(outcome=FlashOutcome.NO_IMAGES)

        self._transition(FlashState.AWAITING_CONFIRMATION, f"{len(images)} file(s) ready")
        if not confirm():
            self._log("Flashing aborted by operator", "warning")
            self._transition(FlashState.ABORTED, "Aborted by operator")
            return FlashRun(outcome=FlashOutcome.ABORTED)

        self._transition(FlashState.FLASHING, f"Flashing device {device}")
        run = FlashRun(outcome=FlashOutcome.COMPLETED)
        total = len(images)
        attempted = 0

        for index, image in enumerate(images, 1):
            partition = classify(image.file_name)
            if partition is None:
                self._log(f"Skipping {image.file_name}: no matching partition", "warning")
                run.skipped.append(image)
                continue

            if attempted:
                self._sleep(self.pacing_seconds)
            attempted += 1

            self._log(f"Flashing {partition} from {image.file_name} ({index}/{total})")
            self._transition(
                FlashState.FLASHING,
                f"Flashing {image.file_name}",
                partition=partition,
                image_index=index,
                total_images=total,
            )

            succeeded = self.transport.invoke_flash(device, partition, str(image.path))
            run.results.append(FlashResult(partition=partition, succeeded=succeeded))

            if not succeeded:
                self._log(f"Failed to flash {partition}; stopping", "error")
                run.outcome = FlashOutcome.HALTED
                run.failed_partition = partition
                self._transition(FlashState.HALTED, f"Halted on {partition}", partition=partition)
                return run

            self._log(f"✓ {partition} flashed")

        self._log("Rebooting device...")
        try:
            self.transport.reboot(device)
        except Exception as e:
            self._log(f"Reboot request failed: {e}", "warning")

        self._transition(FlashState.COMPLETED, "Flash completed")
        return run


__all__ = [
    "FlashState",
    "FlashOutcome",
    "FlashResult",
    "FlashRun",
    "FlashProgress",
    "FlashTransport",
    "FlashSequencer",
]
