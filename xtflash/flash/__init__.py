from .classifier import ImageFile, classify, discover_images, find_image_directory
from .sequencer import FlashOutcome, FlashResult, FlashRun, FlashSequencer
from .transport import FastbootTransport

__all__ = [
    "ImageFile",
    "classify",
    "discover_images",
    "find_image_directory",
    "FlashOutcome",
    "FlashResult",
    "FlashRun",
    "FlashSequencer",
    "FastbootTransport",
]
