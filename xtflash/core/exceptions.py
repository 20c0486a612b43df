"""Exceptions raised by the flash tool"""


class XTFlashError(Exception):
    """Base error; the menu reports it and returns to the next iteration"""


class ToolNotFoundError(XTFlashError):
    """adb, fastboot or an extraction utility could not be executed"""


class FetchError(XTFlashError):
    """Firmware download failed"""


class ExtractionError(XTFlashError):
    """Archive did not yield any recognized partition image"""


class DatabaseConnectionError(XTFlashError):
    """Datastore unreachable at startup"""
