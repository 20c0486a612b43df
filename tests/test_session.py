"""Tests for the operator menu session."""

from pathlib import Path
from typing import List
from unittest.mock import Mock, patch

import pytest

from xtflash.core.exceptions import FetchError, ToolNotFoundError
from xtflash.flash.sequencer import FlashSequencer
from xtflash.models import ActionLogEntry
from xtflash.session import MenuSession, SessionState
from xtflash.utils.tools import DeviceInfo

from .conftest import FakeTransport

INFO = DeviceInfo("S1", "Pixel 7", "google", "panther", "14", "34")


class Console:
    """Scripted prompt answers and captured output."""

    def __init__(self, *answers: str):
        self.answers = list(answers)
        self.lines: List[str] = []

    def prompt(self, text: str) -> str:
        self.lines.append(text)
        return self.answers.pop(0)

    def echo(self, text: str) -> None:
        self.lines.append(text)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def logged(action_logger):
    return [(e.device_name, e.action, e.result) for e in reversed(action_logger.recent_actions(50).value)]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


def make_session(settings, action_logger, console, transport, **kwargs) -> MenuSession:
    sequencer = FlashSequencer(transport, pacing_seconds=0, sleep=Mock())
    return MenuSession(
        settings, action_logger, prompt=console.prompt, echo=console.echo, sequencer=sequencer, **kwargs
    )


class TestMenuTransitions:
    def test_exit_and_invalid_choice(self, settings, action_logger, transport):
        console = Console()
        session = make_session(settings, action_logger, console, transport)

        assert session.handle_menu_selection("9") is SessionState.MENU
        assert "Invalid choice" in console.text
        assert session.handle_menu_selection(" 0 ") is SessionState.EXIT

    def test_run_loops_until_exit(self, settings, action_logger, transport):
        console = Console("7", "0")
        session = make_session(settings, action_logger, console, transport)

        session.run()

        assert session.state is SessionState.EXIT
        assert "ANDROID FLASH TOOL XT" in console.text
        assert console.answers == []

    def test_tool_errors_return_to_menu(self, settings, action_logger, transport):
        console = Console("https://x.test/fw.zip")
        fetcher = Mock()
        fetcher.fetch.side_effect = FetchError("Download failed: no network")
        session = make_session(settings, action_logger, console, transport, fetcher=fetcher)

        assert session.handle_menu_selection("2") is SessionState.MENU
        assert "no network" in console.text
        assert logged(action_logger)[-1] == ("", "download_and_flash", "failed: Download failed: no network")

    def test_filesystem_errors_return_to_menu(self, settings, action_logger, transport, image_dir):
        console = Console(str(image_dir))
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.list_fastboot_devices", return_value=["FB1"]), \
                patch("xtflash.session.discover_images", side_effect=PermissionError(13, "Permission denied", "x")):
            assert session.handle_menu_selection("3") is SessionState.MENU

        assert "Permission denied" in console.text
        device, action, result = logged(action_logger)[-1]
        assert (device, action) == ("", "flash_local_directory")
        assert result.startswith("failed: ") and "Permission denied" in result
        assert transport.flash_calls == []

    def test_missing_adb_is_reported(self, settings, action_logger, transport):
        console = Console()
        session = make_session(settings, action_logger, console, transport)
        error = ToolNotFoundError("adb not found; install it or set its path in the [tools] config")

        with patch("xtflash.session.detect_bridge_device", side_effect=error):
            assert session.handle_menu_selection("1") is SessionState.MENU

        assert "adb not found" in console.text
        assert logged(action_logger) == [("", "detect_device", f"failed: {error}")]


class TestDetectDevice:
    def test_detect_saves_snapshot_report_and_log(self, settings, action_logger, transport):
        console = Console()
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.detect_bridge_device", return_value=(True, "S1")), \
                patch("xtflash.session.read_device_info", return_value=INFO):
            session.handle_menu_selection("1")

        report = Path(settings.report.details_file).read_text()
        assert "Model: Pixel 7" in report
        assert "SDK Version: 34" in report
        assert "panther" in console.text
        assert logged(action_logger) == [("google Pixel 7", "detect_device", "success")]

    def test_no_device(self, settings, action_logger, transport):
        console = Console()
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.detect_bridge_device", return_value=(False, "")):
            session.handle_menu_selection("1")

        assert "No device detected" in console.text
        assert logged(action_logger) == [("", "detect_device", "failed: no device")]


class TestFlashFlow:
    def test_local_directory_completed(self, settings, action_logger, transport, image_dir):
        console = Console(str(image_dir), "y")
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.list_fastboot_devices", return_value=["FB1", "FB2"]):
            session.handle_menu_selection("3")

        assert [c[1] for c in transport.flash_calls] == ["boot", "system"]
        assert transport.reboot_calls == ["FB1"]
        assert "c_unknown.bin" in console.text
        assert "Flashing completed" in console.text
        assert logged(action_logger) == [
            ("FB1", "flash:boot", "success"),
            ("FB1", "flash:system", "success"),
            ("FB1", "flash", "completed"),
        ]

    def test_operator_abort_is_logged(self, settings, action_logger, transport, image_dir):
        console = Console(str(image_dir), "n")
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.list_fastboot_devices", return_value=["FB1"]):
            session.handle_menu_selection("3")

        assert transport.flash_calls == []
        assert logged(action_logger) == [("FB1", "flash", "aborted")]

    def test_halted_run_is_logged(self, settings, action_logger, image_dir):
        transport = FakeTransport([False])
        console = Console(str(image_dir), "yes")
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.list_fastboot_devices", return_value=["FB1"]):
            session.handle_menu_selection("3")

        assert "boot failed" in console.text
        assert logged(action_logger) == [
            ("FB1", "flash:boot", "failed"),
            ("FB1", "flash", "halted:boot"),
        ]

    def test_no_bootloader_device(self, settings, action_logger, transport, image_dir):
        console = Console(str(image_dir))
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.list_fastboot_devices", return_value=[]):
            session.handle_menu_selection("3")

        assert transport.flash_calls == []
        assert logged(action_logger) == [("", "flash", "no_device")]

    def test_missing_directory(self, settings, action_logger, transport, tmp_path):
        console = Console(str(tmp_path / "nope"))
        session = make_session(settings, action_logger, console, transport)

        session.handle_menu_selection("3")

        assert "Not a directory" in console.text
        assert logged(action_logger) == [("", "flash", "failed: directory not found")]

    def test_download_extract_and_flash(self, settings, action_logger, transport, tmp_path, image_dir):
        archive_path = tmp_path / "downloads" / "fw.zip"
        archive_path.parent.mkdir()
        archive_path.write_bytes(b"zip")

        def fake_fetch(url, progress_callback=None):
            progress_callback(50, 100)
            progress_callback(100, 100)
            return archive_path

        fetcher = Mock()
        fetcher.fetch.side_effect = fake_fetch
        extractor = Mock()
        extractor.extract.return_value = image_dir
        console = Console("https://x.test/fw.zip", "y")
        session = make_session(
            settings, action_logger, console, transport, fetcher=fetcher, extractor=extractor
        )

        with patch("xtflash.session.list_fastboot_devices", return_value=["FB1"]):
            session.handle_menu_selection("2")

        extractor.extract.assert_called_once_with(archive_path, tmp_path / "downloads" / "fw")
        assert "Progress: 50%" in console.text
        assert "Progress: 100%" in console.text
        actions = [a for _, a, _ in logged(action_logger)]
        assert actions == ["download", "extract", "flash:boot", "flash:system", "flash"]

    def test_blank_url_cancels(self, settings, action_logger, transport):
        fetcher = Mock()
        session = make_session(settings, action_logger, Console(""), transport, fetcher=fetcher)

        session.handle_menu_selection("2")

        fetcher.fetch.assert_not_called()
        assert logged(action_logger) == [("", "download", "cancelled")]


class TestOtherActions:
    def test_list_bootloader_devices(self, settings, action_logger, transport):
        console = Console()
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.list_fastboot_devices", return_value=["FB1", "FB2"]):
            session.handle_menu_selection("4")

        assert "FB2\tfastboot" in console.text
        assert logged(action_logger) == [("FB1,FB2", "list_fastboot_devices", "2 found")]

    def test_show_action_log(self, settings, action_logger, transport):
        console = Console()
        session = make_session(settings, action_logger, console, transport)

        session.handle_menu_selection("5")
        assert "Action log is empty" in console.text

        action_logger.log_action("S1", "detect_device", "success")
        session.handle_menu_selection("5")
        assert "detect_device" in console.text

    def test_logging_failure_does_not_fail_action(self, settings, action_logger, transport, database):
        with database.engine.begin() as conn:
            ActionLogEntry.__table__.drop(conn)
        console = Console()
        session = make_session(settings, action_logger, console, transport)

        with patch("xtflash.session.list_fastboot_devices", return_value=["FB1"]):
            assert session.handle_menu_selection("4") is SessionState.MENU
        session.handle_menu_selection("5")

        assert "FB1\tfastboot" in console.text
        assert "Could not read action log" in console.text
