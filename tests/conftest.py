"""Shared fixtures for the flash tool tests."""

import subprocess
from pathlib import Path
from typing import Iterable, List, Tuple

import pytest

from xtflash.config import CONFIG_ENV_VAR, Settings
from xtflash.core.database import init_db
from xtflash.services.action_logger import ActionLogger


class FakeTransport:
    """Scripted flash transport recording every call."""

    def __init__(self, outcomes: Iterable[bool] = ()):
        self.outcomes = list(outcomes)
        self.flash_calls: List[Tuple[str, str, str]] = []
        self.reboot_calls: List[str] = []

    def invoke_flash(self, device: str, partition: str, image_path: str) -> bool:
        self.flash_calls.append((device, partition, image_path))
        if self.outcomes:
            return self.outcomes.pop(0)
        return True

    def reboot(self, device: str) -> None:
        self.reboot_calls.append(device)


def completed(stdout: str = "", returncode: int = 0) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["tool"], returncode=returncode, stdout=stdout, stderr="")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config file at a path that does not exist and drop XTFLASH_* env vars."""
    import os

    for key in list(os.environ):
        if key.startswith("XTFLASH_"):
            monkeypatch.delenv(key, raising=False)
    config_path = tmp_path / "absent.toml"
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))
    return config_path


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database={"url": f"sqlite:///{tmp_path / 'xtflash.db'}"},
        tools={"downloads_dir": str(tmp_path / "downloads"), "flash_pacing_ms": 0},
        report={"details_file": str(tmp_path / "details.txt")},
    )


@pytest.fixture
def database(settings: Settings):
    db = init_db(settings.database)
    yield db
    db.close()


@pytest.fixture
def action_logger(database) -> ActionLogger:
    return ActionLogger(database)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """Directory with two recognized images and one unknown blob."""
    directory = tmp_path / "images"
    directory.mkdir()
    for name in ("a_boot.img", "b_system.img", "c_unknown.bin"):
        (directory / name).write_bytes(b"\x00" * 16)
    return directory
