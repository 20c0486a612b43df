"""
Archive extraction through the best available system utility.

Success is judged by the result, not by the extractor: the target directory
(or a directory below it) must hold at least one recognized partition image.
"""
import logging
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import List, Optional

from ..core.exceptions import ExtractionError
from ..flash.classifier import find_image_directory
from .tools import run_command

logger = logging.getLogger(__name__)

# Tried in order; {archive} and {target} are substituted
EXTRACTORS = [
    ("unzip", ["-o", "{archive}", "-d", "{target}"]),
    ("7z", ["x", "-y", "-o{target}", "{archive}"]),
    ("tar", ["-xf", "{archive}", "-C", "{target}"]),
]


ARCHIVE_SUFFIXES = {".zip", ".tar", ".gz", ".tgz", ".xz", ".bz2", ".7z"}


def extraction_dir_for(archive_path: Path) -> Path:
    """Sibling directory named after the archive without its archive suffixes"""
    archive_path = Path(archive_path)
    stem = archive_path
    while stem.suffix.lower() in ARCHIVE_SUFFIXES:
        stem = stem.with_suffix("")
    if stem.name == archive_path.name:
        return archive_path.parent / f"{archive_path.name}_extracted"
    return archive_path.parent / stem.name


def build_extract_command(archive: Path, target: Path) -> Optional[List[str]]:
    """Command line for the first installed extractor, None if none is"""
    for tool, template in EXTRACTORS:
        executable = shutil.which(tool)
        if executable:
            args = [a.format(archive=str(archive), target=str(target)) for a in template]
            return [executable] + args
    return None


class ArchiveExtractor:
    def extract(self, archive_path: Path, target_dir: Path) -> Path:
        """
        Unpack archive_path into target_dir.
        Returns the directory holding the images; raises ExtractionError when
        none are found afterwards. Already-extracted targets are reused as is.
        """
        archive_path = Path(archive_path)
        target_dir = Path(target_dir)

        image_dir = find_image_directory(target_dir)
        if image_dir:
            logger.info(f"Images already extracted in {image_dir}, skipping extraction")
            return image_dir

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExtractionError(f"Cannot create extraction directory {target_dir}: {e}") from e
        self._run_extractor(archive_path, target_dir)

        image_dir = find_image_directory(target_dir)
        if image_dir is None:
            raise ExtractionError(
                f"No recognized image files found after extracting {archive_path.name}"
            )
        logger.info(f"Extracted images to {image_dir}")
        return image_dir

    def _run_extractor(self, archive_path: Path, target_dir: Path) -> None:
        cmd = build_extract_command(archive_path, target_dir)
        if cmd:
            result = run_command(cmd)
            if result.returncode != 0:
                # Reported but not decisive; the image check decides
                logger.warning(
                    f"{Path(cmd[0]).name} exited with {result.returncode}: "
                    f"{(result.stdout or '').strip()[:300]}"
                )
            return

        logger.info("No extraction utility found, using built-in archive support")
        try:
            if zipfile.is_zipfile(archive_path):
                with zipfile.ZipFile(archive_path, "r") as zip_ref:
                    zip_ref.extractall(target_dir)
            elif tarfile.is_tarfile(archive_path):
                with tarfile.open(archive_path, "r:*") as tar_ref:
                    tar_ref.extractall(target_dir, filter="data")
            else:
                logger.warning(f"Unsupported archive format: {archive_path.name}")
        except (zipfile.BadZipFile, tarfile.TarError, OSError) as e:
            logger.warning(f"Extraction of {archive_path.name} failed: {e}")


__all__ = ["ArchiveExtractor", "build_extract_command", "extraction_dir_for"]
