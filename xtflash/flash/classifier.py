"""
Partition classification for extracted firmware images.

Specific markers are checked before the broad fallback tokens so that a file
such as ``vendor_boot.img`` never lands on ``boot`` or ``vendor``.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

SPECIFIC_MARKERS = [
    ("vendor_boot", "vendor_boot"),
    ("boot.img", "boot"),
    ("system.img", "system"),
    ("vendor.img", "vendor"),
    ("vbmeta.img", "vbmeta"),
    ("recovery.img", "recovery"),
    ("product.img", "product"),
    ("userdata.img", "userdata"),
]

FALLBACK_TOKENS = [
    ("boot", "boot"),
    ("system", "system"),
    ("vendor", "vendor"),
]


@dataclass(frozen=True)
class ImageFile:
    path: Path
    file_name: str

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ImageFile":
        path = Path(path).resolve()
        return cls(path=path, file_name=path.name)


def classify(file_name: str) -> Optional[str]:
    """Target partition for an image file name, or None when nothing matches"""
    name = Path(file_name).name.lower()

    for marker, partition in SPECIFIC_MARKERS:
        if marker in name:
            return partition

    for token, partition in FALLBACK_TOKENS:
        if token in name:
            return partition

    return None


def discover_images(directory: Union[str, Path]) -> List[ImageFile]:
    """Regular files of a directory in listing (name) order"""
    directory = Path(directory)
    return [ImageFile.from_path(p) for p in sorted(directory.iterdir()) if p.is_file()]


def has_recognized_images(directory: Union[str, Path]) -> bool:
    directory = Path(directory)
    if not directory.is_dir():
        return False
    return any(classify(image.file_name) for image in discover_images(directory))


def find_image_directory(root: Union[str, Path]) -> Optional[Path]:
    """First directory at or below root holding a recognized image"""
    root = Path(root)
    if not root.is_dir():
        return None
    if has_recognized_images(root):
        return root
    for candidate in sorted(p for p in root.rglob("*") if p.is_dir()):
        if has_recognized_images(candidate):
            return candidate
    return None
