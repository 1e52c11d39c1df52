"""Image assets, object keys, and the uploader interface.

An ``ImageAsset`` is what the caller hands to the pipeline; an uploader
turns it into a ``StoredObjectKey`` that the analyzer can resolve.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from carebridge.errors import TransferError

StoredObjectKey = str

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "pdf": "application/pdf",
    "heic": "image/heic",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "webp": "image/webp",
}


@dataclass(frozen=True)
class ImageAsset:
    """Reference to a local image supplied by the caller."""

    path: Path
    byte_length: int
    content_type: str | None = None

    @classmethod
    def from_path(
        cls, path: Path | str, content_type: str | None = None
    ) -> "ImageAsset":
        """Build an asset for a local file.

        A missing file is accepted here and reported when it is uploaded.
        """
        path = Path(path)
        size = path.stat().st_size if path.is_file() else 0
        return cls(path=path, byte_length=size, content_type=content_type)

    @property
    def file_name(self) -> str:
        return self.path.name

    def read_bytes(self) -> bytes:
        """Read the asset content.

        Raises:
            TransferError: If the file is missing or unreadable.
        """
        if not self.path.is_file():
            raise TransferError(f"Image file does not exist: {self.path}")
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise TransferError(f"Cannot read image {self.path}: {exc}") from exc


def infer_content_type(asset: ImageAsset) -> str:
    """Return the declared content type, else one derived from the extension."""
    if asset.content_type:
        return asset.content_type
    extension = asset.path.suffix.lower().lstrip(".")
    return _CONTENT_TYPES.get(extension, DEFAULT_CONTENT_TYPE)


def make_object_key(
    file_name: str,
    prefix: str = "uploads",
    clock: Callable[[], float] = time.time,
) -> StoredObjectKey:
    """Build a ``{prefix}/{unixTimestampMillis}-{fileName}`` key."""
    millis = round(clock() * 1000)
    return f"{prefix.rstrip('/')}/{millis}-{file_name}"


class Uploader(Protocol):
    """Moves a local asset into durable object storage."""

    async def upload(self, asset: ImageAsset) -> StoredObjectKey:
        """Store the asset and return its key.

        Raises:
            TransferError: On read failure or remote rejection.
        """
        ...
