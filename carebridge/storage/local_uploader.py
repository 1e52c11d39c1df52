"""Filesystem-backed object store for offline runs.

Objects are written beneath a root directory using the object key as the
relative path, so ``TesseractAnalyzer`` can read them back by key.
"""

import asyncio
import time
from collections.abc import Callable
from pathlib import Path

from carebridge.errors import TransferError
from carebridge.utils.config import StorageConfig
from carebridge.utils.logger import get_logger

from .base import ImageAsset, StoredObjectKey, make_object_key

logger = get_logger(__name__)


class LocalUploader:
    """Copies image assets into a directory that acts as an object store.

    Args:
        storage: Root directory and key prefix.
        clock: Time source for the key timestamp.
    """

    def __init__(
        self,
        storage: StorageConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.root = Path(storage.local_root)
        self.key_prefix = storage.key_prefix
        self._clock = clock

    def resolve(self, key: StoredObjectKey) -> Path:
        """Return the filesystem path for an object key."""
        return self.root / key

    async def upload(self, asset: ImageAsset) -> StoredObjectKey:
        key = make_object_key(asset.file_name, self.key_prefix, self._clock)
        target = self.resolve(key)

        try:
            size = await asyncio.to_thread(self._write, target, asset)
        except OSError as exc:
            logger.error("Local store write of %s failed: %s", target, exc)
            raise TransferError(f"Cannot write object {key}: {exc}") from exc

        logger.info("Stored %s (%d bytes) at %s", asset.file_name, size, target)
        return key

    @staticmethod
    def _write(target: Path, asset: ImageAsset) -> int:
        body = asset.read_bytes()
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".part")
        tmp.write_bytes(body)
        tmp.replace(target)
        return len(body)
