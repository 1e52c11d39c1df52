"""Amazon S3 adapter for the storage uploader."""

import asyncio
import time
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from carebridge.errors import TransferError
from carebridge.utils.aws import make_client
from carebridge.utils.config import AWSConfig, StorageConfig
from carebridge.utils.logger import get_logger

from .base import ImageAsset, StoredObjectKey, infer_content_type, make_object_key

logger = get_logger(__name__)


class S3Uploader:
    """Uploads image assets to an S3 bucket with ``put_object``.

    Args:
        storage: Bucket name and key prefix.
        aws: Region and credentials, used when ``client`` is not given.
        client: Pre-built S3 client, mainly for tests.
        clock: Time source for the key timestamp.
    """

    def __init__(
        self,
        storage: StorageConfig,
        aws: AWSConfig | None = None,
        client: Any = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.bucket_name = storage.bucket_name
        self.key_prefix = storage.key_prefix
        self._client = client or make_client("s3", aws or AWSConfig())
        self._clock = clock

    async def upload(self, asset: ImageAsset) -> StoredObjectKey:
        body = await asyncio.to_thread(asset.read_bytes)
        key = make_object_key(asset.file_name, self.key_prefix, self._clock)
        content_type = infer_content_type(asset)

        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 upload of %s failed: %s", asset.file_name, exc)
            raise TransferError(
                f"Upload to s3://{self.bucket_name} failed: {exc}"
            ) from exc

        logger.info(
            "Uploaded %s (%d bytes, %s) to s3://%s/%s",
            asset.file_name,
            len(body),
            content_type,
            self.bucket_name,
            key,
        )
        return key
