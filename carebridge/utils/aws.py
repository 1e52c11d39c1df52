"""boto3 client construction from explicit configuration."""

from typing import Any

import boto3

from carebridge.utils.config import AWSConfig


def make_client(service_name: str, config: AWSConfig) -> Any:
    """Create a boto3 client for ``service_name`` using ``config``.

    Credential fields left as ``None`` are omitted so boto3 falls back to
    its default credential chain.
    """
    kwargs: dict[str, Any] = {"region_name": config.region}
    if config.access_key_id and config.secret_access_key:
        kwargs["aws_access_key_id"] = config.access_key_id
        kwargs["aws_secret_access_key"] = config.secret_access_key
        if config.session_token:
            kwargs["aws_session_token"] = config.session_token
    if config.endpoint_url:
        kwargs["endpoint_url"] = config.endpoint_url
    return boto3.client(service_name, **kwargs)
