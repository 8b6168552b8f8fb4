"""S3 client factory for the multipart debugger.

Creates a boto3 S3 client for the configured endpoint. The client is the
only handle the driver talks to; it is built once by the CLI and passed
in explicitly.

Retries are disabled so every command maps to exactly one request.
"""

import boto3
from botocore.client import Config

from mpdebug.models import ConnectionConfig


def build_s3_client(config: ConnectionConfig):
    """Build a boto3 S3 client for the given connection settings.

    Args:
        config: Endpoint, credentials, transport and timeout settings.

    Returns:
        A boto3 S3 client.
    """
    options = {
        "signature_version": "s3v4",
        "s3": {"addressing_style": "path"},
        "retries": {"total_max_attempts": 1},
    }
    if config.timeout is not None:
        options["connect_timeout"] = config.timeout
        options["read_timeout"] = config.timeout

    return boto3.client(
        "s3",
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        region_name=config.region,
        use_ssl=config.secure,
        config=Config(**options),
    )
