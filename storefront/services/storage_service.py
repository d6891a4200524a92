import logging
import re
import time
import uuid

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

logger = logging.getLogger(__name__)


def _get_client():
    return boto3.client(
        "s3",
        endpoint_url=current_app.config["S3_ENDPOINT_URL"] or None,
        aws_access_key_id=current_app.config["S3_ACCESS_KEY"],
        aws_secret_access_key=current_app.config["S3_SECRET_KEY"],
        region_name=current_app.config["S3_REGION"],
        config=BotoConfig(signature_version="s3v4"),
    )


def _public_base():
    return current_app.config["S3_PUBLIC_URL"].rstrip("/")


def build_key(file_name):
    """Unique object key under the product prefix."""
    safe = re.sub(r"[^a-zA-Z0-9.-]", "_", file_name or "upload")
    prefix = current_app.config["S3_KEY_PREFIX"].strip("/")
    return f"{prefix}/{int(time.time() * 1000)}-{uuid.uuid4()}-{safe}"


def get_public_url(storage_key):
    return f"{_public_base()}/{storage_key}"


def key_from_url(url):
    """Storage key for one of our public URLs, or None for foreign URLs."""
    base = _public_base() + "/"
    if not url or not url.startswith(base):
        return None
    return url[len(base):]


def upload(data, file_name, content_type):
    """Upload bytes as a public object and return its CDN URL."""
    client = _get_client()
    key = build_key(file_name)
    client.put_object(
        Bucket=current_app.config["S3_BUCKET_NAME"],
        Key=key,
        Body=data,
        ContentType=content_type,
        ACL="public-read",
    )
    return get_public_url(key)


def delete(url):
    """Delete the object behind a public URL.

    The placeholder image and URLs outside the bucket are left alone and
    count as success.
    """
    if url == current_app.config["PLACEHOLDER_IMAGE_URL"]:
        return True
    key = key_from_url(url)
    if key is None:
        logger.info("Skipping deletion of foreign image URL: %s", url)
        return True
    try:
        _get_client().delete_object(Bucket=current_app.config["S3_BUCKET_NAME"], Key=key)
    except (BotoCoreError, ClientError):
        logger.exception("Failed to delete %s", key)
        return False
    return True


def delete_many(urls):
    """Delete several objects; returns the URLs that could not be deleted."""
    placeholder = current_app.config["PLACEHOLDER_IMAGE_URL"]
    keys = {key_from_url(u): u for u in urls if u != placeholder}
    keys.pop(None, None)
    if not keys:
        return []
    try:
        response = _get_client().delete_objects(
            Bucket=current_app.config["S3_BUCKET_NAME"],
            Delete={"Objects": [{"Key": k} for k in keys]},
        )
    except (BotoCoreError, ClientError):
        logger.exception("Bulk delete of %d objects failed", len(keys))
        return list(keys.values())
    return [keys[e["Key"]] for e in response.get("Errors", []) if e.get("Key") in keys]
