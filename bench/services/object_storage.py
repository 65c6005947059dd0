"""Bucket/object storage on local disk, returning public URLs."""

from __future__ import annotations

import base64
import binascii
import re
from pathlib import Path
from typing import Optional, Tuple

from bench.utils.config import StorageSettings
from bench.utils.exceptions import StorageError, UpstreamFailure, ValidationError
from bench.utils.logger import get_logger

logger = get_logger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _check_name(kind: str, value: Optional[str]) -> str:
    if not value or not _NAME_RE.match(value) or ".." in value:
        raise ValidationError(f"Invalid {kind}: {value!r}", public_message=f"Invalid {kind}")
    return value


def decode_base64(data: Optional[str]) -> bytes:
    if not data:
        raise ValidationError("Missing file data", public_message="File data is required")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Bad base64 payload", public_message="File data must be base64 encoded")


class LocalObjectStorage:
    """Objects live at ``<upload_dir>/<bucket>/<name>``; existing objects are never overwritten."""

    def __init__(self, upload_dir: Path, public_base_url: str):
        self.upload_dir = Path(upload_dir)
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "LocalObjectStorage":
        return cls(Path(settings.upload_dir), settings.public_base_url)

    def public_url(self, bucket: str, name: str) -> str:
        return f"{self.public_base_url}/{bucket}/{name}"

    def put(self, bucket: str, name: str, data: bytes, content_type: Optional[str] = None) -> Tuple[str, str]:
        """Store ``data`` and return ``(public_url, path)``."""
        bucket = _check_name("bucket", bucket)
        name = _check_name("file name", name)
        target = self.upload_dir / bucket / name
        if target.exists():
            raise StorageError(f"{bucket}/{name} already exists", public_message="The resource already exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "xb") as f:
                f.write(data)
        except FileExistsError:
            raise StorageError(f"{bucket}/{name} already exists", public_message="The resource already exists")
        except OSError as e:
            logger.error("Storage upload error", bucket=bucket, name=name, error=str(e))
            raise UpstreamFailure(str(e), public_message="Upload failed")
        logger.info("File uploaded", bucket=bucket, name=name, size=len(data), content_type=content_type)
        return self.public_url(bucket, name), f"{bucket}/{name}"
