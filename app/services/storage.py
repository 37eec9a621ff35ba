"""
Local object storage for payment screenshots

Only the returned reference is persisted with a payment request; the
bytes live under ``settings.screenshot_dir``.
"""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional
from uuid import UUID

from app.core.config import settings
from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"[^A-Za-z0-9._-]")

REF_PREFIX = "payment-screenshots"


def _human_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size // (1024 * 1024)}MB"
    if size >= 1024:
        return f"{size // 1024}KB"
    return f"{size} bytes"


class LocalScreenshotStorage:
    """Stores screenshots as files and hands back stable relative references"""

    def __init__(self, root: str = None, max_bytes: int = None):
        self.root = Path(root or settings.screenshot_dir)
        self.max_bytes = max_bytes or settings.screenshot_max_bytes

    def validate(self, data: bytes, content_type: str) -> None:
        if not content_type or not content_type.startswith("image/"):
            raise ValidationError(
                f"Unsupported screenshot content type {content_type!r}",
                "Please upload an image file"
            )
        if not data:
            raise ValidationError("Empty screenshot upload", "Please upload an image file")
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"Screenshot is {len(data)} bytes, limit is {self.max_bytes}",
                f"File size must be less than {_human_size(self.max_bytes)}"
            )

    def save(self, account_id: UUID, filename: str, data: bytes, content_type: str) -> str:
        """
        Validate and store a screenshot.
        
        Args:
            account_id: Owner of the screenshot
            filename: Client-supplied file name
            data: Raw image bytes
            content_type: MIME type reported by the client
        
        Returns:
            Reference of the form ``payment-screenshots/<accountId>/<file>``
        """
        self.validate(data, content_type)
        
        safe_name = _SAFE_NAME.sub("_", os.path.basename(filename or "screenshot"))
        stored_name = f"{uuid.uuid4().hex}_{safe_name}"
        ref = f"{REF_PREFIX}/{account_id}/{stored_name}"
        
        path = self.root / ref
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        
        logger.info(f"Stored screenshot {ref} ({len(data)} bytes)")
        return ref

    def path_for(self, ref: str) -> Optional[Path]:
        """Filesystem path of a reference, None if it resolves outside the store"""
        root = self.root.resolve()
        path = (root / ref).resolve()
        if root not in path.parents:
            return None
        return path

    def exists(self, ref: str) -> bool:
        path = self.path_for(ref) if ref else None
        return path is not None and path.is_file()

    def owned_by(self, account_id: UUID, ref: str) -> bool:
        """True if the reference lives in the account's own screenshot folder"""
        parts = (ref or "").split("/")
        return len(parts) == 3 and parts[0] == REF_PREFIX and parts[1] == str(account_id) and bool(parts[2])


_storage = LocalScreenshotStorage()


def get_storage() -> LocalScreenshotStorage:
    """FastAPI dependency returning the screenshot store"""
    return _storage
