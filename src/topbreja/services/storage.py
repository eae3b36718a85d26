"""Resolve stored beer image paths into public URLs."""

from __future__ import annotations

import logging

from topbreja.core.settings import settings

logger = logging.getLogger(__name__)


class StorageResolver:
    """Build public object-storage URLs for image paths."""

    def __init__(
        self,
        base_url: str | None = None,
        bucket: str | None = None,
        placeholder: str | None = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.storage_base_url) or None
        self.bucket = bucket or settings.storage_bucket
        self.placeholder = placeholder or settings.image_placeholder

    def resolve(self, path: str | None) -> str:
        """Return the URL for ``path``.

        Absolute ``http(s)`` URLs are returned unchanged, empty paths and a
        missing storage URL fall back to the placeholder image.
        """
        if not path:
            return self.placeholder
        if path.startswith(("http://", "https://")):
            return path
        if not self.base_url:
            logger.warning("Storage base URL is not configured; using placeholder image")
            return self.placeholder
        base = self.base_url.rstrip("/")
        return f"{base}/storage/v1/object/public/{self.bucket}/{path.lstrip('/')}"


_resolver: StorageResolver | None = None


def get_storage_resolver() -> StorageResolver:
    """Return the shared storage resolver."""
    global _resolver
    if _resolver is None:
        _resolver = StorageResolver()
    return _resolver
