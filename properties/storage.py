"""
Image store for property photos.

``save(file) -> url`` and ``delete(url) -> bool``. The default implementation
writes through Django's ``default_storage`` (local MEDIA_ROOT unless another
storage backend is configured).
"""
import logging
import os
import uuid
from typing import Protocol
from urllib.parse import urlparse

from django.conf import settings
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


class ImageStore(Protocol):
    def save(self, file) -> str:
        ...

    def delete(self, url: str) -> bool:
        ...


class DjangoStorageImageStore:
    upload_to = "properties"

    def __init__(self, storage=None):
        self._storage = storage

    @property
    def storage(self):
        # resolved lazily so tests can swap MEDIA_ROOT
        return self._storage or default_storage

    def save(self, file) -> str:
        ext = os.path.splitext(getattr(file, "name", ""))[1].lower() or ".jpg"
        name = f"{self.upload_to}/photo_{uuid.uuid4().hex}{ext}"
        stored = self.storage.save(name, file)
        url = self.storage.url(stored)
        logger.debug("Image stored name=%s", stored)
        return url

    def _name_from_url(self, url):
        path = urlparse(url).path
        media_url = settings.MEDIA_URL
        if media_url and path.startswith(media_url):
            return path[len(media_url):]
        return path.lstrip("/")

    def delete(self, url: str) -> bool:
        name = self._name_from_url(url)
        try:
            if not self.storage.exists(name):
                return False
            self.storage.delete(name)
        except Exception as e:
            logger.warning("Image delete failed url=%s: %s", url, e)
            return False
        logger.debug("Image deleted name=%s", name)
        return True

    def delete_many(self, urls):
        """Best-effort removal; returns how many files were actually deleted."""
        return sum(1 for url in urls if self.delete(url))
