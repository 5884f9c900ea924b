import json
import logging
import time
from typing import Any, Dict, List, MutableMapping, Optional
from modules.services.image_utils import create_thumbnail

logger = logging.getLogger(__name__)

class QuotaExceededError(Exception):
    """The serialized history does not fit in the storage quota"""
    pass

class TempImageStore:
    """
    Short history of guest enhancements kept in a session mapping.

    Full data URIs are never kept: data images are reduced to thumbnails and
    only remote URLs are stored as-is.
    """

    DEFAULT_QUOTA = 512 * 1024

    def __init__(self, storage: MutableMapping, key: str = "tempImages", limit: int = 3,
                 quota_bytes: int = DEFAULT_QUOTA):
        self.storage = storage
        self.key = key
        self.limit = limit
        self.quota_bytes = quota_bytes

    def _write(self, items: List[Dict[str, Any]]) -> None:
        payload = json.dumps(items)
        if len(payload.encode('utf-8')) > self.quota_bytes:
            raise QuotaExceededError(f"{len(payload)} bytes exceeds quota of {self.quota_bytes}")
        self.storage[self.key] = payload

    def _storage_item(self, original_url: Optional[str], enhanced_url: Optional[str],
                      timestamp: int) -> Dict[str, Any]:
        def is_data(url):
            return bool(url) and url.startswith('data:')

        return {
            'originalUrl': None if is_data(original_url) else original_url,
            'enhancedUrl': None if is_data(enhanced_url) else enhanced_url,
            'originalThumbnail': create_thumbnail(original_url) if is_data(original_url) else None,
            'enhancedThumbnail': create_thumbnail(enhanced_url) if is_data(enhanced_url) else None,
            'timestamp': timestamp
        }

    def store_image(self, original_url: Optional[str], enhanced_url: Optional[str],
                    timestamp: Optional[int] = None) -> None:
        """Append an item, keeping only the most recent ones"""
        item = self._storage_item(original_url, enhanced_url, timestamp or int(time.time() * 1000))
        items = (self.get_stored_images() + [item])[-self.limit:]

        try:
            self._write(items)
        except QuotaExceededError:
            logger.warning("Storage quota exceeded, clearing old data and trying again")
            self.clear()
            try:
                self._write([item])
            except QuotaExceededError as e:
                logger.error(f"Still unable to store temporary image: {str(e)}")

    def get_stored_images(self) -> List[Dict[str, Any]]:
        payload = self.storage.get(self.key)
        if not payload:
            return []
        try:
            return json.loads(payload)
        except ValueError as e:
            logger.error(f"Error reading stored images: {str(e)}")
            return []

    def clear(self) -> None:
        if self.key in self.storage:
            del self.storage[self.key]
