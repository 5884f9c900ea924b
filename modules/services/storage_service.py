import time
import uuid
from typing import NamedTuple, Optional
from urllib.parse import quote
import requests
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import StorageError
from modules.services.image_utils import ImageFile, parse_data_uri
import logging

class UploadResult(NamedTuple):
    url: str
    filename: str

class StorageService:
    """Service for storing images in Firebase Storage"""

    DOWNLOAD_URL = "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{path}?alt=media&token={token}"

    def __init__(self, bucket=None, timeout: float = 60):
        self.bucket = bucket or FirebaseManager.get_instance().bucket
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def timestamp() -> int:
        """Millisecond timestamp used in blob names"""
        return int(time.time() * 1000)

    def _download_url(self, path: str, token: str) -> str:
        return self.DOWNLOAD_URL.format(bucket=self.bucket.name, path=quote(path, safe=''), token=token)

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> str:
        """
        Upload raw bytes

        Args:
            path: Blob path inside the bucket
            data: File contents
            content_type: MIME type stored with the blob

        Returns:
            str: Tokenised download URL
        """
        try:
            blob = self.bucket.blob(path)
            token = str(uuid.uuid4())
            blob.metadata = {'firebaseStorageDownloadTokens': token}
            blob.upload_from_string(data, content_type=content_type)
            self.logger.info(f"Uploaded {len(data)} bytes to {path}")
            return self._download_url(path, token)
        except Exception as e:
            self.logger.error(f"Error uploading {path}: {str(e)}")
            raise StorageError("Failed to upload image", details=str(e)) from e

    def upload_image(self, user_id: str, image: ImageFile, timestamp: Optional[int] = None) -> UploadResult:
        """Store an original upload under images/{userId}/{timestamp}.{ext}"""
        timestamp = timestamp or self.timestamp()
        filename = f"{user_id}/{timestamp}.{image.extension}"
        url = self.upload_bytes(f"images/{filename}", image.data, image.content_type)
        return UploadResult(url=url, filename=filename)

    def fetch_image(self, url: str):
        """Download a remote image, returning (content_type, bytes)"""
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(f"Error fetching image {url}: {str(e)}")
            raise StorageError("Failed to download enhanced image", details=str(e)) from e

        content_type = response.headers.get('Content-Type', 'image/png').split(';')[0]
        return content_type, response.content

    def save_enhanced_image(self, user_id: str, image_ref: str, timestamp: Optional[int] = None) -> str:
        """
        Persist an enhancement result under enhanced/{userId}/enhanced_{timestamp}.png

        Args:
            user_id: Owner of the image
            image_ref: data URI or remote URL returned by the enhancer
            timestamp: Millisecond timestamp for the blob name

        Returns:
            str: Download URL of the stored copy
        """
        if image_ref.startswith('data:'):
            content_type, data = parse_data_uri(image_ref)
        elif image_ref.startswith('http'):
            content_type, data = self.fetch_image(image_ref)
        else:
            raise StorageError("Unsupported image reference")

        timestamp = timestamp or self.timestamp()
        return self.upload_bytes(f"enhanced/{user_id}/enhanced_{timestamp}.png", data, content_type)
