"""
Orchestration of one enhancement attempt: validation, compression, upload,
the call to /api/enhance, persistence of the result and the credit charge.
"""

import base64
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Optional

import requests

from config.environment import Environment
from config.feature_flags import FeatureFlags
from modules.core.error_handler import NoCreditsError, ValidationError, ImageProcessingError
from modules.core.models import PhotoEnhancement, EnhancementStatus, EnhancementStep, utcnow
from modules.services.image_utils import ImageFile, compress_image, to_data_uri
from modules.services.enhance_client import EnhanceAPIClient
from modules.services.storage_service import StorageService
from modules.services.subscription_service import SubscriptionService
from modules.database.enhancement_db import EnhancementDB

logger = logging.getLogger(__name__)

@dataclass
class EnhancementResult:
    original_url: str
    enhanced_url: str
    enhancement_id: Optional[str] = None
    fallback: bool = False
    credit_pending: bool = False

class EnhancementFlow:
    """
    State machine for one enhancement attempt.

    idle -> validating -> compressing -> uploading -> awaiting_enhancement
    -> saving_result -> crediting -> done, with error reachable from any
    step and reset() returning to idle. The record's step and creditCharged
    fields mirror progress so reconcile() can finish interrupted attempts.
    """

    def __init__(self, subscription_service=None, enhancement_db=None, storage=None,
                 api_client: Optional[EnhanceAPIClient] = None,
                 on_state_change: Optional[Callable[[EnhancementStep], None]] = None):
        self._subscription_service = subscription_service
        self._enhancement_db = enhancement_db
        self._storage = storage
        self.api_client = api_client or EnhanceAPIClient()
        self.on_state_change = on_state_change
        self.settings = Environment.get_upload_settings()
        self.step = EnhancementStep.IDLE

    # Firebase-backed collaborators are created on first use so the guest
    # path works without credentials.
    @property
    def subscription_service(self):
        if self._subscription_service is None:
            self._subscription_service = SubscriptionService()
        return self._subscription_service

    @property
    def enhancement_db(self):
        if self._enhancement_db is None:
            self._enhancement_db = EnhancementDB()
        return self._enhancement_db

    @property
    def storage(self):
        if self._storage is None:
            self._storage = StorageService()
        return self._storage

    def _set_step(self, step: EnhancementStep) -> None:
        self.step = step
        if self.on_state_change:
            self.on_state_change(step)

    def reset(self) -> None:
        self._set_step(EnhancementStep.IDLE)

    def validate(self, image: ImageFile) -> None:
        if image.size > self.settings['max_file_size']:
            raise ValidationError("File size exceeds the maximum limit of 15MB.", error_code="FILE_TOO_LARGE")
        if not (image.content_type or '').startswith('image/'):
            raise ValidationError("Only image files are allowed.", error_code="INVALID_FILE_TYPE")

    def _compress(self, image: ImageFile) -> ImageFile:
        try:
            return compress_image(image, self.settings['compress_max_mb'], self.settings['compress_quality'])
        except ImageProcessingError as e:
            logger.warning(f"Compression failed, using original image: {e.message}")
            return image

    def _charge(self, enhancement_id: str, subscription_id: str) -> bool:
        """Charge one credit for a record unless another run or reconcile already did"""
        if not self.enhancement_db.claim_credit_charge(enhancement_id, subscription_id):
            return False
        try:
            self.subscription_service.consume_credit(subscription_id)
        except Exception:
            self.enhancement_db.release_credit_charge(enhancement_id)
            raise
        self.enhancement_db.update_photo_enhancement(enhancement_id, {
            'creditCharged': True,
            'step': EnhancementStep.DONE.value
        })
        return True

    def _mark_failed(self, enhancement_id: str, error: Exception) -> None:
        message = getattr(error, 'message', None) or str(error)
        try:
            self.enhancement_db.update_photo_enhancement(enhancement_id, {
                'status': EnhancementStatus.FAILED.value,
                'step': EnhancementStep.ERROR.value,
                'error': message
            })
        except Exception as update_error:
            logger.error(f"Could not mark enhancement {enhancement_id} as failed: {str(update_error)}")

    def run(self, user_id: str, image: ImageFile) -> EnhancementResult:
        """
        Enhance an image for a signed-in user and charge one credit

        Raises:
            NoCreditsError: The user has no active subscription with credits
            ValidationError: The file is too large or not an image
            StorageError, DatabaseError: Persistence failed
        """
        enhancement_id = None
        try:
            self._set_step(EnhancementStep.VALIDATING)
            subscription = self.subscription_service.get_active_subscription(user_id)
            if not subscription or subscription.remaining_credits <= 0:
                raise NoCreditsError()
            self.validate(image)

            self._set_step(EnhancementStep.COMPRESSING)
            image = self._compress(image)

            self._set_step(EnhancementStep.UPLOADING)
            timestamp = self.storage.timestamp()
            upload = self.storage.upload_image(user_id, image, timestamp)
            enhancement_id = self.enhancement_db.create_photo_enhancement(PhotoEnhancement(
                user_id=user_id,
                original_url=upload.url,
                step=EnhancementStep.AWAITING_ENHANCEMENT
            ))

            self._set_step(EnhancementStep.AWAITING_ENHANCEMENT)
            enhanced_ref = self.api_client.enhance(upload.url, fallback_to_original=True)

            self._set_step(EnhancementStep.SAVING_RESULT)
            self.enhancement_db.update_photo_enhancement(enhancement_id, {
                'step': EnhancementStep.SAVING_RESULT.value
            })
            enhanced_url = self.storage.save_enhanced_image(user_id, enhanced_ref, timestamp)
            self.enhancement_db.update_photo_enhancement(enhancement_id, {
                'enhancedUrl': enhanced_url,
                'status': EnhancementStatus.COMPLETED.value,
                'step': EnhancementStep.CREDITING.value
            })
        except Exception as e:
            if enhancement_id:
                self._mark_failed(enhancement_id, e)
            self._set_step(EnhancementStep.ERROR)
            raise

        result = EnhancementResult(
            original_url=upload.url,
            enhanced_url=enhanced_url,
            enhancement_id=enhancement_id,
            fallback=enhanced_ref == upload.url
        )

        self._set_step(EnhancementStep.CREDITING)
        try:
            self._charge(enhancement_id, subscription.id)
        except Exception as e:
            # The image is stored; reconcile() charges it later
            logger.error(f"Credit charge for enhancement {enhancement_id} failed: {str(e)}")
            result.credit_pending = True

        self._set_step(EnhancementStep.DONE)
        logger.info(f"Enhancement {enhancement_id} completed for user {user_id}")
        return result

    def _remote_to_data_uri(self, url: str) -> str:
        try:
            response = requests.get(url, timeout=Environment.ENHANCEMENT_SETTINGS['timeout'])
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Could not download enhanced image, keeping URL: {str(e)}")
            return url

        content_type = response.headers.get('Content-Type', 'image/png').split(';')[0]
        encoded = base64.b64encode(response.content).decode()
        return f"data:{content_type};base64,{encoded}"

    def run_guest(self, image: ImageFile, temp_store=None) -> EnhancementResult:
        """
        Enhance an image without an account: nothing is uploaded, recorded or
        charged. Errors from the enhancement service are raised to the caller.
        """
        FeatureFlags.require_feature('guest_enhancement')

        try:
            self._set_step(EnhancementStep.VALIDATING)
            self.validate(image)

            self._set_step(EnhancementStep.COMPRESSING)
            image = self._compress(image)

            self._set_step(EnhancementStep.AWAITING_ENHANCEMENT)
            original_uri = to_data_uri(image)
            enhanced = self.api_client.enhance(original_uri)

            self._set_step(EnhancementStep.SAVING_RESULT)
            if enhanced.startswith('http'):
                enhanced = self._remote_to_data_uri(enhanced)
            if temp_store is not None:
                temp_store.store_image(original_uri, enhanced)
        except Exception:
            self._set_step(EnhancementStep.ERROR)
            raise

        self._set_step(EnhancementStep.DONE)
        return EnhancementResult(
            original_url=original_uri,
            enhanced_url=enhanced,
            fallback=enhanced == original_uri
        )

    def reconcile(self, user_id: str, stale_after: timedelta = timedelta(minutes=10)) -> Dict[str, int]:
        """
        Finish interrupted attempts of a user

        Completed records that were never charged are charged now; records
        stuck in processing for longer than stale_after are marked failed.

        Returns:
            dict: {'charged': n, 'failed': m}
        """
        counts = {'charged': 0, 'failed': 0}
        if not FeatureFlags.is_feature_enabled('enhancement_reconciliation'):
            return counts

        uncharged = [
            record for record in
            self.enhancement_db.get_user_enhancements_by_status(user_id, EnhancementStatus.COMPLETED)
            if not record.credit_charged
        ]
        if uncharged:
            subscription = self.subscription_service.get_active_subscription(user_id)
            if subscription:
                for record in uncharged:
                    if self._charge(record.id, subscription.id):
                        counts['charged'] += 1
            else:
                logger.warning(f"User {user_id} has {len(uncharged)} uncharged enhancements but no subscription")

        cutoff = utcnow() - stale_after
        for record in self.enhancement_db.get_user_enhancements_by_status(user_id, EnhancementStatus.PROCESSING):
            if record.created_at < cutoff:
                self._mark_failed(record.id, Exception("Enhancement did not complete"))
                counts['failed'] += 1

        if counts['charged'] or counts['failed']:
            logger.info(f"Reconciled enhancements of user {user_id}: {counts}")
        return counts
