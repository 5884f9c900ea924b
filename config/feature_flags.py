"""
Feature flags for Photo Enhance AI.

Core features are always on. Toggles default to on and can be switched off
per deployment with FEATURE_<NAME>=false (e.g. FEATURE_GUEST_ENHANCEMENT).
"""

from typing import List
import logging
import os
from modules.core.error_handler import ValidationError

logger = logging.getLogger(__name__)

def _env_flag(feature_name: str, default: bool = True) -> bool:
    value = os.getenv(f"FEATURE_{feature_name.upper()}")
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')

class FeatureFlags:
    """Manages feature flags for the application"""

    CORE_FEATURES = {
        'photo_enhancement': True,
        'credit_purchase': True,
        'user_authentication': True,
        'webhook_idempotency': True
    }

    # Anonymous enhancement on the try page, finishing interrupted credit
    # charges on dashboard load, and the two-stage regenerate strategy
    TOGGLES = ('guest_enhancement', 'enhancement_reconciliation', 'image_regeneration')
    EXPERIMENTAL_FEATURES = {name: _env_flag(name) for name in TOGGLES}

    FEATURE_DEPENDENCIES = {
        'guest_enhancement': ['photo_enhancement'],
        'enhancement_reconciliation': ['photo_enhancement', 'credit_purchase'],
        'image_regeneration': ['photo_enhancement']
    }

    @staticmethod
    def is_feature_enabled(feature_name: str) -> bool:
        """Check if a feature and everything it depends on are enabled"""
        if feature_name in FeatureFlags.CORE_FEATURES:
            return FeatureFlags.CORE_FEATURES[feature_name]

        if feature_name not in FeatureFlags.EXPERIMENTAL_FEATURES:
            logger.warning(f"Unknown feature: {feature_name}")
            return False

        for dependency in FeatureFlags.FEATURE_DEPENDENCIES.get(feature_name, []):
            if not FeatureFlags.is_feature_enabled(dependency):
                logger.warning(f"Feature {feature_name} disabled due to missing dependency: {dependency}")
                return False
        return FeatureFlags.EXPERIMENTAL_FEATURES[feature_name]

    @staticmethod
    def require_feature(feature_name: str) -> None:
        """Raise ValidationError(FEATURE_DISABLED) unless the feature is enabled"""
        if not FeatureFlags.is_feature_enabled(feature_name):
            raise ValidationError(f"{feature_name.replace('_', ' ').capitalize()} is disabled",
                                  error_code="FEATURE_DISABLED")

    @staticmethod
    def get_enabled_features() -> List[str]:
        """Get list of all enabled features"""
        enabled_features = [feature for feature, enabled in FeatureFlags.CORE_FEATURES.items() if enabled]
        enabled_features.extend(
            feature for feature in FeatureFlags.EXPERIMENTAL_FEATURES if FeatureFlags.is_feature_enabled(feature)
        )
        return enabled_features

    @staticmethod
    def set_feature_state(feature_name: str, enabled: bool) -> bool:
        """Set the state of a toggle; core features cannot be changed"""
        if feature_name in FeatureFlags.CORE_FEATURES:
            logger.warning(f"Cannot modify core feature: {feature_name}")
            return False

        if feature_name in FeatureFlags.EXPERIMENTAL_FEATURES:
            FeatureFlags.EXPERIMENTAL_FEATURES[feature_name] = enabled
            logger.info(f"Feature {feature_name} set to {enabled}")
            return True

        logger.warning(f"Unknown feature: {feature_name}")
        return False

