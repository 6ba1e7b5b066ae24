"""Consent kit utilities."""

from .constants import (
    CCPA_PURPOSE_VALUE,
    CONSENT_GROUP_KEYS,
    GENERAL_CONSENT_GROUPS,
    GOOGLE_CONSENT_GROUPS,
    IAB_CONSENT_GROUPS,
    KIT_NAME,
    MOBILE_CONSENT_GROUPS,
)
from .clock import now_millis

__all__ = [
    'CCPA_PURPOSE_VALUE',
    'CONSENT_GROUP_KEYS',
    'GENERAL_CONSENT_GROUPS',
    'GOOGLE_CONSENT_GROUPS',
    'IAB_CONSENT_GROUPS',
    'KIT_NAME',
    'MOBILE_CONSENT_GROUPS',
    'now_millis',
]
