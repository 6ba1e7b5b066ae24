"""Host consent record models."""

from .consent_state import (
    CCPAConsent,
    ConsentState,
    ConsentStateBuilder,
    GDPRConsent,
    canonicalize_purpose,
)

__all__ = [
    'CCPAConsent',
    'ConsentState',
    'ConsentStateBuilder',
    'GDPRConsent',
    'canonicalize_purpose',
]
