"""Consent-updated signal delivery."""

from .broadcaster import (
    BroadcastStats,
    ConsentListener,
    ConsentUpdateBroadcaster,
    Subscription,
)

__all__ = [
    'BroadcastStats',
    'ConsentListener',
    'ConsentUpdateBroadcaster',
    'Subscription',
]
