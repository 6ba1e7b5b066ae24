"""Consent resolution."""

from .consent_resolver import ConsentQueryError, ConsentResolver, ResolutionResult
from .locks import UserLockRegistry

__all__ = [
    'ConsentQueryError',
    'ConsentResolver',
    'ResolutionResult',
    'UserLockRegistry',
]
