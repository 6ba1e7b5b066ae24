"""Consent record applicator."""

from .consent_applicator import (
    DEFAULT_MERGE_FUNCTIONS,
    ConsentApplicator,
    MergeFunction,
    merge_ccpa,
    merge_gdpr,
)

__all__ = [
    'DEFAULT_MERGE_FUNCTIONS',
    'ConsentApplicator',
    'MergeFunction',
    'merge_ccpa',
    'merge_gdpr',
]
