"""Consent kit models and data types."""

from .consent_decision import ConsentDecision
from .consent_status import ConsentStatus
from .mapping_entry import MappingEntry
from .regulation import ConsentRegulation, VendorListMode

__all__ = [
    "ConsentDecision",
    "ConsentRegulation",
    "ConsentStatus",
    "MappingEntry",
    "VendorListMode",
]
