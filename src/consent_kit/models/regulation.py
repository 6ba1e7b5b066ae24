"""
Regulation and vendor list types.

A mapping targets exactly one regulation. The regulation is derived from the
target purpose name, never configured directly.
"""

from enum import Enum, auto

from ..utils.constants import CCPA_PURPOSE_VALUE


class ConsentRegulation(Enum):
    """Regulations a consent decision can be recorded under."""
    GDPR = auto()  # EU General Data Protection Regulation, one entry per purpose
    CCPA = auto()  # California Consumer Privacy Act, single opt-out flag

    @classmethod
    def for_purpose(cls, purpose: str) -> "ConsentRegulation":
        """Classify a target purpose name."""
        if purpose == CCPA_PURPOSE_VALUE:
            return cls.CCPA
        return cls.GDPR


class VendorListMode(str, Enum):
    """Vendor list a consent group is queried against."""
    IAB = "IAB"
    GOOGLE = "GOOGLE"
    GENERAL = "GENERAL"
