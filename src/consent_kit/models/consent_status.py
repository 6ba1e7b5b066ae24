"""
Upstream consent status.

The consent platform reports status as a bare integer:
-1 = not collected, 0 = not given, 1 or more = given.
"""

from enum import Enum
from typing import Optional

from ..utils.constants import STATUS_NOT_COLLECTED, STATUS_NOT_GIVEN


class ConsentStatus(Enum):
    """Tri-state consent status."""
    UNKNOWN = "unknown"
    DENIED = "denied"
    GRANTED = "granted"

    @classmethod
    def decode(cls, raw: Optional[int]) -> "ConsentStatus":
        """
        Decode a raw upstream status code.

        Any positive value counts as granted, including the multi-level
        codes some purposes report.
        """
        if raw is None:
            return cls.UNKNOWN
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise TypeError(f"Consent status must be an int, got {type(raw).__name__}")
        if raw <= STATUS_NOT_COLLECTED:
            return cls.UNKNOWN
        if raw == STATUS_NOT_GIVEN:
            return cls.DENIED
        return cls.GRANTED

    @property
    def is_known(self) -> bool:
        """Whether a decision can be made from this status."""
        return self is not ConsentStatus.UNKNOWN
