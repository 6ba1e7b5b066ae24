"""Consent decision produced by a resolution pass."""

from dataclasses import dataclass
from typing import Optional

from .consent_status import ConsentStatus
from .mapping_entry import MappingEntry
from .regulation import ConsentRegulation


@dataclass(frozen=True)
class ConsentDecision:
    """
    A normalized consent decision for one mapping.

    Created and consumed within a single resolution pass, never stored.
    """
    purpose: str
    regulation: ConsentRegulation
    granted: bool
    timestamp: int  # epoch millis

    @classmethod
    def from_status(
        cls,
        entry: MappingEntry,
        status: ConsentStatus,
        timestamp: int,
    ) -> Optional["ConsentDecision"]:
        """Build a decision for an entry, or None when status is unknown."""
        if not status.is_known:
            return None
        return cls(
            purpose=entry.purpose,
            regulation=entry.regulation,
            granted=status is ConsentStatus.GRANTED,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "purpose": self.purpose,
            "regulation": self.regulation.name,
            "granted": self.granted,
            "timestamp": self.timestamp,
        }
