"""
Consent record models owned by the host platform.

Supports:
- GDPR consent, one entry per purpose
- CCPA consent, a single data-sale opt-out entry

The record is immutable. Changes go through a builder seeded from an
existing record, so a write only replaces the entries it computed.
"""

from dataclasses import dataclass
from typing import Any, Optional

from ..utils.clock import now_millis
from ..utils.constants import CCPA_PURPOSE_VALUE

# Key the CCPA entry is rendered under
CCPA_PURPOSE_KEY = CCPA_PURPOSE_VALUE


def canonicalize_purpose(purpose: Optional[str]) -> Optional[str]:
    """Normalize a purpose name; blank names yield None."""
    if purpose is None:
        return None
    canonical = purpose.strip().lower()
    return canonical or None


@dataclass(frozen=True)
class RegulationConsent:
    """Consent value shared by every regulation."""
    consented: bool
    timestamp: int
    document: Optional[str] = None
    location: Optional[str] = None
    hardware_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding unset optional fields."""
        result: dict[str, Any] = {
            "consented": self.consented,
            "timestamp": self.timestamp,
        }
        for key in ("document", "location", "hardware_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Create from dictionary."""
        return cls(
            consented=bool(data["consented"]),
            timestamp=int(data["timestamp"]),
            document=data.get("document"),
            location=data.get("location"),
            hardware_id=data.get("hardware_id"),
        )

    @classmethod
    def builder(cls, consented: bool) -> "ConsentBuilder":
        """Start building a consent value."""
        return ConsentBuilder(cls, consented)


class GDPRConsent(RegulationConsent):
    """GDPR consent for a single purpose."""


class CCPAConsent(RegulationConsent):
    """CCPA data-sale consent."""


class ConsentBuilder:
    """Fluent builder for regulation consent values."""

    def __init__(self, consent_cls: type, consented: bool):
        self._consent_cls = consent_cls
        self._consented = consented
        self._timestamp: Optional[int] = None
        self._document: Optional[str] = None
        self._location: Optional[str] = None
        self._hardware_id: Optional[str] = None

    def timestamp(self, timestamp: int) -> "ConsentBuilder":
        self._timestamp = timestamp
        return self

    def document(self, document: str) -> "ConsentBuilder":
        self._document = document
        return self

    def location(self, location: str) -> "ConsentBuilder":
        self._location = location
        return self

    def hardware_id(self, hardware_id: str) -> "ConsentBuilder":
        self._hardware_id = hardware_id
        return self

    def build(self) -> RegulationConsent:
        """Build the consent value, stamping the current time if unset."""
        return self._consent_cls(
            consented=self._consented,
            timestamp=self._timestamp if self._timestamp is not None else now_millis(),
            document=self._document,
            location=self._location,
            hardware_id=self._hardware_id,
        )


class ConsentState:
    """
    A user's consent record.

    GDPR entries are keyed by canonical purpose name; CCPA is a singleton.
    """

    def __init__(
        self,
        gdpr: Optional[dict[str, GDPRConsent]] = None,
        ccpa: Optional[CCPAConsent] = None,
    ):
        self._gdpr: dict[str, GDPRConsent] = dict(gdpr or {})
        self._ccpa = ccpa

    @property
    def gdpr(self) -> dict[str, GDPRConsent]:
        """Copy of the GDPR entries."""
        return dict(self._gdpr)

    @property
    def ccpa(self) -> Optional[CCPAConsent]:
        return self._ccpa

    def get_gdpr_consent(self, purpose: str) -> Optional[GDPRConsent]:
        """Look up the GDPR entry for a purpose."""
        canonical = canonicalize_purpose(purpose)
        if canonical is None:
            return None
        return self._gdpr.get(canonical)

    def is_empty(self) -> bool:
        return not self._gdpr and self._ccpa is None

    @classmethod
    def builder(cls) -> "ConsentStateBuilder":
        """Start from an empty record."""
        return ConsentStateBuilder()

    @classmethod
    def with_consent_state(cls, state: Optional["ConsentState"]) -> "ConsentStateBuilder":
        """Start from an existing record; a None record is treated as empty."""
        builder = ConsentStateBuilder()
        if state is not None:
            builder.set_gdpr_consent_state(state.gdpr)
            builder.set_ccpa_consent_state(state.ccpa)
        return builder

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        result: dict[str, Any] = {
            "gdpr": {
                purpose: consent.to_dict()
                for purpose, consent in self._gdpr.items()
            },
        }
        if self._ccpa is not None:
            result["ccpa"] = {CCPA_PURPOSE_KEY: self._ccpa.to_dict()}
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConsentState":
        """Create from dictionary."""
        builder = ConsentStateBuilder()
        for purpose, consent in data.get("gdpr", {}).items():
            builder.add_gdpr_consent_state(purpose, GDPRConsent.from_dict(consent))
        ccpa = data.get("ccpa", {}).get(CCPA_PURPOSE_KEY)
        if ccpa is not None:
            builder.set_ccpa_consent_state(CCPAConsent.from_dict(ccpa))
        return builder.build()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConsentState):
            return NotImplemented
        return self._gdpr == other._gdpr and self._ccpa == other._ccpa

    def __repr__(self) -> str:
        return f"ConsentState(gdpr={self._gdpr!r}, ccpa={self._ccpa!r})"


class ConsentStateBuilder:
    """Mutable working copy of a consent record."""

    def __init__(self):
        self._gdpr: dict[str, GDPRConsent] = {}
        self._ccpa: Optional[CCPAConsent] = None

    def add_gdpr_consent_state(
        self,
        purpose: str,
        consent: GDPRConsent,
    ) -> "ConsentStateBuilder":
        """Set or overwrite the entry for one purpose."""
        canonical = canonicalize_purpose(purpose)
        if canonical is None or consent is None:
            return self
        self._gdpr[canonical] = consent
        return self

    def remove_gdpr_consent_state(self, purpose: str) -> "ConsentStateBuilder":
        canonical = canonicalize_purpose(purpose)
        if canonical is not None:
            self._gdpr.pop(canonical, None)
        return self

    def set_gdpr_consent_state(
        self,
        consents: Optional[dict[str, GDPRConsent]],
    ) -> "ConsentStateBuilder":
        """Replace all GDPR entries."""
        self._gdpr = {}
        for purpose, consent in (consents or {}).items():
            self.add_gdpr_consent_state(purpose, consent)
        return self

    def set_ccpa_consent_state(
        self,
        consent: Optional[CCPAConsent],
    ) -> "ConsentStateBuilder":
        self._ccpa = consent
        return self

    def remove_ccpa_consent_state(self) -> "ConsentStateBuilder":
        self._ccpa = None
        return self

    def build(self) -> ConsentState:
        return ConsentState(gdpr=self._gdpr, ccpa=self._ccpa)
