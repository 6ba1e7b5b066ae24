"""
Interfaces of the external collaborators the kit talks to.

The consent platform SDK and the host identity platform are not part of
this package. The kit only depends on the protocols below; the in-memory
implementations serve development and tests.
"""

from typing import Any, Optional, Protocol

from ..models.regulation import VendorListMode
from ..state.consent_state import ConsentState
from ..utils.constants import STATUS_NOT_COLLECTED, VENDOR_CONSENT_FIELD


class ConsentSource(Protocol):
    """Protocol for the upstream consent platform SDK."""

    def get_consent_status_for_group_id(self, category_id: str) -> int:
        """Get the status code for a consent category."""
        ...

    def get_vendor_details(
        self,
        vendor_type: str,
        category_id: str,
    ) -> Optional[dict[str, Any]]:
        """Get vendor details, including an integer 'consent' field."""
        ...


class ConsentUser(Protocol):
    """Protocol for a host platform user."""

    @property
    def id(self) -> str:
        ...

    def get_consent_state(self) -> Optional[ConsentState]:
        """Snapshot of the user's consent record."""
        ...

    def set_consent_state(self, state: ConsentState) -> None:
        """Replace the user's consent record."""
        ...


class IdentityProvider(Protocol):
    """Protocol for the host identity platform."""

    def get_current_user(self) -> Optional[ConsentUser]:
        """The current user, or None before one is identified."""
        ...


class StaticConsentSource:
    """
    In-memory consent source for testing and development.

    Categories without a configured status report "not collected".
    Vendor lookups without configured details return None, as the real SDK
    does for vendors it has no record of.
    """

    def __init__(self, default_status: int = STATUS_NOT_COLLECTED):
        """Initialize with the status reported for unknown categories."""
        self.default_status = default_status
        self._statuses: dict[str, int] = {}
        self._vendor_details: dict[tuple[str, str], Optional[dict[str, Any]]] = {}
        self._errors: dict[str, Exception] = {}
        self.queries: list[tuple[Optional[str], str]] = []

    def set_status(self, category_id: str, status: int) -> None:
        """Set the status for a plain consent category."""
        self._statuses[category_id] = status

    def set_vendor_consent(
        self,
        vendor_type: VendorListMode | str,
        category_id: str,
        status: int,
    ) -> None:
        """Set the consent status reported in vendor details."""
        self._vendor_details[(_vendor_key(vendor_type), category_id)] = {
            VENDOR_CONSENT_FIELD: status,
        }

    def set_vendor_details(
        self,
        vendor_type: VendorListMode | str,
        category_id: str,
        details: Optional[dict[str, Any]],
    ) -> None:
        """Set raw vendor details, including malformed ones."""
        self._vendor_details[(_vendor_key(vendor_type), category_id)] = details

    def fail_on(self, category_id: str, error: Exception) -> None:
        """Raise an error whenever this category is queried."""
        self._errors[category_id] = error

    @property
    def query_count(self) -> int:
        return len(self.queries)

    def get_consent_status_for_group_id(self, category_id: str) -> int:
        self.queries.append((None, category_id))
        if category_id in self._errors:
            raise self._errors[category_id]
        return self._statuses.get(category_id, self.default_status)

    def get_vendor_details(
        self,
        vendor_type: str,
        category_id: str,
    ) -> Optional[dict[str, Any]]:
        vendor_key = _vendor_key(vendor_type)
        self.queries.append((vendor_key, category_id))
        if category_id in self._errors:
            raise self._errors[category_id]
        details = self._vendor_details.get((vendor_key, category_id))
        return dict(details) if details is not None else None


class InMemoryUser:
    """In-memory host user that keeps every committed consent record."""

    def __init__(
        self,
        user_id: str = "user-1",
        consent_state: Optional[ConsentState] = None,
    ):
        self._id = user_id
        self._consent_state = consent_state
        self.history: list[ConsentState] = []
        self.write_error: Optional[Exception] = None

    @property
    def id(self) -> str:
        return self._id

    @property
    def write_count(self) -> int:
        return len(self.history)

    def get_consent_state(self) -> Optional[ConsentState]:
        return self._consent_state

    def set_consent_state(self, state: ConsentState) -> None:
        if self.write_error is not None:
            raise self.write_error
        self._consent_state = state
        self.history.append(state)


class InMemoryIdentity:
    """In-memory identity provider with a settable current user."""

    def __init__(self, current_user: Optional[ConsentUser] = None):
        self.current_user = current_user

    def get_current_user(self) -> Optional[ConsentUser]:
        return self.current_user


def _vendor_key(vendor_type: VendorListMode | str) -> str:
    if isinstance(vendor_type, VendorListMode):
        return vendor_type.value
    return vendor_type
