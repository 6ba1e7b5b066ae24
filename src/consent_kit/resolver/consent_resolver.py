"""
Consent resolver.

Runs a resolution pass: for every mapping, asks the consent platform for
the current status and hands each known decision to the applicator.

A pass is best-effort. A failed query only skips its own mapping, and a
missing current user turns the whole pass into a no-op until the next
trigger.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from ..applicator.consent_applicator import ConsentApplicator
from ..host.collaborators import ConsentSource, ConsentUser, IdentityProvider
from ..logging import TRIGGER_DIRECT, PassLogContext, resolver_logger
from ..mapping.table_builder import MappingTable
from ..models.consent_decision import ConsentDecision
from ..models.consent_status import ConsentStatus
from ..models.mapping_entry import MappingEntry
from ..utils.clock import now_millis
from ..utils.constants import VENDOR_CONSENT_FIELD
from .locks import UserLockRegistry

logger = resolver_logger()


class ConsentQueryError(Exception):
    """The consent platform returned no usable status for a mapping."""


@dataclass
class ResolutionResult:
    """Summary of one resolution pass."""
    user_id: Optional[str] = None
    pass_id: Optional[str] = None
    trigger: str = TRIGGER_DIRECT
    decisions: list[ConsentDecision] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # status not collected
    failed: list[str] = field(default_factory=list)   # query errors

    @property
    def ran(self) -> bool:
        """Whether the pass had a user to work on."""
        return self.user_id is not None

    @property
    def applied(self) -> int:
        return len(self.decisions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "user_id": self.user_id,
            "pass_id": self.pass_id,
            "trigger": self.trigger,
            "applied": self.applied,
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


class ConsentResolver:
    """
    Resolves consent platform status into host consent decisions.

    Example:
        resolver = ConsentResolver(table, sdk, identity, ConsentApplicator())
        result = resolver.resolve()
    """

    def __init__(
        self,
        table: MappingTable,
        consent_source: ConsentSource,
        identity: IdentityProvider,
        applicator: Optional[ConsentApplicator] = None,
        clock: Callable[[], int] = now_millis,
        locks: Optional[UserLockRegistry] = None,
    ):
        """
        Initialize the resolver.

        Args:
            table: Mapping table, read-only after build
            consent_source: Consent platform SDK
            identity: Host identity platform
            applicator: Applicator for decisions (default: new ConsentApplicator)
            clock: Epoch-millis clock used to stamp decisions
            locks: Per-user lock registry (default: private registry)
        """
        self.table = table
        self.consent_source = consent_source
        self.identity = identity
        self.applicator = applicator or ConsentApplicator()
        self.clock = clock
        self.locks = locks if locks is not None else UserLockRegistry()

    def resolve(self, trigger: str = TRIGGER_DIRECT) -> ResolutionResult:
        """
        Run one resolution pass for the current user.

        Args:
            trigger: What started the pass, bound to its log lines

        Returns:
            ResolutionResult; ran is False when there was no current user
        """
        user = self.identity.get_current_user()
        if user is None:
            logger.warning(
                "Consent could not be processed, current user is not set",
                trigger=trigger,
            )
            return ResolutionResult(trigger=trigger)

        return self.resolve_for_user(user, trigger)

    def resolve_for_user(
        self,
        user: ConsentUser,
        trigger: str = TRIGGER_DIRECT,
    ) -> ResolutionResult:
        """Run one resolution pass for a specific user."""
        with PassLogContext(user.id, trigger) as log_context, self.locks.hold(user.id):
            result = ResolutionResult(
                user_id=user.id,
                pass_id=log_context.pass_id,
                trigger=trigger,
            )

            for entry in self.table.values():
                status, failed = self._query(entry)
                if failed:
                    result.failed.append(entry.category_id)
                    continue

                decision = ConsentDecision.from_status(entry, status, self.clock())
                if decision is None:
                    result.skipped.append(entry.category_id)
                    continue

                self.applicator.apply(user, decision)
                result.decisions.append(decision)

            logger.info(
                "Consent resolution finished",
                duration_ms=log_context.elapsed_ms,
                **result.to_dict(),
            )
            return result

    def query_status(self, entry: MappingEntry) -> ConsentStatus:
        """Query and decode the status for one mapping; errors read as UNKNOWN."""
        status, _ = self._query(entry)
        return status

    def _query(self, entry: MappingEntry) -> tuple[ConsentStatus, bool]:
        try:
            return ConsentStatus.decode(self._fetch_status(entry)), False
        except Exception as e:
            logger.error(
                "Could not fetch consent from the consent platform",
                category_id=entry.category_id,
                vendor_type=entry.vendor_type.value if entry.vendor_type else None,
                error=str(e),
                exc_info=True,
            )
            return ConsentStatus.UNKNOWN, True

    def _fetch_status(self, entry: MappingEntry) -> int:
        if entry.vendor_type is None:
            return self.consent_source.get_consent_status_for_group_id(
                entry.category_id
            )

        details = self.consent_source.get_vendor_details(
            entry.vendor_type.value, entry.category_id
        )
        if details is None:
            raise ConsentQueryError(
                f"No vendor details for {entry.vendor_type.value}/{entry.category_id}"
            )
        if VENDOR_CONSENT_FIELD not in details:
            raise ConsentQueryError(
                f"Vendor details for {entry.category_id} have no "
                f"'{VENDOR_CONSENT_FIELD}' field"
            )
        return details[VENDOR_CONSENT_FIELD]
