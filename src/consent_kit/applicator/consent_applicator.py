"""
Consent applicator.

Merges consent decisions into a user's consent record. The record is read,
copied into a builder, merged and written back whole; entries the decision
does not touch are carried over unchanged.

Merge rules per regulation:
- GDPR: set or overwrite the entry for the decision's purpose
- CCPA: overwrite the single opt-out entry
"""

from collections.abc import Callable, Iterable
from typing import Optional

from ..host.collaborators import ConsentUser
from ..logging import applicator_logger
from ..models.consent_decision import ConsentDecision
from ..models.regulation import ConsentRegulation
from ..state.consent_state import (
    CCPAConsent,
    ConsentState,
    ConsentStateBuilder,
    GDPRConsent,
)

logger = applicator_logger()

MergeFunction = Callable[[ConsentStateBuilder, ConsentDecision], None]


def merge_gdpr(builder: ConsentStateBuilder, decision: ConsentDecision) -> None:
    """Set the GDPR entry for the decision's purpose."""
    consent = (
        GDPRConsent.builder(decision.granted)
        .timestamp(decision.timestamp)
        .build()
    )
    builder.add_gdpr_consent_state(decision.purpose, consent)


def merge_ccpa(builder: ConsentStateBuilder, decision: ConsentDecision) -> None:
    """Overwrite the CCPA entry."""
    consent = (
        CCPAConsent.builder(decision.granted)
        .timestamp(decision.timestamp)
        .build()
    )
    builder.set_ccpa_consent_state(consent)


DEFAULT_MERGE_FUNCTIONS: dict[ConsentRegulation, MergeFunction] = {
    ConsentRegulation.GDPR: merge_gdpr,
    ConsentRegulation.CCPA: merge_ccpa,
}


class ConsentApplicator:
    """Writes consent decisions onto host user records."""

    def __init__(
        self,
        merge_functions: Optional[dict[ConsentRegulation, MergeFunction]] = None,
    ):
        """
        Initialize the applicator.

        Args:
            merge_functions: Merge function per regulation (defaults to GDPR/CCPA)
        """
        self._merge_functions = dict(
            merge_functions if merge_functions is not None else DEFAULT_MERGE_FUNCTIONS
        )

    def register_merge(
        self,
        regulation: ConsentRegulation,
        merge: MergeFunction,
    ) -> None:
        """Register or replace the merge function for a regulation."""
        self._merge_functions[regulation] = merge

    def apply(self, user: ConsentUser, decision: ConsentDecision) -> ConsentState:
        """
        Merge one decision into the user's consent record.

        Errors raised by the host when writing the record are not caught.

        Returns:
            The consent record that was written
        """
        return self.apply_all(user, [decision])

    def apply_all(
        self,
        user: ConsentUser,
        decisions: Iterable[ConsentDecision],
    ) -> ConsentState:
        """Merge several decisions and write the record once."""
        builder = ConsentState.with_consent_state(user.get_consent_state())
        merged = 0
        for decision in decisions:
            self._merge_for(decision.regulation)(builder, decision)
            merged += 1

        state = builder.build()
        if not merged:
            return state

        user.set_consent_state(state)
        logger.debug(
            "Consent state updated",
            user_id=user.id,
            decisions=merged,
        )
        return state

    def _merge_for(self, regulation: ConsentRegulation) -> MergeFunction:
        try:
            return self._merge_functions[regulation]
        except KeyError:
            raise ValueError(
                f"No merge function registered for {regulation.name}"
            ) from None
