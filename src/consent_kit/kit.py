"""
Consent kit entry point.

The host creates the kit with its settings, possibly several times per
process. Every creation rebuilds the mapping table; only the first one in
the process resolves consent and subscribes to the consent-updated signal,
so there is never more than one subscription.
"""

import threading
from collections.abc import Callable, Mapping
from typing import Any, Optional

from .applicator.consent_applicator import ConsentApplicator
from .config.kit_settings import KitSettings
from .events.broadcaster import ConsentUpdateBroadcaster, Subscription
from .host.collaborators import ConsentSource, ConsentUser, IdentityProvider
from .logging import (
    TRIGGER_CONSENT_UPDATED,
    TRIGGER_KIT_CREATE,
    TRIGGER_USER_IDENTIFIED,
    kit_logger,
)
from .mapping.table_builder import MappingTable, build_mapping_table
from .resolver.consent_resolver import ConsentResolver, ResolutionResult
from .resolver.locks import UserLockRegistry
from .utils.clock import now_millis
from .utils.constants import KIT_NAME

logger = kit_logger()


class InitializationState:
    """One-time initialization flag; set at most once and never cleared."""

    def __init__(self):
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        with self._lock:
            return self._initialized

    def mark_initialized(self) -> bool:
        """Set the flag; True only for the caller that actually set it."""
        with self._lock:
            if self._initialized:
                return False
            self._initialized = True
            return True


# Process-wide initialization state
_initialization_state: Optional[InitializationState] = None
_initialization_lock = threading.Lock()


def get_initialization_state() -> InitializationState:
    """Get the process-wide initialization state."""
    global _initialization_state
    with _initialization_lock:
        if _initialization_state is None:
            _initialization_state = InitializationState()
        return _initialization_state


class ConsentKit:
    """
    Translates consent platform categories into host consent state.

    Example:
        kit = ConsentKit(sdk, identity, broadcaster)
        kit.on_kit_create({"mobileConsentGroups": '[{"value": "C0001", "map": "analytics"}]'})
        broadcaster.publish()  # consent changed, re-resolve
    """

    def __init__(
        self,
        consent_source: ConsentSource,
        identity: IdentityProvider,
        broadcaster: Optional[ConsentUpdateBroadcaster] = None,
        applicator: Optional[ConsentApplicator] = None,
        initialization_state: Optional[InitializationState] = None,
        clock: Callable[[], int] = now_millis,
        locks: Optional[UserLockRegistry] = None,
    ):
        """
        Initialize the kit.

        Args:
            consent_source: Consent platform SDK
            identity: Host identity platform
            broadcaster: Consent-updated signal (default: new broadcaster)
            applicator: Consent applicator (default: new ConsentApplicator)
            initialization_state: One-time guard (default: process-wide state)
            clock: Epoch-millis clock used to stamp decisions
            locks: Per-user lock registry shared by all passes of this kit
        """
        self.consent_source = consent_source
        self.identity = identity
        self.broadcaster = broadcaster or ConsentUpdateBroadcaster()
        self.applicator = applicator or ConsentApplicator()
        self.initialization_state = initialization_state or get_initialization_state()
        self.clock = clock
        self.locks = locks if locks is not None else UserLockRegistry()

        self.table: MappingTable = MappingTable().freeze()
        self.resolver: Optional[ConsentResolver] = None
        self.subscription: Optional[Subscription] = None

    @property
    def name(self) -> str:
        return KIT_NAME

    def on_kit_create(self, settings: KitSettings | Mapping[str, Any]) -> list:
        """
        Build the mapping table and, once per process, start listening.

        Returns:
            Reporting messages for the host (always empty)
        """
        self.table = build_mapping_table(settings)
        self.resolver = ConsentResolver(
            self.table,
            self.consent_source,
            self.identity,
            applicator=self.applicator,
            clock=self.clock,
            locks=self.locks,
        )

        if self.initialization_state.mark_initialized():
            self.subscription = self.broadcaster.subscribe(self.process_consent)
            logger.info("Subscribed to consent updates", mappings=len(self.table))
            self.process_consent(TRIGGER_KIT_CREATE)
        else:
            logger.debug("Kit already initialized, not subscribing again")

        return []

    def process_consent(
        self,
        trigger: str = TRIGGER_CONSENT_UPDATED,
    ) -> Optional[ResolutionResult]:
        """Run a resolution pass for the current user."""
        if self.resolver is None:
            logger.warning("Consent processed before the kit was created")
            return None
        return self.resolver.resolve(trigger)

    def get_instance(self) -> ConsentSource:
        """The underlying consent platform SDK."""
        return self.consent_source

    def set_opt_out(self, opted_out: bool) -> list:
        return []

    # Identity callbacks

    def on_user_identified(self, user: Optional[ConsentUser]) -> Optional[ResolutionResult]:
        """Re-apply consent when the host identifies a new user."""
        if self.resolver is None:
            return None
        if user is None:
            return self.resolver.resolve(TRIGGER_USER_IDENTIFIED)
        return self.resolver.resolve_for_user(user, TRIGGER_USER_IDENTIFIED)

    def on_identify_completed(self, user: Optional[ConsentUser], request: Any = None) -> None:
        pass

    def on_login_completed(self, user: Optional[ConsentUser], request: Any = None) -> None:
        pass

    def on_logout_completed(self, user: Optional[ConsentUser], request: Any = None) -> None:
        pass

    def on_modify_completed(self, user: Optional[ConsentUser], request: Any = None) -> None:
        pass
