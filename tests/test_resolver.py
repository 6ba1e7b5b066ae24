"""Tests for the consent resolver."""

import json
import threading
from unittest.mock import MagicMock

import pytest

from src.consent_kit.applicator import ConsentApplicator
from src.consent_kit.host import InMemoryIdentity, InMemoryUser, StaticConsentSource
from src.consent_kit.mapping import build_mapping_table
from src.consent_kit.models import ConsentStatus, MappingEntry, VendorListMode
from src.consent_kit.resolver import ConsentResolver, UserLockRegistry
from src.consent_kit.state import CCPAConsent, ConsentState, GDPRConsent


def make_table(**groups):
    return build_mapping_table({
        key: json.dumps(rows) for key, rows in groups.items()
    })


class TestResolve:
    """Tests for a full resolution pass."""

    @pytest.fixture
    def source(self):
        return StaticConsentSource()

    @pytest.fixture
    def user(self):
        return InMemoryUser("user-1")

    @pytest.fixture
    def identity(self, user):
        return InMemoryIdentity(user)

    @pytest.fixture
    def table(self):
        return make_table(
            mobileConsentGroups=[
                {"value": "C0001", "map": "analytics"},
                {"value": "C0003", "map": "marketing"},
            ],
            vendorIABConsentGroups=[
                {"value": "C0002", "map": "data_sale_opt_out"},
            ],
        )

    @pytest.fixture
    def resolver(self, table, source, identity):
        return ConsentResolver(table, source, identity, clock=lambda: 1000)

    def test_granted_and_denied_are_applied(self, resolver, source, user):
        source.set_status("C0001", 1)
        source.set_status("C0003", 0)
        source.set_vendor_consent(VendorListMode.IAB, "C0002", 0)

        result = resolver.resolve()

        state = user.get_consent_state()
        assert result.ran is True
        assert result.applied == 3
        assert state.get_gdpr_consent("analytics") == GDPRConsent(True, 1000)
        assert state.get_gdpr_consent("marketing") == GDPRConsent(False, 1000)
        assert state.ccpa == CCPAConsent(False, 1000)

    def test_multi_level_status_is_granted(self, resolver, source, user):
        """A status of 2 counts as consent given."""
        source.set_status("C0001", 2)

        resolver.resolve()

        assert user.get_consent_state().get_gdpr_consent("analytics").consented is True

    def test_not_collected_makes_no_change(self, resolver, source, user):
        """Status -1 leaves the record alone."""
        source.set_status("C0001", -1)
        source.set_status("C0003", -1)
        source.set_vendor_consent(VendorListMode.IAB, "C0002", -1)

        result = resolver.resolve()

        assert result.applied == 0
        assert result.skipped == ["C0001", "C0003", "C0002"]
        assert user.get_consent_state() is None
        assert user.write_count == 0

    def test_vendor_entries_query_vendor_details(self, resolver, source):
        resolver.resolve()

        assert (None, "C0001") in source.queries
        assert (None, "C0003") in source.queries
        assert ("IAB", "C0002") in source.queries

    def test_no_current_user_is_noop(self, table, source, user):
        """Without a user there are no queries and no writes."""
        resolver = ConsentResolver(table, source, InMemoryIdentity(None))

        result = resolver.resolve()

        assert result.ran is False
        assert source.query_count == 0
        assert user.write_count == 0

    def test_query_error_is_isolated(self, resolver, source, user):
        """One failing query does not stop the others."""
        source.fail_on("C0001", RuntimeError("sdk not ready"))
        source.set_status("C0003", 1)
        source.set_vendor_consent(VendorListMode.IAB, "C0002", -1)

        result = resolver.resolve()

        assert result.failed == ["C0001"]
        state = user.get_consent_state()
        assert state.get_gdpr_consent("analytics") is None
        assert state.get_gdpr_consent("marketing").consented is True

    def test_query_error_is_not_a_denial(self, resolver, source, user):
        """A failed query leaves an existing grant in place."""
        user.set_consent_state(
            ConsentState.builder()
            .add_gdpr_consent_state("analytics", GDPRConsent(True, 1))
            .build()
        )
        source.fail_on("C0001", RuntimeError("boom"))

        resolver.resolve()

        assert user.get_consent_state().get_gdpr_consent("analytics") == GDPRConsent(True, 1)

    def test_missing_vendor_details_skipped(self, resolver, source, user):
        """No vendor details object is treated as unknown."""
        source.set_vendor_details("IAB", "C0002", None)

        result = resolver.resolve()

        assert "C0002" in result.failed
        assert user.get_consent_state() is None

    def test_vendor_details_without_consent_field(self, resolver, source):
        source.set_vendor_details("IAB", "C0002", {"name": "vendor"})

        result = resolver.resolve()

        assert "C0002" in result.failed

    def test_existing_purposes_survive_a_pass(self, resolver, source, user):
        user.set_consent_state(
            ConsentState.builder()
            .add_gdpr_consent_state("unrelated", GDPRConsent(False, 1))
            .build()
        )
        source.set_status("C0001", 1)

        resolver.resolve()

        state = user.get_consent_state()
        assert state.get_gdpr_consent("unrelated") == GDPRConsent(False, 1)
        assert state.get_gdpr_consent("analytics").consented is True

    def test_write_error_propagates(self, resolver, source, user):
        """Host write errors surface to the caller."""
        source.set_status("C0001", 1)
        user.write_error = RuntimeError("write failed")

        with pytest.raises(RuntimeError, match="write failed"):
            resolver.resolve()

    def test_each_decision_applied_immediately(self, table, source, identity, user):
        applicator = MagicMock(spec=ConsentApplicator)
        source.set_status("C0001", 1)
        source.set_status("C0003", 0)
        resolver = ConsentResolver(table, source, identity, applicator=applicator)

        resolver.resolve()

        assert applicator.apply.call_count == 2
        first_user, first_decision = applicator.apply.call_args_list[0].args
        assert first_user is user
        assert first_decision.purpose == "analytics"

    def test_decisions_stamped_with_clock(self, table, source, identity, user):
        ticks = iter([10, 20, 30])
        source.set_status("C0001", 1)
        source.set_status("C0003", 1)
        source.set_vendor_consent("IAB", "C0002", 1)
        resolver = ConsentResolver(table, source, identity, clock=lambda: next(ticks))

        result = resolver.resolve()

        assert [d.timestamp for d in result.decisions] == [10, 20, 30]


class TestQueryStatus:
    """Tests for single mapping queries."""

    @pytest.fixture
    def source(self):
        return StaticConsentSource()

    @pytest.fixture
    def resolver(self, source):
        return ConsentResolver(make_table(), source, InMemoryIdentity())

    def test_category_query(self, resolver, source):
        source.set_status("C1", 0)
        status = resolver.query_status(MappingEntry.create("C1", "analytics"))
        assert status is ConsentStatus.DENIED

    def test_vendor_query(self, resolver, source):
        source.set_vendor_consent(VendorListMode.GOOGLE, "G1", 1)
        entry = MappingEntry.create("G1", "ads", VendorListMode.GOOGLE)
        assert resolver.query_status(entry) is ConsentStatus.GRANTED

    def test_exception_reads_as_unknown(self, resolver, source):
        source.fail_on("C1", ValueError("bad"))
        status = resolver.query_status(MappingEntry.create("C1", "analytics"))
        assert status is ConsentStatus.UNKNOWN

    def test_non_integer_status_reads_as_unknown(self, resolver, source):
        source.set_vendor_details("IAB", "C1", {"consent": "yes"})
        entry = MappingEntry.create("C1", "analytics", VendorListMode.IAB)
        assert resolver.query_status(entry) is ConsentStatus.UNKNOWN


class TestUserLocks:
    """Tests for per-user serialization of passes."""

    def test_same_user_same_lock(self):
        locks = UserLockRegistry()
        with locks.hold("a") as outer, locks.hold("a") as inner, locks.hold("b") as other:
            assert outer is inner
            assert outer is not other
            assert len(locks) == 2

    def test_registry_empties_after_passes(self):
        """Locks are dropped once no pass holds them."""
        locks = UserLockRegistry()
        for user_id in ("a", "b", "c"):
            with locks.hold(user_id):
                pass

        assert len(locks) == 0

    def test_lock_released_on_error(self):
        locks = UserLockRegistry()
        with pytest.raises(RuntimeError):
            with locks.hold("a"):
                raise RuntimeError("write failed")

        assert len(locks) == 0

    def test_resolver_passes_do_not_grow_registry(self):
        """Many users resolved one after another leave no locks behind."""
        locks = UserLockRegistry()
        source = StaticConsentSource()
        source.set_status("A", 1)
        table = make_table(mobileConsentGroups=[{"value": "A", "map": "purpose_a"}])
        resolver = ConsentResolver(table, source, InMemoryIdentity(None), locks=locks)

        for index in range(50):
            resolver.resolve_for_user(InMemoryUser(f"user-{index}"))

        assert len(locks) == 0

    def test_concurrent_passes_do_not_lose_updates(self):
        """Two passes for one user both land in the final record."""
        user = InMemoryUser("user-1")
        identity = InMemoryIdentity(user)
        locks = UserLockRegistry()

        first_table = make_table(mobileConsentGroups=[{"value": "A", "map": "purpose_a"}])
        second_table = make_table(mobileConsentGroups=[{"value": "B", "map": "purpose_b"}])

        source = StaticConsentSource()
        source.set_status("A", 1)
        source.set_status("B", 1)

        barrier = threading.Barrier(2)

        class SlowUser:
            """Widens the read-merge-write window."""
            id = "user-1"

            def get_consent_state(self):
                state = user.get_consent_state()
                try:
                    barrier.wait(timeout=0.2)
                except threading.BrokenBarrierError:
                    pass
                return state

            def set_consent_state(self, state):
                user.set_consent_state(state)

        slow_user = SlowUser()
        resolvers = [
            ConsentResolver(first_table, source, identity, locks=locks),
            ConsentResolver(second_table, source, identity, locks=locks),
        ]
        threads = [
            threading.Thread(target=r.resolve_for_user, args=(slow_user,))
            for r in resolvers
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        state = user.get_consent_state()
        assert set(state.gdpr) == {"purpose_a", "purpose_b"}
