"""End-to-end tests for the exposed ledger operations."""

import pytest

from collabledger.ledger.errors import ErrorKind
from collabledger.ledger.models import MAX_DETAILS_LENGTH, Tier
from collabledger.ledger.service import ProofOfCollaboration
from collabledger.ledger.store.memory import MemoryStore

DEPLOYER = "deployer"
WALLET_1 = "wallet_1"
WALLET_2 = "wallet_2"
WALLET_3 = "wallet_3"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def poc(store):
    return ProofOfCollaboration(store=store)


@pytest.fixture
def ready(poc):
    assert poc.initialize(DEPLOYER)
    return poc


def _submit(poc, who, details="contribution", height=1):
    result = poc.submit(who, details, created_at=height)
    assert result.ok
    return result.value


class TestInitialization:

    def test_initialize_succeeds(self, poc):
        result = poc.initialize(DEPLOYER)
        assert result.ok and result.value is True
        assert poc.get_owner() == DEPLOYER

    def test_owner_becomes_admin(self, ready):
        assert ready.is_admin(DEPLOYER)

    def test_non_owners_not_admin_by_default(self, ready):
        assert not ready.is_admin(WALLET_1)

    def test_repeat_by_owner_is_ok(self, ready):
        assert ready.initialize(DEPLOYER).ok

    def test_repeat_by_other_rejected(self, ready):
        result = ready.initialize(WALLET_1)
        assert result.error == ErrorKind.ALREADY_INITIALIZED
        assert ready.get_owner() == DEPLOYER


class TestAdminManagement:

    def test_owner_adds_admin(self, ready):
        assert ready.add_admin(DEPLOYER, WALLET_1).ok
        assert ready.is_admin(WALLET_1)

    def test_non_owner_cannot_add(self, ready):
        result = ready.add_admin(WALLET_1, WALLET_3)
        assert not result
        assert result.error == ErrorKind.NOT_OWNER
        assert not ready.is_admin(WALLET_3)

    def test_multiple_admins(self, ready):
        assert ready.add_admin(DEPLOYER, WALLET_1).ok
        assert ready.add_admin(DEPLOYER, WALLET_2).ok
        assert ready.is_admin(WALLET_1)
        assert ready.is_admin(WALLET_2)


class TestReadOnly:

    def test_missing_contribution_is_none(self, poc):
        assert poc.get_contribution(999) is None

    def test_missing_profile_is_none(self, poc):
        assert poc.get_profile(WALLET_1) is None

    def test_missing_tier_is_not_found(self, poc):
        result = poc.get_tier(WALLET_1)
        assert not result.ok
        assert result.error == ErrorKind.NOT_FOUND

    def test_boolean_id_not_treated_as_integer(self, ready):
        _submit(ready, WALLET_1)
        assert ready.get_contribution(1) is not None
        assert ready.get_contribution(True) is None
        assert ready.verify(DEPLOYER, True, 10).error == ErrorKind.INVALID_ARGUMENT

    def test_returned_records_are_copies(self, ready):
        cid = _submit(ready, WALLET_1)
        record = ready.get_contribution(cid)
        record.score = 999
        assert ready.get_contribution(cid).score == 0


class TestSubmission:

    def test_first_submission_gets_id_one(self, poc):
        result = poc.submit(WALLET_1, "Fixed critical bug in authentication module", created_at=3)
        assert result.ok and result.value == 1

    def test_creates_profile(self, poc):
        _submit(poc, WALLET_1, "Implemented new feature")
        profile = poc.get_profile(WALLET_1)
        assert profile.total_score == 0
        assert profile.contribution_count == 1
        assert profile.tier == Tier.BRONZE
        assert profile.is_active is True

    def test_stores_details_and_timestamp(self, poc):
        _submit(poc, WALLET_1, "Added comprehensive unit tests", height=17)
        record = poc.get_contribution(1)
        assert record.contributor == WALLET_1
        assert record.created_at == 17
        assert record.details == "Added comprehensive unit tests"
        assert record.score == 0
        assert record.verified is False

    def test_timestamps_follow_host_sequence(self, poc):
        _submit(poc, WALLET_1, height=10)
        _submit(poc, WALLET_1, height=15)
        assert poc.get_contribution(1).created_at == 10
        assert poc.get_contribution(2).created_at == 15

    def test_second_submission_updates_profile(self, poc):
        _submit(poc, WALLET_1, "x")
        _submit(poc, WALLET_1, "y")
        profile = poc.get_profile(WALLET_1)
        assert profile.contribution_count == 2
        assert profile.total_score == 0

    def test_long_details(self, poc):
        details = "A" * MAX_DETAILS_LENGTH
        assert _submit(poc, WALLET_1, details) == 1
        assert poc.get_contribution(1).details == details

    def test_too_long_details_rejected_without_side_effects(self, poc, store):
        result = poc.submit(WALLET_1, "A" * (MAX_DETAILS_LENGTH + 1), created_at=1)
        assert result.error == ErrorKind.INVALID_ARGUMENT
        assert poc.get_last_contribution_id() == 0
        assert poc.get_profile(WALLET_1) is None
        assert store.commits == 0

    def test_empty_details(self, poc):
        assert _submit(poc, WALLET_1, "") == 1
        assert poc.get_contribution(1).details == ""

    def test_ids_across_users_are_sequential(self, poc):
        ids = [_submit(poc, who) for who in (WALLET_1, WALLET_2, WALLET_3)]
        assert ids == [1, 2, 3]
        for who in (WALLET_1, WALLET_2, WALLET_3):
            assert poc.get_profile(who) is not None

    def test_order_and_ownership_preserved(self, poc):
        contributors = [WALLET_1, WALLET_2, WALLET_3]
        details = ["First", "Second", "Third"]
        for who, text in zip(contributors, details):
            _submit(poc, who, text)
        for i in range(3):
            record = poc.get_contribution(i + 1)
            assert record.contributor == contributors[i]
            assert record.details == details[i]

    def test_submission_needs_no_initialization(self, poc):
        assert _submit(poc, WALLET_1) == 1


class TestVerification:

    @pytest.fixture
    def submitted(self, ready):
        _submit(ready, WALLET_1, "Test contribution for verification")
        return ready

    def test_admin_verifies(self, submitted):
        result = submitted.verify(DEPLOYER, 1, 50)
        assert result.ok and result.value is True

    def test_record_updated(self, submitted):
        submitted.verify(DEPLOYER, 1, 75)
        record = submitted.get_contribution(1)
        assert record.score == 75
        assert record.verified is True

    def test_profile_total_updated(self, submitted):
        submitted.verify(DEPLOYER, 1, 80)
        profile = submitted.get_profile(WALLET_1)
        assert profile.total_score == 80
        assert profile.contribution_count == 1

    def test_non_admin_rejected(self, submitted):
        result = submitted.verify(WALLET_2, 1, 50)
        assert result.error == ErrorKind.NOT_AUTHORIZED
        record = submitted.get_contribution(1)
        assert record.verified is False
        assert record.score == 0

    def test_double_verification_rejected(self, submitted):
        assert submitted.verify(DEPLOYER, 1, 50).ok
        result = submitted.verify(DEPLOYER, 1, 75)
        assert result.error == ErrorKind.ALREADY_VERIFIED
        assert submitted.get_contribution(1).score == 50
        assert submitted.get_profile(WALLET_1).total_score == 50

    def test_missing_contribution(self, submitted):
        assert submitted.verify(DEPLOYER, 999, 50).error == ErrorKind.NOT_FOUND

    def test_added_admin_verifies(self, submitted):
        submitted.add_admin(DEPLOYER, WALLET_2)
        assert submitted.verify(WALLET_2, 1, 60).ok

    @pytest.mark.parametrize("first,second", [(1, 2), (2, 1)])
    def test_scores_accumulate_in_any_order(self, submitted, first, second):
        _submit(submitted, WALLET_1, "Second contribution")
        scores = {1: 30, 2: 45}
        submitted.verify(DEPLOYER, first, scores[first])
        submitted.verify(DEPLOYER, second, scores[second])
        profile = submitted.get_profile(WALLET_1)
        assert profile.total_score == 75
        assert profile.contribution_count == 2

    def test_zero_score(self, submitted):
        assert submitted.verify(DEPLOYER, 1, 0).ok
        record = submitted.get_contribution(1)
        assert record.score == 0
        assert record.verified is True

    def test_high_score(self, submitted):
        assert submitted.verify(DEPLOYER, 1, 4294967295).ok
        assert submitted.get_profile(WALLET_1).total_score == 4294967295

    def test_self_verification_permitted(self, ready):
        ready.add_admin(DEPLOYER, WALLET_1)
        _submit(ready, WALLET_1, "Self verification attempt")
        assert ready.verify(WALLET_1, 1, 50).ok

    def test_negative_score_rejected(self, submitted):
        assert submitted.verify(DEPLOYER, 1, -5).error == ErrorKind.INVALID_ARGUMENT
        assert submitted.get_contribution(1).verified is False


class TestTiers:

    def _verified(self, poc, who, score):
        cid = _submit(poc, who)
        assert poc.verify(DEPLOYER, cid, score).ok
        return cid

    def test_silver(self, ready):
        self._verified(ready, WALLET_1, 100)
        assert ready.refresh_tier(DEPLOYER, WALLET_1).ok
        assert ready.get_tier(WALLET_1).value == Tier.SILVER

    def test_progression_to_platinum(self, ready):
        self._verified(ready, WALLET_1, 250)
        ready.refresh_tier(DEPLOYER, WALLET_1)
        assert ready.get_tier(WALLET_1).value == Tier.GOLD

        _submit(ready, WALLET_1)
        _submit(ready, WALLET_1)
        self._verified(ready, WALLET_1, 250)
        ready.refresh_tier(DEPLOYER, WALLET_1)
        assert ready.get_tier(WALLET_1).value == Tier.PLATINUM

        profile = ready.get_profile(WALLET_1)
        assert profile.total_score == 500
        assert profile.contribution_count == 4

    def test_tier_is_stale_until_refreshed(self, ready):
        self._verified(ready, WALLET_1, 300)
        assert ready.get_tier(WALLET_1).value == Tier.BRONZE
        ready.refresh_tier(DEPLOYER, WALLET_1)
        assert ready.get_tier(WALLET_1).value == Tier.GOLD

    def test_below_silver_boundary_then_crossing(self, ready):
        self._verified(ready, WALLET_1, 99)
        ready.refresh_tier(DEPLOYER, WALLET_1)
        assert ready.get_tier(WALLET_1).value == Tier.BRONZE

        self._verified(ready, WALLET_1, 1)
        ready.refresh_tier(DEPLOYER, WALLET_1)
        assert ready.get_tier(WALLET_1).value == Tier.SILVER

    def test_repeated_refresh(self, ready):
        self._verified(ready, WALLET_1, 250)
        for _ in range(3):
            assert ready.refresh_tier(DEPLOYER, WALLET_1).ok
        assert ready.get_tier(WALLET_1).value == Tier.GOLD

    def test_fifty_points_stays_bronze(self, ready):
        cid = _submit(ready, "x_contributor", "bug fix")
        assert cid == 1
        assert ready.verify(DEPLOYER, 1, 50).ok
        profile = ready.get_profile("x_contributor")
        assert (profile.total_score, profile.contribution_count) == (50, 1)
        ready.refresh_tier(DEPLOYER, "x_contributor")
        assert ready.get_tier("x_contributor").value == Tier.BRONZE

    def test_refresh_unknown_contributor(self, ready):
        assert ready.refresh_tier(DEPLOYER, WALLET_3).error == ErrorKind.NOT_FOUND

    def test_refresh_by_non_admin(self, ready):
        self._verified(ready, WALLET_1, 300)
        assert ready.refresh_tier(WALLET_1, WALLET_1).error == ErrorKind.NOT_AUTHORIZED
        assert ready.get_tier(WALLET_1).value == Tier.BRONZE


class TestConsistency:

    def test_many_contributions(self, ready):
        for i in range(1, 11):
            assert _submit(ready, WALLET_1, f"Contribution {i}") == i
        for i in range(1, 11):
            ready.verify(DEPLOYER, i, 10)
        profile = ready.get_profile(WALLET_1)
        assert profile.total_score == 100
        assert profile.contribution_count == 10

    def test_contributors_isolated(self, ready):
        _submit(ready, WALLET_1)
        ready.verify(DEPLOYER, 1, 100)
        _submit(ready, WALLET_2)
        _submit(ready, WALLET_2)
        ready.verify(DEPLOYER, 2, 50)
        ready.verify(DEPLOYER, 3, 50)

        p1 = ready.get_profile(WALLET_1)
        p2 = ready.get_profile(WALLET_2)
        assert (p1.total_score, p1.contribution_count) == (100, 1)
        assert (p2.total_score, p2.contribution_count) == (100, 2)

    def test_interleaved_rounds(self, ready):
        expected_id = 1
        for _ in range(3):
            for who in (WALLET_1, WALLET_2, WALLET_3):
                assert _submit(ready, who) == expected_id
                expected_id += 1
            for i in range(expected_id - 3, expected_id):
                if i % 2 == 1:
                    ready.verify(DEPLOYER, i, 30)

        for i in range(1, 10):
            record = ready.get_contribution(i)
            if i % 2 == 1:
                assert (record.verified, record.score) == (True, 30)
            else:
                assert (record.verified, record.score) == (False, 0)

    def test_contributions_by(self, ready):
        _submit(ready, WALLET_1)
        _submit(ready, WALLET_2)
        _submit(ready, WALLET_1)
        assert [r.id for r in ready.get_contributions_by(WALLET_1)] == [1, 3]


class TestTransactions:

    def test_only_successful_operations_commit(self, ready, store):
        commits = store.commits
        ready.verify(WALLET_1, 1, 10)
        ready.add_admin(WALLET_1, WALLET_2)
        assert store.commits == commits

        _submit(ready, WALLET_1)
        assert store.commits == commits + 1

    def test_failed_store_commit_leaves_state_unchanged(self, ready):
        class BrokenStore(MemoryStore):
            def commit(self, state):
                raise OSError("disk full")

        ready.store = BrokenStore()
        with pytest.raises(OSError):
            ready.submit(WALLET_1, "lost", created_at=1)
        assert ready.get_last_contribution_id() == 0
        assert ready.get_profile(WALLET_1) is None

    def test_state_survives_restart(self, store):
        first = ProofOfCollaboration(store=store)
        first.initialize(DEPLOYER)
        _submit(first, WALLET_1)
        first.verify(DEPLOYER, 1, 40)

        second = ProofOfCollaboration(store=store)
        assert second.get_owner() == DEPLOYER
        assert second.get_profile(WALLET_1).total_score == 40
        assert _submit(second, WALLET_2) == 2

    def test_snapshot_is_detached(self, ready):
        snap = ready.snapshot()
        snap.admin_set.admins.add(WALLET_1)
        assert not ready.is_admin(WALLET_1)
