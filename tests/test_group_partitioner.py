"""Tests for group sizing, bucketing, ordering and composition."""

from collections import Counter
from datetime import date

import pytest

from circlematch.config.settings import Settings
from circlematch.shared.core.exceptions import ConfigurationError
from circlematch.shared.services.group_partitioner import (
    AgeGenderBucketing,
    BalancedSizing,
    DistributionRulesSizing,
    DiversityComposer,
    EligibleUser,
    GenderBucketing,
    GroupPartitioner,
    InterestCountOrdering,
    PartitionerFactory,
    QueueDrainSizing,
    SequentialComposer,
    ShuffledOrdering,
    StableOrdering,
    build_partitioner,
    partition_summary,
)

from factories import SLOT_DATE, make_users

ALL_SIZINGS = [BalancedSizing(), QueueDrainSizing(), DistributionRulesSizing()]


def ids(group):
    return [user.id for user in group]


class TestBalancedSizing:
    @pytest.mark.parametrize(
        "count, sizes",
        [
            (16, [4, 4, 4, 4]),
            (14, [4, 4, 3, 3]),
            (13, [4, 4, 4]),
            (5, [3, 2]),
            (6, [3, 3]),
            (7, [4, 3]),
            (4, [4]),
            (3, [3]),
            (2, [2]),
            (1, []),
            (0, []),
        ],
    )
    def test_sizes(self, count, sizes):
        assert BalancedSizing().group_sizes(count) == sizes

    def test_forty_users(self):
        sizes = BalancedSizing().group_sizes(40)
        assert sum(sizes) == 40
        assert min(sizes) >= 2

    def test_leftover_only_when_one_remains(self):
        for count in range(2, 101):
            leftover = count - sum(BalancedSizing().group_sizes(count))
            assert leftover == (1 if count > 5 and count % 4 == 1 else 0), count


class TestOtherSizings:
    @pytest.mark.parametrize(
        "count, sizes",
        [(16, [4, 4, 4, 4]), (11, [4, 4, 3]), (10, [4, 4, 2]), (6, [4, 2]), (5, [4]), (1, [])],
    )
    def test_queue_drain(self, count, sizes):
        assert QueueDrainSizing().group_sizes(count) == sizes

    @pytest.mark.parametrize(
        "count, sizes",
        [
            (5, [3, 2]),
            (6, [4, 2]),
            (7, [4, 3]),
            (9, [4, 3, 2]),
            (10, [4, 4, 2]),
            (12, [4, 4, 4]),
            (1, []),
        ],
    )
    def test_distribution_rules(self, count, sizes):
        assert DistributionRulesSizing().group_sizes(count) == sizes

    @pytest.mark.parametrize("sizing", ALL_SIZINGS, ids=lambda s: s.name)
    def test_groups_between_two_and_four(self, sizing):
        for count in range(0, 101):
            sizes = sizing.group_sizes(count)
            assert all(2 <= size <= 4 for size in sizes), (count, sizes)
            assert sum(sizes) <= count


class TestPartition:
    def test_empty_input(self):
        result = GroupPartitioner().partition([])
        assert result.groups == []
        assert result.leftover == []

    @pytest.mark.parametrize("sizing", ALL_SIZINGS, ids=lambda s: s.name)
    def test_every_user_placed_once(self, sizing):
        partitioner = GroupPartitioner(sizing=sizing)
        for count in range(1, 61):
            users = make_users(count)
            result = partitioner.partition(users)
            placed = [u.id for group in result.groups for u in group] + ids(result.leftover)
            assert sorted(placed) == sorted(ids(users))
            assert all(len(group) >= 2 for group in result.groups)

    def test_fourteen_users_in_input_order(self):
        users = make_users(14)
        result = GroupPartitioner().partition(users)
        assert result.group_sizes == [4, 4, 3, 3]
        assert ids(result.groups[0]) == ids(users[:4])
        assert ids(result.groups[-1]) == ids(users[11:])
        assert result.leftover == []

    def test_thirteen_users_leave_the_last_one(self):
        users = make_users(13)
        result = GroupPartitioner().partition(users)
        assert result.group_sizes == [4, 4, 4]
        assert ids(result.leftover) == ["u013"]

    def test_single_user(self):
        result = GroupPartitioner().partition(make_users(1))
        assert result.groups == []
        assert ids(result.leftover) == ["u001"]

    def test_duplicate_ids_counted_once(self):
        users = make_users(3)
        result = GroupPartitioner().partition(users + [users[0]])
        assert result.group_sizes == [3]

    def test_same_input_same_result(self):
        users = make_users(23)
        first = GroupPartitioner().partition(users)
        second = GroupPartitioner().partition(users)
        assert [ids(g) for g in first.groups] == [ids(g) for g in second.groups]


class TestBucketing:
    def test_gender_buckets_never_mix(self):
        users = make_users(5, "m", gender="male") + make_users(6, "f", gender="Female ")
        result = GroupPartitioner(bucketing=GenderBucketing()).partition(users)

        assert result.bucket_sizes == {"male": 5, "female": 6}
        for group in result.groups:
            assert len({u.gender_key for u in group}) == 1
        assert sorted(result.group_sizes) == [2, 3, 3, 3]

    def test_age_bands(self):
        bucketing = AgeGenderBucketing(SLOT_DATE, [18, 26])
        assert bucketing.age_band(17) == "<18"
        assert bucketing.age_band(18) == "18-25"
        assert bucketing.age_band(25) == "18-25"
        assert bucketing.age_band(26) == "26+"

    def test_age_on_slot_date(self):
        user = EligibleUser(id="x", birth_date=date(2000, 10, 20), gender="male")
        assert user.age_on(SLOT_DATE) == 25
        assert user.age_on(date(2026, 10, 20)) == 26

    def test_missing_attributes_go_to_unknown_bucket(self):
        bucketing = AgeGenderBucketing(SLOT_DATE)
        assert bucketing.bucket_key(EligibleUser(id="a", gender="male")) == "unknown"
        assert bucketing.bucket_key(EligibleUser(id="b", birth_date=date(2000, 1, 1))) == "unknown"
        assert bucketing.bucket_key(EligibleUser(id="c", birth_date=date(2000, 1, 1), gender=" ")) == "unknown"
        assert (
            bucketing.bucket_key(EligibleUser(id="d", birth_date=date(2000, 1, 1), gender="female"))
            == "26+|female"
        )

    def test_leftovers_pooled_in_input_order(self):
        young = EligibleUser(id="young", birth_date=date(2005, 1, 1), gender="male")
        older = make_users(4, "o", birth_date=date(1990, 1, 1), gender="male")
        lone = EligibleUser(id="lone", gender="female")
        users = [young] + older + [lone]

        result = GroupPartitioner(bucketing=AgeGenderBucketing(SLOT_DATE)).partition(users)

        assert result.group_sizes == [4]
        assert ids(result.leftover) == ["young", "lone"]
        assert result.bucket_sizes == {"18-25|male": 1, "26+|male": 4, "unknown": 1}


class TestOrdering:
    def test_stable(self):
        users = make_users(5)
        assert StableOrdering().order(users) == users

    def test_seeded_shuffle_is_reproducible(self):
        users = make_users(20)
        assert ShuffledOrdering(7).order(users) == ShuffledOrdering(7).order(users)
        assert sorted(ids(ShuffledOrdering(7).order(users))) == ids(users)

    def test_shuffle_keeps_sizes(self):
        users = make_users(14)
        result = GroupPartitioner(ordering=ShuffledOrdering()).partition(users)
        assert result.group_sizes == [4, 4, 3, 3]

    def test_interest_count_first(self):
        users = [
            EligibleUser(id="none"),
            EligibleUser(id="two", interests=("a", "b")),
            EligibleUser(id="one", interests=("a",)),
            EligibleUser(id="two-late", interests=("c", "d")),
        ]
        assert ids(InterestCountOrdering().order(users)) == ["two", "two-late", "one", "none"]


class TestComposers:
    def test_sequential_slices(self):
        users = make_users(7)
        groups, rest = SequentialComposer().compose(users, [4, 2])
        assert [ids(g) for g in groups] == [ids(users[:4]), ids(users[4:6])]
        assert ids(rest) == ["u007"]

    def test_diversity_mixes_genders(self):
        users = make_users(2, "m", gender="male") + make_users(2, "f", gender="female")
        groups, rest = DiversityComposer().compose(users, [2, 2])
        assert rest == []
        for group in groups:
            assert Counter(u.gender_key for u in group) == {"male": 1, "female": 1}

    def test_diversity_spreads_interests(self):
        users = [
            EligibleUser(id="a1", gender="x", interests=("art",)),
            EligibleUser(id="a2", gender="x", interests=("art",)),
            EligibleUser(id="b1", gender="x", interests=("books",)),
            EligibleUser(id="b2", gender="x", interests=("books",)),
        ]
        groups, _ = DiversityComposer().compose(users, [2, 2])
        assert [ids(g) for g in groups] == [["a1", "b1"], ["a2", "b2"]]

    def test_diversity_is_deterministic(self):
        users = make_users(11, gender="female") + make_users(9, "m", gender="male")
        partitioner = GroupPartitioner(composer=DiversityComposer())
        first = partitioner.partition(users)
        second = partitioner.partition(users)
        assert [ids(g) for g in first.groups] == [ids(g) for g in second.groups]
        assert first.group_sizes == [4, 4, 4, 4, 4]


class TestSummary:
    def test_efficiency(self):
        result = GroupPartitioner().partition(make_users(13, gender="male", interests=("art",)))
        stats = partition_summary(result)
        assert stats.efficiency == 92.3
        assert stats.average_group_size == 4.0
        assert stats.gender_distribution == {"male": 12}
        assert stats.interest_distribution == {"art": 12}

    def test_empty(self):
        stats = partition_summary(GroupPartitioner().partition([]))
        assert stats.efficiency == 0.0
        assert stats.average_group_size == 0.0


class TestFactory:
    def test_defaults(self):
        partitioner = PartitionerFactory().build(SLOT_DATE)
        assert isinstance(partitioner.sizing, BalancedSizing)
        assert isinstance(partitioner.composer, SequentialComposer)

    def test_from_settings(self):
        settings = Settings(
            SIZING_STRATEGY="queue_drain",
            BUCKETING_STRATEGY="age_gender",
            AGE_BAND_BOUNDARIES=[21, 30],
            ORDERING_STRATEGY="shuffle",
            SHUFFLE_SEED=3,
            COMPOSITION_STRATEGY="diversity",
        )
        partitioner = build_partitioner(settings, SLOT_DATE)
        assert isinstance(partitioner.sizing, QueueDrainSizing)
        assert isinstance(partitioner.bucketing, AgeGenderBucketing)
        assert partitioner.bucketing.boundaries == [21, 30]
        assert partitioner.bucketing.reference_date == SLOT_DATE
        assert partitioner.ordering.seed == 3
        assert isinstance(partitioner.composer, DiversityComposer)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"sizing": "largest_first"},
            {"bucketing": "zodiac"},
            {"ordering": "alphabetical"},
            {"composer": "random"},
            {"age_boundaries": ()},
            {"age_boundaries": (26, 18)},
            {"age_boundaries": (0, 18)},
        ],
    )
    def test_rejects_bad_configuration(self, kwargs):
        with pytest.raises(ConfigurationError):
            PartitionerFactory(**kwargs)
