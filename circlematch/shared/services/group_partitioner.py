"""
Group partitioner - splits a slot's waitlist into conversation groups.

PARTITIONING ARCHITECTURE:
Partitioning happens WITHIN each bucket (not across buckets):
1. Users are bucketed by a policy key (none, gender, age band + gender)
2. Each bucket is ordered (stable, shuffled, most interests first)
3. A sizing strategy decides the group sizes for the bucket's head count
4. A composer places members into groups of those sizes
5. Whatever a bucket cannot place is pooled into the overall leftover

Every step is a pluggable strategy selected by configuration, because the
product has run with several competing policies (plain 4→3→2 queue
draining, a fixed distribution table, age+gender buckets, interest/gender
balanced placement).

Sizing example (BalancedSizing, the default):
- 16 users → [4, 4, 4, 4]
- 14 users → [4, 4, 3, 3]
- 13 users → [4, 4, 4] + 1 leftover
-  5 users → [3, 2]
-  1 user  → [] + 1 leftover

Groups always have 2-4 members. Sizes depend only on head counts, so the
same input and configuration always yields the same sizes; placement is
deterministic too unless a shuffle without a seed is configured.
"""

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from math import ceil
import random
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from circlematch.config.settings import Settings
from circlematch.shared.core.exceptions import ConfigurationError


UNKNOWN_BUCKET = "unknown"


@dataclass(frozen=True)
class EligibleUser:
    """
    A waitlisted user as seen by the matching core.

    Birth date and gender are optional. A user missing an attribute that
    the active bucketing strategy needs lands in the "unknown" bucket; it
    is never rejected.
    """

    id: str
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    interests: Tuple[str, ...] = ()

    def age_on(self, on: date) -> Optional[int]:
        """Age in whole years on a given date, None without a birth date."""
        if self.birth_date is None:
            return None
        had_birthday = (on.month, on.day) >= (self.birth_date.month, self.birth_date.day)
        return on.year - self.birth_date.year - (0 if had_birthday else 1)

    @property
    def gender_key(self) -> str:
        if not self.gender or not self.gender.strip():
            return UNKNOWN_BUCKET
        return self.gender.strip().lower()


@dataclass
class PartitionResult:
    """Groups and leftover produced for one slot occurrence."""

    groups: List[List[EligibleUser]] = field(default_factory=list)
    leftover: List[EligibleUser] = field(default_factory=list)
    bucket_sizes: Dict[str, int] = field(default_factory=dict)

    @property
    def group_sizes(self) -> List[int]:
        return [len(group) for group in self.groups]

    @property
    def matched_count(self) -> int:
        return sum(self.group_sizes)


@dataclass
class PartitionStatistics:
    """Monitoring numbers for a partition."""

    efficiency: float  # percent of users placed in a group
    average_group_size: float
    gender_distribution: Dict[str, int]
    interest_distribution: Dict[str, int]


# ═══════════════════════════════════════════════════════════════════════════════
# SIZING STRATEGIES
# ═══════════════════════════════════════════════════════════════════════════════


class SizingStrategy(ABC):
    """Decides group sizes for a bucket of N interchangeable users."""

    name: str = ""

    MIN_GROUP_SIZE = 2
    MAX_GROUP_SIZE = 4

    @abstractmethod
    def group_sizes(self, count: int) -> List[int]:
        """
        Group sizes for `count` users.

        The sizes sum to at most `count`; the difference is leftover.
        """

    @staticmethod
    def _drain(count: int) -> List[int]:
        sizes: List[int] = []
        remaining = count
        for size in (4, 3, 2):
            while remaining >= size:
                sizes.append(size)
                remaining -= size
        return sizes


class BalancedSizing(SizingStrategy):
    """
    Groups of four, with the remainder spread so no group has one member.

    Remainder handling (N mod 4) for N > 5:
    - 0: all fours
    - 1: all fours, one user left over
    - 2: one four is split into 3 + 3
    - 3: a trailing group of three
    """

    name = "balanced"

    def group_sizes(self, count: int) -> List[int]:
        if count < self.MIN_GROUP_SIZE:
            return []
        if count <= self.MAX_GROUP_SIZE:
            return [count]
        if count == 5:
            return [3, 2]

        fours, remainder = divmod(count, 4)
        if remainder == 2:
            return [4] * (fours - 1) + [3, 3]
        if remainder == 3:
            return [4] * fours + [3]
        return [4] * fours


class QueueDrainSizing(SizingStrategy):
    """Plain queue drain: as many fours as possible, then threes, then twos."""

    name = "queue_drain"

    def group_sizes(self, count: int) -> List[int]:
        return self._drain(count)


class DistributionRulesSizing(SizingStrategy):
    """
    Fixed distribution table for small head counts, queue drain above it.

    1 = nothing; 2-4 = one group; 5 = 3+2; 6 = 4+2; 7-8 = drain;
    9 = 4+3+2; 10 = 4+4+2; >10 = drain.
    """

    name = "distribution_rules"

    RULES: Dict[int, List[int]] = {
        5: [3, 2],
        6: [4, 2],
        9: [4, 3, 2],
        10: [4, 4, 2],
    }

    def group_sizes(self, count: int) -> List[int]:
        if count < self.MIN_GROUP_SIZE:
            return []
        if count <= self.MAX_GROUP_SIZE:
            return [count]
        if count in self.RULES:
            return list(self.RULES[count])
        return self._drain(count)


# ═══════════════════════════════════════════════════════════════════════════════
# BUCKETING STRATEGIES
# ═══════════════════════════════════════════════════════════════════════════════


class BucketingStrategy(ABC):
    """Assigns each user a bucket key; groups never mix buckets."""

    name: str = ""

    @abstractmethod
    def bucket_key(self, user: EligibleUser) -> str:
        """Bucket key for a user."""


class NoBucketing(BucketingStrategy):
    """Everyone in one bucket."""

    name = "none"

    def bucket_key(self, user: EligibleUser) -> str:
        return "all"


class GenderBucketing(BucketingStrategy):
    """One bucket per declared gender, plus "unknown"."""

    name = "gender"

    def bucket_key(self, user: EligibleUser) -> str:
        return user.gender_key


class AgeGenderBucketing(BucketingStrategy):
    """
    Buckets by (age band, gender).

    With boundaries [18, 26] the bands are "<18", "18-25" and "26+". Ages
    are taken on `reference_date` (the slot date). A user without birth
    date or gender goes to the "unknown" bucket.
    """

    name = "age_gender"

    def __init__(self, reference_date: date, boundaries: Sequence[int] = (18, 26)) -> None:
        self.reference_date = reference_date
        self.boundaries = validate_age_boundaries(boundaries)

    def age_band(self, age: int) -> str:
        bounds = self.boundaries
        if age < bounds[0]:
            return f"<{bounds[0]}"
        for lower, upper in zip(bounds, bounds[1:]):
            if lower <= age < upper:
                return f"{lower}-{upper - 1}"
        return f"{bounds[-1]}+"

    def bucket_key(self, user: EligibleUser) -> str:
        age = user.age_on(self.reference_date)
        gender = user.gender_key
        if age is None or gender == UNKNOWN_BUCKET:
            return UNKNOWN_BUCKET
        return f"{self.age_band(age)}|{gender}"


def validate_age_boundaries(boundaries: Sequence[int]) -> List[int]:
    bounds = list(boundaries)
    if not bounds:
        raise ConfigurationError("At least one age band boundary is required")
    if any(b <= 0 for b in bounds) or bounds != sorted(set(bounds)):
        raise ConfigurationError(
            "Age band boundaries must be positive and strictly ascending",
            details={"boundaries": bounds},
        )
    return bounds


# ═══════════════════════════════════════════════════════════════════════════════
# ORDERING STRATEGIES
# ═══════════════════════════════════════════════════════════════════════════════


class OrderingStrategy(ABC):
    """Orders the members of a bucket before sizing and placement."""

    name: str = ""

    @abstractmethod
    def order(self, users: Sequence[EligibleUser]) -> List[EligibleUser]:
        """Return a new ordered list."""


class StableOrdering(OrderingStrategy):
    """Keep input (opt-in) order."""

    name = "stable"

    def order(self, users: Sequence[EligibleUser]) -> List[EligibleUser]:
        return list(users)


class ShuffledOrdering(OrderingStrategy):
    """Random order; reproducible when a seed is given."""

    name = "shuffle"

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed

    def order(self, users: Sequence[EligibleUser]) -> List[EligibleUser]:
        ordered = list(users)
        random.Random(self.seed).shuffle(ordered)
        return ordered


class InterestCountOrdering(OrderingStrategy):
    """Users with more declared interests first; ties keep input order."""

    name = "interest_count"

    def order(self, users: Sequence[EligibleUser]) -> List[EligibleUser]:
        return sorted(users, key=lambda u: -len(u.interests))


# ═══════════════════════════════════════════════════════════════════════════════
# COMPOSERS (member placement)
# ═══════════════════════════════════════════════════════════════════════════════


class GroupComposer(ABC):
    """Places ordered users into groups of the given sizes."""

    name: str = ""

    @abstractmethod
    def compose(
        self, users: Sequence[EligibleUser], sizes: Sequence[int]
    ) -> Tuple[List[List[EligibleUser]], List[EligibleUser]]:
        """Return (groups, leftover)."""


class SequentialComposer(GroupComposer):
    """Consecutive slices of the ordered list."""

    name = "sequential"

    def compose(
        self, users: Sequence[EligibleUser], sizes: Sequence[int]
    ) -> Tuple[List[List[EligibleUser]], List[EligibleUser]]:
        groups = []
        cursor = 0
        for size in sizes:
            groups.append(list(users[cursor : cursor + size]))
            cursor += size
        return groups, list(users[cursor:])


class DiversityComposer(GroupComposer):
    """
    Greedy placement favouring gender balance and interest diversity.

    For each seat the highest scoring remaining user is taken; ties go to
    the earliest user in the ordered input, so placement is deterministic.

    Score of a candidate for a group of target size S:
    - gender (up to 40): 40 * (1 - count / cap) while the candidate's gender
      holds fewer than cap = ceil(0.6 * S) seats
    - new interests: 8 per interest not yet in the group
    - shared interests: 3 per shared interest, at most 2 counted
    - interest balance (up to 15): share of the candidate's interests still
      below ceil(0.75 * S) occurrences in the group
    """

    name = "diversity"

    def compose(
        self, users: Sequence[EligibleUser], sizes: Sequence[int]
    ) -> Tuple[List[List[EligibleUser]], List[EligibleUser]]:
        remaining = list(users)
        groups = []
        for size in sizes:
            group = self._build_group(remaining, size)
            remaining = [u for u in remaining if u not in group]
            groups.append(group)
        return groups, remaining

    def _build_group(self, candidates: List[EligibleUser], size: int) -> List[EligibleUser]:
        if len(candidates) <= size:
            return list(candidates)

        pool = list(candidates)
        group: List[EligibleUser] = []
        gender_counts: Counter = Counter()
        interest_counts: Counter = Counter()

        for _ in range(size):
            best_index = 0
            best_score = float("-inf")
            for index, user in enumerate(pool):
                score = self.score(user, size, gender_counts, interest_counts)
                if score > best_score:
                    best_index, best_score = index, score

            chosen = pool.pop(best_index)
            group.append(chosen)
            gender_counts[chosen.gender_key] += 1
            interest_counts.update(set(chosen.interests))

        return group

    @staticmethod
    def score(
        user: EligibleUser,
        size: int,
        gender_counts: Counter,
        interest_counts: Counter,
    ) -> float:
        score = 0.0

        gender_cap = ceil(size * 0.6)
        same_gender = gender_counts[user.gender_key]
        if same_gender < gender_cap:
            score += 40 * (1 - same_gender / gender_cap)

        interests = set(user.interests)
        shared = [i for i in interests if interest_counts[i] > 0]
        new = [i for i in interests if interest_counts[i] == 0]
        score += len(new) * 8
        score += min(len(shared), 2) * 3

        if interests:
            interest_cap = ceil(size * 0.75)
            below_cap = sum(1 for i in interests if interest_counts[i] < interest_cap)
            score += 15 * below_cap / len(interests)

        return score


# ═══════════════════════════════════════════════════════════════════════════════
# PARTITIONER
# ═══════════════════════════════════════════════════════════════════════════════


class GroupPartitioner:
    """
    Partitions eligible users into groups of 2-4.

    Attributes:
        sizing: Decides group sizes per bucket
        bucketing: Decides which users may share a group
        ordering: Orders each bucket before placement
        composer: Places users into groups
    """

    def __init__(
        self,
        sizing: Optional[SizingStrategy] = None,
        bucketing: Optional[BucketingStrategy] = None,
        ordering: Optional[OrderingStrategy] = None,
        composer: Optional[GroupComposer] = None,
    ) -> None:
        self.sizing = sizing or BalancedSizing()
        self.bucketing = bucketing or NoBucketing()
        self.ordering = ordering or StableOrdering()
        self.composer = composer or SequentialComposer()

    def partition(self, users: Iterable[EligibleUser]) -> PartitionResult:
        """
        Partition users into groups and leftover.

        Users with a repeated id are only considered once. Leftovers of
        all buckets are returned in input order.
        """
        unique_users = _dedupe(users)
        if not unique_users:
            return PartitionResult()

        position = {user.id: index for index, user in enumerate(unique_users)}

        buckets: Dict[str, List[EligibleUser]] = {}
        for user in unique_users:
            buckets.setdefault(self.bucketing.bucket_key(user), []).append(user)

        result = PartitionResult(
            bucket_sizes={key: len(members) for key, members in buckets.items()}
        )
        leftover: List[EligibleUser] = []

        for members in buckets.values():
            ordered = self.ordering.order(members)
            sizes = self.sizing.group_sizes(len(ordered))
            groups, rest = self.composer.compose(ordered, sizes)
            result.groups.extend(groups)
            leftover.extend(rest)

        result.leftover = sorted(leftover, key=lambda u: position[u.id])
        return result


def _dedupe(users: Iterable[EligibleUser]) -> List[EligibleUser]:
    seen = set()
    unique = []
    for user in users:
        if user.id in seen:
            continue
        seen.add(user.id)
        unique.append(user)
    return unique


def partition_summary(result: PartitionResult, total_users: Optional[int] = None) -> PartitionStatistics:
    """
    Efficiency and composition numbers for monitoring.

    total_users defaults to everyone in the result (placed plus leftover).
    """
    matched = [user for group in result.groups for user in group]
    placed = result.matched_count
    if total_users is None:
        total_users = placed + len(result.leftover)
    efficiency = (placed / total_users * 100) if total_users else 0.0
    average = (placed / len(result.groups)) if result.groups else 0.0

    genders = Counter(user.gender_key for user in matched)
    interests = Counter(interest for user in matched for interest in user.interests)

    return PartitionStatistics(
        efficiency=round(efficiency, 1),
        average_group_size=round(average, 2),
        gender_distribution=dict(genders),
        interest_distribution=dict(interests),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


SIZING_STRATEGIES = {
    cls.name: cls for cls in (BalancedSizing, QueueDrainSizing, DistributionRulesSizing)
}
BUCKETING_STRATEGIES = ("none", "gender", "age_gender")
ORDERING_STRATEGIES = ("stable", "shuffle", "interest_count")
COMPOSERS = {cls.name: cls for cls in (SequentialComposer, DiversityComposer)}


@dataclass(frozen=True)
class PartitionerFactory:
    """
    Validated partitioner configuration.

    Built once at startup (so bad strategy names fail fast); `build` then
    creates a partitioner for a particular slot date, which the age-based
    bucketing needs as its reference date.
    """

    sizing: str = "balanced"
    bucketing: str = "none"
    ordering: str = "stable"
    composer: str = "sequential"
    age_boundaries: Tuple[int, ...] = (18, 26)
    shuffle_seed: Optional[int] = None

    def __post_init__(self) -> None:
        checks = (
            ("sizing", self.sizing, tuple(SIZING_STRATEGIES)),
            ("bucketing", self.bucketing, BUCKETING_STRATEGIES),
            ("ordering", self.ordering, ORDERING_STRATEGIES),
            ("composition", self.composer, tuple(COMPOSERS)),
        )
        for kind, value, allowed in checks:
            if value not in allowed:
                raise ConfigurationError(
                    f"Unknown {kind} strategy '{value}'",
                    details={"allowed": list(allowed)},
                )
        validate_age_boundaries(self.age_boundaries)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PartitionerFactory":
        return cls(
            sizing=settings.SIZING_STRATEGY,
            bucketing=settings.BUCKETING_STRATEGY,
            ordering=settings.ORDERING_STRATEGY,
            composer=settings.COMPOSITION_STRATEGY,
            age_boundaries=tuple(settings.AGE_BAND_BOUNDARIES),
            shuffle_seed=settings.SHUFFLE_SEED,
        )

    def build(self, reference_date: date) -> GroupPartitioner:
        if self.bucketing == "age_gender":
            bucketing: BucketingStrategy = AgeGenderBucketing(reference_date, self.age_boundaries)
        elif self.bucketing == "gender":
            bucketing = GenderBucketing()
        else:
            bucketing = NoBucketing()

        if self.ordering == "shuffle":
            ordering: OrderingStrategy = ShuffledOrdering(self.shuffle_seed)
        elif self.ordering == "interest_count":
            ordering = InterestCountOrdering()
        else:
            ordering = StableOrdering()

        return GroupPartitioner(
            sizing=SIZING_STRATEGIES[self.sizing](),
            bucketing=bucketing,
            ordering=ordering,
            composer=COMPOSERS[self.composer](),
        )


def build_partitioner(settings: Settings, reference_date: date) -> GroupPartitioner:
    """
    Partitioner configured from settings for a given slot date.

    Raises:
        ConfigurationError: On unknown strategy names or bad age boundaries
    """
    return PartitionerFactory.from_settings(settings).build(reference_date)
