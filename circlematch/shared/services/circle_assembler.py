"""
Circle assembler - turns partitioned groups into persisted circles.

For each group of a slot occurrence the assembler:
1. Derives the deterministic circle id "2026-10-19_11AM_Circle_<n>"
2. Picks a location and a conversation prompt from the resource pools
3. Persists the circle and all its members in one transaction

A group whose persistence fails is rolled back as a whole and reported as a
FailedGroup; the assembler carries on with the next group. Circle numbers
continue after the circles already stored for the occurrence, so a retry
after a partial failure never reuses an id.

Resource assignment:
    LOCATION_POLICY=primary      every circle of the slot meets at the first location
    LOCATION_POLICY=round_robin  circle n meets at pool[(n - 1) % len(pool)]
    PROMPT_POLICY=per_slot       all circles share pool[slot hour % len(pool)]
    PROMPT_POLICY=round_robin    circle n gets pool[(n - 1) % len(pool)]
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
import re
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from circlematch.config.settings import Settings
from circlematch.shared.core.exceptions import CollaboratorError, ConfigurationError
from circlematch.shared.core.logging import get_logger
from circlematch.shared.services.group_partitioner import EligibleUser
from circlematch.shared.services.slot_calendar import SlotOccurrence

if TYPE_CHECKING:
    from circlematch.shared.adapters.circle_store import CircleStore


logger = get_logger(__name__)

CIRCLE_ID_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})_(\d{1,2}(?::\d{2})?[AP]M)_Circle_(\d+)$")


@dataclass(frozen=True)
class ResourceRef:
    """A location or prompt that can be attached to a circle."""

    id: str
    label: str


@dataclass
class ResourcePools:
    """Active locations and prompts, in stable order."""

    locations: List[ResourceRef] = field(default_factory=list)
    prompts: List[ResourceRef] = field(default_factory=list)


@dataclass(frozen=True)
class CircleDraft:
    """Everything needed to persist one circle."""

    circle_id: str
    slot_key: str
    time_slot: datetime
    member_ids: Tuple[str, ...]
    location: Optional[ResourceRef] = None
    prompt: Optional[ResourceRef] = None

    @property
    def size(self) -> int:
        return len(self.member_ids)


@dataclass(frozen=True)
class FailedGroup:
    """A group that could not be persisted."""

    circle_id: str
    member_ids: Tuple[str, ...]
    error: str


@dataclass
class AssemblyResult:
    circles: List[CircleDraft] = field(default_factory=list)
    failed_groups: List[FailedGroup] = field(default_factory=list)

    @property
    def circle_ids(self) -> List[str]:
        return [circle.circle_id for circle in self.circles]

    @property
    def users_matched(self) -> int:
        return sum(circle.size for circle in self.circles)

    @property
    def users_failed(self) -> int:
        return sum(len(group.member_ids) for group in self.failed_groups)


@dataclass(frozen=True)
class CircleIdParts:
    slot_date: date
    slot_label: str
    index: int


# ═══════════════════════════════════════════════════════════════════════════════
# CIRCLE IDS
# ═══════════════════════════════════════════════════════════════════════════════


def generate_circle_id(slot_date: date, slot_label: str, index: int) -> str:
    """Deterministic circle id, e.g. "2026-10-19_11AM_Circle_1"."""
    return f"{slot_date.isoformat()}_{slot_label}_Circle_{index}"


def parse_circle_id(circle_id: str) -> Optional[CircleIdParts]:
    """Split a circle id into its parts; None if it is not a circle id."""
    match = CIRCLE_ID_PATTERN.match(circle_id)
    if not match:
        return None
    try:
        slot_date = date.fromisoformat(match.group(1))
    except ValueError:
        return None
    return CircleIdParts(slot_date=slot_date, slot_label=match.group(2), index=int(match.group(3)))


# ═══════════════════════════════════════════════════════════════════════════════
# RESOURCE POLICIES
# ═══════════════════════════════════════════════════════════════════════════════


class ResourcePolicy(ABC):
    """Chooses one pool entry for the n-th circle (1-based) of an occurrence."""

    name: str = ""

    @abstractmethod
    def select(
        self, pool: Sequence[ResourceRef], circle_number: int, occurrence: SlotOccurrence
    ) -> Optional[ResourceRef]:
        """Pick an entry; None when the pool is empty."""


class PrimaryPolicy(ResourcePolicy):
    name = "primary"

    def select(
        self, pool: Sequence[ResourceRef], circle_number: int, occurrence: SlotOccurrence
    ) -> Optional[ResourceRef]:
        return pool[0] if pool else None


class RoundRobinPolicy(ResourcePolicy):
    name = "round_robin"

    def select(
        self, pool: Sequence[ResourceRef], circle_number: int, occurrence: SlotOccurrence
    ) -> Optional[ResourceRef]:
        if not pool:
            return None
        return pool[(circle_number - 1) % len(pool)]


class PerSlotPolicy(ResourcePolicy):
    """Same entry for every circle of the slot, rotating with the slot hour."""

    name = "per_slot"

    def select(
        self, pool: Sequence[ResourceRef], circle_number: int, occurrence: SlotOccurrence
    ) -> Optional[ResourceRef]:
        if not pool:
            return None
        return pool[occurrence.hour % len(pool)]


LOCATION_POLICIES = {cls.name: cls for cls in (PrimaryPolicy, RoundRobinPolicy)}
PROMPT_POLICIES = {cls.name: cls for cls in (PerSlotPolicy, RoundRobinPolicy)}


def _resolve_policy(kind: str, name: str, registry: dict) -> ResourcePolicy:
    try:
        return registry[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown {kind} policy '{name}'",
            details={"allowed": sorted(registry)},
        ) from None


def resolve_policies(settings: Settings) -> Tuple[ResourcePolicy, ResourcePolicy]:
    """(location policy, prompt policy) named in settings."""
    return (
        _resolve_policy("location", settings.LOCATION_POLICY, LOCATION_POLICIES),
        _resolve_policy("prompt", settings.PROMPT_POLICY, PROMPT_POLICIES),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# ASSEMBLER
# ═══════════════════════════════════════════════════════════════════════════════


class CircleAssembler:
    """
    Builds and persists circles for one slot occurrence at a time.

    Attributes:
        circle_store: Persists a circle with its members atomically
        location_policy: Picks the meeting location of each circle
        prompt_policy: Picks the conversation prompt of each circle
    """

    def __init__(
        self,
        circle_store: "CircleStore",
        location_policy: Optional[ResourcePolicy] = None,
        prompt_policy: Optional[ResourcePolicy] = None,
    ) -> None:
        self.circle_store = circle_store
        self.location_policy = location_policy or PrimaryPolicy()
        self.prompt_policy = prompt_policy or PerSlotPolicy()

    @classmethod
    def from_settings(cls, circle_store: "CircleStore", settings: Settings) -> "CircleAssembler":
        """
        Raises:
            ConfigurationError: On unknown policy names
        """
        location_policy, prompt_policy = resolve_policies(settings)
        return cls(circle_store, location_policy=location_policy, prompt_policy=prompt_policy)

    def draft(
        self,
        occurrence: SlotOccurrence,
        group: Sequence[EligibleUser],
        circle_number: int,
        pools: ResourcePools,
    ) -> CircleDraft:
        return CircleDraft(
            circle_id=generate_circle_id(occurrence.slot_date, occurrence.label, circle_number),
            slot_key=occurrence.slot_key,
            time_slot=occurrence.starts_at,
            member_ids=tuple(user.id for user in group),
            location=self.location_policy.select(pools.locations, circle_number, occurrence),
            prompt=self.prompt_policy.select(pools.prompts, circle_number, occurrence),
        )

    async def assemble(
        self,
        occurrence: SlotOccurrence,
        groups: Sequence[Sequence[EligibleUser]],
        pools: ResourcePools,
        start_index: int = 0,
    ) -> AssemblyResult:
        """
        Persist one circle per group.

        Args:
            occurrence: Slot occurrence being matched
            groups: Groups from the partitioner
            pools: Locations and prompts to assign
            start_index: Circles already stored for the occurrence; numbering
                continues after them

        Returns:
            AssemblyResult with created circles and failed groups
        """
        result = AssemblyResult()
        if not groups:
            return result

        if not pools.locations:
            logger.warning("No active locations, circles created without a location")
        if not pools.prompts:
            logger.warning("No active prompts, circles created without a prompt")

        for offset, group in enumerate(groups):
            draft = self.draft(occurrence, group, start_index + offset + 1, pools)
            try:
                await self.circle_store.create_circle(draft)
            except CollaboratorError as e:
                logger.error(
                    "Circle persistence failed",
                    circle_id=draft.circle_id,
                    members=draft.size,
                    error=e.message,
                )
                result.failed_groups.append(
                    FailedGroup(circle_id=draft.circle_id, member_ids=draft.member_ids, error=e.message)
                )
                continue

            logger.info(
                "Circle created",
                circle_id=draft.circle_id,
                members=draft.size,
                location=draft.location.label if draft.location else None,
            )
            result.circles.append(draft)

        return result
