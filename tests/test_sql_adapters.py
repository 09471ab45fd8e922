"""Tests for the SQL collaborators against an in-memory SQLite database."""

from datetime import date, timedelta
import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select

from circlematch.config.settings import Settings
from circlematch.shared.adapters.circle_store import SqlCircleStore
from circlematch.shared.adapters.matching_status_store import SqlMatchingStatusStore
from circlematch.shared.adapters.resource_provider import SqlResourcePoolProvider
from circlematch.shared.adapters.waitlist_provider import SqlWaitlistProvider
from circlematch.shared.core.exceptions import CirclePersistenceError, CollaboratorError
from circlematch.shared.models.circle import Circle
from circlematch.shared.models.circle_member import CircleMember
from circlematch.shared.models.enums import ClaimOutcome, MatchingStatus
from circlematch.shared.models.location import Location
from circlematch.shared.models.user_interest import UserInterest
from circlematch.shared.repositories.circle_repository import CircleRepository
from circlematch.shared.repositories.matching_run_repository import SlotMatchingRunRepository
from circlematch.shared.repositories.waitlist_repository import WaitlistRepository
from circlematch.shared.schemas.matching import MatchingResultStatus
from circlematch.shared.services.circle_assembler import CircleDraft, ResourceRef
from circlematch.worker.pipelines.matching_pipeline import MatchingPipeline

from factories import SLOT_DATE, local, seed_resources, seed_waitlist


def draft(occurrence, index, member_ids, location=None):
    return CircleDraft(
        circle_id=f"{occurrence.slot_key}_Circle_{index}",
        slot_key=occurrence.slot_key,
        time_slot=occurrence.starts_at,
        member_ids=tuple(member_ids),
        location=location,
    )


class TestWaitlistProvider:
    async def test_snapshot_of_one_slot(self, session_factory, calendar, eleven_am):
        ids = await seed_waitlist(
            session_factory,
            eleven_am.starts_at,
            3,
            gender="female",
            date_of_birth=date(1999, 5, 1),
            interests=["new_activities", "deep_thinking", "deep_thinking"],
        )
        two_pm = calendar.get_occurrence(SLOT_DATE, "2PM")
        await seed_waitlist(session_factory, two_pm.starts_at, 2)

        users = await SqlWaitlistProvider(session_factory).get_eligible_users(eleven_am)

        assert sorted(u.id for u in users) == sorted(ids)
        user = users[0]
        assert user.gender == "female"
        assert user.birth_date == date(1999, 5, 1)
        assert user.interests == ("deep_thinking", "new_activities")

    async def test_empty_slot(self, session_factory, eleven_am):
        assert await SqlWaitlistProvider(session_factory).get_eligible_users(eleven_am) == []

    async def test_count_for_slot(self, session_factory, eleven_am):
        await seed_waitlist(session_factory, eleven_am.starts_at, 4)
        async with session_factory() as session:
            assert await WaitlistRepository(session).count_for_slot(eleven_am.starts_at) == 4

    async def test_duplicate_interest_tags_stored_once(self, session_factory, eleven_am):
        [user_id] = await seed_waitlist(
            session_factory, eleven_am.starts_at, 1, interests=["music", "music", "hiking"]
        )
        async with session_factory() as session:
            result = await session.execute(
                select(UserInterest.interest_type).where(UserInterest.user_id == uuid.UUID(user_id))
            )
        assert sorted(result.scalars().all()) == ["hiking", "music"]


class TestCircleStore:
    async def test_create_and_list(self, session_factory, eleven_am):
        members = await seed_waitlist(session_factory, eleven_am.starts_at, 6)
        store = SqlCircleStore(session_factory)

        for index, chunk in ((2, members[:2]), (10, members[2:4]), (1, members[4:])):
            await store.create_circle(draft(eleven_am, index, chunk))

        assert await store.get_circle_ids(eleven_am) == [
            "2026-10-19_11AM_Circle_1",
            "2026-10-19_11AM_Circle_2",
            "2026-10-19_11AM_Circle_10",
        ]
        assert await store.get_assigned_user_ids(eleven_am) == set(members)

        async with session_factory() as session:
            circle = await session.get(Circle, "2026-10-19_11AM_Circle_10")
            result = await session.execute(
                select(CircleMember.user_id).where(CircleMember.circle_id == circle.id)
            )
        assert circle.max_participants == 2
        assert circle.slot_key == "2026-10-19_11AM"
        assert {str(user_id) for user_id in result.scalars().all()} == set(members[2:4])

    async def test_location_is_stored(self, session_factory, eleven_am):
        members = await seed_waitlist(session_factory, eleven_am.starts_at, 2)
        await seed_resources(session_factory)
        pools = await SqlResourcePoolProvider(session_factory).get_pools()

        await SqlCircleStore(session_factory).create_circle(
            draft(eleven_am, 1, members, location=pools.locations[0])
        )

        async with session_factory() as session:
            circle = await session.get(Circle, "2026-10-19_11AM_Circle_1")
        assert str(circle.location_id) == pools.locations[0].id

    async def test_member_twice_in_slot_rolls_back_whole_circle(self, session_factory, eleven_am):
        members = await seed_waitlist(session_factory, eleven_am.starts_at, 4)
        store = SqlCircleStore(session_factory)
        await store.create_circle(draft(eleven_am, 1, members[:2]))

        with pytest.raises(CirclePersistenceError) as exc_info:
            await store.create_circle(draft(eleven_am, 2, [members[2], members[1]]))

        assert exc_info.value.details["circle_id"] == "2026-10-19_11AM_Circle_2"
        assert await store.get_circle_ids(eleven_am) == ["2026-10-19_11AM_Circle_1"]
        assert members[2] not in await store.get_assigned_user_ids(eleven_am)

    async def test_duplicate_circle_id(self, session_factory, eleven_am):
        members = await seed_waitlist(session_factory, eleven_am.starts_at, 4)
        store = SqlCircleStore(session_factory)
        await store.create_circle(draft(eleven_am, 1, members[:2]))

        with pytest.raises(CirclePersistenceError):
            await store.create_circle(draft(eleven_am, 1, members[2:]))

    async def test_malformed_member_id(self, session_factory, eleven_am):
        with pytest.raises(CirclePersistenceError):
            await SqlCircleStore(session_factory).create_circle(draft(eleven_am, 1, ["not-a-uuid", "x"]))

    async def test_same_user_in_different_slots(self, session_factory, calendar, eleven_am):
        members = await seed_waitlist(session_factory, eleven_am.starts_at, 2)
        two_pm = calendar.get_occurrence(SLOT_DATE, "2PM")
        store = SqlCircleStore(session_factory)

        await store.create_circle(draft(eleven_am, 1, members))
        await store.create_circle(draft(two_pm, 1, members))

        assert await store.get_circle_ids(two_pm) == ["2026-10-19_2PM_Circle_1"]


class TestMatchingStatusStore:
    async def test_claim_once(self, session_factory, eleven_am):
        store = SqlMatchingStatusStore(session_factory)

        assert await store.claim(eleven_am, local(10, 0, 1)) == ClaimOutcome.CLAIMED
        assert await store.claim(eleven_am, local(10, 0, 2)) == ClaimOutcome.IN_PROGRESS

        await store.mark_done(eleven_am, local(10, 0, 3), {"circlesCreated": 2})
        assert await store.claim(eleven_am, local(10, 0, 4)) == ClaimOutcome.ALREADY_MATCHED

        async with session_factory() as session:
            run = await SlotMatchingRunRepository(session).get("2026-10-19_11AM")
        assert run.status == MatchingStatus.DONE.value
        assert run.attempts == 1
        assert run.summary == {"circlesCreated": 2}
        assert run.completed_at is not None

    async def test_failed_run_is_reclaimed(self, session_factory, eleven_am):
        store = SqlMatchingStatusStore(session_factory)
        await store.claim(eleven_am, local(10, 0, 1))
        await store.mark_failed(eleven_am, local(10, 0, 2), "waitlist unavailable")

        assert await store.claim(eleven_am, local(10, 1)) == ClaimOutcome.CLAIMED

        async with session_factory() as session:
            run = await SlotMatchingRunRepository(session).get("2026-10-19_11AM")
        assert run.status == MatchingStatus.IN_PROGRESS.value
        assert run.attempts == 2
        assert run.error_message is None

    async def test_stale_run_is_reclaimed(self, session_factory, eleven_am):
        store = SqlMatchingStatusStore(session_factory, stale_after=timedelta(minutes=10))
        await store.claim(eleven_am, local(10, 0))

        assert await store.claim(eleven_am, local(10, 9)) == ClaimOutcome.IN_PROGRESS
        assert await store.claim(eleven_am, local(10, 11)) == ClaimOutcome.CLAIMED
        assert await store.claim(eleven_am, local(10, 12)) == ClaimOutcome.IN_PROGRESS

    async def test_connection_errors_are_collaborator_errors(self, eleven_am):
        store = SqlMatchingStatusStore(MagicMock(side_effect=OSError("connection refused")))

        with pytest.raises(CollaboratorError):
            await store.claim(eleven_am, local(10, 0, 1))
        with pytest.raises(CollaboratorError):
            await store.mark_done(eleven_am, local(10, 0, 2))
        with pytest.raises(CollaboratorError):
            await store.get_statuses(["2026-10-19_11AM"])

    async def test_statuses(self, session_factory, calendar, eleven_am):
        store = SqlMatchingStatusStore(session_factory)
        await store.claim(eleven_am, local(10, 0))
        await store.mark_done(eleven_am, local(10, 0, 5))

        keys = [o.slot_key for o in calendar.occurrences_for(SLOT_DATE)]
        assert await store.get_statuses(keys) == {"2026-10-19_11AM": MatchingStatus.DONE}
        assert await store.get_statuses([]) == {}


class TestResourcePoolProvider:
    async def test_only_active_in_creation_order(self, session_factory):
        await seed_resources(session_factory, locations=["Dolores Park"], prompts=["First", "Second"])
        async with session_factory() as session:
            session.add(Location(name="Closed Cafe", is_active=False))
            await session.commit()

        pools = await SqlResourcePoolProvider(session_factory).get_pools()

        assert [loc.label for loc in pools.locations] == ["Dolores Park"]
        assert sorted(p.label for p in pools.prompts) == ["First", "Second"]
        assert all(isinstance(ref, ResourceRef) for ref in pools.locations)
        uuid.UUID(pools.locations[0].id)


class TestMatchingPipeline:
    async def test_tick_matches_and_records(self, session_factory, eleven_am):
        members = await seed_waitlist(session_factory, eleven_am.starts_at, 14, gender="male")
        await seed_resources(session_factory)
        pipeline = MatchingPipeline(session_factory, Settings())

        report = await pipeline.run(local(10, 0, 3))

        result = report.results[0]
        assert report.success
        assert result.status == MatchingResultStatus.MATCHED
        assert result.circles_created == 4
        assert result.users_matched == 14
        assert pipeline.stats.ticks == 1
        assert pipeline.stats.circles_created == 4

        async with session_factory() as session:
            run = await SlotMatchingRunRepository(session).get(eleven_am.slot_key)
            assigned = await CircleRepository(session).get_assigned_user_ids(eleven_am.slot_key)
        assert run.status == MatchingStatus.DONE.value
        assert run.summary["usersMatched"] == 14
        assert {str(user_id) for user_id in assigned} == set(members)

        again = await pipeline.run(local(10, 0, 40))
        assert again.results[0].status == MatchingResultStatus.SKIPPED
        assert again.results[0].circle_ids == result.circle_ids

    async def test_tick_outside_deadline(self, session_factory):
        pipeline = MatchingPipeline(session_factory, Settings())
        report = await pipeline.run(local(10, 30))
        assert report.results == []
        assert report.success
