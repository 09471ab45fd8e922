"""Tests for circle ids, resource policies and circle assembly."""

from datetime import date

import pytest

from circlematch.config.settings import Settings
from circlematch.shared.core.exceptions import ConfigurationError
from circlematch.shared.services.circle_assembler import (
    CircleAssembler,
    PerSlotPolicy,
    PrimaryPolicy,
    ResourcePools,
    ResourceRef,
    RoundRobinPolicy,
    generate_circle_id,
    parse_circle_id,
    resolve_policies,
)

from factories import SLOT_DATE, make_users
from fakes import FakeCircleStore

LOCATIONS = [ResourceRef("loc-1", "Dolores Park"), ResourceRef("loc-2", "Ferry Building")]
PROMPTS = [
    ResourceRef("p-1", "What surprised you this week?"),
    ResourceRef("p-2", "What are you learning?"),
    ResourceRef("p-3", "Where would you go tomorrow?"),
]


class TestCircleIds:
    def test_generate(self):
        assert generate_circle_id(SLOT_DATE, "11AM", 3) == "2026-10-19_11AM_Circle_3"

    def test_parse(self):
        parts = parse_circle_id("2026-10-19_11:30AM_Circle_12")
        assert parts.slot_date == SLOT_DATE
        assert parts.slot_label == "11:30AM"
        assert parts.index == 12

    @pytest.mark.parametrize(
        "circle_id",
        ["", "Circle_1", "2026-10-19_11AM_Circle_", "2026-02-30_11AM_Circle_1", "2026-10-19_11AM_Group_1"],
    )
    def test_parse_rejects_other_strings(self, circle_id):
        assert parse_circle_id(circle_id) is None


class TestResourcePolicies:
    def test_primary(self, eleven_am):
        policy = PrimaryPolicy()
        assert [policy.select(LOCATIONS, n, eleven_am).id for n in (1, 2, 3)] == ["loc-1"] * 3

    def test_round_robin(self, eleven_am):
        policy = RoundRobinPolicy()
        assert [policy.select(LOCATIONS, n, eleven_am).id for n in (1, 2, 3)] == [
            "loc-1",
            "loc-2",
            "loc-1",
        ]

    def test_per_slot_rotates_with_hour(self, calendar, eleven_am):
        policy = PerSlotPolicy()
        two_pm = calendar.get_occurrence(SLOT_DATE, "2PM")
        # 11 % 3 == 2, 14 % 3 == 2, 17 % 3 == 2
        assert policy.select(PROMPTS, 1, eleven_am).id == "p-3"
        assert policy.select(PROMPTS, 5, eleven_am).id == "p-3"
        assert policy.select(PROMPTS[:2], 1, two_pm).id == "p-1"

    @pytest.mark.parametrize("policy", [PrimaryPolicy(), RoundRobinPolicy(), PerSlotPolicy()])
    def test_empty_pool(self, policy, eleven_am):
        assert policy.select([], 1, eleven_am) is None

    def test_resolve_from_settings(self):
        location, prompt = resolve_policies(Settings(LOCATION_POLICY="round_robin", PROMPT_POLICY="round_robin"))
        assert isinstance(location, RoundRobinPolicy)
        assert isinstance(prompt, RoundRobinPolicy)

    @pytest.mark.parametrize(
        "overrides",
        [{"LOCATION_POLICY": "nearest"}, {"PROMPT_POLICY": "primary"}],
    )
    def test_resolve_unknown(self, overrides):
        with pytest.raises(ConfigurationError):
            resolve_policies(Settings(**overrides))


class TestAssemble:
    async def test_one_circle_per_group(self, eleven_am):
        store = FakeCircleStore()
        assembler = CircleAssembler(store)
        users = make_users(7)

        result = await assembler.assemble(
            eleven_am, [users[:4], users[4:]], ResourcePools(LOCATIONS, PROMPTS)
        )

        assert result.circle_ids == ["2026-10-19_11AM_Circle_1", "2026-10-19_11AM_Circle_2"]
        assert result.users_matched == 7
        assert result.failed_groups == []

        first = store.circles["2026-10-19_11AM_Circle_1"]
        assert first.member_ids == ("u001", "u002", "u003", "u004")
        assert first.slot_key == "2026-10-19_11AM"
        assert first.time_slot == eleven_am.starts_at
        assert first.location.id == "loc-1"
        assert first.prompt.id == "p-3"

    async def test_numbering_continues_after_start_index(self, eleven_am):
        store = FakeCircleStore()
        result = await CircleAssembler(store).assemble(
            eleven_am, [make_users(2)], ResourcePools(), start_index=4
        )
        assert result.circle_ids == ["2026-10-19_11AM_Circle_5"]

    async def test_failed_group_does_not_stop_the_others(self, eleven_am):
        store = FakeCircleStore()
        store.failing.add("2026-10-19_11AM_Circle_2")
        users = make_users(10)

        result = await CircleAssembler(store).assemble(
            eleven_am, [users[:4], users[4:7], users[7:]], ResourcePools()
        )

        assert result.circle_ids == ["2026-10-19_11AM_Circle_1", "2026-10-19_11AM_Circle_3"]
        assert len(result.failed_groups) == 1
        failed = result.failed_groups[0]
        assert failed.circle_id == "2026-10-19_11AM_Circle_2"
        assert failed.member_ids == ("u005", "u006", "u007")
        assert "deadlock" in failed.error
        assert result.users_failed == 3
        assert "2026-10-19_11AM_Circle_2" not in store.circles

    async def test_empty_pools_leave_resources_unset(self, eleven_am):
        store = FakeCircleStore()
        result = await CircleAssembler(store).assemble(eleven_am, [make_users(3)], ResourcePools())
        circle = store.circles[result.circle_ids[0]]
        assert circle.location is None
        assert circle.prompt is None

    async def test_no_groups(self, eleven_am):
        store = FakeCircleStore()
        result = await CircleAssembler(store).assemble(eleven_am, [], ResourcePools(LOCATIONS, PROMPTS))
        assert result.circles == []
        assert store.circles == {}

    async def test_from_settings_uses_configured_policies(self, calendar):
        store = FakeCircleStore()
        assembler = CircleAssembler.from_settings(
            store, Settings(LOCATION_POLICY="round_robin", PROMPT_POLICY="round_robin")
        )
        occurrence = calendar.get_occurrence(date(2026, 10, 20), "5PM")
        users = make_users(6)

        result = await assembler.assemble(
            occurrence, [users[:2], users[2:4], users[4:]], ResourcePools(LOCATIONS, PROMPTS)
        )

        circles = [store.circles[cid] for cid in result.circle_ids]
        assert [c.location.id for c in circles] == ["loc-1", "loc-2", "loc-1"]
        assert [c.prompt.id for c in circles] == ["p-1", "p-2", "p-3"]
        assert result.circle_ids[0] == "2026-10-20_5PM_Circle_1"
