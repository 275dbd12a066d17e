"""Prompt Cycle - service tests for the active prompt, response upsert, reveal and votes.

Tests cover:
    - active prompt selection and the no-prompt case
    - one response per (prompt, group, user), including a lost insert race
    - hidden listings show only the caller's own response plus the total
    - revealed listings show everything, oldest first
    - vote toggling: members only, not on own response, only after reveal
    - operator-only scheduling and announcement fan-out
    - a user feed shows others only answers to revealed prompts
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from memoria.core.domain_types import GroupVisibility, NotificationType
from memoria.core.errors import (
    InvalidScheduleError, InvalidStateError, ResourceNotFoundError,
    SelfReferenceError, UnauthorizedError,
)
from memoria.models.notification import Notification
from memoria.models.response import Response
from memoria.services.group_roster import GroupRoster
from memoria.services.prompt_cycle import PromptCycle


async def _response_count(db):
    result = await db.execute(select(func.count()).select_from(Response))
    return result.scalar_one()


async def _types(db, user_id):
    result = await db.execute(
        select(Notification.type).where(Notification.user_id == user_id),
    )
    return list(result.scalars().all())


@pytest.fixture
async def cycle(test_db):
    return PromptCycle(test_db, operator_ids=["operator"])


@pytest.fixture
async def group(test_db, users):
    roster = GroupRoster(test_db)
    group = await roster.create("alice", "Book club", "", GroupVisibility.PUBLIC, 2, 6)
    for uid in ("bob", "carol", "dave"):
        await roster.join(uid, group.id)
    return group


@pytest.fixture
async def prompt(make_prompt):
    return await make_prompt()


# ─── Active prompt ───────────────────────────────────────────────

async def test_no_prompt_is_not_found(cycle, now):
    with pytest.raises(ResourceNotFoundError):
        await cycle.active_prompt(now)


async def test_active_prompt_is_latest_started(cycle, make_prompt, now):
    await make_prompt(active_at=now - timedelta(days=14), reveal_at=now - timedelta(days=10))
    current = await make_prompt(active_at=now - timedelta(days=7), reveal_at=now - timedelta(days=3))
    await make_prompt(active_at=now + timedelta(days=7), reveal_at=now + timedelta(days=10))

    assert (await cycle.active_prompt(now)).id == current.id


async def test_past_and_upcoming_prompts(cycle, make_prompt, now):
    oldest = await make_prompt(active_at=now - timedelta(days=14), reveal_at=now - timedelta(days=10))
    recent = await make_prompt(active_at=now - timedelta(days=7), reveal_at=now - timedelta(days=3))
    soon = await make_prompt(active_at=now + timedelta(days=7), reveal_at=now + timedelta(days=10))
    later = await make_prompt(active_at=now + timedelta(days=14), reveal_at=now + timedelta(days=17))

    assert [p.id for p in await cycle.past_prompts(now)] == [recent.id, oldest.id]
    assert [p.id for p in await cycle.upcoming_prompts(now)] == [soon.id, later.id]


# ─── Scheduling and announcements ────────────────────────────────

async def test_operator_schedules_prompt(cycle, now):
    prompt = await cycle.schedule_prompt(
        "operator", "Best meal this week?", now, now + timedelta(days=3),
    )
    assert prompt.content == "Best meal this week?"


async def test_non_operator_cannot_schedule(cycle, now):
    with pytest.raises(UnauthorizedError):
        await cycle.schedule_prompt("alice", "Mine", now, now + timedelta(days=3))


async def test_reveal_before_active_is_invalid_schedule(cycle, now):
    with pytest.raises(InvalidScheduleError):
        await cycle.schedule_prompt("operator", "Backwards", now, now - timedelta(hours=1))


async def test_announce_reaches_every_group_member_once(cycle, group, prompt, test_db):
    await GroupRoster(test_db).create("bob", "Second", "", GroupVisibility.PUBLIC, 2, 6)

    notified = await cycle.announce("operator", prompt.id, NotificationType.PROMPT_OPEN)

    assert notified == 4
    assert await _types(test_db, "bob") == ["prompt_open"]
    assert await _types(test_db, "erin") == []


async def test_announce_rules(cycle, prompt):
    with pytest.raises(UnauthorizedError):
        await cycle.announce("alice", prompt.id, NotificationType.VOTING_OPEN)
    with pytest.raises(InvalidStateError):
        await cycle.announce("operator", prompt.id, NotificationType.VOTE_RECEIVED)
    with pytest.raises(ResourceNotFoundError):
        await cycle.announce("operator", uuid4(), NotificationType.PROMPT_24H)


# ─── Responses ───────────────────────────────────────────────────

async def test_submit_twice_updates_single_response(cycle, group, prompt, test_db, now):
    first = await cycle.submit_response("bob", group.id, "first draft", now)
    second = await cycle.submit_response("bob", group.id, "final answer", now + timedelta(hours=1))

    assert first.id == second.id
    assert second.content == "final answer"
    assert await _response_count(test_db) == 1


async def test_submit_race_falls_back_to_update(cycle, group, prompt, test_db, now, monkeypatch):
    await cycle.submit_response("bob", group.id, "first", now)

    real_find = cycle._find_response
    calls = []

    async def stale_then_real(*args):
        calls.append(args)
        if len(calls) == 1:
            return None
        return await real_find(*args)

    monkeypatch.setattr(cycle, "_find_response", stale_then_real)
    response = await cycle.submit_response("bob", group.id, "second", now)

    assert response.content == "second"
    assert len(calls) == 2
    assert await _response_count(test_db) == 1


async def test_non_member_cannot_submit(cycle, group, prompt, now):
    with pytest.raises(UnauthorizedError):
        await cycle.submit_response("erin", group.id, "let me in", now)


async def test_submit_without_active_prompt(cycle, group, now):
    with pytest.raises(ResourceNotFoundError):
        await cycle.submit_response("bob", group.id, "too early", now)


async def test_hidden_then_revealed_listing(cycle, group, prompt, now):
    for offset, uid in enumerate(("carol", "bob", "dave")):
        await cycle.submit_response(uid, group.id, f"{uid} says hi", now + timedelta(minutes=offset))

    silent = await cycle.list_responses(group.id, "alice", now + timedelta(hours=1))
    assert silent.listing.responses == []
    assert silent.listing.response_count == 3
    assert silent.listing.is_revealed is False

    own = await cycle.list_responses(group.id, "bob", now + timedelta(hours=1))
    assert [r.user_id for r in own.listing.responses] == ["bob"]
    assert own.listing.response_count == 3

    after = prompt.reveal_at + timedelta(minutes=1)
    for viewer in ("alice", "bob"):
        page = await cycle.list_responses(group.id, viewer, after)
        assert page.listing.is_revealed is True
        assert [r.user_id for r in page.listing.responses] == ["carol", "bob", "dave"]
        assert set(page.authors) == {"carol", "bob", "dave"}


async def test_non_member_cannot_list(cycle, group, prompt, now):
    with pytest.raises(UnauthorizedError):
        await cycle.list_responses(group.id, "erin", now)


# ─── User feed ───────────────────────────────────────────────────

@pytest.fixture
async def history(cycle, group, make_prompt, prompt, now):
    """bob answered last week's revealed prompt and this week's hidden one."""
    await make_prompt(
        active_at=now - timedelta(days=14), reveal_at=now - timedelta(days=10),
        content="Last week",
    )
    await cycle.submit_response("bob", group.id, "old answer", now - timedelta(days=12))
    await cycle.submit_response("bob", group.id, "new answer", now)


async def test_feed_hides_unrevealed_answers_from_others(cycle, history, now):
    feed = await cycle.user_feed("bob", "carol", now)

    assert [e.response.content for e in feed] == ["old answer"]
    assert feed[0].prompt.content == "Last week"
    assert feed[0].group_name == "Book club"


async def test_author_sees_whole_feed_newest_first(cycle, history, now):
    feed = await cycle.user_feed("bob", "bob", now)
    assert [e.response.content for e in feed] == ["new answer", "old answer"]

    latest = await cycle.user_feed("bob", "bob", now, limit=1)
    assert [e.response.content for e in latest] == ["new answer"]


async def test_feed_opens_up_after_reveal(cycle, history, prompt, now):
    after = prompt.reveal_at + timedelta(minutes=1)
    feed = await cycle.user_feed("bob", "erin", after)
    assert [e.response.content for e in feed] == ["new answer", "old answer"]


async def test_feed_of_unknown_user(cycle, users, now):
    with pytest.raises(ResourceNotFoundError):
        await cycle.user_feed("nobody", "alice", now)


# ─── Votes ───────────────────────────────────────────────────────

async def test_vote_toggles_and_notifies_author(cycle, group, prompt, test_db, now):
    response = await cycle.submit_response("bob", group.id, "vote for me", now)
    after = prompt.reveal_at + timedelta(hours=1)

    cast = await cycle.toggle_vote(response.id, "carol", after)
    assert (cast.voted, cast.vote_count) == (True, 1)
    assert await _types(test_db, "bob") == ["vote_received"]

    page = await cycle.list_responses(group.id, "carol", after)
    assert page.voted_response_ids == {response.id}

    withdrawn = await cycle.toggle_vote(response.id, "carol", after)
    assert (withdrawn.voted, withdrawn.vote_count) == (False, 0)
    assert await _types(test_db, "bob") == ["vote_received"]


async def test_vote_counts_accumulate(cycle, group, prompt, now):
    response = await cycle.submit_response("bob", group.id, "popular", now)
    after = prompt.reveal_at + timedelta(hours=1)
    for voter in ("alice", "carol", "dave"):
        result = await cycle.toggle_vote(response.id, voter, after)
    assert result.vote_count == 3


async def test_vote_rules(cycle, group, prompt, now):
    response = await cycle.submit_response("bob", group.id, "rules", now)
    after = prompt.reveal_at + timedelta(hours=1)

    with pytest.raises(InvalidStateError):
        await cycle.toggle_vote(response.id, "carol", now)
    with pytest.raises(SelfReferenceError):
        await cycle.toggle_vote(response.id, "bob", after)
    with pytest.raises(UnauthorizedError):
        await cycle.toggle_vote(response.id, "erin", after)
    with pytest.raises(ResourceNotFoundError):
        await cycle.toggle_vote(uuid4(), "carol", after)
