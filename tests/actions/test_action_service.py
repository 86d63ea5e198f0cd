from __future__ import annotations

import pytest

from fakes import GUILD
from shift_ledger.core.constants import DAY_SECONDS
from shift_ledger.core.exceptions import NotFoundError, ResourceExhaustedError, ValidationError


def test_create_and_complete(action_service, clock):
    now = clock.now()
    action = action_service.create_action("alice", GUILD, " LOA ", now, now + 3 * DAY_SECONDS, "Vacation")

    assert action.action_type == "LOA"
    assert action.description == "Vacation"
    assert not action.is_completed

    done = action_service.complete_action(action.id)
    assert done.is_completed
    assert done.completed_at == now


def test_create_validates_input(action_service, clock):
    now = clock.now()
    with pytest.raises(ValidationError):
        action_service.create_action("alice", GUILD, "LOA", now, now - 1)
    with pytest.raises(ValidationError):
        action_service.create_action("alice", GUILD, "", now, now)
    with pytest.raises(ValidationError):
        action_service.create_action("alice", GUILD, "x" * 51, now, now)
    with pytest.raises(ValidationError):
        action_service.create_action("alice", GUILD, "LOA", now, now, "d" * 501)


def test_unknown_action(action_service):
    with pytest.raises(NotFoundError):
        action_service.complete_action(404)
    with pytest.raises(NotFoundError):
        action_service.get_action(404)


def test_listing_and_expiry(action_service, clock):
    now = clock.now()
    expired = action_service.create_action("alice", GUILD, "LOA", now - 5 * DAY_SECONDS, now - DAY_SECONDS)
    current = action_service.create_action("alice", GUILD, "Strike", now - DAY_SECONDS, now + DAY_SECONDS)
    done = action_service.create_action("bob", GUILD, "LOA", now - 5 * DAY_SECONDS, now - DAY_SECONDS)
    action_service.complete_action(done.id)

    assert [a.id for a in action_service.actions_for_subject("alice", GUILD)] == [current.id, expired.id]
    assert [a.id for a in action_service.actions_by_type("LOA", GUILD, include_completed=False)] == [expired.id]
    assert [a.id for a in action_service.expired_actions()] == [expired.id]
    assert action_service.expired_actions("other-guild") == []

    purged = action_service.purge_expired_actions(GUILD)
    assert [a.id for a in purged] == [expired.id]
    assert action_service.expired_actions() == []


def test_purge_refuses_oversized_batch(action_service, actions_repo, clock):
    now = clock.now()
    for i in range(1001):
        actions_repo.create(subject_id=f"s{i}", guild_id=GUILD, action_type="LOA", start_date=now - 100, end_date=now - 10)

    with pytest.raises(ResourceExhaustedError):
        action_service.purge_expired_actions()
    assert len(action_service.expired_actions()) == 1001


def test_duration_days_rounds_up(action_service, clock):
    now = clock.now()
    action = action_service.create_action("alice", GUILD, "LOA", now, now + DAY_SECONDS + 1)
    assert action_service.duration_days(action) == 2
