from __future__ import annotations

import pytest

from fakes import (
    FakeClock,
    FakeIdentity,
    FakePublisher,
    InMemoryActions,
    InMemoryBreaks,
    InMemoryGuilds,
    InMemoryShifts,
    LedgerStore,
    WEDNESDAY_NOON,
)
from shift_ledger.container import assemble


@pytest.fixture
def clock():
    return FakeClock(WEDNESDAY_NOON)


@pytest.fixture
def store():
    return LedgerStore()


@pytest.fixture
def shifts_repo(store):
    return InMemoryShifts(store)


@pytest.fixture
def breaks_repo(store):
    return InMemoryBreaks(store)


@pytest.fixture
def guilds_repo():
    return InMemoryGuilds()


@pytest.fixture
def actions_repo():
    return InMemoryActions()


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def container(shifts_repo, breaks_repo, guilds_repo, actions_repo, clock, publisher, identity):
    return assemble(
        guilds_repo=guilds_repo,
        shifts_repo=shifts_repo,
        breaks_repo=breaks_repo,
        actions_repo=actions_repo,
        clock=clock,
        timezone="UTC",
        publisher=publisher,
        identity=identity,
    )


@pytest.fixture
def shift_service(container):
    # Change notifications spawn threads; tests that need them wire their own.
    container.shift_service.set_change_listener(None)
    return container.shift_service


@pytest.fixture
def report_service(container):
    return container.report_service


@pytest.fixture
def guild_service(container):
    return container.guild_service


@pytest.fixture
def action_service(container):
    return container.action_service


@pytest.fixture
def refresher(container):
    return container.refresher
