from __future__ import annotations

from datetime import timezone

import pytest

from fakes import GUILD, MONDAY_MIDNIGHT
from shift_ledger.core.constants import DAY_SECONDS
from shift_ledger.core.exceptions import ValidationError


def test_get_or_create_uses_defaults(guild_service):
    assert guild_service.get(GUILD) is None

    config = guild_service.get_or_create(GUILD)

    assert config.guild_id == GUILD
    assert config.week_start_day == 1
    assert config.roster_target_id is None
    assert guild_service.get_or_create(GUILD) == config


def test_configure_updates_known_fields(guild_service):
    config = guild_service.configure(GUILD, roster_target_id="chan-1", week_start_day=0)

    assert config.roster_target_id == "chan-1"
    assert config.week_start_day == 0
    assert guild_service.week_start_day(GUILD) == 0
    assert [g.guild_id for g in guild_service.roster_guilds()] == [GUILD]

    cleared = guild_service.configure(GUILD, roster_target_id="")
    assert cleared.roster_target_id is None
    assert list(guild_service.roster_guilds()) == []


@pytest.mark.parametrize("fields", [{"week_start_day": 7}, {"week_start_day": -1}, {"week_start_day": "monday"}, {"colour": "red"}])
def test_configure_rejects_bad_input(guild_service, fields):
    with pytest.raises(ValidationError):
        guild_service.configure(GUILD, **fields)


def test_week_start_day_defaults_to_monday(guild_service):
    assert guild_service.week_start_day("unknown") == 1


def test_get_or_default_does_not_persist(guild_service, guilds_repo):
    config = guild_service.get_or_default(GUILD)

    assert config.week_start_day == 1
    assert guilds_repo.get(GUILD) is None

    guild_service.configure(GUILD, week_start_day=0)
    assert guild_service.get_or_default(GUILD).week_start_day == 0


def test_guild_id_is_not_a_setting(guild_service, guilds_repo):
    with pytest.raises(ValidationError, match="guild_id"):
        guild_service.configure(GUILD, guild_id="other")
    assert guilds_repo.get("other") is None


def test_week_window_follows_configured_start_day(guild_service):
    now = MONDAY_MIDNIGHT + 2 * DAY_SECONDS
    assert guild_service.week_window(GUILD, now, tz=timezone.utc).start == MONDAY_MIDNIGHT

    guild_service.configure(GUILD, week_start_day=0)
    assert guild_service.week_window(GUILD, now, tz=timezone.utc).start == MONDAY_MIDNIGHT - DAY_SECONDS
    assert guild_service.week_window(GUILD, now, -1, timezone.utc).start == MONDAY_MIDNIGHT - 8 * DAY_SECONDS

    with pytest.raises(ValidationError):
        guild_service.week_window(GUILD, now, 521, timezone.utc)
