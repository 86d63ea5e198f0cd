from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import CONFIGURABLE_FIELDS, GuildConfig
from .repository import GuildRepository

_COLUMNS = """
    guild_id, shift_log_target_id, roster_target_id, action_log_target_id,
    access_role_id, admin_role_id, week_start_day, created_at, updated_at
"""


def _to_model(r: dict) -> GuildConfig:
    return GuildConfig(
        guild_id=str(r["guild_id"]),
        shift_log_target_id=r.get("shift_log_target_id"),
        roster_target_id=r.get("roster_target_id"),
        action_log_target_id=r.get("action_log_target_id"),
        access_role_id=r.get("access_role_id"),
        admin_role_id=r.get("admin_role_id"),
        week_start_day=int(r["week_start_day"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLGuildRepository(GuildRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, guild_id: str) -> Optional[GuildConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM guild_config WHERE guild_id=%s", (str(guild_id),))
            r = fetchone(cur)
            return _to_model(r) if r else None

    def create(self, guild_id: str) -> GuildConfig:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT IGNORE INTO guild_config(guild_id) VALUES(%s)", (str(guild_id),))
            cur.execute(f"SELECT {_COLUMNS} FROM guild_config WHERE guild_id=%s", (str(guild_id),))
            return _to_model(fetchone(cur))

    def update(self, guild_id: str, fields: dict) -> Optional[GuildConfig]:
        # Column names come from the whitelist only; values are bound.
        columns = [name for name in CONFIGURABLE_FIELDS if name in fields]
        with db_cursor(self._conn_factory) as (_, cur):
            if columns:
                assignments = ", ".join(f"{name}=%s" for name in columns)
                cur.execute(
                    f"UPDATE guild_config SET {assignments}, updated_at=UNIX_TIMESTAMP() WHERE guild_id=%s",
                    tuple(fields[name] for name in columns) + (str(guild_id),),
                )
            cur.execute(f"SELECT {_COLUMNS} FROM guild_config WHERE guild_id=%s", (str(guild_id),))
            r = fetchone(cur)
            return _to_model(r) if r else None

    def list_with_roster_target(self) -> Sequence[GuildConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM guild_config
                WHERE roster_target_id IS NOT NULL
                ORDER BY guild_id
                """
            )
            return [_to_model(r) for r in fetchall(cur)]
