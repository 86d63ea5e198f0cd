from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import Break
from .repository import BreakRepository

_COLUMNS = "id, shift_id, subject_id, guild_id, start_time, end_time"


def _to_model(r: dict) -> Break:
    return Break(
        id=int(r["id"]),
        shift_id=int(r["shift_id"]),
        subject_id=str(r["subject_id"]),
        guild_id=str(r["guild_id"]),
        start_time=int(r["start_time"]),
        end_time=int(r["end_time"]) if r.get("end_time") is not None else None,
    )


class MySQLBreakRepository(BreakRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, break_id: int) -> Optional[Break]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM breaks WHERE id=%s", (int(break_id),))
            r = fetchone(cur)
            return _to_model(r) if r else None

    def get_open(self, subject_id: str, guild_id: str) -> Optional[Break]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM breaks
                WHERE subject_id=%s AND guild_id=%s AND end_time IS NULL
                ORDER BY start_time DESC
                LIMIT 1
                """,
                (str(subject_id), str(guild_id)),
            )
            r = fetchone(cur)
            return _to_model(r) if r else None

    def list_for_shift(self, shift_id: int) -> Sequence[Break]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM breaks WHERE shift_id=%s ORDER BY start_time ASC, id ASC",
                (int(shift_id),),
            )
            return [_to_model(r) for r in fetchall(cur)]

    def list_for_shifts(self, shift_ids: Sequence[int]) -> Sequence[Break]:
        ids = [int(i) for i in shift_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM breaks
                WHERE shift_id IN ({in_clause(ids)})
                ORDER BY start_time ASC, id ASC
                """,
                tuple(ids),
            )
            return [_to_model(r) for r in fetchall(cur)]

    def list_open_for_guild(self, guild_id: str) -> Sequence[Break]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM breaks WHERE guild_id=%s AND end_time IS NULL",
                (str(guild_id),),
            )
            return [_to_model(r) for r in fetchall(cur)]

    def create_open(self, *, shift_id: int, subject_id: str, guild_id: str, start_time: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                # Insert only while the parent shift is still open.
                cur.execute(
                    """
                    INSERT INTO breaks(shift_id, subject_id, guild_id, start_time)
                    SELECT id, subject_id, guild_id, %s
                    FROM shifts
                    WHERE id=%s AND subject_id=%s AND guild_id=%s AND end_time IS NULL
                    """,
                    (int(start_time), int(shift_id), str(subject_id), str(guild_id)),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ConflictError("Subject is already on a break") from exc
                raise
            if cur.rowcount == 0:
                raise ConflictError("No active shift")
            return int(cur.lastrowid)

    def close(self, *, break_id: int, end_time: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE breaks
                SET end_time=%s, updated_at=UNIX_TIMESTAMP()
                WHERE id=%s AND end_time IS NULL
                """,
                (int(end_time), int(break_id)),
            )
            return cur.rowcount > 0
