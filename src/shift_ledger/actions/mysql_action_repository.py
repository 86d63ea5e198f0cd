from __future__ import annotations

from typing import Optional, Sequence

from ..core.exceptions import ResourceExhaustedError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import ScheduledAction
from .repository import ActionRepository

_COLUMNS = """
    id, subject_id, guild_id, action_type, description,
    start_date, end_date, is_completed, completed_at
"""


def _to_model(r: dict) -> ScheduledAction:
    return ScheduledAction(
        id=int(r["id"]),
        subject_id=str(r["subject_id"]),
        guild_id=str(r["guild_id"]),
        action_type=r["action_type"],
        description=r.get("description"),
        start_date=int(r["start_date"]),
        end_date=int(r["end_date"]),
        is_completed=bool(r.get("is_completed")),
        completed_at=int(r["completed_at"]) if r.get("completed_at") is not None else None,
    )


class MySQLActionRepository(ActionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        subject_id: str,
        guild_id: str,
        action_type: str,
        start_date: int,
        end_date: int,
        description: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO scheduled_actions(subject_id, guild_id, action_type, description, start_date, end_date)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (str(subject_id), str(guild_id), action_type, description, int(start_date), int(end_date)),
            )
            return int(cur.lastrowid)

    def get_by_id(self, action_id: int) -> Optional[ScheduledAction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM scheduled_actions WHERE id=%s", (int(action_id),))
            r = fetchone(cur)
            return _to_model(r) if r else None

    def list_for_subject(
        self,
        subject_id: str,
        guild_id: str,
        *,
        include_completed: bool = True,
    ) -> Sequence[ScheduledAction]:
        completed_clause = "" if include_completed else " AND is_completed=0"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM scheduled_actions
                WHERE subject_id=%s AND guild_id=%s{completed_clause}
                ORDER BY start_date DESC, id DESC
                """,
                (str(subject_id), str(guild_id)),
            )
            return [_to_model(r) for r in fetchall(cur)]

    def list_by_type(
        self,
        action_type: str,
        guild_id: str,
        *,
        include_completed: bool = True,
    ) -> Sequence[ScheduledAction]:
        completed_clause = "" if include_completed else " AND is_completed=0"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM scheduled_actions
                WHERE action_type=%s AND guild_id=%s{completed_clause}
                ORDER BY start_date DESC, id DESC
                """,
                (action_type, str(guild_id)),
            )
            return [_to_model(r) for r in fetchall(cur)]

    def list_expired(self, now: int, *, guild_id: Optional[str] = None) -> Sequence[ScheduledAction]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_expired(cur, now, guild_id)

    def complete(self, action_id: int, *, completed_at: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE scheduled_actions
                SET is_completed=1, completed_at=%s, updated_at=UNIX_TIMESTAMP()
                WHERE id=%s
                """,
                (int(completed_at), int(action_id)),
            )
            return cur.rowcount > 0

    def delete(self, action_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM scheduled_actions WHERE id=%s", (int(action_id),))
            return cur.rowcount > 0

    def delete_expired(self, now: int, *, guild_id: Optional[str] = None, max_rows: int) -> Sequence[ScheduledAction]:
        with db_cursor(self._conn_factory) as (_, cur):
            expired = self._select_expired(cur, now, guild_id, for_update=True)
            if len(expired) > max_rows:
                raise ResourceExhaustedError(
                    f"Too many expired actions to delete in a single operation ({len(expired)} > {max_rows})"
                )
            if expired:
                ids = [a.id for a in expired]
                cur.execute(f"DELETE FROM scheduled_actions WHERE id IN ({in_clause(ids)})", tuple(ids))
            return expired

    @staticmethod
    def _select_expired(cur, now: int, guild_id: Optional[str], *, for_update: bool = False) -> list[ScheduledAction]:
        clauses = ["is_completed=0", "end_date <= %s"]
        params: list[object] = [int(now)]
        if guild_id is not None:
            clauses.append("guild_id=%s")
            params.append(str(guild_id))

        cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM scheduled_actions
            WHERE {" AND ".join(clauses)}
            ORDER BY end_date ASC, id ASC
            {"FOR UPDATE" if for_update else ""}
            """,
            tuple(params),
        )
        return [_to_model(r) for r in fetchall(cur)]
