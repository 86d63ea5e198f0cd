from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import ConflictError, ResourceExhaustedError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import Shift
from .repository import ShiftRepository

_COLUMNS = "id, subject_id, guild_id, start_time, end_time, unit, start_proof_url, end_proof_url"


def _to_model(r: dict) -> Shift:
    return Shift(
        id=int(r["id"]),
        subject_id=str(r["subject_id"]),
        guild_id=str(r["guild_id"]),
        start_time=int(r["start_time"]),
        end_time=int(r["end_time"]) if r.get("end_time") is not None else None,
        unit=r.get("unit"),
        start_proof_url=r.get("start_proof_url"),
        end_proof_url=r.get("end_proof_url"),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE id=%s", (int(shift_id),))
            r = fetchone(cur)
            return _to_model(r) if r else None

    def get_open(self, subject_id: str, guild_id: str) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE subject_id=%s AND guild_id=%s AND end_time IS NULL
                ORDER BY start_time DESC
                LIMIT 1
                """,
                (str(subject_id), str(guild_id)),
            )
            r = fetchone(cur)
            return _to_model(r) if r else None

    def list_open(self, guild_id: str, *, unit: Optional[str] = None) -> Sequence[Shift]:
        clauses = ["guild_id=%s", "end_time IS NULL"]
        params: list[object] = [str(guild_id)]
        if unit is not None:
            clauses.append("unit=%s")
            params.append(unit)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE {" AND ".join(clauses)}
                ORDER BY start_time ASC, id ASC
                """,
                tuple(params),
            )
            return [_to_model(r) for r in fetchall(cur)]

    def list_for_subject(
        self,
        subject_id: str,
        guild_id: str,
        *,
        limit: Optional[int] = None,
    ) -> Sequence[Shift]:
        sql = f"""
            SELECT {_COLUMNS}
            FROM shifts
            WHERE subject_id=%s AND guild_id=%s
            ORDER BY start_time DESC, id DESC
        """
        params: list[object] = [str(subject_id), str(guild_id)]
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_model(r) for r in fetchall(cur)]

    def list_in_window(
        self,
        guild_id: str,
        *,
        start: int,
        end: int,
        unit: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> Sequence[Shift]:
        clauses = ["guild_id=%s", "start_time >= %s", "start_time < %s"]
        params: list[object] = [str(guild_id), int(start), int(end)]
        if unit is not None:
            clauses.append("unit=%s")
            params.append(unit)
        if subject_id is not None:
            clauses.append("subject_id=%s")
            params.append(str(subject_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE {" AND ".join(clauses)}
                ORDER BY start_time ASC, id ASC
                """,
                tuple(params),
            )
            return [_to_model(r) for r in fetchall(cur)]

    def list_units(self, guild_id: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT unit
                FROM shifts
                WHERE guild_id=%s AND unit IS NOT NULL
                ORDER BY unit ASC
                """,
                (str(guild_id),),
            )
            return [r["unit"] for r in fetchall(cur)]

    def create_open(
        self,
        *,
        subject_id: str,
        guild_id: str,
        start_time: int,
        unit: Optional[str],
        start_proof_url: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO shifts(subject_id, guild_id, start_time, unit, start_proof_url)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (str(subject_id), str(guild_id), int(start_time), unit, start_proof_url),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ConflictError("Subject already has an active shift") from exc
                raise
            return int(cur.lastrowid)

    def close(self, *, shift_id: int, end_time: int, end_proof_url: Optional[str] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shifts
                SET end_time=%s, end_proof_url=%s, updated_at=UNIX_TIMESTAMP()
                WHERE id=%s AND end_time IS NULL
                """,
                (int(end_time), end_proof_url, int(shift_id)),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                """
                UPDATE breaks
                SET end_time=%s, updated_at=UNIX_TIMESTAMP()
                WHERE shift_id=%s AND end_time IS NULL
                """,
                (int(end_time), int(shift_id)),
            )
            return True

    def update_end_time(self, *, shift_id: int, end_time: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shifts
                SET end_time=%s, updated_at=UNIX_TIMESTAMP()
                WHERE id=%s AND end_time IS NOT NULL
                """,
                (int(end_time), int(shift_id)),
            )
            return cur.rowcount > 0

    def delete_with_breaks(self, shift_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM breaks WHERE shift_id=%s", (int(shift_id),))
            cur.execute("DELETE FROM shifts WHERE id=%s", (int(shift_id),))
            return cur.rowcount > 0

    def delete_in_window(self, guild_id: str, *, start: int, end: int, max_rows: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id
                FROM shifts
                WHERE guild_id=%s AND start_time >= %s AND start_time < %s
                FOR UPDATE
                """,
                (str(guild_id), int(start), int(end)),
            )
            ids = [int(r["id"]) for r in fetchall(cur)]
            if len(ids) > max_rows:
                raise ResourceExhaustedError(
                    f"Too many shifts to delete in a single operation ({len(ids)} > {max_rows})"
                )
            if not ids:
                return 0

            placeholders = in_clause(ids)
            cur.execute(f"DELETE FROM breaks WHERE shift_id IN ({placeholders})", tuple(ids))
            cur.execute(f"DELETE FROM shifts WHERE id IN ({placeholders})", tuple(ids))
            return int(cur.rowcount)

    def delete_closed_before(self, cutoff: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE b FROM breaks b
                JOIN shifts s ON s.id = b.shift_id
                WHERE s.start_time < %s AND s.end_time IS NOT NULL
                """,
                (int(cutoff),),
            )
            cur.execute(
                "DELETE FROM shifts WHERE start_time < %s AND end_time IS NOT NULL",
                (int(cutoff),),
            )
            return int(cur.rowcount)
