from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.duration import format_duration, format_hours_minutes
from ..common.serialize import to_json
from ..common.validators import require_int
from ..container import Container


def _week_offset() -> int:
    return require_int(request.args.get("week_offset", 0), "week_offset")


def _unit():
    return request.args.get("unit") or None


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    @app.route("/api/guilds/<guild_id>/roster", methods=["GET"], endpoint="roster")
    def roster(guild_id: str):
        entries = reports.active_roster(guild_id, _unit())
        return jsonify(
            [
                dict(to_json(e), elapsed=format_duration(e.elapsed_seconds))
                for e in entries
            ]
        )

    @app.route("/api/guilds/<guild_id>/reports/department", methods=["GET"], endpoint="report_department")
    def report_department(guild_id: str):
        week_offset = _week_offset()
        window = reports.week_window(guild_id, week_offset)
        rows = reports.department_summary(guild_id, week_offset, _unit())
        subjects = [dict(to_json(r), total=format_hours_minutes(r.total_effective_seconds)) for r in rows]
        return jsonify({"window": to_json(window), "subjects": subjects})

    @app.route("/api/guilds/<guild_id>/reports/daily", methods=["GET"], endpoint="report_daily")
    def report_daily(guild_id: str):
        week_offset = _week_offset()
        window = reports.week_window(guild_id, week_offset)
        rows = reports.daily_breakdown(guild_id, week_offset, _unit())
        return jsonify({"window": to_json(window), "days": to_json(rows)})

    @app.route("/api/guilds/<guild_id>/reports/subjects/<subject_id>", methods=["GET"], endpoint="report_subject")
    def report_subject(guild_id: str, subject_id: str):
        summary = reports.subject_summary(guild_id, subject_id, _week_offset(), _unit())
        return jsonify(to_json(summary))
