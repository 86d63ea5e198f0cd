from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.serialize import to_json
from ..common.validators import require_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import ToggleAction
from ..core.exceptions import NotFoundError, ValidationError


def _body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _subject(payload: dict) -> str:
    subject_id = str(payload.get("subject_id") or "").strip()
    if not subject_id:
        raise ValidationError("subject_id is required")
    return subject_id


def register(app: Flask, container: Container) -> None:
    shifts = container.shift_service

    @app.route("/api/guilds/<guild_id>/shifts/toggle", methods=["POST"], endpoint="shifts_toggle")
    def shifts_toggle(guild_id: str):
        payload = _body()
        result = shifts.toggle_shift(
            _subject(payload),
            guild_id,
            payload.get("unit"),
            proof_url=payload.get("proof_url"),
            actor_id=payload.get("actor_id"),
            reason=payload.get("reason"),
        )
        status = 201 if result.action == ToggleAction.STARTED else 200
        return jsonify(to_json(result)), status

    @app.route("/api/guilds/<guild_id>/breaks/toggle", methods=["POST"], endpoint="breaks_toggle")
    def breaks_toggle(guild_id: str):
        payload = _body()
        result = shifts.toggle_break(
            _subject(payload),
            guild_id,
            actor_id=payload.get("actor_id"),
            reason=payload.get("reason"),
        )
        return jsonify(to_json(result))

    @app.route("/api/guilds/<guild_id>/shifts/<int:shift_id>/adjust", methods=["POST"], endpoint="shifts_adjust")
    def shifts_adjust(guild_id: str, shift_id: int):
        payload = _body()
        if "delta_seconds" not in payload:
            raise ValidationError("delta_seconds is required")
        existing = container.shifts_repo.get_by_id(shift_id)
        if existing is not None and existing.guild_id != str(guild_id):
            raise NotFoundError(f"Shift {shift_id} not found")
        shift = shifts.adjust_shift(
            shift_id,
            payload["delta_seconds"],
            subject_id=payload.get("subject_id"),
            actor_id=payload.get("actor_id"),
            reason=payload.get("reason"),
        )
        return jsonify(to_json(shift))

    @app.route("/api/guilds/<guild_id>/shifts/<int:shift_id>", methods=["DELETE"], endpoint="shifts_delete")
    def shifts_delete(guild_id: str, shift_id: int):
        payload = _body()
        shift = container.shifts_repo.get_by_id(shift_id)
        deleted = False
        if shift is not None and shift.guild_id == str(guild_id):
            deleted = shifts.delete_shift(shift_id, actor_id=payload.get("actor_id"), reason=payload.get("reason"))
        return jsonify({"deleted": deleted})

    @app.route("/api/guilds/<guild_id>/shifts/clear-week", methods=["POST"], endpoint="shifts_clear_week")
    def shifts_clear_week(guild_id: str):
        payload = _body()
        if payload.get("confirm") is not True:
            raise ValidationError("Weekly reset requires {\"confirm\": true}")
        deleted = shifts.clear_weekly_shifts(guild_id, actor_id=payload.get("actor_id"), reason=payload.get("reason"))
        return jsonify({"deleted": deleted})

    @app.route("/api/guilds/<guild_id>/shifts/<int:shift_id>", methods=["GET"], endpoint="shifts_get")
    def shifts_get(guild_id: str, shift_id: int):
        shift = _same_guild(guild_id, shift_id)
        return jsonify(
            {
                "shift": to_json(shift),
                "breaks": to_json(list(shifts.breaks_for_shift(shift.id))),
                "durations": to_json(shifts.durations(shift)),
            }
        )

    @app.route("/api/guilds/<guild_id>/subjects/<subject_id>/shifts", methods=["GET"], endpoint="subject_shifts")
    def subject_shifts(guild_id: str, subject_id: str):
        limit = request.args.get("limit")
        rows = shifts.shifts_for_subject(
            subject_id,
            guild_id,
            limit=require_int(limit, "limit", min_value=1) if limit else DEFAULT_HISTORY_LIMIT,
            unit=request.args.get("unit") or None,
        )
        return jsonify(to_json(list(rows)))

    def _same_guild(guild_id: str, shift_id: int):
        shift = shifts.get_shift(shift_id)
        if shift.guild_id != str(guild_id):
            raise NotFoundError(f"Shift {shift_id} not found")
        return shift
