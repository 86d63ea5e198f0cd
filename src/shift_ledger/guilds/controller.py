from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.serialize import to_json
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    guilds = container.guild_service

    @app.route("/api/guilds/<guild_id>/config", methods=["GET"], endpoint="guild_config")
    def guild_config(guild_id: str):
        return jsonify(to_json(guilds.get_or_default(guild_id)))

    @app.route("/api/guilds/<guild_id>/config", methods=["PUT"], endpoint="guild_config_update")
    def guild_config_update(guild_id: str):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("Expected a JSON object of settings")
        return jsonify(to_json(guilds.configure(guild_id, **payload)))
