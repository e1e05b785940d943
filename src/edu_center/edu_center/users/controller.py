from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.http import json_body, make_token_required, optional_caller
from ..common.validators import parse_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container.auth_service)
    users = container.user_service

    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @token_required
    def list_users():
        return jsonify([u.to_dict() for u in users.list_users(g.current_user)])

    @app.route("/api/users", methods=["POST"], endpoint="users_create")
    def create_user():
        # Open for registration; an admin token turns it into "add teacher".
        caller = optional_caller(container.auth_service)
        user = users.create_user(json_body(), caller=caller)
        return jsonify(user.to_dict())

    @app.route("/api/users/<user_id>", methods=["PUT"], endpoint="users_update")
    @token_required
    def update_user(user_id: str):
        user = users.update_user(g.current_user, parse_id(user_id), json_body())
        return jsonify(user.to_dict())

    @app.route("/api/users/<user_id>", methods=["DELETE"], endpoint="users_delete")
    @token_required
    def delete_user(user_id: str):
        users.delete_user(g.current_user, parse_id(user_id))
        return jsonify({"message": "Deleted"})

    @app.route("/api/users/<user_id>/devices/<device_id>", methods=["DELETE"], endpoint="users_remove_device")
    @token_required
    def remove_device(user_id: str, device_id: str):
        user = users.remove_device(g.current_user, parse_id(user_id), device_id)
        return jsonify({"message": "Device removed", "user": user.to_dict()})
