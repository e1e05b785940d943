from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.http import json_body, make_token_required
from ..container import Container
from .devices import client_ip


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container.auth_service)

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        body = json_body()
        result = container.auth_service.login(
            str(body.get("username") or ""),
            str(body.get("password") or ""),
            user_agent=request.headers.get("User-Agent", ""),
            ip=client_ip(request.headers.get("X-Forwarded-For"), request.remote_addr),
        )
        return jsonify(
            {
                "token": result.token,
                "user": result.user.to_dict(),
                "currentDeviceId": result.current_device_id,
            }
        )

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @token_required
    def me():
        return jsonify({"user": g.current_user.to_dict()})

    @app.route("/api/system/status", methods=["GET"], endpoint="system_status")
    def system_status():
        # Clean-install check: the client shows the setup form when false.
        return jsonify({"hasUsers": container.auth_service.has_users()})
