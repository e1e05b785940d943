from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.http import json_body, make_token_required
from ..common.validators import parse_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container.auth_service)
    courses = container.course_service

    @app.route("/api/courses", methods=["GET"], endpoint="courses_list")
    @token_required
    def list_courses():
        return jsonify([c.to_dict() for c in courses.list_courses(g.current_user)])

    @app.route("/api/courses", methods=["POST"], endpoint="courses_create")
    @token_required
    def create_course():
        return jsonify(courses.create_course(g.current_user, json_body()).to_dict())

    @app.route("/api/courses/<course_id>", methods=["PUT"], endpoint="courses_update")
    @token_required
    def update_course(course_id: str):
        return jsonify(courses.update_course(g.current_user, parse_id(course_id), json_body()).to_dict())

    @app.route("/api/courses/<course_id>", methods=["DELETE"], endpoint="courses_delete")
    @token_required
    def delete_course(course_id: str):
        courses.delete_course(g.current_user, parse_id(course_id))
        return jsonify({"message": "Deleted"})

    @app.route("/api/courses/<course_id>/lessons", methods=["POST"], endpoint="courses_add_lesson")
    @token_required
    def add_lesson(course_id: str):
        return jsonify(courses.add_lesson(g.current_user, parse_id(course_id), json_body()).to_dict())
