from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.http import json_body, make_token_required
from ..common.validators import parse_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container.auth_service)
    students = container.student_service

    @app.route("/api/students/bulk", methods=["PUT"], endpoint="students_bulk")
    @token_required
    def bulk_update():
        """Body: ``{"updates": [{"id": ..., "attendance": {date: {status, reason}}}]}``."""
        results = students.bulk_update_attendance(g.current_user, json_body().get("updates"))
        return jsonify({"results": [r.to_dict() for r in results]})

    @app.route("/api/students", methods=["GET"], endpoint="students_list")
    @token_required
    def list_students():
        return jsonify([s.to_dict() for s in students.list_students(g.current_user)])

    @app.route("/api/students", methods=["POST"], endpoint="students_create")
    @token_required
    def create_student():
        return jsonify(students.create_student(g.current_user, json_body()).to_dict())

    @app.route("/api/students/<student_id>", methods=["PUT"], endpoint="students_update")
    @token_required
    def update_student(student_id: str):
        return jsonify(students.update_student(g.current_user, parse_id(student_id), json_body()).to_dict())

    @app.route("/api/students/<student_id>", methods=["DELETE"], endpoint="students_delete")
    @token_required
    def delete_student(student_id: str):
        students.delete_student(g.current_user, parse_id(student_id))
        return jsonify({"message": "Deleted"})
