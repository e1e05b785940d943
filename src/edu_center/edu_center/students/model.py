from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    status: AttendanceStatus
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"status": self.status.value}
        if self.reason is not None:
            out["reason"] = self.reason
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttendanceRecord":
        return cls(status=AttendanceStatus(data["status"]), reason=data.get("reason"))


@dataclass(frozen=True)
class Student:
    """Domain entity: Student with attendance keyed by lesson date."""

    student_id: int
    name: str
    teacher_id: int
    course_name: str
    center_name: Optional[str]
    paid: bool = False
    attendance: Mapping[str, AttendanceRecord] = field(default_factory=dict)

    def merged_attendance(self, changes: Mapping[str, AttendanceRecord]) -> dict[str, AttendanceRecord]:
        """Shallow key union; the incoming record wins per date."""
        merged = dict(self.attendance)
        merged.update(changes)
        return merged

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.student_id,
            "name": self.name,
            "teacherId": self.teacher_id,
            "courseName": self.course_name,
            "paid": self.paid,
            "centerName": self.center_name,
            "attendance": {d: rec.to_dict() for d, rec in self.attendance.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Student":
        return cls(
            student_id=int(data["id"]),
            name=data.get("name") or "",
            teacher_id=int(data["teacherId"]),
            course_name=data.get("courseName") or "",
            center_name=data.get("centerName"),
            paid=bool(data.get("paid", False)),
            attendance={d: AttendanceRecord.from_dict(r) for d, r in (data.get("attendance") or {}).items()},
        )
