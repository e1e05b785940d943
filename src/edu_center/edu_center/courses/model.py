from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import parse_timestamp
from ..core.constants import LESSON_EDIT_WINDOW


@dataclass(frozen=True)
class Lesson:
    date: str
    topic: str
    created_at: str

    def is_locked(self, now: datetime) -> bool:
        """Attendance for this lesson can no longer change after the edit window."""
        return now - parse_timestamp(self.created_at) > LESSON_EDIT_WINDOW

    def to_dict(self) -> dict:
        return {"date": self.date, "topic": self.topic, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: dict) -> "Lesson":
        return cls(date=str(data["date"]), topic=str(data["topic"]), created_at=str(data["createdAt"]))


@dataclass(frozen=True)
class Course:
    """Domain entity: Course with its append-only lesson log."""

    course_id: int
    name: str
    schedule: str
    center_name: Optional[str]
    teacher_id: Optional[int] = None
    price: Optional[float] = None
    lessons: tuple[Lesson, ...] = field(default_factory=tuple)

    def find_lesson(self, lesson_date: str) -> Optional[Lesson]:
        for lesson in self.lessons:
            if lesson.date == lesson_date:
                return lesson
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.course_id,
            "name": self.name,
            "teacherId": self.teacher_id,
            "schedule": self.schedule,
            "price": self.price,
            "centerName": self.center_name,
            "lessons": [lesson.to_dict() for lesson in self.lessons],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Course":
        teacher_id = data.get("teacherId")
        return cls(
            course_id=int(data["id"]),
            name=data.get("name") or "",
            schedule=data.get("schedule") or "",
            center_name=data.get("centerName"),
            teacher_id=int(teacher_id) if teacher_id else None,
            price=data.get("price"),
            lessons=tuple(Lesson.from_dict(x) for x in data.get("lessons") or []),
        )
