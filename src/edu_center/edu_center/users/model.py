from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Device:
    """One login session of a user."""

    id: str
    name: str
    last_login: str
    ip: str
    is_current: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "lastLogin": self.last_login,
            "ip": self.ip,
            "isCurrent": self.is_current,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Device":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            last_login=str(data.get("lastLogin", "")),
            ip=str(data.get("ip") or ""),
            is_current=bool(data.get("isCurrent", False)),
        )


@dataclass(frozen=True)
class User:
    """Domain entity: User (center admin or teacher).

    Note: Plain data object, it does not talk to the database.
    """

    user_id: int
    role: Role
    name: str
    username: str
    password_hash: str
    center_name: Optional[str]
    course_name: Optional[str] = None
    course_price: Optional[float] = None
    monthly_salary: Optional[float] = None
    salary_paid: bool = False
    join_date: Optional[str] = None
    is_left: bool = False
    devices: tuple[Device, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    def to_dict(self) -> dict[str, Any]:
        """Public JSON shape; the password hash never leaves the server."""
        return {
            "id": self.user_id,
            "role": self.role.value,
            "name": self.name,
            "username": self.username,
            "centerName": self.center_name,
            "courseName": self.course_name,
            "coursePrice": self.course_price,
            "monthlySalary": self.monthly_salary,
            "salaryPaid": self.salary_paid,
            "joinDate": self.join_date,
            "isLeft": self.is_left,
            "devices": [d.to_dict() for d in self.devices],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            user_id=int(data["id"]),
            role=Role(data["role"]),
            name=data.get("name") or "",
            username=data.get("username") or "",
            password_hash="",
            center_name=data.get("centerName"),
            course_name=data.get("courseName"),
            course_price=data.get("coursePrice"),
            monthly_salary=data.get("monthlySalary"),
            salary_paid=bool(data.get("salaryPaid", False)),
            join_date=data.get("joinDate"),
            is_left=bool(data.get("isLeft", False)),
            devices=tuple(Device.from_dict(d) for d in data.get("devices") or []),
        )
