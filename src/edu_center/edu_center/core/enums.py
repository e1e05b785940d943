from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    SUPER_ADMIN = "SUPER_ADMIN"
    TEACHER = "TEACHER"


class AttendanceStatus(str, Enum):
    """Attendance marks stored per lesson date: B (present) / Y (absent)."""

    PRESENT = "B"
    ABSENT = "Y"


class NotificationType(str, Enum):
    WARNING = "warning"
    INFO = "info"
    CRITICAL = "critical"
    SUCCESS = "success"


class NotificationStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
