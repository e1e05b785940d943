from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import epoch_millis, parse_iso_date, to_iso
from ..core.constants import SALARY_MONTH_DAYS, SALARY_WARNING_MAX_DAYS, SALARY_WARNING_MIN_DAYS
from ..core.enums import NotificationStatus, NotificationType, Role
from ..users.model import User


@dataclass(frozen=True)
class Notification:
    id: str
    user_id: int
    teacher_id: int
    message: str
    type: NotificationType
    date: str
    is_read: bool = False
    status: NotificationStatus = NotificationStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == NotificationStatus.ACTIVE


def days_until_payday(join_date: date, today: date) -> int:
    """Days from today to the join date's day-of-month, months taken as 30 days."""
    diff = join_date.day - today.day
    if diff < 0:
        diff += SALARY_MONTH_DAYS
    return diff


def _find_active(notes: Iterable[Notification], teacher_id: int, kind: Optional[NotificationType] = None):
    for n in notes:
        if n.teacher_id == teacher_id and n.is_active and (kind is None or n.type == kind):
            return n
    return None


def derive_salary_notifications(
    teachers: Sequence[User],
    existing: Sequence[Notification],
    *,
    admin_id: int,
    today: date,
    now: datetime,
) -> list[Notification]:
    """Rebuild the salary reminders from the loaded teacher list.

    Unpaid with 2..7 days left keeps one warning, unpaid on pay day swaps the
    warning for a critical entry, and paid resolves whatever is active.
    Entries are never persisted.
    """
    notes = list(existing)

    for teacher in teachers:
        if teacher.role != Role.TEACHER or teacher.is_left or not teacher.join_date:
            continue
        try:
            join = parse_iso_date(teacher.join_date)
        except ValueError:
            continue

        tid = teacher.user_id
        diff = days_until_payday(join, today)
        active = _find_active(notes, tid)

        if not teacher.salary_paid and SALARY_WARNING_MIN_DAYS <= diff <= SALARY_WARNING_MAX_DAYS:
            if not active:
                notes.append(
                    Notification(
                        id=f"pay-warn-{tid}-{epoch_millis(now)}",
                        user_id=admin_id,
                        teacher_id=tid,
                        type=NotificationType.WARNING,
                        message=f"Salary for teacher {teacher.name} ({teacher.course_name}) is due soon ({diff} days left)",
                        date=to_iso(now),
                    )
                )
        elif not teacher.salary_paid and diff == 0:
            notes = [n for n in notes if not (n.teacher_id == tid and n.type == NotificationType.WARNING)]
            if not _find_active(notes, tid, NotificationType.CRITICAL):
                notes.append(
                    Notification(
                        id=f"pay-crit-{tid}-{epoch_millis(now)}",
                        user_id=admin_id,
                        teacher_id=tid,
                        type=NotificationType.CRITICAL,
                        message=f"Pay teacher {teacher.name} ({teacher.course_name}) today",
                        date=to_iso(now),
                    )
                )
        elif teacher.salary_paid and active:
            notes = [
                replace(n, status=NotificationStatus.RESOLVED, type=NotificationType.SUCCESS, message=f"Paid: {n.message}")
                if n.id == active.id
                else n
                for n in notes
            ]

    return notes
