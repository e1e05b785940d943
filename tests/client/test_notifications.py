from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

from src.edu_center.edu_center.client.notifications import days_until_payday, derive_salary_notifications
from src.edu_center.edu_center.core.enums import NotificationStatus, NotificationType, Role
from src.edu_center.edu_center.users.model import User

NOW = datetime(2024, 5, 10, 8, 0, tzinfo=timezone.utc)


def _teacher(user_id=2, **fields) -> User:
    base = dict(user_id=user_id, role=Role.TEACHER, name="Aziz", username=f"t{user_id}", password_hash="",
                center_name="Alpha", course_name="React", join_date="2023-10-15")
    base.update(fields)
    return User(**base)


def _derive(teachers, existing=(), today=date(2024, 5, 10)):
    return derive_salary_notifications(teachers, list(existing), admin_id=1, today=today, now=NOW)


def test_days_until_payday_wraps_with_30_day_month():
    assert days_until_payday(date(2023, 10, 15), date(2024, 5, 10)) == 5
    assert days_until_payday(date(2023, 10, 5), date(2024, 5, 10)) == 25
    assert days_until_payday(date(2023, 10, 10), date(2024, 5, 10)) == 0


def test_warning_then_resolved_when_paid():
    notes = _derive([_teacher()])

    assert len(notes) == 1
    warning = notes[0]
    assert warning.type == NotificationType.WARNING
    assert warning.status == NotificationStatus.ACTIVE
    assert warning.teacher_id == 2
    assert warning.user_id == 1
    assert warning.id.startswith("pay-warn-2-")

    notes = _derive([_teacher(salary_paid=True)], notes)

    assert len(notes) == 1
    assert notes[0].status == NotificationStatus.RESOLVED
    assert notes[0].type == NotificationType.SUCCESS
    assert notes[0].message.startswith("Paid: ")


def test_rerun_keeps_a_single_warning():
    notes = _derive([_teacher()])
    notes = _derive([_teacher()], notes)

    assert len(notes) == 1


def test_pay_day_swaps_warning_for_critical():
    notes = _derive([_teacher()])

    notes = _derive([_teacher()], notes, today=date(2024, 5, 15))

    assert [n.type for n in notes] == [NotificationType.CRITICAL]
    assert notes[0].id.startswith("pay-crit-2-")

    notes = _derive([_teacher()], notes, today=date(2024, 5, 15))
    assert len(notes) == 1


def test_outside_window_nothing_new():
    assert _derive([_teacher(join_date="2023-10-11")]) == []
    assert _derive([_teacher(join_date="2023-10-20")]) == []


def test_skips_left_admins_and_undated():
    admin = replace(_teacher(user_id=3), role=Role.SUPER_ADMIN)
    left = _teacher(user_id=4, is_left=True)
    undated = _teacher(user_id=5, join_date=None)
    garbled = _teacher(user_id=6, join_date="someday")

    assert _derive([admin, left, undated, garbled]) == []


def test_paid_teacher_without_active_entry_gets_nothing():
    assert _derive([_teacher(salary_paid=True)]) == []
