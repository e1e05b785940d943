from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.edu_center.edu_center.client.api import ApiClient, ApiError
from src.edu_center.edu_center.client.storage import LocalStorage
from src.edu_center.edu_center.client.store import BusyError, ClientStore, LessonLockedError, LoginRejectedError
from src.edu_center.edu_center.common.datetime_utils import to_iso
from src.edu_center.edu_center.core.enums import AttendanceStatus, NotificationStatus, NotificationType, Role
from src.edu_center.edu_center.courses.model import Course, Lesson
from src.edu_center.edu_center.students.model import Student

BASE_URL = "http://testserver/api"
NOW = datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)


class _FlaskResponse:
    def __init__(self, response):
        self.status_code = response.status_code
        self.headers = response.headers
        self._response = response

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._response.get_json()


class FlaskSession:
    """Routes ApiClient traffic into the Flask test client."""

    def __init__(self, client):
        self._client = client

    def request(self, method, url, json=None, headers=None, timeout=None):
        headers = {k: v for k, v in (headers or {}).items() if k.lower() != "content-type"}
        path = url[len("http://testserver"):]
        return _FlaskResponse(self._client.open(path, method=method, json=json, headers=headers))


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "client.json")


@pytest.fixture
def store(client, storage):
    api = ApiClient(BASE_URL, storage, session=FlaskSession(client))
    return ClientStore(api, storage, clock=lambda: NOW)


@pytest.fixture
def react_class(container, two_centers):
    aziz = two_centers["alpha_teacher"]
    course = container.courses_repo.create(
        Course(0, "Frontend React", "Mon 14:00", "Alpha", aziz.user_id,
               lessons=(Lesson("2024-05-08", "JSX", to_iso(NOW - timedelta(days=2))),
                        Lesson("2024-05-10", "Hooks", to_iso(NOW - timedelta(minutes=10)))))
    )
    otabek = container.students_repo.create(Student(0, "Otabek", aziz.user_id, "Frontend React", "Alpha"))
    sardor = container.students_repo.create(Student(0, "Sardor", aziz.user_id, "Frontend React", "Alpha"))
    laylo = container.students_repo.create(
        Student(0, "Laylo", two_centers["alpha_teacher2"].user_id, "General English", "Alpha")
    )
    return course, otabek, sardor, laylo


def test_fresh_install_then_register_center(store, storage):
    assert store.check_system() is True

    user = store.register_center("Kelajak", "Director", "boss", "pw123")

    assert user.role == Role.SUPER_ADMIN
    assert store.needs_setup is False
    assert storage.get("token")
    assert storage.get("currentDeviceId") == store.current_user.devices[-1].id
    assert [u.username for u in store.users] == ["boss"]


def test_register_with_taken_username_surfaces_suggestions(store, make_user):
    make_user("boss")

    with pytest.raises(ApiError) as exc:
        store.register_center("Kelajak", "Director", "boss", "pw123")

    assert len(exc.value.suggestions) == 3
    assert store.current_user is None


def test_login_rejects_teacher_who_left(store, storage, make_user):
    make_user("gone", is_left=True)

    with pytest.raises(LoginRejectedError):
        store.login("gone", "secret")

    assert storage.get("token") is None
    assert store.current_user is None


def test_restore_session(client, container, storage, store, two_centers):
    store.login("alpha", "secret")
    fresh = ClientStore(store.api, storage, clock=lambda: NOW)

    assert fresh.restore_session().username == "alpha"
    assert {u.username for u in fresh.users} == {"alpha", "aziz", "malika"}

    storage.set("token", "tampered")
    assert fresh.restore_session() is None
    assert storage.get("token") is None


def test_logout_revokes_current_device(store, storage, container, two_centers):
    store.login("aziz", "secret")
    device_id = storage.get("currentDeviceId")

    store.logout()

    devices = container.users_repo.get_by_id(two_centers["alpha_teacher"].user_id).devices
    assert device_id not in [d.id for d in devices]
    assert storage.get("token") is None
    assert store.students == []


def test_remote_logout_of_own_current_device_logs_out(store, storage, two_centers):
    store.login("aziz", "secret")

    store.remote_logout(store.current_user.user_id, storage.get("currentDeviceId"))

    assert store.current_user is None


def test_admin_remote_logout_of_teacher_device(store, container, two_centers, auth_headers):
    auth_headers("aziz")
    store.login("alpha", "secret")
    teacher_id = two_centers["alpha_teacher"].user_id
    device_id = container.users_repo.get_by_id(teacher_id).devices[0].id

    store.remote_logout(teacher_id, device_id)

    assert store.current_user is not None
    assert [u for u in store.users if u.user_id == teacher_id][0].devices == ()


def test_teacher_stages_and_saves_attendance(store, container, react_class):
    _, otabek, sardor, _ = react_class
    store.login("aziz", "secret")
    assert {s.name for s in store.visible_students} == {"Otabek", "Sardor"}

    assert store.mark_attendance(otabek.student_id, "2024-05-10", "B") is True
    assert store.mark_attendance(sardor.student_id, "2024-05-10", AttendanceStatus.ABSENT) is False
    assert store.pending_absence == (sardor.student_id, "2024-05-10")
    store.confirm_absent(" Sick ")

    assert store.attendance_for(sardor.student_id, "2024-05-10").reason == "Sick"
    assert container.students_repo.get_by_id(sardor.student_id).attendance == {}

    results = store.save_attendance()

    assert [r["status"] for r in results] == ["updated", "updated"]
    assert store.staged_attendance == {}
    saved = container.students_repo.get_by_id(sardor.student_id).attendance["2024-05-10"]
    assert saved.status == AttendanceStatus.ABSENT and saved.reason == "Sick"
    refreshed = [s for s in store.students if s.student_id == otabek.student_id][0]
    assert refreshed.attendance["2024-05-10"].status == AttendanceStatus.PRESENT


def test_locked_lesson_rejects_marks(store, react_class):
    _, otabek, _, _ = react_class
    store.login("aziz", "secret")

    with pytest.raises(LessonLockedError):
        store.mark_attendance(otabek.student_id, "2024-05-08", "B")
    with pytest.raises(LessonLockedError):
        store.mark_attendance(otabek.student_id, "2024-05-08", "Y")

    assert store.pending_absence is None
    assert store.staged_attendance == {}


def test_save_with_nothing_staged_sends_nothing(store, react_class):
    store.login("aziz", "secret")

    assert store.save_attendance() == []


def test_salary_notification_lifecycle(store, make_user, two_centers):
    teacher = make_user("due", course_name="Math", join_date="2023-01-15")
    store.login("alpha", "secret")

    active = [n for n in store.notifications if n.teacher_id == teacher.user_id]
    assert [n.type for n in active] == [NotificationType.WARNING]

    store.toggle_salary_paid(teacher.user_id)

    note = [n for n in store.notifications if n.teacher_id == teacher.user_id][0]
    assert note.status == NotificationStatus.RESOLVED
    assert note.message.startswith("Paid: ")
    assert [u for u in store.users if u.user_id == teacher.user_id][0].salary_paid is True


def test_teacher_gets_no_salary_notifications(store, make_user, two_centers):
    make_user("due", course_name="Math", join_date="2023-01-15")
    store.login("aziz", "secret")

    assert store.notifications == []


def test_optimistic_salary_edit_rolls_back_on_failure(store, container, two_centers):
    teacher = two_centers["alpha_teacher"]
    store.login("alpha", "secret")
    container.users_repo.delete_by_id(teacher.user_id)

    with pytest.raises(ApiError):
        store.update_salary(teacher.user_id, 9000000)

    cached = [u for u in store.users if u.user_id == teacher.user_id][0]
    assert cached.monthly_salary is None


def test_student_paid_toggle_is_admin_only(store, container, react_class):
    _, otabek, _, _ = react_class
    store.login("alpha", "secret")

    assert store.toggle_student_paid(otabek.student_id).paid is True
    assert container.students_repo.get_by_id(otabek.student_id).paid is True


def test_mutations_refresh_cache(store, two_centers):
    store.login("alpha", "secret")

    teacher = store.add_teacher({"name": " New ", "username": "newt", "password": "pw1", "courseName": "Python"})
    assert teacher.username in {u.username for u in store.users}

    course = store.add_course({"name": "Python", "schedule": "Sat 10:00", "teacherId": teacher.user_id})
    store.add_lesson(course.course_id, "2024-05-10", "Intro")
    assert store.courses[-1].lessons[0].topic == "Intro"

    student = store.add_student("Jasur", teacher.user_id, paid=True)
    assert student.paid is True and student.course_name == "Python"

    store.remove_student(student.student_id)
    store.remove_teacher(teacher.user_id)
    assert teacher.user_id not in {u.user_id for u in store.users}
    assert store.students == []


def test_settings_send_center_name_only_for_admin(store, container, two_centers):
    store.login("aziz", "secret")

    user = store.update_settings(center_name="Hijack", username="aziz_new")

    assert user.username == "aziz_new"
    assert user.center_name == "Alpha"


def test_busy_store_rejects_second_request(store, two_centers):
    store.login("alpha", "secret")
    store.in_flight = True

    with pytest.raises(BusyError):
        store.refresh()
    with pytest.raises(BusyError):
        store.toggle_salary_paid(two_centers["alpha_teacher"].user_id)

    assert [u for u in store.users if u.username == "aziz"][0].salary_paid is False
