from __future__ import annotations

import pytest
import requests

from src.edu_center.edu_center.client.api import ApiClient, ApiError
from src.edu_center.edu_center.client.storage import LocalStorage


class FakeResponse:
    def __init__(self, status_code=200, data=None, content_type="application/json"):
        self.status_code = status_code
        self._data = data
        self.headers = {"Content-Type": content_type}

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._data


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "headers": headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "client.json")


def test_sends_bearer_token_from_storage(storage):
    storage.set("token", "abc")
    session = FakeSession(FakeResponse(data=[]))

    ApiClient("http://localhost:5000/api/", storage, session=session).get_students()

    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "http://localhost:5000/api/students"
    assert call["headers"]["Authorization"] == "Bearer abc"


def test_no_token_no_authorization_header(storage):
    session = FakeSession(FakeResponse(data={"hasUsers": False}))

    assert ApiClient("http://x/api", storage, session=session).system_status() == {"hasUsers": False}
    assert "Authorization" not in session.calls[0]["headers"]


def test_bulk_wraps_updates(storage):
    session = FakeSession(FakeResponse(data={"results": []}))
    updates = [{"id": 1, "attendance": {"2024-01-01": {"status": "B"}}}]

    ApiClient("http://x/api", storage, session=session).bulk_update_students(updates)

    assert session.calls[0]["method"] == "PUT"
    assert session.calls[0]["url"] == "http://x/api/students/bulk"
    assert session.calls[0]["json"] == {"updates": updates}


def test_error_carries_message_status_and_suggestions(storage):
    session = FakeSession(
        FakeResponse(400, {"message": "Username already exists", "suggestions": ["ali1", "ali2024", "aliuz"]})
    )

    with pytest.raises(ApiError) as exc:
        ApiClient("http://x/api", storage, session=session).create_user({"username": "ali"})

    assert exc.value.message == "Username already exists"
    assert exc.value.status == 400
    assert exc.value.suggestions == ["ali1", "ali2024", "aliuz"]


def test_error_without_json_body(storage):
    session = FakeSession(FakeResponse(502, None, content_type="text/html"))

    with pytest.raises(ApiError) as exc:
        ApiClient("http://x/api", storage, session=session).get_users()

    assert exc.value.message == "Server error: 502"
    assert exc.value.suggestions == []


def test_connection_failure_is_not_retried(storage):
    session = FakeSession(requests.ConnectionError("refused"), FakeResponse(data=[]))

    with pytest.raises(ApiError):
        ApiClient("http://x/api", storage, session=session).get_courses()

    assert len(session.calls) == 1


def test_storage_persists_only_known_keys(tmp_path):
    path = tmp_path / "client.json"
    storage = LocalStorage(path)
    storage.set("token", "abc")
    storage.set("theme", "dark")

    with pytest.raises(KeyError):
        storage.set("users", "[]")

    reloaded = LocalStorage(path)
    assert reloaded.get("token") == "abc"
    assert reloaded.theme == "dark"

    reloaded.remove("token")
    assert LocalStorage(path).get("token") is None


@pytest.mark.parametrize("content", ["[1, 2]", "not json", "\"token\""])
def test_storage_ignores_file_that_is_not_an_object(tmp_path, content):
    path = tmp_path / "client.json"
    path.write_text(content, encoding="utf-8")

    storage = LocalStorage(path)

    assert storage.get("token") is None
    assert storage.theme == "light"
    storage.set("token", "abc")
    assert LocalStorage(path).get("token") == "abc"
