import random
import re
from datetime import datetime, timezone

import pytest

from src.edu_center.edu_center.auth.devices import client_ip, device_name, new_device, new_device_id
from src.edu_center.edu_center.auth.tokens import TokenService
from src.edu_center.edu_center.core.enums import Role
from src.edu_center.edu_center.core.exceptions import AuthenticationError


def test_token_round_trip_carries_id_and_role():
    tokens = TokenService("k")

    claims = tokens.verify(tokens.issue(user_id=7, role=Role.TEACHER))

    assert claims.user_id == 7
    assert claims.role == Role.TEACHER


def test_token_signed_with_other_key_is_invalid():
    token = TokenService("other").issue(user_id=1, role=Role.SUPER_ADMIN)

    with pytest.raises(AuthenticationError) as exc:
        TokenService("k").verify(token)
    assert exc.value.message == "Invalid token"


def test_token_past_max_age_is_expired():
    token = TokenService("k").issue(user_id=1, role=Role.SUPER_ADMIN)

    with pytest.raises(AuthenticationError) as exc:
        TokenService("k", max_age=-1).verify(token)
    assert exc.value.message == "Token expired"


@pytest.mark.parametrize(
    "ua,expected",
    [
        ("Mozilla/5.0 (Windows NT 10.0) Chrome/120 Safari/537", "Windows PC (Chrome)"),
        ("Mozilla/5.0 (Macintosh; Intel Mac OS X 13_4) Version/16 Safari/605", "MacBook/iMac (Safari)"),
        ("Mozilla/5.0 (X11; Linux x86_64; rv:120) Firefox/120", "Linux PC (Firefox)"),
        ("Mozilla/5.0 (Linux; Android 14) Chrome/120 Mobile", "Linux PC (Chrome)"),
        ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0) Version/17 Safari/604", "iOS Device (Safari)"),
        ("curl/8.0", "Unknown Device"),
        ("", "Unknown Device"),
    ],
)
def test_device_name(ua, expected):
    assert device_name(ua) == expected


def test_client_ip_prefers_first_forwarded_hop():
    assert client_ip("203.0.113.9, 10.0.0.1", "127.0.0.1") == "203.0.113.9"
    assert client_ip(None, "127.0.0.1") == "127.0.0.1"
    assert client_ip("", None) == ""


def test_new_device_id_shape():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    device_id = new_device_id(now, random.Random(3))

    assert re.fullmatch(r"dev-1704067200000\d{1,3}", device_id)


def test_new_device_is_current():
    now = datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc)

    device = new_device(user_agent="", ip="1.2.3.4", now=now)

    assert device.is_current is True
    assert device.last_login == "2024-01-01T12:30:00.000Z"
    assert device.name == "Unknown Device"
