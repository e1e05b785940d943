from __future__ import annotations

import random
import re
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import epoch_millis, to_iso
from ..users.model import Device

_OS_RULES = (
    (re.compile(r"windows", re.I), "Windows PC"),
    (re.compile(r"macintosh|mac os x", re.I), "MacBook/iMac"),
    (re.compile(r"linux", re.I), "Linux PC"),
    (re.compile(r"android", re.I), "Android Device"),
    (re.compile(r"iphone|ipad|ipod", re.I), "iOS Device"),
)


def device_name(user_agent: str) -> str:
    """Classify a user-agent into a short OS name plus browser suffix.

    OS rules are checked in order, so an Android agent (which also mentions
    Linux) is reported as ``Linux PC``.
    """
    ua = user_agent or ""
    name = "Unknown Device"
    for pattern, label in _OS_RULES:
        if pattern.search(ua):
            name = label
            break

    if re.search(r"chrome", ua, re.I):
        name += " (Chrome)"
    elif re.search(r"firefox", ua, re.I):
        name += " (Firefox)"
    elif re.search(r"safari", ua, re.I):
        name += " (Safari)"
    elif re.search(r"edge", ua, re.I):
        name += " (Edge)"
    return name


def client_ip(forwarded_for: Optional[str], remote_addr: Optional[str]) -> str:
    """Proxy header wins; only its first hop is the client."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return remote_addr or ""


def new_device_id(now: datetime, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return f"dev-{epoch_millis(now)}{rng.randint(0, 999)}"


def new_device(*, user_agent: str, ip: str, now: datetime, rng: Optional[random.Random] = None) -> Device:
    return Device(
        id=new_device_id(now, rng),
        name=device_name(user_agent),
        last_login=to_iso(now),
        ip=ip,
        is_current=True,
    )
