from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from werkzeug.security import check_password_hash

from ..common.datetime_utils import now_utc
from ..core.exceptions import AuthenticationError
from ..users.model import User
from ..users.repository import UserRepository
from .devices import new_device
from .tokens import TokenService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User
    current_device_id: str


class AuthService:
    """Use case: log in, register the login device, resolve bearer tokens."""

    def __init__(self, users: UserRepository, tokens: TokenService, *, rng: Optional[random.Random] = None):
        self._users = users
        self._tokens = tokens
        self._rng = rng

    def login(
        self,
        username: str,
        password: str,
        *,
        user_agent: str = "",
        ip: str = "",
        now: Optional[datetime] = None,
    ) -> LoginResult:
        clean_username = (username or "").strip()
        clean_password = (password or "").strip()

        user = self._users.get_by_username(clean_username) if clean_username else None
        if not user:
            logger.info("login failed for username=%r", clean_username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        try:
            ok = check_password_hash(user.password_hash, clean_password)
        except Exception:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.info("login failed for username=%r", clean_username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        now = now or now_utc()
        device = new_device(user_agent=user_agent, ip=ip, now=now, rng=self._rng)
        previous = tuple(replace(d, is_current=False) for d in user.devices)
        user = self._users.save(replace(user, devices=previous + (device,)))

        token = self._tokens.issue(user_id=user.user_id, role=user.role)
        logger.info("user %s logged in on %s (%s)", user.user_id, device.id, device.name)
        return LoginResult(token=token, user=user, current_device_id=device.id)

    def resolve_token(self, token: str) -> User:
        """Map a bearer token to the stored user; deleted users are rejected."""
        claims = self._tokens.verify(token)
        user = self._users.get_by_id(claims.user_id)
        if not user:
            raise AuthenticationError("User not found")
        return user

    def has_users(self) -> bool:
        return self._users.count() > 0
