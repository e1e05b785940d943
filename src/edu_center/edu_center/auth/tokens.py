from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.constants import TOKEN_SALT
from ..core.enums import Role
from ..core.exceptions import AuthenticationError


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: Role


class TokenService:
    """Signs and verifies bearer tokens carrying ``{id, role}``.

    ``max_age`` is in seconds; ``None`` means tokens never expire.
    """

    def __init__(self, secret_key: str, *, max_age: Optional[int] = None):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)
        self._max_age = max_age

    def issue(self, *, user_id: int, role: Role) -> str:
        return self._serializer.dumps({"id": int(user_id), "role": role.value})

    def verify(self, token: str) -> TokenClaims:
        try:
            data = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired:
            raise AuthenticationError("Token expired")
        except BadSignature:
            raise AuthenticationError("Invalid token")

        try:
            return TokenClaims(user_id=int(data["id"]), role=Role(data["role"]))
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid token")
