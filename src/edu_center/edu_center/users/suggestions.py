from __future__ import annotations

import random
from typing import Callable, Optional

from ..core.constants import USERNAME_SUGGESTION_COUNT


def suggest_usernames(
    username: str,
    is_taken: Callable[[str], bool],
    *,
    year: int,
    rng: Optional[random.Random] = None,
    count: int = USERNAME_SUGGESTION_COUNT,
) -> list[str]:
    """Free alternatives for a taken username.

    Fixed suffixes are probed in order: a random number, the year, ``uz``,
    ``pro``, another random number. Any shortfall is filled with random
    4-digit suffixes.
    """
    rng = rng or random
    suggestions: list[str] = []

    suffixes = [rng.randint(0, 999), year, "uz", "pro", rng.randint(0, 98)]
    for suffix in suffixes:
        candidate = f"{username}{suffix}"
        if candidate not in suggestions and not is_taken(candidate):
            suggestions.append(candidate)
        if len(suggestions) >= count:
            return suggestions

    while len(suggestions) < count:
        candidate = f"{username}{rng.randint(0, 9999)}"
        if candidate not in suggestions and not is_taken(candidate):
            suggestions.append(candidate)

    return suggestions
