from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TenantScope:
    """Which records a caller may see or touch: their own center's.

    ``include_untagged`` keeps rows created before tenancy existed (no center
    name) visible to every center. It is a migration shim and stays off unless
    ``ALLOW_UNTAGGED_RECORDS`` is set.
    """

    center_name: Optional[str]
    include_untagged: bool = False

    def owns(self, record_center: Optional[str]) -> bool:
        if not record_center:
            return self.include_untagged
        return record_center == self.center_name
