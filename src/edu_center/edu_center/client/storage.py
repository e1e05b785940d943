from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

TOKEN = "token"
CURRENT_DEVICE_ID = "currentDeviceId"
THEME = "theme"

KEYS = (TOKEN, CURRENT_DEVICE_ID, THEME)
THEMES = ("light", "dark")


class LocalStorage:
    """Device-local key/value file holding the only persisted client state.

    Only ``token``, ``currentDeviceId`` and ``theme`` are ever written.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._data: dict[str, str] = {}
        if self._path.exists():
            try:
                loaded = json.loads(self._path.read_text(encoding="utf-8") or "{}")
            except ValueError:
                loaded = None
            if not isinstance(loaded, dict):
                logger.warning("ignoring unreadable client storage at %s", self._path)
                loaded = {}
            self._data = {k: str(v) for k, v in loaded.items() if k in KEYS}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if key not in KEYS:
            raise KeyError(f"unsupported storage key: {key}")
        self._data[key] = str(value)
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    @property
    def theme(self) -> str:
        theme = self._data.get(THEME)
        return theme if theme in THEMES else "light"

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
