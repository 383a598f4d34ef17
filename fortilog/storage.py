from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from .config import settings
from .models import ConnectionSettings


logger = logging.getLogger(__name__)

SETTINGS_KEY = "fortigate_settings"
MOCK_MODE_KEY = "fortigate_mock_mode"


class SettingsStore:
    """Small JSON key-value file holding the dashboard's saved settings."""

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self._path = Path(path or settings.state_path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("ignoring unreadable settings file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self._path.parent), prefix=".fortilog-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def save_settings(self, conn: ConnectionSettings) -> None:
        self._write(SETTINGS_KEY, conn.model_dump())

    def load_settings(self) -> Optional[ConnectionSettings]:
        raw = self._read().get(SETTINGS_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return ConnectionSettings.model_validate(raw)
        except ValidationError as e:
            logger.warning("stored settings are invalid, ignoring: %s", e)
            return None

    def save_mock_mode(self, enabled: bool) -> None:
        self._write(MOCK_MODE_KEY, bool(enabled))

    def load_mock_mode(self) -> bool:
        value = self._read().get(MOCK_MODE_KEY)
        if value is None:
            return True
        return bool(value)
