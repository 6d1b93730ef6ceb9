from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    fetch_metadata: bool = True
    discard_stale_responses: bool = False
    hide_folder_markers: bool = True
    remember_last_bucket: bool = False
    last_connection: str = ""
    last_bucket: str = ""
    log_level: str = "WARNING"


def _as_bool(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _as_level(value: object) -> str:
    if isinstance(value, str) and value.strip().upper() in LOG_LEVELS:
        return value.strip().upper()
    return AppSettings.log_level


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".s3fm_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()
        return AppSettings(
            fetch_metadata=_as_bool(data.get("fetch_metadata"), AppSettings.fetch_metadata),
            discard_stale_responses=_as_bool(
                data.get("discard_stale_responses"), AppSettings.discard_stale_responses
            ),
            hide_folder_markers=_as_bool(data.get("hide_folder_markers"), AppSettings.hide_folder_markers),
            remember_last_bucket=_as_bool(data.get("remember_last_bucket"), AppSettings.remember_last_bucket),
            last_connection=_as_str(data.get("last_connection")),
            last_bucket=_as_str(data.get("last_bucket")),
            log_level=_as_level(data.get("log_level")),
        )

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        payload["log_level"] = _as_level(settings.log_level)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            logging.getLogger(__name__).warning("Could not write settings to %s", self._path)
