from __future__ import annotations
"""Connection profiles for S3-compatible endpoints and their persistence."""
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Callable

import keyring
from keyring.errors import KeyringError

KEYRING_SERVICE = "s3fm"
DEFAULT_ENDPOINT_URL = "http://localhost:4566"
DEFAULT_REGION = "us-east-1"
PUBLIC_FIELDS = ("name", "endpoint_url", "access_key", "region")

LOGGER = logging.getLogger(__name__)


@dataclass
class ConnectionProfile:
    """Endpoint, region and credentials for one S3-compatible service."""

    name: str
    endpoint_url: str = DEFAULT_ENDPOINT_URL
    access_key: str = ""
    secret_key: str = ""
    region: str = DEFAULT_REGION

    def public_fields(self) -> dict[str, str]:
        """Everything except the secret, which never touches the JSON file."""

        return {field: getattr(self, field) for field in PUBLIC_FIELDS}


class KeychainStore:
    """Secret keys per profile name, held by the OS keychain."""

    def __init__(self, service_name: str = KEYRING_SERVICE):
        self._service_name = service_name

    def _guarded(self, action: str, profile_name: str, call: Callable[..., Any], *args: str) -> Any:
        try:
            return call(self._service_name, profile_name, *args)
        except KeyringError as exc:
            LOGGER.warning("Keychain %s failed for profile '%s': %s", action, profile_name, exc)
            return None

    def get_secret(self, profile_name: str) -> str:
        if not profile_name:
            return ""
        return self._guarded("lookup", profile_name, keyring.get_password) or ""

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        if not profile_name:
            return
        if secret_key:
            self._guarded("update", profile_name, keyring.set_password, secret_key)
        else:
            self.delete_secret(profile_name)

    def delete_secret(self, profile_name: str) -> None:
        if profile_name:
            self._guarded("delete", profile_name, keyring.delete_password)


class ProfileStorage:
    """Profiles as a JSON list on disk; secrets go to the keychain.

    Files written by older versions may still carry a plaintext
    ``secret_key``. Loading moves it into the keychain and rewrites the file
    without it.
    """

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        self._path = Path(storage_path) if storage_path else Path.home() / ".s3fm_connections.json"
        self._keychain = keychain or KeychainStore()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[ConnectionProfile]:
        profiles: list[ConnectionProfile] = []
        migrated = False
        for entry in self._read_entries():
            if not isinstance(entry, dict) or not all(field in entry for field in PUBLIC_FIELDS[:3]):
                LOGGER.debug("Skipping incomplete profile entry in %s", self._path)
                continue
            plaintext = entry.get("secret_key") or ""
            if plaintext:
                migrated = True
                self._keychain.set_secret(entry["name"], plaintext)
            profiles.append(
                ConnectionProfile(
                    name=entry["name"],
                    endpoint_url=entry["endpoint_url"],
                    access_key=entry["access_key"],
                    secret_key=plaintext or self._keychain.get_secret(entry["name"]),
                    region=entry.get("region") or DEFAULT_REGION,
                )
            )
        if migrated:
            LOGGER.info("Moved plaintext secrets from %s into the keychain", self._path)
            self._write(profiles)
        return profiles

    def save(self, profiles: list[ConnectionProfile]) -> None:
        kept = {profile.name for profile in profiles}
        previous = {entry.get("name") for entry in self._read_entries() if isinstance(entry, dict)}
        for profile in profiles:
            self._keychain.set_secret(profile.name, profile.secret_key)
        for name in sorted(name for name in previous - kept if isinstance(name, str) and name):
            self._keychain.delete_secret(name)
        self._write(profiles)

    def _read_entries(self) -> list:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable profile file %s", self._path)
            return []
        return data if isinstance(data, list) else []

    def _write(self, profiles: list[ConnectionProfile]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [profile.public_fields() for profile in profiles]
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
