"""Persistent storage for the completion service API key."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from .exceptions import CredentialStoreError

LOGGER = logging.getLogger(__name__)

DEFAULT_CREDENTIAL_KEY = "openai_api_key"


class KeyValueStore(Protocol):
    """Minimal persistent string store."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store, used when nothing should touch the disk."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileKeyValueStore:
    """Store string values in a private JSON object on disk.

    Writes go through a temporary file and ``os.replace`` so a crash never
    leaves a half-written secret behind.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _enforce_permissions(self, path: Path, mode: int = 0o600) -> None:
        """Set POSIX permissions on a file or directory; failures are only logged."""
        if os.name != "posix":
            return
        try:
            path.chmod(mode)
        except OSError as exc:
            LOGGER.warning(
                "credentials.permissions.failed",
                extra={
                    "event": "credentials.permissions.failed",
                    "path": str(path),
                    "error": str(exc),
                },
            )

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object in {self.path}.")
        return {k: v for k, v in payload.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._enforce_permissions(self.path.parent, 0o700)
        try:
            values = self._read()
        except (OSError, ValueError):
            values = {}
        values[key] = value
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid4().hex}.tmp")
        try:
            tmp_path.write_text(
                json.dumps(values, ensure_ascii=False, indent=2, sort_keys=True),
                encoding="utf-8",
            )
            self._enforce_permissions(tmp_path)
            os.replace(tmp_path, self.path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()


class CredentialProvider:
    """Load and save the single API key that gates sending."""

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_CREDENTIAL_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> str | None:
        """Return the stored key, or ``None`` when absent or unreadable."""
        try:
            value = self.store.get(self.key)
        except Exception as exc:  # noqa: BLE001 - unreadable storage means no key.
            LOGGER.warning(
                "credentials.load_failed",
                extra={
                    "event": "credentials.load_failed",
                    "error_type": type(exc).__name__,
                },
            )
            return None
        if not isinstance(value, str) or not value:
            return None
        return value

    def save(self, value: str) -> None:
        """Persist ``value``; storage failures are raised for the UI to report."""
        try:
            self.store.set(self.key, value)
        except Exception as exc:
            LOGGER.error(
                "credentials.save_failed",
                extra={
                    "event": "credentials.save_failed",
                    "error_type": type(exc).__name__,
                },
            )
            raise CredentialStoreError(f"Unable to save API key: {exc}") from exc
        LOGGER.info("credentials.saved", extra={"event": "credentials.saved"})

    def has_credential(self) -> bool:
        return self.load() is not None
