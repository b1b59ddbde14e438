"""File-backed storage for WhatsApp session credentials."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from gym_membership.services.messaging import CredentialStore

_CREDENTIALS_FILE = "creds.json"


@dataclass
class FileCredentialStore(CredentialStore):
    """Keeps the credential blob as JSON inside an auth directory."""

    directory: Path

    @property
    def path(self) -> Path:
        return self.directory / _CREDENTIALS_FILE

    def load(self) -> dict[str, object] | None:
        """Return stored credentials, or None when no login happened yet."""
        if not self.path.exists():
            return None
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else None

    def save(self, credentials: dict[str, object]) -> None:
        """Atomically replace the credentials file and flush it to disk."""
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(credentials, handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        """Delete stored credentials."""
        self.path.unlink(missing_ok=True)
