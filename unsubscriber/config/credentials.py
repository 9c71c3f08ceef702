"""
Credential storage for the mail accounts used to fetch messages and send
unsubscribe replies.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional


class CredentialStore:
    """JSON file of passwords keyed by lower-cased email address."""

    def __init__(self, store_path: Optional[Path] = None):
        """
        Args:
            store_path: Path to the JSON file. None keeps credentials in memory only.
        """
        self.store_path = Path(store_path) if store_path else None
        self._credentials: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.store_path or not self.store_path.exists():
            return {}
        try:
            with open(self.store_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError):
            # Corrupted or unreadable store starts fresh
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self):
        if not self.store_path:
            return
        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.store_path, 'w') as f:
            json.dump(self._credentials, f, indent=2)
        # Owner read/write only
        os.chmod(self.store_path, 0o600)

    def get_password(self, email_address: str) -> Optional[str]:
        return self._credentials.get(email_address.lower())

    def set_password(self, email_address: str, password: str):
        self._credentials[email_address.lower()] = password
        self._save()

    def remove_password(self, email_address: str) -> bool:
        """Remove a stored password; returns False if none was stored."""
        if self._credentials.pop(email_address.lower(), None) is None:
            return False
        self._save()
        return True

    def has_password(self, email_address: str) -> bool:
        return email_address.lower() in self._credentials

    def list_stored_emails(self) -> List[str]:
        return sorted(self._credentials)


_credential_store = None


def get_credential_store(store_path: Optional[Path] = None) -> CredentialStore:
    """Get the process-wide credential store, created on first use."""
    global _credential_store

    if _credential_store is None:
        if store_path is None:
            # Imported here to avoid a circular import with settings
            from .settings import Config
            store_path = Config.get_credential_store_path()
        _credential_store = CredentialStore(store_path)

    return _credential_store
