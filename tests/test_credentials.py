"""
Tests for credential storage functionality.
"""

import json
import os
import stat
import tempfile
from pathlib import Path

from unsubscriber.config.credentials import CredentialStore


class TestCredentialStore:
    """Test suite for CredentialStore class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_file = tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.json')
        self.temp_file.close()
        self.store_path = Path(self.temp_file.name)
        self.store = CredentialStore(self.store_path)

    def teardown_method(self):
        """Clean up test fixtures."""
        if self.store_path.exists():
            self.store_path.unlink()

    def test_init_creates_empty_store(self):
        """An empty file starts an empty store."""
        assert self.store.list_stored_emails() == []

    def test_set_and_get_password(self):
        self.store.set_password("test@example.com", "test_password_123")

        assert self.store.get_password("test@example.com") == "test_password_123"
        assert self.store.has_password("test@example.com")

    def test_addresses_are_case_insensitive(self):
        self.store.set_password("Test@Example.com", "pw")

        assert self.store.get_password("test@example.COM") == "pw"
        assert self.store.list_stored_emails() == ["test@example.com"]

    def test_persists_to_file(self):
        self.store.set_password("a@example.com", "one")

        with open(self.store_path) as f:
            assert json.load(f) == {"a@example.com": "one"}
        assert CredentialStore(self.store_path).get_password("a@example.com") == "one"

    def test_file_permissions(self):
        self.store.set_password("a@example.com", "one")

        assert stat.S_IMODE(os.stat(self.store_path).st_mode) == 0o600

    def test_remove_password(self):
        self.store.set_password("a@example.com", "one")

        assert self.store.remove_password("a@example.com") is True
        assert self.store.remove_password("a@example.com") is False
        assert self.store.get_password("a@example.com") is None

    def test_corrupted_file_starts_empty(self):
        self.store_path.write_text("{not json")

        assert CredentialStore(self.store_path).list_stored_emails() == []

    def test_memory_only_store(self):
        store = CredentialStore()
        store.set_password("a@example.com", "one")

        assert store.get_password("a@example.com") == "one"
        assert store.store_path is None
