"""
IMAP connection used by the IMAP message source.

All message addressing is by UID so ids stay stable across sessions.
"""

import imaplib
import logging
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class IMAPConnection:
    """Manages an IMAP connection to a mail server."""

    def __init__(self, server: str, port: int = 993, use_ssl: bool = True,
                 timeout: Optional[float] = None):
        self.server = server
        self.port = port
        self.use_ssl = use_ssl
        self.timeout = timeout
        self.connection = None
        self.selected_folder: Optional[str] = None

    def connect(self, username: str, password: str) -> bool:
        """Connect to the IMAP server and authenticate."""
        try:
            if self.use_ssl:
                self.connection = imaplib.IMAP4_SSL(self.server, self.port, timeout=self.timeout)
            else:
                self.connection = imaplib.IMAP4(self.server, self.port, timeout=self.timeout)
            self.connection.login(username, password)
            return True
        except (imaplib.IMAP4.error, OSError) as e:
            logger.error(f"Failed to connect to IMAP server {self.server}: {e}")
            self.connection = None
            return False

    def disconnect(self):
        """Close the IMAP connection."""
        if self.connection:
            try:
                self.connection.logout()
            except (imaplib.IMAP4.error, OSError) as e:
                logger.debug(f"Error during IMAP logout: {e}")
            self.connection = None
            self.selected_folder = None

    def select_folder(self, folder: str = 'INBOX') -> bool:
        """Select a folder for operations."""
        if not self.connection:
            return False
        if self.selected_folder == folder:
            return True
        status, _ = self.connection.select(folder)
        if status == 'OK':
            self.selected_folder = folder
            return True
        logger.error(f"Could not select folder {folder}: {status}")
        return False

    def search_uids(self, criteria: str = 'ALL') -> List[int]:
        """Search the selected folder, returning matching UIDs."""
        if not self.connection:
            return []
        status, data = self.connection.uid('SEARCH', None, criteria)
        if status != 'OK' or not data or not data[0]:
            return []
        return [int(uid) for uid in data[0].split()]

    def fetch_raw(self, uid: int) -> Optional[bytes]:
        """Fetch the full RFC 822 bytes of a message without marking it read."""
        return self._fetch(uid, '(BODY.PEEK[])')

    def fetch_headers(self, uid: int) -> Optional[bytes]:
        """Fetch only the header block of a message."""
        return self._fetch(uid, '(BODY.PEEK[HEADER])')

    def _fetch(self, uid: int, parts: str) -> Optional[bytes]:
        if not self.connection:
            return None
        status, data = self.connection.uid('FETCH', str(uid), parts)
        if status != 'OK' or not data:
            return None
        for item in data:
            if isinstance(item, tuple) and len(item) >= 2:
                return item[1]
        return None

    def delete_uids(self, uids: Iterable[int]) -> int:
        """Flag messages as deleted and expunge; returns the number flagged."""
        if not self.connection:
            return 0
        deleted = 0
        for uid in uids:
            status, _ = self.connection.uid('STORE', str(uid), '+FLAGS', '(\\Deleted)')
            if status == 'OK':
                deleted += 1
            else:
                logger.error(f"Failed to delete UID {uid}: status={status}")
        if deleted:
            self.connection.expunge()
        return deleted

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()


def get_imap_settings(provider: str) -> Dict[str, object]:
    """Get IMAP/SMTP settings for common email providers."""
    settings = {
        'gmail': {'imap_server': 'imap.gmail.com', 'smtp_server': 'smtp.gmail.com'},
        'outlook': {'imap_server': 'outlook.office365.com', 'smtp_server': 'smtp.office365.com'},
        'yahoo': {'imap_server': 'imap.mail.yahoo.com', 'smtp_server': 'smtp.mail.yahoo.com'},
        'icloud': {'imap_server': 'imap.mail.me.com', 'smtp_server': 'smtp.mail.me.com'},
        'comcast': {'imap_server': 'imap.comcast.net', 'smtp_server': 'smtp.comcast.net'},
    }
    provider = provider.lower()
    preset = settings.get(provider, {
        'imap_server': f'imap.{provider}.com',
        'smtp_server': f'smtp.{provider}.com',
    })
    return dict(preset, imap_port=993, smtp_port=587)


def detect_provider(email_address: str) -> str:
    """Detect provider from the email domain."""
    domain = email_address.split('@')[-1].lower()

    if 'gmail.com' in domain:
        return 'gmail'
    elif domain in ('outlook.com', 'hotmail.com', 'live.com'):
        return 'outlook'
    elif 'yahoo.com' in domain:
        return 'yahoo'
    elif domain in ('icloud.com', 'me.com', 'mac.com'):
        return 'icloud'
    elif 'comcast.net' in domain:
        return 'comcast'
    return 'custom'
