"""
Message content sources.

A message source supplies message metadata and full content by id, lists
the messages it holds and deletes them. Retrieval problems are raised as
RetrievalError so the classifier can propagate them unchanged.
"""

import imaplib
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional

from .imap_client import IMAPConnection
from .mime_parser import parse_message
from .unsubscribe.exceptions import RetrievalError
from .unsubscribe.types import FullMessage, MessageRef

logger = logging.getLogger(__name__)


class MessageSource(ABC):
    """Boundary between the unsubscribe engine and a message store."""

    @abstractmethod
    def get_full_message(self, message_id: Any) -> FullMessage:
        """Return headers and MIME tree of a message."""

    @abstractmethod
    def get_message_meta(self, message_id: Any) -> MessageRef:
        """Return metadata of a message."""

    @abstractmethod
    def list_message_refs(self) -> Iterator[MessageRef]:
        """Yield metadata for every message in the source."""

    @abstractmethod
    def delete_messages(self, message_ids: Iterable[Any]) -> int:
        """Delete messages, returning how many were removed."""


class EmlMessageSource(MessageSource):
    """Directory of .eml files; the message id is the file name stem."""

    SUFFIX = '.eml'

    def __init__(self, directory: Path, account_id: Any = None):
        self.directory = Path(directory)
        self.account_id = account_id

    def _path(self, message_id: Any) -> Path:
        name = str(message_id)
        if Path(name).name != name:
            raise RetrievalError("Invalid message id", message_id=message_id)
        return self.directory / f"{name}{self.SUFFIX}"

    def _read(self, message_id: Any) -> bytes:
        path = self._path(message_id)
        try:
            return path.read_bytes()
        except OSError as e:
            raise RetrievalError(f"Could not read message file: {e}",
                                 message_id=message_id, context={'path': str(path)}) from e

    def _parse(self, message_id: Any):
        return parse_message(self._read(message_id), str(message_id),
                             account_id=self.account_id, folder=str(self.directory))

    def get_full_message(self, message_id: Any) -> FullMessage:
        return self._parse(message_id)[1]

    def get_message_meta(self, message_id: Any) -> MessageRef:
        return self._parse(message_id)[0]

    def message_ids(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        return sorted(path.stem for path in self.directory.glob(f"*{self.SUFFIX}"))

    def list_message_refs(self) -> Iterator[MessageRef]:
        for message_id in self.message_ids():
            yield self.get_message_meta(message_id)

    def delete_messages(self, message_ids: Iterable[Any]) -> int:
        deleted = 0
        for message_id in message_ids:
            path = self._path(message_id)
            try:
                path.unlink()
                deleted += 1
            except FileNotFoundError:
                logger.warning(f"Message file already gone: {path}")
        return deleted


class ImapMessageSource(MessageSource):
    """Messages in one IMAP folder, addressed by UID."""

    def __init__(self, connection: IMAPConnection, folder: str = 'INBOX',
                 account_id: Any = None):
        self.connection = connection
        self.folder = folder
        self.account_id = account_id

    def _select(self, message_id: Optional[Any] = None):
        if not self.connection.select_folder(self.folder):
            raise RetrievalError(f"Could not select IMAP folder {self.folder}",
                                 message_id=message_id)

    def _fetch(self, message_id: Any, headers_only: bool = False) -> bytes:
        try:
            uid = int(message_id)
        except (TypeError, ValueError):
            raise RetrievalError("IMAP message ids must be numeric UIDs", message_id=message_id)
        self._select(message_id)
        try:
            raw = (self.connection.fetch_headers(uid) if headers_only
                   else self.connection.fetch_raw(uid))
        except (imaplib.IMAP4.error, OSError) as e:
            raise RetrievalError(f"IMAP fetch failed: {e}", message_id=message_id) from e
        if raw is None:
            raise RetrievalError("IMAP fetch returned no data", message_id=message_id,
                                 context={'folder': self.folder})
        return raw

    def get_full_message(self, message_id: Any) -> FullMessage:
        raw = self._fetch(message_id)
        return parse_message(raw, int(message_id), self.account_id, self.folder)[1]

    def get_message_meta(self, message_id: Any) -> MessageRef:
        raw = self._fetch(message_id, headers_only=True)
        return parse_message(raw, int(message_id), self.account_id, self.folder)[0]

    def list_message_refs(self) -> Iterator[MessageRef]:
        self._select()
        for uid in self.connection.search_uids('ALL'):
            yield self.get_message_meta(uid)

    def delete_messages(self, message_ids: Iterable[Any]) -> int:
        self._select()
        return self.connection.delete_uids(int(message_id) for message_id in message_ids)
