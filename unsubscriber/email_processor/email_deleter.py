"""
Message deletion by sender.

After unsubscribing, the user may clean up the mailbox by deleting:
- the displayed message only
- every message from the same "name <address>"
- every message from the same address
- every message from the same domain
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from .message_source import MessageSource
from .unsubscribe.exceptions import RetrievalError

logger = logging.getLogger(__name__)

AUTHOR_PATTERN = re.compile(
    r'^("?([^"]+)"?\s+)?<?([\w._%+-]+)@([\w.-]+\.[a-zA-Z]{2,})>?$'
)

RESPONSE_DELETED = 'Deleted'
RESPONSE_NO_MESSAGES = 'No Messages Found'
RESPONSE_ERROR = 'Error'


@dataclass(frozen=True)
class AuthorParts:
    """Display name, local part and domain of an author header."""
    name: str
    sender: str
    domain: str

    @property
    def address(self) -> str:
        return f"{self.sender}@{self.domain}"


def parse_author(author: Optional[str]) -> Optional[AuthorParts]:
    """Split an author such as '"News" <news@example.com>' into its parts."""
    if not author:
        return None
    match = AUTHOR_PATTERN.match(author.strip())
    if not match:
        return None
    return AuthorParts(name=match.group(2) or '', sender=match.group(3), domain=match.group(4))


@dataclass(frozen=True)
class DeleteCriteria:
    """Which messages to delete.

    Precedence: name+sender+domain, then sender+domain, then domain, then
    a single message id.
    """
    message_id: Any = None
    name: Optional[str] = None
    sender: Optional[str] = None
    domain: Optional[str] = None

    @classmethod
    def for_scope(cls, scope: str, message_id: Any, author: Optional[str]) -> 'DeleteCriteria':
        """Build criteria for one of the scopes one/name/address/domain."""
        if scope == 'one':
            return cls(message_id=message_id)
        parts = parse_author(author)
        if parts is None:
            raise ValueError(f"Cannot parse author: {author!r}")
        if scope == 'name':
            return cls(name=parts.name, sender=parts.sender, domain=parts.domain)
        if scope == 'address':
            return cls(sender=parts.sender, domain=parts.domain)
        if scope == 'domain':
            return cls(domain=parts.domain)
        raise ValueError(f"Unknown delete scope: {scope}")


@dataclass
class DeletionResult:
    """Result of a deletion request."""
    response: str
    count: int = 0
    error: Optional[str] = None
    message_ids: Optional[List[Any]] = None

    @property
    def success(self) -> bool:
        return self.response != RESPONSE_ERROR

    def __str__(self) -> str:
        if self.response == RESPONSE_DELETED:
            return f"Deleted {self.count} message(s)"
        if self.error:
            return f"{self.response}: {self.error}"
        return self.response


def _clean(value: Optional[str]) -> str:
    return (value or '').strip().lower()


class MessageDeleter:
    """Select and delete messages from a message source."""

    def __init__(self, source: MessageSource):
        self.source = source

    def collect_message_ids(self, criteria: DeleteCriteria) -> List[Any]:
        name, sender, domain = _clean(criteria.name), _clean(criteria.sender), _clean(criteria.domain)

        if name and sender and domain:
            logger.info(f"Selecting all messages from {name} <{sender}@{domain}>")
            return [
                ref.id for ref in self.source.list_message_refs()
                if self._matches_name_address(ref.author, name, f"{sender}@{domain}")
            ]

        if sender and domain:
            address = f"{sender}@{domain}"
            logger.info(f"Selecting all messages from sender {address}")
            return [
                ref.id for ref in self.source.list_message_refs()
                if self._author_address(ref.author) == address
            ]

        if domain:
            at_domain = '@' + domain
            logger.info(f"Selecting all messages from domain {domain}")
            return [
                ref.id for ref in self.source.list_message_refs()
                if at_domain in ref.author.strip().lower()
            ]

        if criteria.message_id is not None:
            logger.info(f"Selecting message {criteria.message_id}")
            return [criteria.message_id]

        return []

    def delete(self, criteria: DeleteCriteria, dry_run: bool = False) -> DeletionResult:
        try:
            message_ids = self.collect_message_ids(criteria)
            if not message_ids:
                logger.info("No messages found to delete")
                return DeletionResult(response=RESPONSE_NO_MESSAGES)
            if dry_run:
                return DeletionResult(response=RESPONSE_DELETED, count=0, message_ids=message_ids)
            count = self.source.delete_messages(message_ids)
        except (RetrievalError, OSError) as e:
            logger.error(f"Error processing deletion request: {e}")
            return DeletionResult(response=RESPONSE_ERROR, error=str(e))

        return DeletionResult(response=RESPONSE_DELETED, count=count, message_ids=message_ids)

    @staticmethod
    def _author_address(author: str) -> str:
        parts = parse_author(author)
        return parts.address.lower() if parts else _clean(author)

    @staticmethod
    def _matches_name_address(author: str, name: str, address: str) -> bool:
        parts = parse_author(author)
        if parts is None:
            return False
        return parts.name.strip().lower() == name and parts.address.lower() == address
