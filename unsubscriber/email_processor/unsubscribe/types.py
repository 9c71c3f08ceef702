"""
Type-safe dataclasses for unsubscribe detection and execution.

This module provides the immutable value objects that flow through the
pipeline: the MIME part tree and message metadata supplied by a message
source, the identities supplied by the directory, the three unsubscribe
action variants produced by the classifier, and execution results.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qs, unquote, urlsplit

from .constants import (
    DEFAULT_UNSUBSCRIBE_SUBJECT, METHOD_BROWSER, METHOD_EMAIL, METHOD_NONE,
    METHOD_POST
)


# Lower-cased header name -> single value or ordered occurrences
HeaderSet = Mapping[str, Union[str, Sequence[str]]]


def first_header(headers: Optional[HeaderSet], name: str) -> Optional[str]:
    """Return the first occurrence of a header, or None if absent."""
    if not headers:
        return None
    value = headers.get(name.lower())
    if value is None:
        return None
    if isinstance(value, str):
        return value
    for occurrence in value:
        return occurrence
    return None


def bare_content_type(content_type: Optional[str]) -> str:
    """Lower-case a MIME type and drop any parameters."""
    if not content_type:
        return ''
    return content_type.split(';', 1)[0].strip().lower()


@dataclass(frozen=True)
class MimePart:
    """Node of a MIME part tree.

    A part with children is a container; only leaves carry text to scan.
    """

    content_type: str
    body: Optional[str] = None
    parts: Tuple['MimePart', ...] = ()

    @property
    def is_container(self) -> bool:
        return bool(self.parts)

    @property
    def mime_type(self) -> str:
        return bare_content_type(self.content_type)

    def walk(self) -> Iterator['MimePart']:
        """Yield this part and its descendants depth-first, in document order."""
        yield self
        for child in self.parts:
            yield from child.walk()


@dataclass(frozen=True)
class MessageRef:
    """Minimal metadata about a message, owned by the host message store."""

    id: Any
    author: str = ''
    recipients: Tuple[str, ...] = ()
    cc_list: Tuple[str, ...] = ()
    bcc_list: Tuple[str, ...] = ()
    account_id: Any = None
    folder: Optional[str] = None
    subject: str = ''


@dataclass(frozen=True)
class FullMessage:
    """Headers and body tree of a message."""

    headers: HeaderSet
    mime_tree: MimePart


@dataclass(frozen=True)
class Identity:
    """A configured sender persona."""

    id: Any
    email_address: str
    account_id: Any = None
    name: str = ''


@dataclass(frozen=True)
class MailAccount:
    """An account and its identities, in configured order."""

    id: Any
    identities: Tuple[Identity, ...] = ()


@dataclass(frozen=True)
class HeaderCandidates:
    """Typed candidates extracted from List-Unsubscribe headers."""

    web_link: Optional[str] = None
    mail_link: Optional[str] = None
    post_command: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.web_link or self.mail_link or self.post_command)


@dataclass(frozen=True)
class ActionDescription:
    """Display details of an unsubscribe action."""

    kind: str
    address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'method': self.kind, 'address': self.address}


NO_ACTION = ActionDescription(kind=METHOD_NONE)


@dataclass(frozen=True)
class PostAction:
    """RFC 8058 one-click unsubscribe: POST a fixed body to the web link."""

    weblink: str
    method = METHOD_POST

    def describe(self) -> ActionDescription:
        return ActionDescription(kind=self.method, address=self.weblink)


@dataclass(frozen=True)
class MailAction:
    """Unsubscribe by sending an email to a mailto target."""

    identity: Optional[Identity]
    target: str
    subject: str = DEFAULT_UNSUBSCRIBE_SUBJECT
    method = METHOD_EMAIL

    @property
    def address(self) -> str:
        """Recipient address taken from the mailto URI path."""
        return unquote(urlsplit(self.target).path)

    @classmethod
    def from_mailto(cls, identity: Optional[Identity], target: str) -> 'MailAction':
        """Build an action, taking the subject from the mailto query if present."""
        query = parse_qs(urlsplit(target).query, keep_blank_values=True)
        subjects = query.get('subject')
        subject = subjects[0] if subjects else DEFAULT_UNSUBSCRIBE_SUBJECT
        return cls(identity=identity, target=target, subject=subject)

    def describe(self) -> ActionDescription:
        return ActionDescription(kind=self.method, address=self.address)


@dataclass(frozen=True)
class WebAction:
    """Unsubscribe by opening a web page for the user."""

    link: str
    method = METHOD_BROWSER

    def describe(self) -> ActionDescription:
        return ActionDescription(kind=self.method, address=self.link)


UnsubscribeAction = Union[PostAction, MailAction, WebAction]


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of running an unsubscribe action once."""

    success: bool
    method: str
    message: str = ''
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    dry_run: bool = False
    sent_message_id: Optional[str] = None
