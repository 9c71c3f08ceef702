"""
Conversion of RFC 822 messages into the structures the unsubscribe engine
works on: a lower-cased HeaderSet, a MimePart tree and a MessageRef.
"""

import email
from email import policy
from email.message import Message
from email.utils import getaddresses
from typing import Any, Dict, List, Optional, Tuple, Union

from .unsubscribe.types import FullMessage, MessageRef, MimePart


def parse_message(raw: Union[bytes, str, Message], message_id: Any,
                  account_id: Any = None,
                  folder: Optional[str] = None) -> Tuple[MessageRef, FullMessage]:
    """Parse a raw message into its metadata and full content."""
    message = _as_message(raw)
    return build_message_ref(message, message_id, account_id, folder), build_full_message(message)


def build_full_message(message: Message) -> FullMessage:
    return FullMessage(headers=build_header_set(message), mime_tree=build_mime_tree(message))


def build_header_set(message: Message) -> Dict[str, List[str]]:
    """Map lower-cased header names to every occurrence, in order."""
    headers: Dict[str, List[str]] = {}
    for name, value in message.items():
        headers.setdefault(name.lower(), []).append(str(value))
    return headers


def build_mime_tree(part: Message) -> MimePart:
    """Recursively convert a message part; containers carry no body."""
    content_type = part.get_content_type()
    if part.is_multipart():
        children = tuple(
            build_mime_tree(child)
            for child in part.get_payload()
            if isinstance(child, Message)
        )
        return MimePart(content_type=content_type, parts=children)

    if part.get_content_maintype() == 'text':
        return MimePart(content_type=content_type, body=_decode_text(part))

    # Attachments keep their transfer-encoded (usually base64) text
    payload = part.get_payload()
    return MimePart(content_type=content_type, body=payload if isinstance(payload, str) else None)


def build_message_ref(message: Message, message_id: Any, account_id: Any = None,
                      folder: Optional[str] = None) -> MessageRef:
    return MessageRef(
        id=message_id,
        author=str(message.get('From', '') or ''),
        recipients=_addresses(message, 'To'),
        cc_list=_addresses(message, 'Cc'),
        bcc_list=_addresses(message, 'Bcc'),
        account_id=account_id,
        folder=folder,
        subject=str(message.get('Subject', '') or '')
    )


def _as_message(raw: Union[bytes, str, Message]) -> Message:
    if isinstance(raw, Message):
        return raw
    if isinstance(raw, bytes):
        return email.message_from_bytes(raw, policy=policy.default)
    return email.message_from_string(raw, policy=policy.default)


def _addresses(message: Message, header: str) -> Tuple[str, ...]:
    values = [str(value) for value in message.get_all(header, [])]
    return tuple(address for _, address in getaddresses(values) if address)


def _decode_text(part: Message) -> str:
    payload = part.get_payload(decode=True)
    if payload is None:
        return ''
    charset = part.get_content_charset() or 'utf-8'
    try:
        return payload.decode(charset, errors='replace')
    except LookupError:
        # Unknown charset label
        return payload.decode('utf-8', errors='replace')
