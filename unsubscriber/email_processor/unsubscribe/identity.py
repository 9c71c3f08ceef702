"""
Sender identity resolution for reply-by-email unsubscribe.

The reply should come from the address the message was actually received
on, so the resolver walks a fallback chain:

1. an identity whose address is among the recipients, CC or BCC
2. the first identity of the account that owns the message's folder
3. the first configured identity
4. None
"""

from email.utils import getaddresses
from typing import Iterable, Optional, Sequence, Set

from .logging import UnsubscribeLogger
from .types import Identity, MailAccount, MessageRef


def receiver_addresses(message: MessageRef) -> Set[str]:
    """Lower-cased bare addresses from the recipient, CC and BCC lists."""
    raw = list(message.recipients) + list(message.cc_list) + list(message.bcc_list)
    return {address.strip().lower() for _, address in getaddresses(raw) if address.strip()}


class IdentityResolver:
    """Pick the identity used to author an unsubscribe email."""

    def __init__(self):
        self.logger = UnsubscribeLogger("identity_resolver")

    def resolve(self, message: MessageRef, identities: Sequence[Identity],
                accounts: Iterable[MailAccount]) -> Optional[Identity]:
        identity = self._match_receiver(message, identities)
        if identity is not None:
            self.logger.debug("Identity matched receiver", {'identity_id': identity.id})
            return identity

        identity = self._match_folder_account(message, accounts)
        if identity is not None:
            self.logger.debug("Identity taken from folder account", {'identity_id': identity.id})
            return identity

        if identities:
            identity = identities[0]
            self.logger.debug("Identity defaulted to first configured", {'identity_id': identity.id})
            return identity

        self.logger.info("No identity found for message", {'message_id': message.id})
        return None

    @staticmethod
    def _match_receiver(message: MessageRef, identities: Sequence[Identity]) -> Optional[Identity]:
        receivers = receiver_addresses(message)
        if not receivers:
            return None
        for identity in identities:
            if identity.email_address and identity.email_address.strip().lower() in receivers:
                return identity
        return None

    @staticmethod
    def _match_folder_account(message: MessageRef, accounts: Iterable[MailAccount]) -> Optional[Identity]:
        if message.account_id is None:
            return None
        for account in accounts:
            if account.id == message.account_id:
                return account.identities[0] if account.identities else None
        return None
