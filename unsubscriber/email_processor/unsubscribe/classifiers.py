"""
Unsubscribe method classification.

Combines header extraction, body scanning and identity resolution under a
fixed precedence so that each message yields exactly one action or None:

1. web link + List-Unsubscribe-Post  -> PostAction   (RFC 8058 one-click)
2. mailto link                       -> MailAction   (RFC 2369)
3. web link                          -> WebAction    (RFC 2369)
4. link found in the body            -> WebAction    (heuristic)
5. nothing                           -> None
"""

from typing import Optional

from .extractors import BodyLinkScanner, HeaderLinkExtractor
from .identity import IdentityResolver
from .logging import UnsubscribeLogger
from .types import (
    HeaderSet, MailAction, MessageRef, MimePart, PostAction, UnsubscribeAction,
    WebAction
)


class UnsubscribeMethodClassifier:
    """Classify the single unsubscribe mechanism that applies to a message."""

    def __init__(self, directory=None,
                 header_extractor: Optional[HeaderLinkExtractor] = None,
                 body_scanner: Optional[BodyLinkScanner] = None,
                 identity_resolver: Optional[IdentityResolver] = None):
        """
        Initialize classifier.

        Args:
            directory: Identity/account directory exposing list_identities()
                and list_accounts(); only consulted for mailto actions
            header_extractor: List-Unsubscribe header extractor
            body_scanner: MIME body link scanner
            identity_resolver: Sender identity resolver
        """
        self.directory = directory
        self.header_extractor = header_extractor or HeaderLinkExtractor()
        self.body_scanner = body_scanner or BodyLinkScanner()
        self.identity_resolver = identity_resolver or IdentityResolver()
        self.logger = UnsubscribeLogger("method_classifier")

    def classify(self, message: MessageRef, headers: Optional[HeaderSet],
                 mime_tree: Optional[MimePart]) -> Optional[UnsubscribeAction]:
        """Return the unsubscribe action for a message, or None if none exists."""
        with self.logger.scoped_context({'message_id': message.id}):
            candidates = self.header_extractor.extract(headers)

            if candidates.web_link and candidates.post_command:
                self.logger.info("One-click link found", {'link': candidates.web_link})
                self.logger.log_operation_count('one_click', True)
                return PostAction(weblink=candidates.web_link)

            if candidates.mail_link:
                identity = self._resolve_identity(message)
                action = MailAction.from_mailto(identity, candidates.mail_link)
                self.logger.info("Unsubscribe email found", {
                    'address': action.address,
                    'identity_id': identity.id if identity else None
                })
                self.logger.log_operation_count('email', True)
                return action

            if candidates.web_link:
                self.logger.info("Unsubscribe web link found", {'link': candidates.web_link})
                self.logger.log_operation_count('header_web', True)
                return WebAction(link=candidates.web_link)

            embedded_link = self.body_scanner.scan(mime_tree)
            if embedded_link:
                self.logger.info("Embedded unsubscribe link found", {'link': embedded_link})
                self.logger.log_operation_count('body_web', True)
                return WebAction(link=embedded_link)

            self.logger.debug("No unsubscribe method found")
            self.logger.log_operation_count('not_found', False)
            return None

    def _resolve_identity(self, message: MessageRef):
        if self.directory is None:
            return None
        identities = list(self.directory.list_identities())
        accounts = list(self.directory.list_accounts())
        return self.identity_resolver.resolve(message, identities, accounts)
