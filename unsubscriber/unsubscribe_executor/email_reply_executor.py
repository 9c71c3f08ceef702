"""
Email Reply Unsubscribe Executor

Handles unsubscribe via mailto: targets by composing a short request and
handing it to a mail transport, sent from the resolved identity. Success
means the transport confirmed a sent message id.
"""

import smtplib
import socket
from abc import ABC, abstractmethod
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..config import Config, get_credential_store
from ..database.models import Account
from ..email_processor.unsubscribe.constants import METHOD_EMAIL
from ..email_processor.unsubscribe.exceptions import ExecutionError
from ..email_processor.unsubscribe.types import ExecutionResult, Identity, MailAction
from .base_executor import BaseUnsubscribeExecutor


class MailTransport(ABC):
    """Compose-and-send collaborator."""

    @abstractmethod
    def send(self, message: MIMEText) -> Optional[str]:
        """Send a composed message and return its Message-ID, or None."""


class SmtpMailTransport(MailTransport):
    """Send mail through an authenticated SMTP submission server."""

    def __init__(self, host: str, port: int = 587, username: Optional[str] = None,
                 password: Optional[str] = None, timeout: int = 30, use_tls: bool = True):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self.use_tls = use_tls

    def send(self, message: MIMEText) -> Optional[str]:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(message)
        except smtplib.SMTPAuthenticationError as e:
            raise ExecutionError(f'SMTP authentication error: {e}', METHOD_EMAIL) from e
        except smtplib.SMTPException as e:
            raise ExecutionError(f'SMTP error: {e}', METHOD_EMAIL) from e
        except socket.timeout as e:
            raise ExecutionError(f'Connection timeout: {e}', METHOD_EMAIL) from e
        except OSError as e:
            raise ExecutionError(f'SMTP connection error: {e}', METHOD_EMAIL) from e
        return message['Message-ID']


class EmailReplyExecutor(BaseUnsubscribeExecutor):
    """Execute unsubscribe requests by sending an email."""

    action_type = MailAction

    def __init__(
        self,
        session: Optional[Session] = None,
        transport: Optional[MailTransport] = None,
        transport_factory: Optional[Callable[[Identity], MailTransport]] = None,
        body: Optional[str] = None,
        timeout: Optional[int] = None,
        dry_run: bool = False
    ):
        """
        Initialize Email Reply executor.

        Args:
            session: Database session for the action log and account lookup
            transport: Transport used for every send (overrides the factory)
            transport_factory: Builds a transport for the sending identity;
                defaults to SMTP settings of the identity's account
            body: Message body text
            timeout: SMTP timeout in seconds
            dry_run: If True, simulate without sending
        """
        super().__init__(
            session,
            timeout if timeout is not None else Config.SMTP_TIMEOUT,
            dry_run
        )
        self.transport = transport
        self.transport_factory = transport_factory or self._smtp_transport_for
        self.body = body or Config.UNSUBSCRIBE_BODY

    @property
    def method_name(self) -> str:
        return METHOD_EMAIL

    def _dry_run_message(self, action: MailAction) -> str:
        return f'DRY RUN: Would send email "{action.subject}" to {action.address}'

    def compose_message(self, action: MailAction) -> MIMEText:
        """Compose the unsubscribe request for an action."""
        msg = MIMEText(self.body)
        identity = action.identity
        if identity.name:
            msg['From'] = formataddr((identity.name, identity.email_address))
        else:
            msg['From'] = identity.email_address
        msg['To'] = action.address
        msg['Subject'] = action.subject
        msg['Message-ID'] = make_msgid(domain=identity.email_address.split('@')[-1])
        return msg

    def _perform_execution(self, action: MailAction) -> ExecutionResult:
        if action.identity is None:
            return self._failure('No sender identity available')

        try:
            transport = self.transport or self.transport_factory(action.identity)
            message = self.compose_message(action)
            sent_id = transport.send(message)
        except ExecutionError as e:
            return self._failure(str(e))
        except OSError as e:
            return self._failure(f'Could not send unsubscribe email: {e}')

        if not sent_id:
            return self._failure('Sent message is undefined')

        return ExecutionResult(
            success=True,
            method=self.method_name,
            sent_message_id=sent_id,
            message=f'Successfully sent unsubscribe email to {action.address}'
        )

    def _smtp_transport_for(self, identity: Identity) -> MailTransport:
        """Build an SMTP transport from the identity's account settings."""
        if self.session is None:
            raise ExecutionError('No database session to look up SMTP settings', METHOD_EMAIL)

        account = self.session.query(Account).filter_by(id=identity.account_id).first()
        if account is None or not account.smtp_server:
            raise ExecutionError(
                f'No SMTP server configured for {identity.email_address}', METHOD_EMAIL
            )

        password = get_credential_store().get_password(account.email_address)
        if not password:
            raise ExecutionError(
                f'No stored password for {account.email_address}', METHOD_EMAIL
            )

        return SmtpMailTransport(
            host=account.smtp_server,
            port=account.smtp_port or 587,
            username=account.email_address,
            password=password,
            timeout=self.timeout,
            use_tls=account.use_ssl if account.use_ssl is not None else True
        )
