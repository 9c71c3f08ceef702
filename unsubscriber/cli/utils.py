"""
Common utilities for CLI commands.

Builds the message source and unsubscribe service a command works on.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy.orm import Session

from ..config import Config, get_credential_store
from ..database.directory import IdentityDirectory
from ..database.models import Account
from ..email_processor.imap_client import IMAPConnection
from ..email_processor.message_source import EmlMessageSource, ImapMessageSource, MessageSource
from ..email_processor.unsubscribe.exceptions import RetrievalError
from ..email_processor.unsubscribe_processor import UnsubscribeService


@contextmanager
def open_message_source(
    session: Session,
    message_dir: Optional[str] = None,
    account_id: Optional[int] = None,
    use_imap: bool = False,
    folder: str = 'INBOX'
) -> Generator[MessageSource, None, None]:
    """
    Open the message source selected on the command line.

    Args:
        session: Database session (account lookup)
        message_dir: Directory of .eml files (default: Config message dir)
        account_id: Account owning the messages
        use_imap: Read messages from the account's IMAP server instead
        folder: IMAP folder

    Raises:
        RetrievalError: account or password missing, or IMAP login failed
    """
    if not use_imap:
        directory = Path(message_dir) if message_dir else Config.get_message_dir()
        yield EmlMessageSource(directory, account_id=account_id)
        return

    if account_id is None:
        raise RetrievalError("--imap requires --account")

    acc = session.query(Account).filter_by(id=account_id).first()
    if acc is None or not acc.imap_server:
        raise RetrievalError(f"Account {account_id} has no IMAP server configured")

    secret = get_credential_store().get_password(acc.email_address)
    if not secret:
        raise RetrievalError(f"No stored password for {acc.email_address}")

    connection = IMAPConnection(acc.imap_server, acc.imap_port or 993,
                                acc.use_ssl if acc.use_ssl is not None else True,
                                timeout=Config.IMAP_TIMEOUT)
    if not connection.connect(acc.email_address, secret):
        raise RetrievalError(f"Failed to connect to IMAP server {acc.imap_server}")

    with connection:
        yield ImapMessageSource(connection, folder=folder, account_id=acc.id)


def build_service(session: Session, source: MessageSource, dry_run: bool = False) -> UnsubscribeService:
    """Wire the unsubscribe service to the database directory and action log."""
    return UnsubscribeService(
        source,
        directory=IdentityDirectory(session),
        session=session,
        dry_run=dry_run
    )
