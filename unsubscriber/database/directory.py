"""
Identity and account directory backed by the database.

Converts ORM rows into the immutable Identity / MailAccount values the
identity resolver works on. Order is significant: accounts by id,
identities by their configured position.
"""

from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..email_processor.unsubscribe.exceptions import RetrievalError
from ..email_processor.unsubscribe.types import Identity, MailAccount
from .models import Account, AccountIdentity


def to_identity(row: AccountIdentity) -> Identity:
    return Identity(
        id=row.id,
        email_address=row.email_address,
        account_id=row.account_id,
        name=row.name or ''
    )


class IdentityDirectory:
    """Read-only view of configured accounts and identities."""

    def __init__(self, session: Session):
        self.session = session

    def list_identities(self) -> List[Identity]:
        """All identities, grouped by account in account order."""
        try:
            rows = (
                self.session.query(AccountIdentity)
                .order_by(AccountIdentity.account_id, AccountIdentity.position, AccountIdentity.id)
                .all()
            )
        except SQLAlchemyError as e:
            raise RetrievalError(f"Failed to list identities: {e}") from e
        return [to_identity(row) for row in rows]

    def list_accounts(self) -> List[MailAccount]:
        try:
            accounts = self.session.query(Account).order_by(Account.id).all()
        except SQLAlchemyError as e:
            raise RetrievalError(f"Failed to list accounts: {e}") from e
        return [
            MailAccount(
                id=account.id,
                identities=tuple(
                    to_identity(row)
                    for row in sorted(account.identities, key=lambda r: (r.position, r.id))
                )
            )
            for account in accounts
        ]
