"""
Account and identity management commands for Better Unsubscribe.

Accounts and their identities form the directory used to pick the sender
of unsubscribe emails.
"""

import click
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ...cli_session import get_cli_session_manager
from ...database.models import Account, AccountIdentity
from ...email_processor.imap_client import detect_provider, get_imap_settings


def _valid_email(email: str) -> bool:
    return '@' in email and '.' in email.split('@')[-1]


@click.group()
def account():
    """Account management commands."""
    pass


@account.command('add')
@click.argument('email')
@click.option('--provider', help='Email provider (gmail, outlook, yahoo, icloud, comcast, custom)')
@click.option('--imap-server', help='IMAP server address')
@click.option('--imap-port', type=int, default=993, help='IMAP port (default: 993)')
@click.option('--smtp-server', help='SMTP submission server address')
@click.option('--smtp-port', type=int, default=587, help='SMTP port (default: 587)')
@click.option('--name', default='', help='Display name for the default identity')
def add_account(email, provider, imap_server, imap_port, smtp_server, smtp_port, name):
    """
    Add a mail account and its default identity.

    Example:
        python main.py account add user@gmail.com
        python main.py account add me@example.com --imap-server mail.example.com --smtp-server mail.example.com
    """
    if not _valid_email(email):
        click.secho("✗ Error: Invalid email address format", fg='red')
        raise click.Abort()

    if not provider:
        provider = detect_provider(email)
        if provider != 'custom':
            click.echo(f"Auto-detected provider: {provider}")

    if provider != 'custom':
        preset = get_imap_settings(provider)
        imap_server = imap_server or preset['imap_server']
        smtp_server = smtp_server or preset['smtp_server']

    if not imap_server and not smtp_server:
        click.secho("✗ Error: IMAP or SMTP server required for custom providers", fg='red')
        raise click.Abort()

    session_manager = get_cli_session_manager()
    try:
        with session_manager.get_session() as session:
            new_account = Account(
                email_address=email.lower(),
                provider=provider,
                imap_server=imap_server,
                imap_port=imap_port,
                smtp_server=smtp_server,
                smtp_port=smtp_port
            )
            new_account.identities.append(
                AccountIdentity(email_address=email.lower(), name=name, position=0)
            )
            session.add(new_account)
            session.commit()

            click.secho("✓ Account added successfully", fg='green')
            click.echo(f"  ID: {new_account.id}")
            click.echo(f"  Email: {new_account.email_address}")
            click.echo(f"  Provider: {provider}")
            click.echo(f"  IMAP: {imap_server}:{imap_port}")
            click.echo(f"  SMTP: {smtp_server}:{smtp_port}")
    except IntegrityError:
        click.secho(f"✗ Error: Account {email} already exists", fg='red')
        raise click.Abort()


@account.command('list')
def list_accounts():
    """List configured accounts."""
    session_manager = get_cli_session_manager()
    with session_manager.get_session() as session:
        accounts = session.query(Account).order_by(Account.id).all()
        if not accounts:
            click.echo("No accounts configured.")
            return

        click.echo(f"\n{'ID':<5} {'Email':<35} {'Provider':<10} {'Identities':<10}")
        click.echo("-" * 62)
        for acc in accounts:
            click.echo(f"{acc.id:<5} {acc.email_address:<35} {acc.provider:<10} {len(acc.identities):<10}")


@click.group()
def identity():
    """Sender identity commands."""
    pass


@identity.command('add')
@click.argument('account_id', type=int)
@click.argument('email')
@click.option('--name', default='', help='Display name')
def add_identity(account_id, email, name):
    """
    Add a sender identity to an account.

    Example:
        python main.py identity add 1 alias@example.com --name "Jane Doe"
    """
    if not _valid_email(email):
        click.secho("✗ Error: Invalid email address format", fg='red')
        raise click.Abort()

    session_manager = get_cli_session_manager()
    with session_manager.get_session() as session:
        acc = session.query(Account).filter_by(id=account_id).first()
        if not acc:
            click.secho(f"✗ Error: Account {account_id} not found", fg='red')
            raise click.Abort()

        last_position = session.query(func.max(AccountIdentity.position)).filter_by(
            account_id=account_id
        ).scalar()
        new_identity = AccountIdentity(
            account_id=account_id,
            email_address=email.lower(),
            name=name,
            position=0 if last_position is None else last_position + 1
        )
        session.add(new_identity)
        session.commit()

        click.secho(f"✓ Identity {new_identity.email_address} added to {acc.email_address}", fg='green')


@identity.command('list')
def list_identities():
    """List identities in resolution order."""
    session_manager = get_cli_session_manager()
    with session_manager.get_session() as session:
        identities = session.query(AccountIdentity).order_by(
            AccountIdentity.account_id, AccountIdentity.position, AccountIdentity.id
        ).all()
        if not identities:
            click.echo("No identities configured.")
            return

        click.echo(f"\n{'ID':<5} {'Account':<8} {'Email':<35} {'Name':<20}")
        click.echo("-" * 70)
        for ident in identities:
            click.echo(f"{ident.id:<5} {ident.account_id:<8} {ident.email_address:<35} {ident.name or '':<20}")
