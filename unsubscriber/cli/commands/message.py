"""
Message commands: detect the unsubscribe method of a message, run it, and
clean up the mailbox afterwards.
"""

import sys

import click

from ...cli_session import get_cli_session_manager
from ...email_processor.email_deleter import DeleteCriteria
from ...email_processor.unsubscribe.constants import RESPONSE_UNSUBSCRIBED
from ...email_processor.unsubscribe.exceptions import RetrievalError
from ..utils import build_service, open_message_source


def source_options(func):
    """Options selecting where messages are read from."""
    func = click.option('--folder', default='INBOX', help='IMAP folder (default: INBOX)')(func)
    func = click.option('--imap', 'use_imap', is_flag=True,
                        help="Read from the account's IMAP server")(func)
    func = click.option('--account', 'account_id', type=int, help='Account ID owning the message')(func)
    func = click.option('--dir', 'message_dir', type=click.Path(file_okay=False),
                        help='Directory of .eml files (default: MESSAGE_DIR)')(func)
    return func


def _print_action(description):
    click.echo(f"  Method:  {description.kind}")
    click.echo(f"  Address: {description.address}")


@click.command()
@click.argument('message_id')
@source_options
def check(message_id, message_dir, account_id, use_imap, folder):
    """
    Show how a message can be unsubscribed from.

    Example:
        python main.py check newsletter-2024-05 --dir ./messages
        python main.py check 4211 --account 1 --imap
    """
    session_manager = get_cli_session_manager()
    with session_manager.get_session() as session:
        try:
            with open_message_source(session, message_dir, account_id, use_imap, folder) as source:
                service = build_service(session, source)
                action = service.get_or_classify(message_id)
                description = service.describe_action(message_id)
        except RetrievalError as e:
            click.secho(f"✗ Could not analyze this message: {e}", fg='red')
            sys.exit(1)

    if action is None:
        click.secho("No unsubscribe method found", fg='yellow')
        return

    click.secho("✓ Unsubscribe method found", fg='green')
    _print_action(description)


@click.command()
@click.argument('message_id')
@source_options
@click.option('--dry-run', is_flag=True, help='Show what would be done without doing it')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
def unsubscribe(message_id, message_dir, account_id, use_imap, folder, dry_run, yes):
    """
    Unsubscribe from the list that sent a message.

    Example:
        python main.py unsubscribe newsletter-2024-05 --dir ./messages --dry-run
    """
    session_manager = get_cli_session_manager()
    with session_manager.get_session() as session:
        try:
            with open_message_source(session, message_dir, account_id, use_imap, folder) as source:
                service = build_service(session, source, dry_run=dry_run)
                action = service.get_or_classify(message_id)
                if action is None:
                    click.secho("No unsubscribe method found", fg='yellow')
                    return

                _print_action(service.describe_action(message_id))
                if not yes and not click.confirm("Unsubscribe now?"):
                    service.cancel(message_id)
                    click.echo("Canceled.")
                    return

                response = service.unsubscribe(message_id)
        except RetrievalError as e:
            click.secho(f"✗ Could not analyze this message: {e}", fg='red')
            sys.exit(1)

    if response['response'] != RESPONSE_UNSUBSCRIBED:
        click.secho(f"✗ Unsubscribe failed: {response.get('error')}", fg='red')
        sys.exit(1)

    if dry_run:
        click.secho("✓ Dry run complete, nothing was sent", fg='green')
    else:
        click.secho("✓ Unsubscribed", fg='green')


@click.command()
@click.argument('message_id')
@source_options
@click.option('--scope', type=click.Choice(['one', 'name', 'address', 'domain']), default='one',
              help='Delete this message only, or everything from the same name, address or domain')
@click.option('--dry-run', is_flag=True, help='List matching messages without deleting')
def delete(message_id, message_dir, account_id, use_imap, folder, scope, dry_run):
    """
    Delete a message, or every message from its sender.

    Example:
        python main.py delete newsletter-2024-05 --scope address
    """
    session_manager = get_cli_session_manager()
    with session_manager.get_session() as session:
        try:
            with open_message_source(session, message_dir, account_id, use_imap, folder) as source:
                author = None
                if scope != 'one':
                    author = source.get_message_meta(message_id).author
                criteria = DeleteCriteria.for_scope(scope, message_id, author)
                result = build_service(session, source).delete_messages(criteria, dry_run=dry_run)
        except RetrievalError as e:
            click.secho(f"✗ Could not read this message: {e}", fg='red')
            sys.exit(1)
        except ValueError as e:
            click.secho(f"✗ Error: {e}", fg='red')
            sys.exit(1)

    if not result.success:
        click.secho(f"✗ {result}", fg='red')
        sys.exit(1)

    if dry_run and result.message_ids:
        click.echo(f"Would delete {len(result.message_ids)} message(s):")
        for mid in result.message_ids:
            click.echo(f"  - {mid}")
        return

    click.secho(f"✓ {result}", fg='green' if result.count else 'yellow')
