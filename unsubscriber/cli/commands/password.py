"""
Password commands for the accounts used to fetch messages over IMAP and
send unsubscribe emails over SMTP.
"""

import click

from ...config.credentials import get_credential_store


@click.group()
def password():
    """Stored account password commands."""
    pass


@password.command('store')
@click.argument('email')
def store_password(email):
    """
    Store the password used for IMAP and SMTP login.

    Example:
        python main.py password store user@example.com
    """
    secret = click.prompt('Password', hide_input=True, confirmation_prompt=True)
    store = get_credential_store()
    store.set_password(email, secret)
    click.secho(f"✓ Password stored for {email}", fg='green')
    click.echo(f"Credentials file: {store.store_path}")


@password.command('remove')
@click.argument('email')
@click.option('--force', '-f', is_flag=True, help='Skip confirmation prompt')
def remove_password(email, force):
    """Remove a stored password."""
    if not force and not click.confirm(f"Remove password for {email}?"):
        click.echo("Cancelled.")
        raise click.Abort()

    if get_credential_store().remove_password(email):
        click.secho(f"✓ Password removed for {email}", fg='green')
    else:
        click.secho(f"No stored password for {email}", fg='yellow')


@password.command('list')
def list_passwords():
    """List addresses with stored passwords."""
    emails = get_credential_store().list_stored_emails()
    if not emails:
        click.echo("No stored passwords.")
        return
    click.echo(f"\nStored passwords ({len(emails)}):")
    for email in emails:
        click.echo(f"  - {email}")
