"""
Admin commands for Better Unsubscribe.
"""

import click
from sqlalchemy.exc import SQLAlchemyError

from ...database import init_database


@click.command('init')
def init():
    """
    Initialize the database.

    Creates the account, identity and action log tables.

    Example:
        python main.py init
    """
    try:
        db_manager = init_database()
    except SQLAlchemyError as e:
        click.secho(f"✗ Error initializing database: {e}", fg='red')
        raise click.Abort()
    click.secho("✓ Database initialized successfully", fg='green')
    click.echo(f"Database location: {db_manager.database_url}")
