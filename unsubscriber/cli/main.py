"""
Main CLI group for Better Unsubscribe.

Integrates all command groups into a single CLI application.
"""

import click

from .. import __version__
from ..config import Config, load_config_from_env_file
from ..email_processor.unsubscribe.logging import configure_unsubscribe_logging
from .commands.account import account, identity
from .commands.admin import init
from .commands.message import check, delete, unsubscribe
from .commands.password import password


@click.group()
@click.version_option(version=__version__, prog_name='Better Unsubscribe')
@click.option('--log-level', default=None, help='Log level (default: LOG_LEVEL or WARNING)')
def cli(log_level):
    """
    Better Unsubscribe - find and run the unsubscribe mechanism of a message.

    Checks List-Unsubscribe headers (RFC 2369 / RFC 8058) first and falls
    back to unsubscribe links embedded in the message body.
    """
    load_config_from_env_file()
    configure_unsubscribe_logging(
        level=log_level or Config.LOG_LEVEL,
        format=Config.LOG_FORMAT,
        output='both' if Config.LOG_FILE else 'console',
        filename=Config.LOG_FILE
    )


cli.add_command(password, name='password')
cli.add_command(account, name='account')
cli.add_command(identity, name='identity')

cli.add_command(init, name='init')
cli.add_command(check, name='check')
cli.add_command(unsubscribe, name='unsubscribe')
cli.add_command(delete, name='delete')


if __name__ == '__main__':
    cli()
