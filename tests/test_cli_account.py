"""
CLI tests for init, account and identity commands.
"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner
from sqlalchemy.exc import OperationalError

from unsubscriber.cli.main import cli
from unsubscriber.cli_session import CLISessionManager
from unsubscriber.database.models import Account, AccountIdentity


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch('unsubscriber.cli.main.configure_unsubscribe_logging'):
        yield


@pytest.fixture
def session_manager():
    manager = CLISessionManager('sqlite:///:memory:')
    with patch('unsubscriber.cli.commands.account.get_cli_session_manager', return_value=manager):
        yield manager


class TestInitCommand:

    def test_init(self):
        with patch('unsubscriber.cli.commands.admin.init_database') as mock_init:
            mock_init.return_value.database_url = 'sqlite:///data/unsubscriber.db'

            result = CliRunner().invoke(cli, ['init'])

        assert result.exit_code == 0
        assert 'Database initialized successfully' in result.output
        assert 'sqlite:///data/unsubscriber.db' in result.output

    def test_init_error(self):
        with patch('unsubscriber.cli.commands.admin.init_database') as mock_init:
            mock_init.side_effect = OperationalError('CREATE', {}, Exception('disk full'))

            result = CliRunner().invoke(cli, ['init'])

        assert result.exit_code != 0
        assert 'Error initializing database' in result.output


class TestAccountCommands:

    def test_add_account_with_preset(self, session_manager):
        result = CliRunner().invoke(cli, ['account', 'add', 'User@gmail.com', '--name', 'User'])

        assert result.exit_code == 0
        assert 'Auto-detected provider: gmail' in result.output
        with session_manager.get_session() as session:
            account = session.query(Account).one()
            assert account.email_address == 'user@gmail.com'
            assert account.smtp_server == 'smtp.gmail.com'
            assert [(i.email_address, i.name, i.position) for i in account.identities] == [
                ('user@gmail.com', 'User', 0)
            ]

    def test_add_custom_account_requires_server(self, session_manager):
        result = CliRunner().invoke(cli, ['account', 'add', 'me@example.org'])

        assert result.exit_code != 0
        assert 'server required' in result.output

    def test_add_duplicate_account(self, session_manager):
        runner = CliRunner()
        runner.invoke(cli, ['account', 'add', 'user@gmail.com'])

        result = runner.invoke(cli, ['account', 'add', 'user@gmail.com'])

        assert result.exit_code != 0
        assert 'already exists' in result.output

    def test_invalid_email(self, session_manager):
        result = CliRunner().invoke(cli, ['account', 'add', 'not-an-email'])

        assert result.exit_code != 0
        assert 'Invalid email address' in result.output

    def test_list_accounts(self, session_manager):
        runner = CliRunner()
        runner.invoke(cli, ['account', 'add', 'user@gmail.com'])

        result = runner.invoke(cli, ['account', 'list'])

        assert result.exit_code == 0
        assert 'user@gmail.com' in result.output

    def test_list_no_accounts(self, session_manager):
        result = CliRunner().invoke(cli, ['account', 'list'])

        assert 'No accounts configured' in result.output


class TestIdentityCommands:

    def test_add_identity_appends_position(self, session_manager):
        runner = CliRunner()
        runner.invoke(cli, ['account', 'add', 'user@gmail.com'])

        result = runner.invoke(cli, ['identity', 'add', '1', 'Alias@gmail.com', '--name', 'Alias'])

        assert result.exit_code == 0
        with session_manager.get_session() as session:
            identity = session.query(AccountIdentity).filter_by(email_address='alias@gmail.com').one()
            assert identity.position == 1
            assert identity.name == 'Alias'

    def test_add_identity_unknown_account(self, session_manager):
        result = CliRunner().invoke(cli, ['identity', 'add', '7', 'alias@gmail.com'])

        assert result.exit_code != 0
        assert 'Account 7 not found' in result.output

    def test_list_identities(self, session_manager):
        runner = CliRunner()
        runner.invoke(cli, ['account', 'add', 'user@gmail.com'])
        runner.invoke(cli, ['identity', 'add', '1', 'alias@gmail.com'])

        result = runner.invoke(cli, ['identity', 'list'])

        assert result.output.index('user@gmail.com') < result.output.index('alias@gmail.com')
