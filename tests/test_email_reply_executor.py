"""
Tests for the email reply unsubscribe executor and its SMTP transport.
"""

import smtplib
from unittest.mock import MagicMock, Mock, patch

import pytest

from unsubscriber.database.models import (
    Account, UnsubscribeAttempt, create_database_engine, create_tables, get_session_maker
)
from unsubscriber.email_processor.unsubscribe.exceptions import ExecutionError
from unsubscriber.email_processor.unsubscribe.types import Identity, MailAction
from unsubscriber.unsubscribe_executor.email_reply_executor import (
    EmailReplyExecutor, MailTransport, SmtpMailTransport
)

ME = Identity(id=1, email_address='me@home.test', account_id=1, name='Jane Doe')


class RecordingTransport(MailTransport):
    """Transport double that keeps every message it is handed."""

    def __init__(self, sent_id='<sent@home.test>'):
        self.sent = []
        self.sent_id = sent_id

    def send(self, message):
        self.sent.append(message)
        return self.sent_id


@pytest.fixture
def test_db():
    """Create in-memory test database."""
    engine = create_database_engine("sqlite:///:memory:")
    create_tables(engine)
    return get_session_maker(engine)


@pytest.fixture
def session(test_db):
    session = test_db()
    yield session
    session.close()


@pytest.fixture
def test_account(session):
    account = Account(
        id=1,
        email_address='me@home.test',
        provider='custom',
        smtp_server='smtp.home.test',
        smtp_port=587
    )
    session.add(account)
    session.commit()
    return account


@pytest.fixture
def action():
    return MailAction.from_mailto(ME, 'mailto:u@x.test?subject=Remove%20Me')


class TestComposeMessage:

    def test_headers(self, action):
        msg = EmailReplyExecutor(transport=RecordingTransport()).compose_message(action)

        assert msg['From'] == 'Jane Doe <me@home.test>'
        assert msg['To'] == 'u@x.test'
        assert msg['Subject'] == 'Remove Me'
        assert msg['Message-ID'].endswith('@home.test>')

    def test_identity_without_name(self):
        action = MailAction.from_mailto(Identity(id=2, email_address='alias@home.test'), 'mailto:u@x.test')

        msg = EmailReplyExecutor(transport=RecordingTransport()).compose_message(action)

        assert msg['From'] == 'alias@home.test'
        assert msg['Subject'] == 'unsubscribe'

    def test_custom_body(self, action):
        msg = EmailReplyExecutor(transport=RecordingTransport(), body='Stop please').compose_message(action)

        assert msg.get_payload() == 'Stop please'


class TestSending:

    def test_success_returns_sent_message_id(self, action):
        transport = RecordingTransport()

        result = EmailReplyExecutor(transport=transport).execute('m1', action)

        assert result.success is True
        assert result.method == 'Email'
        assert result.sent_message_id == '<sent@home.test>'
        assert len(transport.sent) == 1

    def test_missing_sent_id_is_failure(self, action):
        result = EmailReplyExecutor(transport=RecordingTransport(sent_id=None)).execute('m1', action)

        assert result.success is False
        assert result.error_message == 'Sent message is undefined'

    def test_no_identity(self):
        transport = RecordingTransport()
        action = MailAction.from_mailto(None, 'mailto:u@x.test')

        result = EmailReplyExecutor(transport=transport).execute('m1', action)

        assert result.success is False
        assert result.error_message == 'No sender identity available'
        assert transport.sent == []

    def test_transport_error_is_failure(self, action):
        transport = Mock(spec=MailTransport)
        transport.send.side_effect = ExecutionError('SMTP error: rejected', 'Email')

        result = EmailReplyExecutor(transport=transport).execute('m1', action)

        assert result.success is False
        assert 'rejected' in result.error_message

    def test_transport_os_error_is_failure(self, action):
        transport = Mock(spec=MailTransport)
        transport.send.side_effect = PermissionError('sendmail not permitted')

        result = EmailReplyExecutor(transport=transport).execute('m1', action)

        assert result.success is False
        assert 'sendmail not permitted' in result.error_message

    def test_dry_run_sends_nothing(self, action):
        transport = RecordingTransport()

        result = EmailReplyExecutor(transport=transport, dry_run=True).execute('m1', action)

        assert result.success is True
        assert result.dry_run is True
        assert transport.sent == []


class TestSmtpFromAccount:
    """Default transport built from the identity's account settings."""

    @patch('unsubscriber.unsubscribe_executor.email_reply_executor.get_credential_store')
    @patch('unsubscriber.unsubscribe_executor.email_reply_executor.smtplib.SMTP')
    def test_sends_with_account_credentials(self, mock_smtp, mock_get_store, session, test_account, action):
        mock_get_store.return_value = Mock(get_password=Mock(return_value='secret'))
        server = mock_smtp.return_value.__enter__.return_value

        result = EmailReplyExecutor(session).execute('m1', action)

        assert result.success is True
        mock_smtp.assert_called_once_with('smtp.home.test', 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with('me@home.test', 'secret')
        server.send_message.assert_called_once()
        assert result.sent_message_id == server.send_message.call_args[0][0]['Message-ID']

        attempt = session.query(UnsubscribeAttempt).one()
        assert attempt.method_used == 'Email'
        assert attempt.target_address == 'u@x.test'
        assert attempt.status == 'success'

    @patch('unsubscriber.unsubscribe_executor.email_reply_executor.get_credential_store')
    def test_missing_password(self, mock_get_store, session, test_account, action):
        mock_get_store.return_value = Mock(get_password=Mock(return_value=None))

        result = EmailReplyExecutor(session).execute('m1', action)

        assert result.success is False
        assert 'No stored password' in result.error_message

    def test_unknown_account(self, session):
        action = MailAction.from_mailto(Identity(id=9, email_address='x@y.test', account_id=9), 'mailto:u@x.test')

        result = EmailReplyExecutor(session).execute('m1', action)

        assert result.success is False
        assert 'No SMTP server configured' in result.error_message

    def test_without_session(self, action):
        result = EmailReplyExecutor().execute('m1', action)

        assert result.success is False
        assert 'No database session' in result.error_message


class TestSmtpMailTransport:

    @patch('unsubscriber.unsubscribe_executor.email_reply_executor.smtplib.SMTP')
    def test_authentication_error(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b'bad credentials')

        with pytest.raises(ExecutionError) as exc_info:
            SmtpMailTransport('smtp.x.test', username='u', password='p').send(MagicMock())

        assert 'authentication' in str(exc_info.value)

    @patch('unsubscriber.unsubscribe_executor.email_reply_executor.smtplib.SMTP')
    def test_connection_refused(self, mock_smtp):
        mock_smtp.side_effect = ConnectionRefusedError('refused')

        with pytest.raises(ExecutionError):
            SmtpMailTransport('smtp.x.test').send(MagicMock())
