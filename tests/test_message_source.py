"""
Tests for RFC 822 parsing and the .eml / IMAP message sources.
"""

import imaplib
from unittest.mock import Mock

import pytest

from unsubscriber.email_processor.message_source import EmlMessageSource, ImapMessageSource
from unsubscriber.email_processor.mime_parser import parse_message
from unsubscriber.email_processor.unsubscribe.exceptions import RetrievalError

NEWSLETTER = b"""From: "News Team" <news@x.test>
To: Me <me@home.test>
Cc: other@x.test
Subject: Weekly news
List-Unsubscribe: <mailto:u@x.test?subject=unsubscribe>,
 <https://x.test/u?id=42>
List-Unsubscribe-Post: List-Unsubscribe=One-Click
Received: from a.test
Received: from b.test
MIME-Version: 1.0
Content-Type: multipart/alternative; boundary="BOUNDARY"

--BOUNDARY
Content-Type: text/plain; charset=utf-8

Hello reader
--BOUNDARY
Content-Type: text/html; charset=utf-8
Content-Transfer-Encoding: quoted-printable

<p>Hello</p><a href=3D"https://x.test/unsubscribe?id=3D42&amp;t=3Dabc=
def">Unsubscribe</a>
--BOUNDARY--
"""

PLAIN = b"""From: promo@y.test
To: me@home.test
Subject: Sale

To unsubscribe visit https://y.test/remove
"""


class TestParseMessage:

    def test_headers_are_lowercased_with_all_occurrences(self):
        _, full = parse_message(NEWSLETTER, 'n1')

        assert full.headers['received'] == ['from a.test', 'from b.test']
        assert full.headers['list-unsubscribe-post'] == ['List-Unsubscribe=One-Click']
        assert 'https://x.test/u?id=42' in full.headers['list-unsubscribe'][0]

    def test_mime_tree(self):
        _, full = parse_message(NEWSLETTER, 'n1')
        root = full.mime_tree

        assert root.is_container
        assert root.mime_type == 'multipart/alternative'
        assert [part.mime_type for part in root.parts] == ['text/plain', 'text/html']
        assert root.parts[0].body.strip() == 'Hello reader'

    def test_quoted_printable_html_is_decoded(self):
        _, full = parse_message(NEWSLETTER, 'n1')
        html = full.mime_tree.parts[1].body

        assert 'href="https://x.test/unsubscribe?id=42&amp;t=abcdef"' in html

    def test_message_ref(self):
        ref, _ = parse_message(NEWSLETTER, 'n1', account_id=3, folder='INBOX')

        assert ref.id == 'n1'
        assert ref.author.endswith('<news@x.test>')
        assert ref.recipients == ('me@home.test',)
        assert ref.cc_list == ('other@x.test',)
        assert ref.bcc_list == ()
        assert ref.account_id == 3
        assert ref.folder == 'INBOX'
        assert ref.subject == 'Weekly news'

    def test_single_part_message(self):
        _, full = parse_message(PLAIN.decode(), 'p1')

        assert not full.mime_tree.is_container
        assert 'https://y.test/remove' in full.mime_tree.body


@pytest.fixture
def message_dir(tmp_path):
    (tmp_path / 'newsletter.eml').write_bytes(NEWSLETTER)
    (tmp_path / 'promo.eml').write_bytes(PLAIN)
    (tmp_path / 'notes.txt').write_text('not a message')
    return tmp_path


class TestEmlMessageSource:

    def test_message_ids_are_file_stems(self, message_dir):
        assert EmlMessageSource(message_dir).message_ids() == ['newsletter', 'promo']

    def test_get_message(self, message_dir):
        source = EmlMessageSource(message_dir, account_id=1)

        ref = source.get_message_meta('promo')
        full = source.get_full_message('promo')

        assert ref.id == 'promo'
        assert ref.account_id == 1
        assert full.headers['subject'] == ['Sale']

    def test_missing_message_raises_retrieval_error(self, message_dir):
        with pytest.raises(RetrievalError) as exc_info:
            EmlMessageSource(message_dir).get_full_message('nope')

        assert exc_info.value.message_id == 'nope'

    def test_path_outside_directory_is_rejected(self, message_dir):
        with pytest.raises(RetrievalError):
            EmlMessageSource(message_dir).get_full_message('../newsletter')

    def test_list_and_delete(self, message_dir):
        source = EmlMessageSource(message_dir)

        assert [ref.author for ref in source.list_message_refs()][1] == 'promo@y.test'
        assert source.delete_messages(['promo', 'promo']) == 1
        assert source.message_ids() == ['newsletter']

    def test_missing_directory_is_empty(self, tmp_path):
        assert EmlMessageSource(tmp_path / 'absent').message_ids() == []


@pytest.fixture
def connection():
    conn = Mock()
    conn.select_folder.return_value = True
    conn.fetch_raw.return_value = PLAIN
    conn.fetch_headers.return_value = PLAIN.split(b'\n\n')[0] + b'\n\n'
    return conn


class TestImapMessageSource:

    def test_fetch_by_uid(self, connection):
        source = ImapMessageSource(connection, folder='News', account_id=2)

        full = source.get_full_message('17')
        ref = source.get_message_meta(17)

        connection.select_folder.assert_called_with('News')
        connection.fetch_raw.assert_called_once_with(17)
        assert 'https://y.test/remove' in full.mime_tree.body
        assert ref.id == 17
        assert ref.folder == 'News'
        assert ref.account_id == 2

    def test_non_numeric_id(self, connection):
        with pytest.raises(RetrievalError):
            ImapMessageSource(connection).get_full_message('newsletter')

    def test_missing_message(self, connection):
        connection.fetch_raw.return_value = None

        with pytest.raises(RetrievalError):
            ImapMessageSource(connection).get_full_message(5)

    def test_folder_not_selectable(self, connection):
        connection.select_folder.return_value = False

        with pytest.raises(RetrievalError):
            ImapMessageSource(connection).get_full_message(5)

    def test_imap_errors_are_wrapped(self, connection):
        connection.fetch_raw.side_effect = imaplib.IMAP4.abort('socket closed')

        with pytest.raises(RetrievalError):
            ImapMessageSource(connection).get_full_message(5)

    def test_list_and_delete(self, connection):
        connection.search_uids.return_value = [3, 4]
        connection.delete_uids.side_effect = lambda uids: len(list(uids))
        source = ImapMessageSource(connection)

        refs = list(source.list_message_refs())

        assert [ref.id for ref in refs] == [3, 4]
        assert source.delete_messages(['3', '4']) == 2
