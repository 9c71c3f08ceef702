"""
Tests for the browser executor.
"""

import webbrowser
from unittest.mock import Mock

from unsubscriber.email_processor.unsubscribe.types import WebAction
from unsubscriber.unsubscribe_executor.web_executor import WebBrowserExecutor

ACTION = WebAction(link='https://x.test/unsubscribe?id=1')


class TestWebBrowserExecutor:

    def test_opens_link(self):
        opener = Mock(return_value=True)

        result = WebBrowserExecutor(opener=opener).execute('m1', ACTION)

        assert result.success is True
        assert result.method == 'Browser'
        opener.assert_called_once_with('https://x.test/unsubscribe?id=1')

    def test_browser_refused(self):
        result = WebBrowserExecutor(opener=Mock(return_value=False)).execute('m1', ACTION)

        assert result.success is False
        assert result.error_message == 'Browser window could not be opened'

    def test_browser_error(self):
        opener = Mock(side_effect=webbrowser.Error('no runnable browser'))

        result = WebBrowserExecutor(opener=opener).execute('m1', ACTION)

        assert result.success is False
        assert 'no runnable browser' in result.error_message

    def test_opener_os_error(self):
        opener = Mock(side_effect=PermissionError('launcher not permitted'))

        result = WebBrowserExecutor(opener=opener).execute('m1', ACTION)

        assert result.success is False
        assert 'launcher not permitted' in result.error_message

    def test_dry_run(self):
        opener = Mock()

        result = WebBrowserExecutor(opener=opener, dry_run=True).execute('m1', ACTION)

        assert result.dry_run is True
        assert 'Would open https://x.test/unsubscribe?id=1' in result.message
        opener.assert_not_called()
