"""
Unsubscribe Executor Module

Carries out a classified unsubscribe action exactly once per user
confirmation: one-click POST, email reply, or opening a web page.
"""

from .http_post_executor import HttpPostExecutor
from .email_reply_executor import EmailReplyExecutor, MailTransport, SmtpMailTransport
from .web_executor import WebBrowserExecutor

__all__ = [
    'HttpPostExecutor', 'EmailReplyExecutor', 'WebBrowserExecutor',
    'MailTransport', 'SmtpMailTransport'
]
