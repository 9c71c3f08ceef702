"""
Message access and unsubscribe detection.
"""

from .message_source import EmlMessageSource, ImapMessageSource, MessageSource
from .email_deleter import DeleteCriteria, DeletionResult, MessageDeleter

__all__ = [
    'EmlMessageSource', 'ImapMessageSource', 'MessageSource',
    'DeleteCriteria', 'DeletionResult', 'MessageDeleter'
]
