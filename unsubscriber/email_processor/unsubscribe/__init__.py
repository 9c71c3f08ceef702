"""
Unsubscribe detection engine.

This package provides:
- Header link extraction (List-Unsubscribe, List-Unsubscribe-Post)
- Body link scanning over MIME part trees
- Sender identity resolution for reply-by-email unsubscribe
- Method classification under RFC precedence
- A single-flight per-message result cache
"""

from .extractors import BodyLinkScanner, HeaderLinkExtractor
from .identity import IdentityResolver
from .classifiers import UnsubscribeMethodClassifier
from .cache import UnsubscribeActionCache
from .types import (
    ActionDescription, ExecutionResult, FullMessage, HeaderCandidates, Identity,
    MailAccount, MailAction, MessageRef, MimePart, PostAction, UnsubscribeAction,
    WebAction
)

__all__ = [
    'HeaderLinkExtractor',
    'BodyLinkScanner',
    'IdentityResolver',
    'UnsubscribeMethodClassifier',
    'UnsubscribeActionCache',
    'ActionDescription',
    'ExecutionResult',
    'FullMessage',
    'HeaderCandidates',
    'Identity',
    'MailAccount',
    'MailAction',
    'MessageRef',
    'MimePart',
    'PostAction',
    'UnsubscribeAction',
    'WebAction',
]
