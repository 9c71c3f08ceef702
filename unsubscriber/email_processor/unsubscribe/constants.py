"""
Constants and shared patterns for unsubscribe detection.

This module contains the regex tables and literal values used across the
header extractor, body scanner and action executors.
"""

import re
from typing import Pattern

# Header names (HeaderSet keys are lower-cased)
LIST_UNSUBSCRIBE_HEADER = 'list-unsubscribe'
LIST_UNSUBSCRIBE_POST_HEADER = 'list-unsubscribe-post'

# "unsubscribe", "un-subscribe", "unsubscribing", "unsubscription", ...
UNSUBSCRIBE_KEYWORD = r'\bun\W?(?:subscri(?:be|bing|ption))\b'

# Length-capped to bound regex cost on adversarial bodies
URL_TOKEN = r'https?://[^\s"\'<>]{1,1000}'

# Maximum distance between a URL and the unsubscribe keyword
PROXIMITY_WINDOW = 300

UNSUBSCRIBE_PATTERN: Pattern = re.compile(UNSUBSCRIBE_KEYWORD, re.IGNORECASE)

# Body proximity patterns, most specific first
URL_CONTAINING_KEYWORD_PATTERN: Pattern = re.compile(
    r'(https?://[^\s"\'<>]{0,1000}?' + UNSUBSCRIBE_KEYWORD + r'[^\s"\'<>]{0,1000})',
    re.IGNORECASE
)

URL_BEFORE_KEYWORD_PATTERN: Pattern = re.compile(
    r'(' + URL_TOKEN + r')[^:]{0,%d}?' % PROXIMITY_WINDOW + UNSUBSCRIBE_KEYWORD,
    re.IGNORECASE
)

KEYWORD_BEFORE_URL_PATTERN: Pattern = re.compile(
    UNSUBSCRIBE_KEYWORD + r'[^:]{0,%d}?(' % PROXIMITY_WINDOW + URL_TOKEN + r')',
    re.IGNORECASE
)

BODY_PATTERNS = (
    ('url_with_keyword', URL_CONTAINING_KEYWORD_PATTERN),
    ('url_then_keyword', URL_BEFORE_KEYWORD_PATTERN),
    ('keyword_then_url', KEYWORD_BEFORE_URL_PATTERN),
)

# Header URI patterns (RFC 2369)
HEADER_HTTP_PATTERN: Pattern = re.compile(r'<\s*(https?://[^>\s]+)\s*>', re.IGNORECASE)
HEADER_MAILTO_PATTERN: Pattern = re.compile(r'<\s*(mailto:[^>\s]+)\s*>', re.IGNORECASE)
BARE_HTTP_PATTERN: Pattern = re.compile(r'(https?://[^\s,<>]+)', re.IGNORECASE)
BARE_MAILTO_PATTERN: Pattern = re.compile(r'(mailto:[^\s,<>]+)', re.IGNORECASE)
MAILTO_SLASHES_PATTERN: Pattern = re.compile(r'^mailto:/*', re.IGNORECASE)

# RFC 8058 one-click POST (bit-exact)
ONE_CLICK_POST_BODY = 'List-Unsubscribe=One-Click'
ONE_CLICK_CONTENT_TYPE = 'application/x-www-form-urlencoded'

# Mail action defaults
DEFAULT_UNSUBSCRIBE_SUBJECT = 'unsubscribe'
DEFAULT_UNSUBSCRIBE_BODY = 'Please unsubscribe me from your mailing list. Thank you.'

# Action kinds as shown to the user
METHOD_POST = 'Post'
METHOD_EMAIL = 'Email'
METHOD_BROWSER = 'Browser'
METHOD_NONE = 'None'

# Responses returned to the UI layer
RESPONSE_UNSUBSCRIBED = 'Unsubscribed'
RESPONSE_FAILED = 'Failed'
RESPONSE_CANCELED = 'Canceled'
