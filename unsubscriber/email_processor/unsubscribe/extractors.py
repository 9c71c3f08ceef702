"""
Unsubscribe link extraction from email headers and body content.

This module handles finding unsubscribe links in two places:
- List-Unsubscribe / List-Unsubscribe-Post headers (RFC 2369, RFC 8058)
- The MIME body tree, through anchor analysis of HTML parts and a
  proximity regex over any part carrying text
"""

from typing import Optional, Pattern
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from .constants import (
    BARE_HTTP_PATTERN, BARE_MAILTO_PATTERN, BODY_PATTERNS,
    HEADER_HTTP_PATTERN, HEADER_MAILTO_PATTERN, LIST_UNSUBSCRIBE_HEADER,
    LIST_UNSUBSCRIBE_POST_HEADER, MAILTO_SLASHES_PATTERN, UNSUBSCRIBE_PATTERN
)
from .logging import UnsubscribeLogger
from .types import HeaderCandidates, HeaderSet, MimePart, first_header


def normalize_web_link(candidate: Optional[str]) -> Optional[str]:
    """Return the link if it is an absolute http(s) URL, else None."""
    if not candidate:
        return None
    candidate = candidate.strip()
    try:
        parsed = urlsplit(candidate)
    except ValueError:
        return None
    if parsed.scheme.lower() not in ('http', 'https') or not parsed.hostname:
        return None
    return candidate


def normalize_mailto_link(candidate: Optional[str]) -> Optional[str]:
    """Return a canonical mailto URI, or None if it has no usable address."""
    if not candidate:
        return None
    candidate = MAILTO_SLASHES_PATTERN.sub('mailto:', candidate.strip())
    try:
        parsed = urlsplit(candidate)
    except ValueError:
        return None
    if parsed.scheme.lower() != 'mailto' or '@' not in parsed.path:
        return None
    return candidate


def resolve_href(base_href: Optional[str], href: str) -> Optional[str]:
    """Resolve an anchor href against the document base; None if unparseable."""
    if not base_href:
        return href
    try:
        return urljoin(base_href, href)
    except ValueError:
        return None


class HeaderLinkExtractor:
    """Extract typed unsubscribe candidates from List-Unsubscribe headers."""

    def __init__(self):
        self.logger = UnsubscribeLogger("header_extractor")

    def extract(self, headers: Optional[HeaderSet]) -> HeaderCandidates:
        """Extract web link, mailto link and post command.

        Only the first List-Unsubscribe occurrence is considered, and only
        the first URI of each scheme within it. Malformed values yield None
        for that field.
        """
        header = first_header(headers, LIST_UNSUBSCRIBE_HEADER)
        if header is None:
            return HeaderCandidates()

        web_link = normalize_web_link(
            self._first_uri(header, HEADER_HTTP_PATTERN, BARE_HTTP_PATTERN)
        )
        mail_link = normalize_mailto_link(
            self._first_uri(header, HEADER_MAILTO_PATTERN, BARE_MAILTO_PATTERN)
        )

        post_command = first_header(headers, LIST_UNSUBSCRIBE_POST_HEADER)
        if post_command is not None:
            post_command = post_command.strip() or None

        candidates = HeaderCandidates(
            web_link=web_link, mail_link=mail_link, post_command=post_command
        )
        self.logger.debug("Header candidates extracted", {
            'web_link': web_link,
            'mail_link': mail_link,
            'has_post_command': post_command is not None
        })
        return candidates

    @staticmethod
    def _first_uri(header: str, bracketed: Pattern, bare: Pattern) -> Optional[str]:
        match = bracketed.search(header)
        if match is None:
            match = bare.search(header)
        return match.group(1) if match else None


class BodyLinkScanner:
    """Find an embedded unsubscribe link in a MIME part tree."""

    def __init__(self):
        self.logger = UnsubscribeLogger("body_scanner")

    def scan(self, root: Optional[MimePart]) -> Optional[str]:
        """Return the first unsubscribe URL found, trying HTML anchors first."""
        if root is None:
            return None

        link = self.scan_html(root)
        if link:
            self.logger.debug("Unsubscribe link found in HTML anchor", {'link': link})
            return link

        link = self.scan_text(root)
        if link:
            self.logger.debug("Unsubscribe link found by proximity match", {'link': link})
        return link

    def scan_html(self, root: MimePart) -> Optional[str]:
        """Pre-order search of text/html parts for a matching anchor."""
        for part in root.walk():
            if part.mime_type == 'text/html' and part.body:
                link = self._find_anchor(part.body)
                if link:
                    return link
        return None

    def scan_text(self, root: MimePart) -> Optional[str]:
        """Pre-order search of every part body using the proximity patterns."""
        for part in root.walk():
            if part.body:
                link = self._match_proximity(part.body)
                if link:
                    return link
        return None

    def _find_anchor(self, html: str) -> Optional[str]:
        soup = BeautifulSoup(html, 'html.parser')

        base_href = None
        base_tag = soup.find('base', href=True)
        if base_tag is not None:
            base_href = normalize_web_link(base_tag['href'])

        for anchor in soup.find_all('a'):
            href = (anchor.get('href') or '').strip()
            text = anchor.get_text()
            if not (UNSUBSCRIBE_PATTERN.search(text) or UNSUBSCRIBE_PATTERN.search(href)):
                continue

            link = normalize_web_link(resolve_href(base_href, href))
            if link:
                return link
            self.logger.debug("Skipping unsubscribe anchor without absolute web link",
                              {'href': href})
        return None

    def _match_proximity(self, body: str) -> Optional[str]:
        for strategy, pattern in BODY_PATTERNS:
            match = pattern.search(body)
            if match is None:
                continue
            link = normalize_web_link(match.group(1))
            if link:
                self.logger.debug("Proximity pattern matched", {'strategy': strategy})
                return link
        return None
