"""Parsing of GitHub pagination ``link`` headers."""

import logging
import re
from urllib.parse import parse_qs, urlparse

logger = logging.getLogger(__name__)

LINK_URI_PATTERN = re.compile(r"<(\S+)>")
REL_LAST_PATTERN = re.compile(r'rel="last"')


class InvalidLinkHeader(ValueError):
    """Raised when a link header has fewer than two segments."""
    pass


def _page_from_segment(segment: str) -> int:
    match = LINK_URI_PATTERN.search(segment)
    if match is None:
        logger.warning(f"No URI found in link segment: {segment.strip()!r}")
        return 0

    raw_uri = match.group(1)
    try:
        uri = urlparse(raw_uri)
    except ValueError as e:
        logger.warning(f"Invalid last page URI {raw_uri!r}: {e}")
        return 0

    pages = parse_qs(uri.query).get("page")
    if not pages:
        logger.warning(f"Missing page parameter in last page URI {raw_uri!r}")
        return 0

    try:
        return int(pages[0])
    except ValueError as e:
        logger.warning(f"Invalid page number in last page URI {raw_uri!r}: {e}")
        return 0


def parse_last_page(raw_header: str) -> int:
    """
    Extract the total page count from a pagination link header.

    The header looks like::

        <https://api.github.com/user/1/starred?page=2>; rel="next",
        <https://api.github.com/user/1/starred?page=18>; rel="last"

    The second segment is assumed to be the ``rel="last"`` link. GitHub does
    not guarantee that position (on page 2 and later ``prev``/``first``
    segments come first), so callers should only pass the header of the
    first page. See ``parse_last_page_by_rel`` for the tag-matched variant.

    Args:
        raw_header: Raw value of the ``link`` response header

    Returns:
        Last page number, or 0 if the last link is malformed

    Raises:
        InvalidLinkHeader: If the header has fewer than two segments
    """
    links = raw_header.split(",") if raw_header else []
    if len(links) < 2:
        raise InvalidLinkHeader(f"Link header needs at least two segments: {raw_header!r}")
    return _page_from_segment(links[1])


def parse_last_page_by_rel(raw_header: str) -> int:
    """Like ``parse_last_page`` but finds the ``rel="last"`` segment anywhere."""
    for segment in (raw_header or "").split(","):
        if REL_LAST_PATTERN.search(segment):
            return _page_from_segment(segment)
    logger.warning(f'No rel="last" segment in link header: {raw_header!r}')
    return 0
