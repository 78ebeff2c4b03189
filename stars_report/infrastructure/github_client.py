"""GitHub REST API client for a user's starred repositories."""

import logging
from typing import Any, List, Mapping, Optional
from urllib.parse import urlencode, urlparse

import requests

from stars_report.config import ConfigurationError
from stars_report.domain.repository import RemoteRepository
from stars_report.infrastructure.link_header import parse_last_page

logger = logging.getLogger(__name__)

ERROR_GITHUB_TOKEN = "Missing GitHub token"
ERROR_USER_NAME = "Missing user name"


class GitHubAPIError(Exception):
    """Raised when a request to the GitHub API fails or cannot be decoded."""
    pass


class RateLimitExceeded(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded."""
    pass


def build_uri(base_uri: str, user_name: str, query: Mapping[str, Any]) -> str:
    """
    Build a listing URI for ``user_name`` with an encoded query string.

    Args:
        base_uri: URI template containing a ``{user}`` placeholder
        user_name: GitHub login
        query: Query parameters, encoded in key order

    Returns:
        Absolute URI

    Raises:
        ValueError: If the base URI has no scheme or host
    """
    uri = urlparse(base_uri.format(user=user_name))
    if not uri.scheme or not uri.netloc:
        raise ValueError(f"Invalid base URI {base_uri!r}: missing protocol scheme or host")
    return uri._replace(query=urlencode(sorted(query.items()))).geturl()


class GitHubRestClient:
    """Client for the ``/users/{user}/starred`` listing."""

    STARRED_URI = "https://api.github.com/users/{user}/starred"
    ACCEPT = "application/vnd.github.v3+json"
    PER_PAGE = 100
    REQUEST_TIMEOUT_SECONDS = 30

    def __init__(
        self,
        token: str,
        user_name: str,
        session: Optional[requests.Session] = None,
        base_uri: Optional[str] = None,
        request_timeout: Optional[float] = None,
    ):
        """
        Initialize GitHub REST client.

        Args:
            token: GitHub personal access token
            user_name: Login whose starred repositories are listed
            session: HTTP session to use. A new one is created if None.
            base_uri: Listing URI template, defaults to ``STARRED_URI``
            request_timeout: Per-request timeout in seconds
        """
        if not token:
            raise ConfigurationError(ERROR_GITHUB_TOKEN)
        if not user_name:
            raise ConfigurationError(ERROR_USER_NAME)

        self.token = token
        self.user_name = user_name
        self.session = session if session is not None else requests.Session()
        self.base_uri = base_uri or self.STARRED_URI
        self.request_timeout = request_timeout or self.REQUEST_TIMEOUT_SECONDS
        self.headers = {
            "Authorization": f"token {self.token}",
            "Accept": self.ACCEPT,
        }

    def _get(self, page: int) -> requests.Response:
        uri = build_uri(self.base_uri, self.user_name, {"per_page": self.PER_PAGE, "page": page})
        logger.debug(f"GET {uri}")
        try:
            response = self.session.get(uri, headers=self.headers, timeout=self.request_timeout)
        except requests.exceptions.RequestException as e:
            raise GitHubAPIError(f"Request for page {page} failed: {e}") from e

        if response.status_code == 401:
            raise GitHubAPIError("Authentication failed. Check your GitHub token.")
        if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            raise RateLimitExceeded(
                f"Rate limit exceeded, resets at {response.headers.get('X-RateLimit-Reset', 'unknown')}"
            )
        if not 200 <= response.status_code < 300:
            raise GitHubAPIError(f"Unexpected status {response.status_code} for page {page}: {response.text}")
        return response

    def get_total_pages(self) -> int:
        """
        Discover how many pages the starred listing has.

        Only the ``link`` header of the first page is read. Without one the
        listing fits on a single page. The body is discarded, so the fan-out
        requests page 1 again.

        Returns:
            Total page count, 0 if the last page link is malformed
        """
        response = self._get(1)
        link_header = response.headers.get("link")
        if not link_header:
            logger.info(f"No link header for {self.user_name}, assuming a single page")
            return 1
        total_pages = parse_last_page(link_header)
        logger.info(f"User {self.user_name} has {total_pages} pages of starred repositories")
        return total_pages

    def get_starred_page(self, page: int) -> List[RemoteRepository]:
        """
        Fetch one page of starred repositories.

        Args:
            page: 1-based page number

        Returns:
            Repositories on that page

        Raises:
            RateLimitExceeded: If rate limit is exceeded
            GitHubAPIError: If the request fails or the body is not a JSON array
        """
        response = self._get(page)
        try:
            data = response.json()
        except ValueError as e:
            raise GitHubAPIError(f"Invalid JSON body for page {page}: {e}") from e

        if not isinstance(data, list):
            raise GitHubAPIError(f"Expected a JSON array for page {page}, got {type(data).__name__}")

        try:
            repositories = [RemoteRepository.from_api(node) for node in data]
        except (KeyError, TypeError, AttributeError) as e:
            raise GitHubAPIError(f"Malformed repository in page {page}: {e!r}") from e

        logger.debug(f"Page {page}: {len(repositories)} repositories")
        return repositories

    def close(self):
        """Close the underlying HTTP session."""
        self.session.close()
