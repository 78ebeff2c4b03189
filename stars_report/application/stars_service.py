"""Application service that builds the starred repositories report."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed, TimeoutError as FuturesTimeoutError
from typing import Dict, List, Optional

from stars_report.domain.repository import (
    OTHERS,
    MarkdownRepo,
    RemoteRepository,
    ReportRow,
    StarredCollection,
    StarsReport,
)
from stars_report.infrastructure.github_client import GitHubAPIError, GitHubRestClient

logger = logging.getLogger(__name__)

MARKDOWN_STAR = "[ [{name}]({uri}) ]"


def group_by_programming_language(repositories: List[RemoteRepository]) -> Dict[str, List[MarkdownRepo]]:
    """
    Partition repositories into buckets keyed by primary language.

    Keys are taken verbatim, so "javascript" and "JavaScript" stay apart.
    Repositories without a language go to ``OTHERS``. Bucket order follows
    the input order and nothing is de-duplicated.
    """
    buckets: Dict[str, List[MarkdownRepo]] = {}
    for repo in repositories:
        key = repo.language if repo.language is not None else OTHERS
        buckets.setdefault(key, []).append(
            MarkdownRepo(full_name=repo.full_name, html_url=repo.html_url, language=repo.language)
        )
    return buckets


def get_sorted_keys(buckets: Dict[str, List[MarkdownRepo]]) -> List[str]:
    return sorted(buckets)


def format_repo_links(entries: List[MarkdownRepo]) -> str:
    return ", ".join(MARKDOWN_STAR.format(name=e.full_name, uri=e.html_url) for e in entries)


def convert_to_rows(buckets: Dict[str, List[MarkdownRepo]]) -> List[ReportRow]:
    """Build one report row per bucket in ascending key order."""
    return [
        ReportRow(language=key, stars=len(buckets[key]), items=format_repo_links(buckets[key]))
        for key in get_sorted_keys(buckets)
    ]


class StarsService:
    """Service for fetching a user's starred repositories and summarising them."""

    DEFAULT_TIMEOUT_SECONDS = 60.0
    MAX_WORKERS = 16

    def __init__(
        self,
        github_client: GitHubRestClient,
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
        dedupe: bool = False,
    ):
        """
        Initialize stars service.

        Args:
            github_client: GitHub API client
            timeout: Deadline in seconds for the whole page fan-out
            max_workers: Upper bound on concurrent page requests
            dedupe: Keep only the first repository seen per full name
        """
        self.github_client = github_client
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT_SECONDS
        self.max_workers = max_workers or self.MAX_WORKERS
        self.dedupe = dedupe

    def get_users_stars(self) -> StarsReport:
        """
        Run the full pipeline: page discovery, fan-out, grouping, rows.

        Returns:
            Report rows sorted by language, flagged partial when some pages
            were not merged
        """
        total_pages = self.github_client.get_total_pages()
        collection = self.get_all_starred_repositories(total_pages)
        buckets = group_by_programming_language(collection.repositories)
        rows = convert_to_rows(buckets)
        logger.info(
            f"Built {len(rows)} language rows from {len(collection)} repositories "
            f"({collection.pages_received}/{collection.pages_expected} pages)"
        )
        return StarsReport(rows=rows, partial=collection.is_partial)

    def get_all_starred_repositories(self, total_pages: int) -> StarredCollection:
        """
        Fetch pages 1..total_pages concurrently and merge them.

        Worker threads only return their page; this method is the single
        consumer that appends to the collection. When the deadline passes the
        pages merged so far are returned and late workers are abandoned.

        Args:
            total_pages: Number of pages to fetch

        Returns:
            Collection of every repository from pages that completed in time
        """
        collection = StarredCollection(pages_expected=max(total_pages, 0))
        if total_pages <= 0:
            return collection

        seen = set()
        executor = ThreadPoolExecutor(max_workers=min(total_pages, self.max_workers))
        try:
            futures = {
                executor.submit(self.github_client.get_starred_page, page): page
                for page in range(1, total_pages + 1)
            }
            try:
                for future in as_completed(futures, timeout=self.timeout):
                    page = futures[future]
                    try:
                        repositories = future.result()
                    except GitHubAPIError as e:
                        logger.error(f"Failed to fetch page {page}: {e}")
                        collection.failed_pages.append(page)
                        continue

                    for repo in repositories:
                        if self.dedupe:
                            if repo.full_name in seen:
                                continue
                            seen.add(repo.full_name)
                        collection.repositories.append(repo)
                    collection.pages_received += 1
            except FuturesTimeoutError:
                logger.warning(
                    f"Timed out after {self.timeout}s with {collection.pages_received}/{total_pages} "
                    f"pages merged; returning partial results"
                )
        finally:
            # Late workers finish on their own; nothing reads their results
            executor.shutdown(wait=False, cancel_futures=True)

        collection.failed_pages.sort()
        return collection
