"""Tests for the GitHub REST client."""

import pytest
import requests

from conftest import LINK_HEADER, load_page, make_response
from stars_report.config import ConfigurationError
from stars_report.domain.repository import RemoteRepository
from stars_report.infrastructure.github_client import (
    ERROR_GITHUB_TOKEN,
    ERROR_USER_NAME,
    GitHubAPIError,
    GitHubRestClient,
    RateLimitExceeded,
    build_uri,
)
from stars_report.infrastructure.link_header import InvalidLinkHeader


def make_client(session):
    return GitHubRestClient(token="TOKEN", user_name="alphawong", session=session)


class TestConstruction:

    def test_missing_token(self):
        with pytest.raises(ConfigurationError, match=ERROR_GITHUB_TOKEN):
            GitHubRestClient(token="", user_name="alphawong")

    def test_missing_user_name(self):
        with pytest.raises(ConfigurationError, match=ERROR_USER_NAME):
            GitHubRestClient(token="TOKEN", user_name="")


class TestBuildUri:

    def test_query_is_sorted(self):
        uri = build_uri(GitHubRestClient.STARRED_URI, "alphawong", {"per_page": 100, "page": 1})
        assert uri == "https://api.github.com/users/alphawong/starred?page=1&per_page=100"

    def test_invalid_base_uri(self):
        with pytest.raises(ValueError, match="missing protocol scheme"):
            build_uri("::!2312:#", "alphawong", {"page": 1})


class TestGetTotalPages:

    def test_reads_link_header(self, fake_session):
        session = fake_session({1: make_response(body=[], headers={"Link": LINK_HEADER})})
        assert make_client(session).get_total_pages() == 63

    def test_sends_auth_and_accept_headers(self, fake_session):
        session = fake_session({1: make_response(body=[], headers={"link": LINK_HEADER})})
        make_client(session).get_total_pages()

        args, kwargs = session.get.call_args
        assert args[0] == "https://api.github.com/users/alphawong/starred?page=1&per_page=100"
        assert kwargs["headers"]["Authorization"] == "token TOKEN"
        assert kwargs["headers"]["Accept"] == "application/vnd.github.v3+json"
        assert kwargs["timeout"] == GitHubRestClient.REQUEST_TIMEOUT_SECONDS

    def test_no_link_header_means_single_page(self, fake_session):
        session = fake_session({1: make_response(body=load_page("page_1.json"))})
        assert make_client(session).get_total_pages() == 1

    def test_single_segment_header_is_fatal(self, fake_session):
        header = '<https://api.github.com/user/1/starred?page=2>; rel="next"'
        session = fake_session({1: make_response(body=[], headers={"link": header})})
        with pytest.raises(InvalidLinkHeader):
            make_client(session).get_total_pages()

    def test_transport_error_propagates(self, fake_session):
        session = fake_session({1: requests.exceptions.ConnectionError("connection refused")})
        with pytest.raises(GitHubAPIError, match="connection refused"):
            make_client(session).get_total_pages()


class TestGetStarredPage:

    def test_decodes_repositories(self, fake_session):
        session = fake_session({2: make_response(body=load_page("page_2.json"))})
        repos = make_client(session).get_starred_page(2)
        assert repos == [
            RemoteRepository(
                id=83573413,
                full_name="stefanwuthrich/cached-google-places",
                html_url="https://github.com/stefanwuthrich/cached-google-places",
                language="JavaScript",
            )
        ]

    def test_null_language_is_none(self, fake_session):
        session = fake_session({3: make_response(body=load_page("page_3.json"))})
        (repo,) = make_client(session).get_starred_page(3)
        assert repo.language is None

    def test_empty_language_is_none(self, fake_session):
        body = [{"id": 1, "full_name": "a/b", "html_url": "https://github.com/a/b", "language": ""}]
        session = fake_session({1: make_response(body=body)})
        (repo,) = make_client(session).get_starred_page(1)
        assert repo.language is None

    def test_invalid_json(self, fake_session):
        session = fake_session({1: make_response(text="<html>")})
        with pytest.raises(GitHubAPIError, match="Invalid JSON"):
            make_client(session).get_starred_page(1)

    def test_non_array_body(self, fake_session):
        session = fake_session({1: make_response(body={"message": "Not Found"})})
        with pytest.raises(GitHubAPIError, match="JSON array"):
            make_client(session).get_starred_page(1)

    def test_missing_fields(self, fake_session):
        session = fake_session({1: make_response(body=[{"id": 1, "language": "Go"}])})
        with pytest.raises(GitHubAPIError, match="Malformed repository"):
            make_client(session).get_starred_page(1)

    def test_unauthorized(self, fake_session):
        session = fake_session({1: make_response(status_code=401, body={"message": "Bad credentials"})})
        with pytest.raises(GitHubAPIError, match="Authentication failed"):
            make_client(session).get_starred_page(1)

    def test_rate_limited(self, fake_session):
        response = make_response(
            status_code=403,
            body={"message": "API rate limit exceeded"},
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"},
        )
        session = fake_session({1: response})
        with pytest.raises(RateLimitExceeded, match="1700000000"):
            make_client(session).get_starred_page(1)

    def test_server_error(self, fake_session):
        session = fake_session({1: make_response(status_code=502, body={"message": "Bad Gateway"})})
        with pytest.raises(GitHubAPIError, match="502"):
            make_client(session).get_starred_page(1)
