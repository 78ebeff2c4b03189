import json
from pathlib import Path
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from requests.structures import CaseInsensitiveDict

MOCK_DATA = Path(__file__).parent / "mock_data"

LINK_HEADER = (
    '<https://api.github.com/user/5622516/starred?page=2>; rel="next", '
    '<https://api.github.com/user/5622516/starred?page=63>; rel="last"'
)


def load_page(name):
    return json.loads((MOCK_DATA / name).read_text(encoding="utf-8"))


def make_response(status_code=200, body=None, headers=None, text=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.headers = CaseInsensitiveDict(headers or {})
    response.text = text if text is not None else json.dumps(body)
    if text is not None:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.json.return_value = body
    return response


def page_of(uri):
    return int(parse_qs(urlparse(uri).query)["page"][0])


@pytest.fixture
def fake_session():
    """Session whose GET returns ``responses[page]`` for the requested page."""

    def build(responses):
        session = MagicMock(spec=requests.Session)

        def get(uri, headers=None, timeout=None):
            result = responses[page_of(uri)]
            if isinstance(result, Exception):
                raise result
            return result

        session.get.side_effect = get
        return session

    return build


@pytest.fixture
def three_pages():
    return {
        1: make_response(body=load_page("page_1.json")),
        2: make_response(body=load_page("page_2.json")),
        3: make_response(body=load_page("page_3.json")),
    }
