"""Unit tests for the language and paging dependencies."""

from unittest.mock import MagicMock

import pytest

from core.request_params import get_paging, get_request_language
from core.wide_event import get_wide_event


def _request(accept_language: str | None = None) -> MagicMock:
    request = MagicMock()
    headers = {"accept-language": accept_language} if accept_language else {}
    request.headers = headers
    return request


@pytest.mark.unit
class TestGetPaging:
    def test_defaults(self):
        assert get_paging() == (1, 10)

    def test_limit_is_clamped(self):
        paging = get_paging(page=3, limit=1000)

        assert paging.page == 3
        assert paging.limit == 100


@pytest.mark.unit
class TestGetRequestLanguage:
    def test_query_wins_over_header(self):
        assert get_request_language(_request("vi"), lang="en") == "en"

    def test_header_used_without_query(self):
        assert get_request_language(_request("vi-VN,vi;q=0.9")) == "vi"

    def test_unsupported_query_falls_back_to_default(self):
        assert get_request_language(_request(), lang="fr") == "en"

    def test_records_language_on_wide_event(self):
        get_request_language(_request("vi"))

        assert get_wide_event()["request_lang"] == "vi"
