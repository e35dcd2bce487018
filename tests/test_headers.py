"""Tests for switchyard.http.headers — case-insensitive header mapping."""

from switchyard.http.headers import Headers


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        headers = Headers((("Content-Type", "text/plain"),))
        assert headers["content-type"] == "text/plain"
        assert headers["CONTENT-TYPE"] == "text/plain"
        assert "Content-Type" in headers

    def test_first_value_wins(self) -> None:
        headers = Headers((("Accept", "a"), ("accept", "b")))
        assert headers["accept"] == "a"
        assert headers.get_list("Accept") == ["a", "b"]

    def test_get_default(self) -> None:
        assert Headers().get("x-missing", "fallback") == "fallback"

    def test_len_counts_unique_names(self) -> None:
        headers = Headers((("A", "1"), ("a", "2"), ("B", "3")))
        assert len(headers) == 2
        assert list(headers) == ["a", "b"]

    def test_non_string_key_not_contained(self) -> None:
        assert 1 not in Headers((("a", "1"),))


class TestFromEnviron:
    def test_http_prefixed_keys(self) -> None:
        headers = Headers.from_environ({"HTTP_X_REQUESTED_WITH": "XMLHttpRequest", "PATH_INFO": "/"})
        assert headers["x-requested-with"] == "XMLHttpRequest"
        assert "path-info" not in headers

    def test_content_headers_without_prefix(self) -> None:
        headers = Headers.from_environ({"CONTENT_TYPE": "application/json", "CONTENT_LENGTH": "12"})
        assert headers["content-type"] == "application/json"
        assert headers["content-length"] == "12"

    def test_empty_content_headers_skipped(self) -> None:
        headers = Headers.from_environ({"CONTENT_TYPE": "", "CONTENT_LENGTH": ""})
        assert len(headers) == 0
