"""Tests for perch.http.headers."""

from perch.http.headers import Headers, merge_headers


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        headers = Headers(((b"content-type", b"text/plain"),))
        assert headers["Content-Type"] == "text/plain"
        assert "CONTENT-TYPE" in headers
        assert headers.get("missing") is None

    def test_multiple_values(self) -> None:
        headers = Headers(((b"accept", b"text/html"), (b"accept", b"application/json")))
        assert headers["accept"] == "text/html"
        assert headers.get_list("Accept") == ["text/html", "application/json"]
        assert len(headers) == 1

    def test_raw(self) -> None:
        raw = ((b"x-a", b"1"),)
        assert Headers(raw).raw == raw


class TestMergeHeaders:
    def test_later_source_wins(self) -> None:
        merged = merge_headers({"X-A": "1", "X-B": "2"}, {"X-B": "3"})
        assert merged == {"X-A": "1", "X-B": "3"}

    def test_case_insensitive_collision_keeps_later_spelling(self) -> None:
        merged = merge_headers({"X-Frame-Options": "DENY"}, {"x-frame-options": "SAMEORIGIN"})
        assert merged == {"x-frame-options": "SAMEORIGIN"}

    def test_none_and_pairs_accepted(self) -> None:
        merged = merge_headers(None, [("X-A", "1")], {})
        assert merged == {"X-A": "1"}
