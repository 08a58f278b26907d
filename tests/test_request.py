"""Tests for perch.http.request: ASGI scope translation and mount rewriting."""

from typing import Any

from perch.http.request import Request


def _scope(path: str = "/", root_path: str = "", **extra: Any) -> dict[str, Any]:
    scope: dict[str, Any] = {
        "type": "http",
        "method": "GET",
        "path": path,
        "root_path": root_path,
        "query_string": b"",
        "headers": [],
    }
    scope.update(extra)
    return scope


class TestFromAsgi:
    def test_basic_fields(self) -> None:
        request = Request.from_asgi(
            _scope(
                "/users",
                method="POST",
                query_string=b"page=2&tag=a&tag=b",
                headers=[(b"content-type", b"application/json"), (b"content-length", b"7")],
                server=("example.com", 443),
                client=["10.0.0.1", 5555],
            )
        )
        assert request.method == "POST"
        assert request.path == "/users"
        assert request.full_path == "/users"
        assert request.query.get("page") == "2"
        assert request.query.get_list("tag") == ["a", "b"]
        assert request.content_type == "application/json"
        assert request.content_length == 7
        assert request.server == ("example.com", 443)
        assert request.client == ("10.0.0.1", 5555)

    def test_root_path_included_in_path(self) -> None:
        request = Request.from_asgi(_scope("/app/users", root_path="/app"))
        assert request.path == "/users"
        assert request.root_path == "/app"
        assert request.full_path == "/app/users"

    def test_root_path_not_included_in_path(self) -> None:
        request = Request.from_asgi(_scope("/users", root_path="/app"))
        assert request.path == "/users"
        assert request.full_path == "/app/users"

    def test_path_equal_to_root_path(self) -> None:
        request = Request.from_asgi(_scope("/app", root_path="/app"))
        assert request.path == "/"
        assert request.full_path == "/app"

    def test_url_includes_query(self) -> None:
        request = Request.from_asgi(_scope("/search", query_string=b"q=perch"))
        assert request.url == "/search?q=perch"

    def test_bad_content_length(self) -> None:
        request = Request.from_asgi(_scope(headers=[(b"content-length", b"lots")]))
        assert request.content_length is None


class TestRemount:
    def test_prefix_moves_to_root_path(self) -> None:
        request = Request.from_asgi(_scope("/tests/subapp/hello"))
        sub = request.remount("/tests/subapp")
        assert sub.path == "/hello"
        assert sub.root_path == "/tests/subapp"
        assert sub.full_path == "/tests/subapp/hello"

    def test_exact_prefix_becomes_root(self) -> None:
        sub = Request.from_asgi(_scope("/tests/subapp")).remount("/tests/subapp")
        assert sub.path == "/"

    def test_remount_twice(self) -> None:
        request = Request.from_asgi(_scope("/a/b/c"))
        inner = request.remount("/a").remount("/b")
        assert inner.path == "/c"
        assert inner.root_path == "/a/b"
        assert inner.full_path == "/a/b/c"

    def test_path_params_reset(self) -> None:
        request = Request.from_asgi(_scope("/a/b")).with_path_params({"x": "1"})
        assert request.remount("/a").path_params == {}

    def test_original_unchanged(self) -> None:
        request = Request.from_asgi(_scope("/a/b"))
        request.remount("/a")
        assert request.path == "/a/b"
        assert request.root_path == ""


class TestBody:
    async def test_body_from_chunks(self) -> None:
        messages = iter(
            [
                {"type": "http.request", "body": b'{"a": ', "more_body": True},
                {"type": "http.request", "body": b"1}", "more_body": False},
            ]
        )

        async def receive():
            return next(messages)

        request = Request.from_asgi(_scope(method="POST"), receive)
        assert await request.json() == {"a": 1}
        # cached after the first read
        assert await request.text() == '{"a": 1}'

    async def test_body_shared_with_derived_requests(self) -> None:
        async def receive():
            return {"type": "http.request", "body": b"payload", "more_body": False}

        request = Request.from_asgi(_scope("/a/b", method="POST"), receive)
        assert await request.body() == b"payload"
        assert await request.remount("/a").body() == b"payload"

    async def test_no_receive_is_empty(self) -> None:
        request = Request.from_asgi(_scope())
        assert await request.body() == b""
