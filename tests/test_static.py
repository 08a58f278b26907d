"""Tests for static file serving middleware."""

import pytest

from perch.app import App
from perch.middleware.static import StaticFiles
from perch.testing import TestClient


@pytest.fixture
def static_dir(tmp_path):
    """Create temporary static files for testing."""
    static = tmp_path / "static"
    static.mkdir()

    (static / "style.css").write_text("body { color: red; }")
    (static / "app.js").write_text("console.log('hello');")
    (static / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (static / "index.html").write_text("<h1>Home</h1>")
    (static / "shared.txt").write_text("from static")

    sub = static / "css"
    sub.mkdir()
    (sub / "main.css").write_text("h1 { font-size: 2em; }")

    docs = static / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>Docs</h1>")

    return static


@pytest.fixture
def vendor_dir(tmp_path):
    vendor = tmp_path / "vendor"
    vendor.mkdir()
    (vendor / "lib.js").write_text("export default 1;")
    (vendor / "shared.txt").write_text("from vendor")
    return vendor


def fallback(request):
    return f"app handled {request.path}"


# ------------------------------------------------------------------
# Root-level serving
# ------------------------------------------------------------------


class TestStaticFileServing:
    async def test_serves_css_file(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/style.css")
            assert response.status == 200
            assert "text/css" in response.content_type
            assert response.text == "body { color: red; }"

    async def test_serves_binary_file(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/image.png")
            assert response.status == 200
            assert response.content_type == "image/png"
            assert response.body == b"\x89PNG\r\n\x1a\n"

    async def test_serves_nested_file(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/css/main.css")
            assert response.text == "h1 { font-size: 2em; }"

    async def test_cache_control(self, static_dir) -> None:
        static = StaticFiles(fallback, [static_dir], cache_control="no-store")
        async with TestClient(static) as client:
            response = await client.get("/style.css")
            assert response.header("cache-control") == "no-store"

    async def test_percent_encoded_name(self, static_dir) -> None:
        (static_dir / "site main.css").write_text("spaced")
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/site%20main.css")
            assert response.text == "spaced"

    async def test_literal_percent_in_name(self, static_dir) -> None:
        (static_dir / "a%20b.txt").write_text("literal percent")
        (static_dir / "a b.txt").write_text("space file")
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            literal = await client.get("/a%2520b.txt")
            spaced = await client.get("/a%20b.txt")
        assert (literal.status, literal.text) == (200, "literal percent")
        assert (spaced.status, spaced.text) == (200, "space file")

    async def test_decoded_scope_path_served_once(self, static_dir) -> None:
        (static_dir / "a%20b.txt").write_text("literal percent")
        (static_dir / "a b.txt").write_text("space file")
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/a%20b.txt",
            "raw_path": b"/a%2520b.txt",
            "query_string": b"",
            "headers": [],
        }
        messages = []

        async def receive():
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message):
            messages.append(message)

        await StaticFiles(fallback, [static_dir])(scope, receive, send)
        bodies = [m for m in messages if m["type"] == "http.response.body"]
        body = b"".join(m.get("body", b"") for m in bodies)
        assert messages[0]["status"] == 200
        assert body == b"literal percent"

    async def test_default_headers_applied(self, static_dir) -> None:
        static = StaticFiles(fallback, [static_dir], default_headers={"X-Static": "1"})
        async with TestClient(static) as client:
            response = await client.get("/app.js")
            assert response.header("X-Static") == "1"


class TestMultipleDirectories:
    async def test_second_directory_searched(self, static_dir, vendor_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir, vendor_dir])) as client:
            response = await client.get("/lib.js")
            assert response.status == 200
            assert response.text == "export default 1;"

    async def test_first_directory_wins(self, static_dir, vendor_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir, vendor_dir])) as client:
            assert (await client.get("/shared.txt")).text == "from static"

        async with TestClient(StaticFiles(fallback, [vendor_dir, static_dir])) as client:
            assert (await client.get("/shared.txt")).text == "from vendor"


class TestIndexFiles:
    async def test_root_index(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/")
            assert response.text == "<h1>Home</h1>"

    async def test_directory_index_with_slash(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/docs/")
            assert response.text == "<h1>Docs</h1>"

    async def test_directory_without_slash_redirects(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/docs")
            assert response.status == 301
            assert response.header("location") == "/docs/"

    async def test_directory_without_index_falls_through(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/css/")
            assert response.text == "app handled /css/"

    async def test_custom_index_name(self, static_dir) -> None:
        (static_dir / "css" / "default.htm").write_text("css home")
        static = StaticFiles(fallback, [static_dir], index="default.htm")
        async with TestClient(static) as client:
            assert (await client.get("/css/")).text == "css home"


class TestFallThrough:
    async def test_missing_file(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/missing.css")
            assert response.status == 200
            assert response.text == "app handled /missing.css"

    async def test_non_get_methods(self, static_dir) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.post("/style.css")
            assert response.text == "app handled /style.css"

    async def test_wrapped_app_routes(self, static_dir) -> None:
        app = App()

        @app.get("/api/status")
        def status():
            return {"ok": True}

        async with TestClient(StaticFiles(app, [static_dir])) as client:
            assert (await client.get("/api/status")).text == '{"ok": true}'
            assert (await client.get("/style.css")).text == "body { color: red; }"


class TestPrefix:
    async def test_serves_under_prefix(self, static_dir) -> None:
        static = StaticFiles(fallback, [static_dir], prefix="/assets/")
        async with TestClient(static) as client:
            response = await client.get("/assets/style.css")
            assert response.text == "body { color: red; }"

    async def test_outside_prefix_falls_through(self, static_dir) -> None:
        static = StaticFiles(fallback, [static_dir], prefix="/assets")
        async with TestClient(static) as client:
            assert (await client.get("/style.css")).text == "app handled /style.css"
            assert (await client.get("/assetsstyle.css")).text == "app handled /assetsstyle.css"


class TestSecurity:
    @pytest.fixture
    def secret(self, tmp_path):
        (tmp_path / "secret.txt").write_text("top secret")

    async def test_dotdot_rejected(self, static_dir, secret) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/../secret.txt")
            assert response.status == 403
            assert "top secret" not in response.text

    async def test_encoded_dotdot_rejected(self, static_dir, secret) -> None:
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/%2e%2e/secret.txt")
            assert response.status == 403

    async def test_symlink_escape_rejected(self, static_dir, secret, tmp_path) -> None:
        (static_dir / "escape").symlink_to(tmp_path)
        async with TestClient(StaticFiles(fallback, [static_dir])) as client:
            response = await client.get("/escape/secret.txt")
            assert response.status == 403
