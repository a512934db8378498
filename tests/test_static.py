"""Tests for the static file fallback."""

import pytest

from tern.app import App
from tern.config import AppConfig
from tern.server.static import StaticFallback
from tern.testing import TestClient


@pytest.fixture
def static_dir(tmp_path):
    """Create temporary static files for testing."""
    static = tmp_path / "static"
    static.mkdir()

    (static / "style.css").write_text("body { color: red; }")
    (static / "data.bin").write_bytes(b"\x00\x01\x02\x03")
    (static / "missing").write_text("found after all")

    docs = static / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>Docs</h1>")

    (static / "empty").mkdir()
    (tmp_path / "secret.txt").write_text("top secret")
    return static


def ok(request, response):
    response.send("route")


class TestRootStatic:
    async def test_unmatched_path_served_from_folder(self, static_dir) -> None:
        app = App().get("/", ok).static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/missing")
            assert response.status == 200
            assert response.text == "found after all"

    async def test_route_takes_priority(self, static_dir) -> None:
        app = App().get("/missing", ok).static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/missing")
            assert response.text == "route"

    async def test_content_type_guessed(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/style.css")
            assert "text/css" in response.content_type

    async def test_unknown_type_is_octet_stream(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/data.bin")
            assert response.content_type == "application/octet-stream"
            assert response.body == b"\x00\x01\x02\x03"

    async def test_absent_file_is_404(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/nope.txt")
            assert response.status == 404
            assert response.text == "404 page not found"
            assert response.content_type.startswith("text/plain")

    async def test_static_path_itself_is_404(self, static_dir) -> None:
        app = App().static(str(static_dir), "/assets")

        async with TestClient(app) as client:
            response = await client.get("/assets")
            assert response.status == 404

    async def test_static_path_prefix_stripped(self, static_dir) -> None:
        app = App().static(str(static_dir), "/assets")

        async with TestClient(app) as client:
            response = await client.get("/assets/style.css")
            assert response.status == 200
            assert response.text == "body { color: red; }"

    async def test_outside_static_path_is_404(self, static_dir) -> None:
        app = App().static(str(static_dir), "/assets")

        async with TestClient(app) as client:
            response = await client.get("/style.css")
            assert response.status == 404

    async def test_no_folder_configured(self) -> None:
        async with TestClient(App()) as client:
            response = await client.get("/anything")
            assert response.status == 404

    async def test_path_traversal_refused(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/../secret.txt")
            assert response.status == 404
            assert "secret" not in response.text

    async def test_directory_index(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/docs/")
            assert response.status == 200
            assert response.text == "<h1>Docs</h1>"

    async def test_directory_without_slash_redirects(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/docs")
            assert response.status == 301
            assert response.headers["location"] == "/docs/"

    async def test_directory_without_index_is_404(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.get("/empty/")
            assert response.status == 404

    async def test_head_has_no_body(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.head("/style.css")
            assert response.status == 200
            assert response.body == b""
            assert response.headers["content-length"] == str(len("body { color: red; }"))

    async def test_post_is_404(self, static_dir) -> None:
        app = App().static(str(static_dir))

        async with TestClient(app) as client:
            response = await client.post("/style.css")
            assert response.status == 404


class TestMountedStatic:
    async def test_mounted_folder_under_prefix(self, static_dir, tmp_path) -> None:
        other = tmp_path / "other"
        other.mkdir()
        (other / "guide.txt").write_text("mounted guide")

        app = App().static(str(static_dir)).mount("/docs", App().static(str(other)))

        async with TestClient(app) as client:
            response = await client.get("/docs/guide.txt")
            assert response.status == 200
            assert response.text == "mounted guide"

            response = await client.get("/style.css")
            assert response.status == 200

    async def test_mounted_static_path(self, tmp_path) -> None:
        other = tmp_path / "other"
        other.mkdir()
        (other / "logo.svg").write_text("<svg/>")

        app = App().mount("/blog", App().static(str(other), "/media"))

        async with TestClient(app) as client:
            response = await client.get("/blog/media/logo.svg")
            assert response.status == 200
            assert response.text == "<svg/>"


class TestServerless:
    async def test_folder_read_under_serverless_root(self, static_dir, tmp_path) -> None:
        app = App(AppConfig(serverless_root=f"{tmp_path}/")).serverless().static("static")

        async with TestClient(app) as client:
            response = await client.get("/style.css")
            assert response.status == 200


class TestSelection:
    def test_select_path_prefers_longest(self) -> None:
        fallback = StaticFallback(
            "root",
            "/",
            paths={"/api": "/", "/api/v1": "/files"},
        )
        assert fallback.select_path("/api/v1/files/a.txt") == "/api/v1/files"
        assert fallback.select_path("/api/b.txt") == "/api"
        assert fallback.select_path("/web/c.txt") == "/"

    def test_bare_root_candidate_ignored(self) -> None:
        fallback = StaticFallback("root", "/assets", paths={"/": "/"})
        assert fallback.select_path("/x") == "/assets"

    def test_empty_prefix_root_path(self) -> None:
        fallback = StaticFallback("root", "/assets", paths={"": "/"})
        assert fallback.select_path("/x") == "/"

    def test_select_folder_falls_back_to_root(self) -> None:
        fallback = StaticFallback("root", folders={"/docs": "docs"})
        assert fallback.select_folder("/docs/a") == "docs"
        assert fallback.select_folder("/blog/a") == "root"

    def test_serverless_root_prefixes_folder(self) -> None:
        fallback = StaticFallback("public", serverless_root="fn/")
        assert fallback.select_folder("/a") == "fn/public"
