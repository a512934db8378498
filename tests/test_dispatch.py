"""End-to-end dispatch tests through the ASGI interface."""

import logging

import pytest

from tern.app import App
from tern.context import ContextKey
from tern.testing import TestClient

USER = ContextKey("user")


class TestRouting:
    async def test_params_end_to_end(self) -> None:
        app = App()

        @app.get("/view/user/:id/view/:name")
        def view(request, response):
            response.json({"all": request.params(), "name": request.params("name")})

        async with TestClient(app) as client:
            response = await client.get("/view/user/6/view/agus")
            assert response.status == 200
            assert response.json() == {"all": ["6", "agus"], "name": ["agus"]}

    async def test_constraint_selects_route(self) -> None:
        app = App()
        app.get("/user/:id([0-9]+)", lambda req, res: res.send("by id"))

        async with TestClient(app) as client:
            assert (await client.get("/user/9")).text == "by id"
            assert (await client.get("/user/agus")).status == 404

    async def test_method_mismatch_falls_back(self) -> None:
        app = App().post("/items", lambda req, res: res.send("created"))

        async with TestClient(app) as client:
            response = await client.get("/items")
            assert response.status == 404
            assert response.text == "404 page not found"

    async def test_handler_without_body(self) -> None:
        app = App().delete("/items/:id", lambda req, res: res.write_header(204))

        async with TestClient(app) as client:
            response = await client.delete("/items/1")
            assert response.status == 204
            assert response.body == b""

    async def test_head_route_sends_no_body(self) -> None:
        app = App().head("/ping", lambda req, res: res.send("pong"))

        async with TestClient(app) as client:
            response = await client.head("/ping")
            assert response.status == 200
            assert response.body == b""
            assert response.headers["content-length"] == "4"

    async def test_async_handler_reads_body(self) -> None:
        app = App()

        @app.post("/echo")
        async def echo(request, response):
            response.json(await request.json())

        async with TestClient(app) as client:
            response = await client.post("/echo", json={"a": 1})
            assert response.json() == {"a": 1}


class TestMiddleware:
    async def test_global_then_route(self) -> None:
        order: list[str] = []

        async def global_mw(request, response, next):
            order.append("global")
            await next(request, response)

        async def route_mw(request, response, next):
            order.append("route")
            await next(request, response)

        def handler(request, response):
            order.append("handler")
            response.send("ok")

        app = App().use(global_mw).get("/", handler, route_mw)

        async with TestClient(app) as client:
            await client.get("/")
        assert order == ["global", "route", "handler"]

    async def test_abort_writes_error_once(self) -> None:
        calls = []

        async def guard(request, response, next):
            if request.headers.get("authorization") is None:
                request = request.with_error("unauthorized", 401)
            await next(request, response)

        def handler(request, response):
            calls.append(1)
            response.send("secret")

        app = App().use(guard).get("/private", handler)

        async with TestClient(app) as client:
            response = await client.get("/private")
            assert response.status == 401
            assert response.text == "unauthorized"
            assert calls == []

            response = await client.get("/private", headers={"Authorization": "x"})
            assert response.text == "secret"
            assert calls == [1]

    async def test_middleware_annotates_context(self) -> None:
        async def login(request, response, next):
            await next(request.with_context(USER, "agus"), response)

        def handler(request, response):
            response.send(request.context[USER])

        app = App().use(login).get("/me", handler)

        async with TestClient(app) as client:
            assert (await client.get("/me")).text == "agus"

    async def test_mount_middleware_only_under_prefix(self) -> None:
        seen: list[str] = []

        async def api_only(request, response, next):
            seen.append(request.path)
            response.set("X-Api", "1")
            await next(request, response)

        api = App().use(api_only).get("/items", lambda req, res: res.send("items"))
        app = App().get("/", lambda req, res: res.send("home")).mount("/api", api)

        async with TestClient(app) as client:
            response = await client.get("/api/items")
            assert response.text == "items"
            assert response.headers.get("x-api") == "1"

            response = await client.get("/")
            assert response.text == "home"
            assert response.headers.get("x-api") is None

        assert seen == ["/api/items"]

    async def test_short_circuit_without_next(self) -> None:
        def maintenance(request, response, next):
            response.status(503).send("down")

        app = App().use(maintenance).get("/", lambda req, res: res.send("up"))

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 503
            assert response.text == "down"


class TestMounting:
    async def test_child_root_served_at_prefix(self) -> None:
        api = App().get("/", lambda req, res: res.send("api root"))
        app = App().mount("/api", api)

        async with TestClient(app) as client:
            assert (await client.get("/api")).text == "api root"
            assert (await client.get("/api/")).status == 404

    async def test_child_uses_parent_dependencies(self) -> None:
        child = App().add("db", "child-db")
        child.get("/", lambda req, res: res.send(str(req.dependency("db"))))
        app = App().add("db", "parent-db").mount("/c", child)

        async with TestClient(app) as client:
            assert (await client.get("/c")).text == "parent-db"

    async def test_register(self) -> None:
        def users(app: App) -> App:
            return app.get("/:name", lambda req, res: res.send(req.params("name")[0]))

        app = App().register(users, "/users")

        async with TestClient(app) as client:
            assert (await client.get("/users/agus")).text == "agus"


class TestAmbient:
    async def test_access_log(self, caplog) -> None:
        app = App().log().get("/", lambda req, res: res.send("ok"))

        with caplog.at_level(logging.INFO, logger="tern.access"):
            async with TestClient(app) as client:
                await client.get("/", headers={"User-Agent": "pytest"})

        assert caplog.records[0].getMessage() == "GET / 127.0.0.1:0 pytest"

    async def test_custom_logger(self, caplog) -> None:
        app = App().log(logging.getLogger("myapp.requests")).get("/", lambda req, res: None)

        with caplog.at_level(logging.INFO, logger="myapp.requests"):
            async with TestClient(app) as client:
                await client.get("/")

        assert any(r.name == "myapp.requests" for r in caplog.records)

    async def test_base_context(self) -> None:
        app = App().use_context({"tenant": "acme"})
        app.get("/", lambda req, res: res.send(req.context["tenant"]))

        async with TestClient(app) as client:
            assert (await client.get("/")).text == "acme"

    async def test_provided_dependency(self) -> None:
        class Greeter:
            def greet(self) -> str:
                return "hi"

        app = App().provide(Greeter, Greeter)
        app.get("/", lambda req, res: res.send(req.resolve(Greeter).greet()))

        async with TestClient(app) as client:
            assert (await client.get("/")).text == "hi"

    async def test_handler_error_logged_and_raised(self, caplog) -> None:
        def boom(request, response):
            raise ValueError("boom")

        app = App().get("/", boom)

        with caplog.at_level(logging.ERROR, logger="tern.server"):
            async with TestClient(app) as client:
                with pytest.raises(ValueError, match="boom"):
                    await client.get("/")

        assert any("Unhandled error" in r.getMessage() for r in caplog.records)

    async def test_cookies_round_trip(self) -> None:
        from tern.http.cookies import Cookie

        app = App()
        app.get("/set", lambda req, res: res.cookie(Cookie("theme", "dark")).send("set"))
        app.get("/read", lambda req, res: res.send(req.cookie("theme") or "none"))

        async with TestClient(app) as client:
            response = await client.get("/set")
            assert response.headers.get("set-cookie") == "theme=dark"
            response = await client.get("/read", headers={"Cookie": "theme=dark"})
            assert response.text == "dark"
