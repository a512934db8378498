"""Modular Site: mounted sub-applications, templates, and static files.

Demonstrates:
- A root app serving files from ``public/`` when no route matches
- A blog module mounted under ``/blog`` with ``App.mount()``
- An admin module built with ``App.register()`` that carries its own
  middleware and template, both scoped to ``/admin``

Run with any ASGI server:
    uvicorn app:app
"""

from pathlib import Path

from tern import App, Request, Response
from tern.middleware.protocol import Next

HERE = Path(__file__).parent
PUBLIC_DIR = HERE / "public"
TEMPLATES_DIR = HERE / "templates"

POSTS = {"hello": "Hello, tern", "mounting": "Mounting apps"}


# ---------------------------------------------------------------------------
# Blog module
# ---------------------------------------------------------------------------

blog = App()


@blog.get("/")
def list_posts(request: Request, response: Response) -> None:
    response.json(sorted(POSTS))


@blog.get("/:slug")
def show_post(request: Request, response: Response) -> None:
    (slug,) = request.params("slug")
    if slug not in POSTS:
        response.status(404).send("no such post")
        return
    response.render({"title": POSTS[slug]})


# ---------------------------------------------------------------------------
# Admin module
# ---------------------------------------------------------------------------


async def admin_only(request: Request, response: Response, next: Next) -> None:
    if request.basic_auth() != ("admin", "hunter2"):
        response.set("WWW-Authenticate", 'Basic realm="admin"')
        request = request.with_error("admin login required", 401)
    await next(request, response)


def admin(app: App) -> App:
    app.use(admin_only).template(str(TEMPLATES_DIR / "admin.html"))

    @app.get("/")
    def dashboard(request: Request, response: Response) -> None:
        user, _ = request.basic_auth()
        response.render({"user": user})

    return app


# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = App()
app.static(str(PUBLIC_DIR))
app.template(str(TEMPLATES_DIR / "page.html"))
app.mount("/blog", blog)
app.register(admin, "/admin")


@app.get("/")
def home(request: Request, response: Response) -> None:
    response.render({"title": "Home"})
