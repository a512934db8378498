"""Hello World: the simplest tern app.

Demonstrates verb registration, path parameters, regex constraints,
JSON responses, and Response chaining.

Run with any ASGI server:
    uvicorn app:app
"""

from tern import App, Request, Response

app = App()


@app.get("/")
def index(request: Request, response: Response) -> None:
    response.send("Hello, World!")


@app.get("/greet/:name")
def greet(request: Request, response: Response) -> None:
    (name,) = request.params("name")
    response.send(f"Hello, {name}!")


@app.get("/square/:n([0-9]+)")
def square(request: Request, response: Response) -> None:
    (n,) = request.params("n")
    response.json({"n": int(n), "square": int(n) ** 2})


@app.get("/api/status")
def status(request: Request, response: Response) -> None:
    response.json({"status": "ok", "version": "0.1.0"})


@app.get("/custom")
def custom(request: Request, response: Response) -> None:
    response.status(201).set("X-Custom", "tern").send("Created")


@app.get("/old")
def old(request: Request, response: Response) -> None:
    response.redirect("/", 301)
