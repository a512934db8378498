"""Custom Middleware: function and class middleware examples.

Demonstrates:
- Function middleware (timing, adds X-Response-Time header)
- Class middleware (rate limiter, 5 req/min per IP, aborts with 429)
- Route middleware (token check on a single route)
- threading.Lock for thread-safe shared state

Run with any ASGI server:
    uvicorn app:app
"""

import asyncio
import threading
import time

from tern import App, Request, Response
from tern.middleware.protocol import Next

app = App()


# ---------------------------------------------------------------------------
# Function middleware: timing
# ---------------------------------------------------------------------------


async def timing(request: Request, response: Response, next: Next) -> None:
    """Add X-Response-Time header to every response."""
    start = time.monotonic()
    await next(request, response)
    elapsed = time.monotonic() - start
    response.set("X-Response-Time", f"{elapsed:.3f}s")


# ---------------------------------------------------------------------------
# Class middleware: rate limiter
# ---------------------------------------------------------------------------


class RateLimiter:
    """Per-IP rate limiter. Aborts with 429 when the limit is exceeded."""

    def __init__(self, max_requests: int, window: float) -> None:
        self.max_requests = max_requests
        self.window = window
        self._counts: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def __call__(self, request: Request, response: Response, next: Next) -> None:
        # Use X-Forwarded-For if behind a proxy; else the peer address
        client_ip = request.headers.get("x-forwarded-for", request.remote_addr)
        if "," in client_ip:
            client_ip = client_ip.split(",")[0].strip()

        with self._lock:
            now = time.monotonic()
            hits = self._counts.setdefault(client_ip, [])
            hits[:] = [t for t in hits if now - t < self.window]

            if len(hits) >= self.max_requests:
                request = request.with_error("Too Many Requests", 429)
            else:
                hits.append(now)

        next(request, response)


# ---------------------------------------------------------------------------
# Route middleware: token check
# ---------------------------------------------------------------------------


async def require_token(request: Request, response: Response, next: Next) -> None:
    if request.headers.get("authorization") != "Bearer letmein":
        request = request.with_error("unauthorized", 401)
    await next(request, response)


# ---------------------------------------------------------------------------
# Middleware stack (order: last added runs first on request)
# ---------------------------------------------------------------------------

app.use(RateLimiter(max_requests=5, window=60.0))
app.use(timing)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/")
def index(request: Request, response: Response) -> None:
    response.send("OK")


@app.get("/slow")
async def slow(request: Request, response: Response) -> None:
    await asyncio.sleep(0.1)
    response.send("OK")


@app.get("/admin", None, require_token)
def admin(request: Request, response: Response) -> None:
    response.send("welcome")
