"""ASGI response sending: flushes a buffered ResponseWriter as ASGI messages."""

from tern._internal.asgi import Send
from tern.http.response import TEXT_PLAIN, ResponseWriter


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(writer: ResponseWriter, send: Send, *, method: str = "GET") -> None:
    """Translate the buffered response into ASGI send() calls.

    The body is dropped for HEAD requests and for statuses that forbid
    one; ``content-length`` still reflects the buffered body for HEAD.
    """
    status = writer.status
    body = writer.body if _body_allowed(status) else b""

    raw_headers: list[tuple[bytes, bytes]] = []
    if body and "Content-Type" not in writer.headers:
        raw_headers.append((b"content-type", TEXT_PLAIN.encode("latin-1")))
    for name, value in writer.headers.items():
        if name.lower() == "content-length":
            continue
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    if _body_allowed(status):
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if method == "HEAD" else body,
        }
    )
