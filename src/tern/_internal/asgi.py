"""Raw ASGI type aliases.

Only the dispatcher, the sender, and the test client touch ASGI
messages directly. Everything else works with ``Request`` and
``Response``.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

Scope: TypeAlias = MutableMapping[str, Any]
Message: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[Message]]
Send: TypeAlias = Callable[[Message], Awaitable[None]]
