"""Test utilities for tern applications::

    from tern.testing import TestClient
"""

from tern.testing.client import TestClient, TestResponse

__all__ = [
    "TestClient",
    "TestResponse",
]
