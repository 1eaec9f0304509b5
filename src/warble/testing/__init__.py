"""Test utilities for warble applications.

::

    from warble.testing import TestClient
"""

from warble.testing.client import TestClient

__all__ = [
    "TestClient",
]
