"""Test utilities for routespec applications.

::

    from routespec.testing import TestClient
"""

from routespec.testing.client import TestClient

__all__ = ["TestClient"]
