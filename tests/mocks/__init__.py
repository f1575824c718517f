"""
Test doubles for cachebench.

Usage:
    from tests.mocks import FailingClient, FlakyClient, make_result
"""

from .failing_client import FailingClient, FlakyClient
from .results import make_result

__all__ = ["FailingClient", "FlakyClient", "make_result"]
