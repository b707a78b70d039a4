"""
In-memory stand-ins for the container engine and the image builders.

They let pipelines, the runner and the scenarios be tested without a
container engine. HTTP traffic is mocked separately with `responses`.
"""

from .builder import FakeBuilder
from .engine import FakeEngine

__all__ = ["FakeBuilder", "FakeEngine"]
