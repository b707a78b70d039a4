"""
Container lifecycle management.

ContainerEngine drives the engine CLI; ResourceScope guarantees that what a
scenario creates is removed again.
"""

from .engine import ContainerEngine, ContainerHandle, parse_port_output
from .scope import CleanupRegistry, ResourceScope

__all__ = [
    "ContainerEngine",
    "ContainerHandle",
    "parse_port_output",
    "CleanupRegistry",
    "ResourceScope",
]
