"""
Image builders.

S2IBuilder drives the source-to-image tool against the builder image under
test; DockerfileBuilder assembles runtime images from extracted artifacts.
"""

from .base import (
    NO_IMAGE,
    BuildFailed,
    BuildResult,
    Built,
    GitSource,
    ImageBuilder,
    Source,
)
from .dockerfile import DockerfileBuilder, render_dockerfile
from .s2i import S2IBuilder

__all__ = [
    "NO_IMAGE",
    "BuildFailed",
    "BuildResult",
    "Built",
    "GitSource",
    "ImageBuilder",
    "Source",
    "DockerfileBuilder",
    "render_dockerfile",
    "S2IBuilder",
]
