"""
Image builder interface for imagetest.

This module defines the abstract base class for image builders and the
tagged result every build produces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

# Never a valid image reference, so it cannot collide with a real tag
NO_IMAGE = "<no-image>"


@dataclass(frozen=True)
class GitSource:
    """Remote git repository used as build source."""

    url: str
    ref: Optional[str] = None
    context_dir: Optional[str] = None


Source = Union[Path, GitSource]


@dataclass(frozen=True)
class BuildResult(ABC):
    """Outcome of one image build; `log` holds the combined build output."""

    log: str

    @property
    @abstractmethod
    def success(self) -> bool:
        """True if the build produced an image."""

    @property
    @abstractmethod
    def tag(self) -> str:
        """Image tag, or NO_IMAGE when there is none."""


@dataclass(frozen=True)
class Built(BuildResult):
    """The build produced an image."""

    image: str

    @property
    def success(self) -> bool:
        return True

    @property
    def tag(self) -> str:
        return self.image


@dataclass(frozen=True)
class BuildFailed(BuildResult):
    """The build tool exited nonzero."""

    exit_code: int

    @property
    def success(self) -> bool:
        return False

    @property
    def tag(self) -> str:
        return NO_IMAGE


class ImageBuilder(ABC):
    """
    Abstract base class for image builders.

    A builder turns a source (local directory or git repository) plus a
    base image into a tagged image, removing any stale image with the same
    tag first.
    """

    @abstractmethod
    def build(
        self,
        source: Source,
        base_image: str,
        tag: str,
        env: Optional[Dict[str, str]] = None,
    ) -> BuildResult:
        """
        Build an image.

        Args:
            source: Local source directory or GitSource
            base_image: Image the build starts from
            tag: Tag of the resulting image
            env: Extra build-time environment

        Returns:
            Built on success, BuildFailed otherwise
        """
        pass
