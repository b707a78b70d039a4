"""
Guaranteed release of images, containers and scratch directories.

Every resource a scenario creates is registered with a ResourceScope right
after creation. Leaving the scope releases everything in reverse order,
whether the scenario finished, recorded failures or raised.

CleanupRegistry tracks the live scopes of the process so that Ctrl+C or
SIGTERM still tears them down before the interpreter exits.
"""

from __future__ import annotations

import atexit
import logging
import shutil
import signal
from pathlib import Path
from typing import Any, Callable, List, Optional, Set, Tuple

from imagetest.containers.engine import ContainerEngine, ContainerHandle

logger = logging.getLogger(__name__)


class ResourceScope:
    """
    Teardown stack for one scenario.

    Usage:
        with ResourceScope(engine) as scope:
            scope.image(tag)
            handle = scope.container(engine.run_detached(tag))
            ...
        # container and image are gone here
    """

    def __init__(self, engine: ContainerEngine, registry: Optional[CleanupRegistry] = None):
        self.engine = engine
        self.registry = registry
        self._callbacks: List[Tuple[str, Callable[[], None]]] = []
        self.errors: List[str] = []
        self.closed = False

    def image(self, tag: str) -> str:
        """Remove image `tag` on release."""
        self.callback(f"image {tag}", lambda: self.engine.remove_image(tag))
        return tag

    def container(self, handle: ContainerHandle) -> ContainerHandle:
        """Remove the container on release."""
        self.callback(
            f"container {handle}", lambda: self.engine.remove_container(handle)
        )
        return handle

    def path(self, path: Path) -> Path:
        """Delete a scratch file or directory on release."""

        def _remove():
            if path.is_dir():
                shutil.rmtree(path, ignore_errors=True)
            elif path.exists():
                path.unlink()

        self.callback(f"path {path}", _remove)
        return path

    def callback(self, description: str, func: Callable[[], None]) -> None:
        """Register an arbitrary release step."""
        if self.closed:
            raise RuntimeError("Resource scope already closed")
        self._callbacks.append((description, func))

    def close(self) -> None:
        """
        Release all registered resources, newest first.

        Closing again only releases what is still pending, so a signal
        handler that re-enters close() finishes the remaining steps. An
        interrupt raised by a release step is re-raised once every other
        step has run.
        """
        self.closed = True
        interrupt: Optional[BaseException] = None

        while self._callbacks:
            description, func = self._callbacks.pop()
            logger.debug(f"Releasing {description}")
            try:
                func()
            except Exception as e:
                logger.warning(f"Failed to release {description}: {e}")
                self.errors.append(f"{description}: {e}")
            except BaseException as e:
                logger.warning(f"Interrupted while releasing {description}")
                if interrupt is None:
                    interrupt = e

        if self.registry:
            self.registry.unregister(self)
        if interrupt is not None:
            raise interrupt

    def __enter__(self) -> ResourceScope:
        if self.registry:
            self.registry.register(self)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.close()
        return False


class CleanupRegistry:
    """Releases live scopes at interpreter exit or on SIGINT/SIGTERM."""

    def __init__(self, install_handlers: bool = True):
        self._scopes: Set[ResourceScope] = set()
        self._original_sigint: Any = None
        self._original_sigterm: Any = None

        if install_handlers:
            atexit.register(self.cleanup_all)
            self._original_sigint = signal.signal(signal.SIGINT, self._signal_handler)
            self._original_sigterm = signal.signal(signal.SIGTERM, self._signal_handler)

    def register(self, scope: ResourceScope) -> None:
        self._scopes.add(scope)

    def unregister(self, scope: ResourceScope) -> None:
        self._scopes.discard(scope)

    def cleanup_all(self) -> None:
        for scope in list(self._scopes):
            scope.close()
        self._scopes.clear()

    def restore_handlers(self) -> None:
        """Put back the signal handlers that were active before."""
        if self._original_sigint is not None:
            signal.signal(signal.SIGINT, self._original_sigint)
            self._original_sigint = None
        if self._original_sigterm is not None:
            signal.signal(signal.SIGTERM, self._original_sigterm)
            self._original_sigterm = None

    def _signal_handler(self, signum: int, frame: Any) -> None:
        self.cleanup_all()
        self.restore_handlers()
        if signum == signal.SIGINT:
            raise KeyboardInterrupt
        raise SystemExit(128 + signum)
