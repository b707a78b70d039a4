"""
Exclusive ownership of the image/container namespace.

Image tags and container names are derived from fixture names, so two suite
runs against the same engine would remove each other's images. A run takes
a file lock keyed by engine and run id; a second run with the same key
fails fast instead of corrupting the first.

Usage:
    with namespace_lock("docker", run_id=None):
        runner.run()
"""

import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout as LockTimeout

from imagetest.core.exceptions import NamespaceLockedError

logger = logging.getLogger(__name__)


def get_lock_dir() -> Path:
    """Directory holding namespace lock files."""
    return Path(tempfile.gettempdir()) / "imagetest"


def lock_path_for(engine: str, run_id: Optional[str] = None, lock_dir: Optional[Path] = None) -> Path:
    """Lock file path for an engine namespace."""
    lock_dir = Path(lock_dir) if lock_dir else get_lock_dir()
    key = engine.replace("/", "-").replace("\\", "-").replace(":", "-")
    if run_id:
        key += f"-{run_id}"
    return lock_dir / f"namespace-{key}.lock"


@contextmanager
def namespace_lock(
    engine: str,
    run_id: Optional[str] = None,
    timeout: float = 0,
    lock_dir: Optional[Path] = None,
):
    """
    Hold the namespace lock for the duration of the block.

    Args:
        engine: Container engine binary name
        run_id: Optional run id; distinct ids use distinct namespaces
        timeout: Seconds to wait for the lock (0 = fail immediately)
        lock_dir: Override of the lock directory

    Raises:
        NamespaceLockedError: If another run holds the lock
    """
    lock_path = lock_path_for(engine, run_id, lock_dir)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(lock_path, timeout=timeout)

    try:
        with lock:
            logger.debug(f"Acquired namespace lock: {lock_path}")
            yield lock_path
            logger.debug(f"Released namespace lock: {lock_path}")
    except LockTimeout as e:
        raise NamespaceLockedError(
            f"Could not acquire {lock_path}. "
            "Another imagetest run may be using the same namespace; "
            "set TEST_RUN_ID to run suites side by side."
        ) from e
