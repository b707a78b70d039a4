"""
Unit tests for the namespace lock.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from filelock import Timeout as LockTimeout

from imagetest.core.exceptions import NamespaceLockedError
from imagetest.core.locking import get_lock_dir, lock_path_for, namespace_lock


class TestLockPath:
    """Tests for lock file naming."""

    def test_default_lock_dir(self):
        """Locks live in a dedicated temp subdirectory."""
        assert get_lock_dir().name == "imagetest"

    def test_engine_only(self, tmp_path):
        """Without run id the key is the engine name."""
        assert lock_path_for("docker", lock_dir=tmp_path) == tmp_path / "namespace-docker.lock"

    def test_run_id_changes_key(self, tmp_path):
        """Distinct run ids use distinct lock files."""
        first = lock_path_for("docker", "ci-1", tmp_path)
        second = lock_path_for("docker", "ci-2", tmp_path)

        assert first != second
        assert first.name == "namespace-docker-ci-1.lock"

    def test_engine_path_sanitized(self, tmp_path):
        """Engine given as a path does not escape the lock directory."""
        path = lock_path_for("/usr/bin/podman", lock_dir=tmp_path)
        assert path.parent == tmp_path


class TestNamespaceLock:
    """Tests for namespace_lock()."""

    def test_acquire_and_release(self, tmp_path):
        """The lock file exists while held and can be reacquired afterwards."""
        with namespace_lock("docker", lock_dir=tmp_path) as lock_path:
            assert Path(lock_path).parent == tmp_path
            assert lock_path.exists()

        with namespace_lock("docker", lock_dir=tmp_path):
            pass

    def test_creates_lock_dir(self, tmp_path):
        """A missing lock directory is created."""
        lock_dir = tmp_path / "nested" / "locks"

        with namespace_lock("docker", lock_dir=lock_dir):
            assert lock_dir.is_dir()

    def test_held_lock_raises(self, tmp_path):
        """A held namespace fails fast with NamespaceLockedError."""
        lock = MagicMock()
        lock.__enter__.side_effect = LockTimeout(str(tmp_path / "namespace-docker.lock"))

        with patch("imagetest.core.locking.FileLock", return_value=lock):
            with pytest.raises(NamespaceLockedError, match="TEST_RUN_ID"):
                with namespace_lock("docker", lock_dir=tmp_path):
                    pytest.fail("body must not run")

    def test_exception_releases_lock(self, tmp_path):
        """An exception inside the block still releases the lock."""
        with pytest.raises(RuntimeError):
            with namespace_lock("docker", lock_dir=tmp_path):
                raise RuntimeError("boom")

        with namespace_lock("docker", lock_dir=tmp_path):
            pass
