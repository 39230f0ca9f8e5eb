"""Tests for the migration lock file."""

import os
import time

import pytest

from uplift.exceptions import MigrationLockedError
from uplift.storage.lock import MigrationLock


def test_acquire_and_release(tmp_path):
    lock = MigrationLock(tmp_path / "store.db.lock")
    lock.acquire()
    assert lock.held
    assert (tmp_path / "store.db.lock").read_text() == str(os.getpid())

    lock.release()
    assert not lock.held
    assert not (tmp_path / "store.db.lock").exists()


def test_second_holder_is_rejected(tmp_path):
    path = tmp_path / "store.db.lock"
    with MigrationLock(path):
        with pytest.raises(MigrationLockedError):
            MigrationLock(path).acquire()
    assert not path.exists()


def test_stale_lock_is_taken_over(tmp_path):
    path = tmp_path / "store.db.lock"
    path.write_text("12345")
    old = time.time() - 3600
    os.utime(path, (old, old))

    lock = MigrationLock(path, stale_seconds=60)
    lock.acquire()
    assert lock.held
    lock.release()


def test_release_without_acquire_keeps_foreign_lock(tmp_path):
    path = tmp_path / "store.db.lock"
    path.write_text("12345")
    MigrationLock(path).release()
    assert path.exists()
