"""Tests for the local copy engine."""

import os
import stat
import sys

import pytest

from synclocal.engines import (
    FileOperationError,
    InvalidModeError,
    LocalCopyEngine,
    LocalSyncTarget,
    NotFoundError,
    file_to_id,
    hash_file,
)
from synclocal.engines import local_copy

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")


def _mode(path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


class TestEnsureCopy:
    """Copying and short-circuiting."""

    def setup_method(self):
        self.engine = LocalCopyEngine()

    def test_copies_missing_destination(self, write_file, tmp_path):
        source = write_file("src.txt", b"hello")
        destination = str(tmp_path / "dst.txt")

        result = self.engine.ensure_copy(LocalSyncTarget(source, destination))

        assert result.copied is True
        assert result.changed is True
        assert result.content_sha256 == hash_file(source)
        with open(destination, "rb") as f:
            assert f.read() == b"hello"

    def test_identical_content_is_not_copied_again(self, write_file, tmp_path, monkeypatch):
        source = write_file("src.txt", b"hello")
        destination = str(tmp_path / "dst.txt")
        target = LocalSyncTarget(source, destination)
        self.engine.ensure_copy(target)

        def fail_copy(*args, **kwargs):
            raise AssertionError("copy_file should not be called")

        monkeypatch.setattr(self.engine, "copy_file", fail_copy)
        result = self.engine.ensure_copy(target)

        assert result.copied is False
        assert result.changed is False
        assert result.content_sha256 == hash_file(source)

    def test_restores_drifted_destination(self, write_file, tmp_path):
        source = write_file("src.txt", b"hello")
        destination = str(tmp_path / "dst.txt")
        target = LocalSyncTarget(source, destination)
        self.engine.ensure_copy(target)

        with open(destination, "wb") as f:
            f.write(b"tampered with, and longer than the source")

        assert self.engine.has_drift(target) is True
        result = self.engine.ensure_copy(target)

        assert result.copied is True
        with open(destination, "rb") as f:
            assert f.read() == b"hello"
        assert self.engine.has_drift(target) is False

    def test_source_change_is_copied(self, write_file, tmp_path):
        source = write_file("src.txt", b"v1")
        destination = str(tmp_path / "dst.txt")
        target = LocalSyncTarget(source, destination)
        first = self.engine.ensure_copy(target)

        write_file("src.txt", b"v2")
        second = self.engine.ensure_copy(target)

        assert second.copied is True
        assert second.content_sha256 != first.content_sha256
        assert second.content_sha256 == hash_file(destination)

    def test_missing_source(self, tmp_path):
        target = LocalSyncTarget(str(tmp_path / "nope"), str(tmp_path / "dst"))

        with pytest.raises(NotFoundError):
            self.engine.ensure_copy(target)
        assert not os.path.exists(tmp_path / "dst")

    def test_missing_destination_directory(self, write_file, tmp_path):
        source = write_file("src.txt")
        target = LocalSyncTarget(source, str(tmp_path / "no" / "such" / "dir" / "dst"))

        with pytest.raises(FileOperationError):
            self.engine.ensure_copy(target)

    @pytest.mark.parametrize("file_mode", ["0999", "rw-r--r--", "abc", "17777"])
    def test_invalid_mode_fails_before_io(self, write_file, tmp_path, file_mode):
        source = write_file("src.txt")
        destination = tmp_path / "dst.txt"

        with pytest.raises(InvalidModeError) as exc_info:
            self.engine.ensure_copy(LocalSyncTarget(source, str(destination), file_mode))

        assert exc_info.value.summary == "file_mode is not a valid octal number"
        assert not destination.exists()

    def test_partial_destination_is_removed_on_write_failure(self, write_file, tmp_path, monkeypatch):
        source = write_file("src.txt", b"hello")
        destination = tmp_path / "dst.txt"

        class FullDisk:
            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

            def write(self, data):
                raise OSError(28, "No space left on device")

        def fake_fdopen(fd, *args, **kwargs):
            os.close(fd)
            return FullDisk()

        monkeypatch.setattr(local_copy.os, "fdopen", fake_fdopen)

        with pytest.raises(FileOperationError) as exc_info:
            self.engine.copy_file(source, str(destination))

        assert "error copying" in exc_info.value.summary
        assert not destination.exists()


@posix_only
class TestFileModes:
    """Permission reconciliation."""

    def setup_method(self):
        self.engine = LocalCopyEngine()

    def test_explicit_mode(self, write_file, tmp_path):
        source = write_file("src.txt", mode=0o644)
        destination = str(tmp_path / "dst.txt")

        self.engine.ensure_copy(LocalSyncTarget(source, destination, "0600"))

        assert _mode(destination) == 0o600

    def test_mode_defaults_to_source_mode(self, write_file, tmp_path):
        source = write_file("src.sh", b"#!/bin/sh\n", mode=0o751)
        destination = str(tmp_path / "dst.sh")

        self.engine.ensure_copy(LocalSyncTarget(source, destination))

        assert _mode(destination) == 0o751

    def test_mode_change_without_content_change(self, write_file, tmp_path):
        source = write_file("src.txt")
        destination = str(tmp_path / "dst.txt")
        self.engine.ensure_copy(LocalSyncTarget(source, destination, "0600"))

        result = self.engine.ensure_copy(LocalSyncTarget(source, destination, "0640"))

        assert result.copied is False
        assert result.mode_changed is True
        assert _mode(destination) == 0o640

    def test_overwrite_applies_mode_to_existing_file(self, write_file, tmp_path):
        source = write_file("src.txt", b"new")
        destination = write_file("dst.txt", b"old", mode=0o600)

        self.engine.ensure_copy(LocalSyncTarget(source, destination, "0644"))

        assert _mode(destination) == 0o644

    def test_unchanged_mode_is_left_alone(self, write_file, tmp_path):
        source = write_file("src.txt")
        destination = str(tmp_path / "dst.txt")
        target = LocalSyncTarget(source, destination, "0640")
        self.engine.ensure_copy(target)

        assert self.engine.ensure_mode(target) is False


class TestReadAndDelete:
    """Identity-based read and delete."""

    def setup_method(self):
        self.engine = LocalCopyEngine()

    def test_read_fingerprints_backing_file(self, write_file):
        path = write_file("dst.txt", b"foo")
        assert self.engine.read(file_to_id(path)) == hash_file(path)

    def test_read_missing_backing_file(self, tmp_path):
        assert self.engine.read(file_to_id(str(tmp_path / "gone"))) is None

    def test_delete_is_idempotent(self, write_file):
        path = write_file("dst.txt")
        identity = file_to_id(path)

        assert self.engine.delete(identity) is True
        assert not os.path.exists(path)
        assert self.engine.delete(identity) is False

    def test_has_drift_when_destination_missing(self, write_file, tmp_path):
        source = write_file("src.txt")
        assert self.engine.has_drift(LocalSyncTarget(source, str(tmp_path / "dst.txt"))) is True

    def test_has_drift_requires_source(self, tmp_path):
        with pytest.raises(NotFoundError):
            self.engine.has_drift(LocalSyncTarget(str(tmp_path / "nope"), str(tmp_path / "dst.txt")))
