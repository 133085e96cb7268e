"""Tests for resource identity encoding."""

import os

import pytest

from synclocal.engines import InvalidIdentityError, file_to_id, id_to_file


class TestFileToId:
    """Path to identity."""

    def test_absolute_path_becomes_file_uri(self, tmp_path):
        path = tmp_path / "out.txt"
        identity = file_to_id(str(path))

        assert identity.startswith("file://")
        assert identity.endswith("/out.txt")

    def test_relative_path_is_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        identity = file_to_id("nested/out.txt")

        assert id_to_file(identity) == os.path.join(str(tmp_path), "nested", "out.txt")

    def test_accepts_path_objects(self, tmp_path):
        path = tmp_path / "out.txt"
        assert file_to_id(path) == file_to_id(str(path))

    def test_distinct_paths_get_distinct_ids(self, tmp_path):
        assert file_to_id(str(tmp_path / "a")) != file_to_id(str(tmp_path / "b"))

    def test_rejects_non_path(self):
        with pytest.raises(InvalidIdentityError):
            file_to_id(42)


class TestIdToFile:
    """Identity to path."""

    @pytest.mark.parametrize("name", ["plain.txt", "with space.txt", "percent%20name.txt", "ünïcode.txt"])
    def test_round_trip(self, tmp_path, name):
        path = os.path.join(str(tmp_path), name)
        assert id_to_file(file_to_id(path)) == path

    def test_wrong_scheme(self):
        with pytest.raises(InvalidIdentityError) as exc_info:
            id_to_file("http://example.com/out.txt")

        assert "should be 'file'" in str(exc_info.value)

    def test_plain_path_is_not_an_identity(self, tmp_path):
        with pytest.raises(InvalidIdentityError):
            id_to_file(str(tmp_path / "out.txt"))

    def test_missing_path(self):
        with pytest.raises(InvalidIdentityError):
            id_to_file("file://")

    @pytest.mark.skipif(os.sep != "/", reason="POSIX paths")
    @pytest.mark.parametrize("path", ["//dbl/lead", "/a b/c", "/x#y?z", "/t/%41", "/ü/ñ"])
    def test_round_trip_of_unusual_paths(self, path):
        identity = file_to_id(path)

        assert identity.startswith("file:///")
        assert id_to_file(identity) == os.path.abspath(path)

    @pytest.mark.skipif(os.sep != "/", reason="POSIX paths")
    def test_double_slash_path_keeps_empty_authority(self):
        assert file_to_id("//dbl/lead") == "file:////dbl/lead"
        assert file_to_id("//dbl/lead") != file_to_id("/lead")

    def test_remote_host_is_rejected(self):
        with pytest.raises(InvalidIdentityError) as exc_info:
            id_to_file("file://host/x")

        assert "'host'" in str(exc_info.value)

    @pytest.mark.skipif(os.sep != "/", reason="POSIX paths")
    def test_localhost_is_accepted(self):
        assert id_to_file("file://localhost/tmp/x") == "/tmp/x"
