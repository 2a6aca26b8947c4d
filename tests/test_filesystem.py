"""Tests for the script file helpers."""

import os

import pytest

from scriptlex import FileSystem, PathMode, WriteMode, ScriptLoadError


def test_expand_path(tmp_path):
    fs = FileSystem(base_path=tmp_path)
    assert fs.expand_path("a/b.txt") == str(tmp_path / "a" / "b.txt")
    assert fs.expand_path(str(tmp_path / "x")) == str(tmp_path / "x")
    assert FileSystem().expand_path("a.txt") == "a.txt"


def test_resolve_modes(tmp_path):
    fs = FileSystem(base_path=tmp_path)
    assert fs.resolve("a.txt", PathMode.RELATIVE) == "a.txt"
    assert fs.resolve("a.txt", PathMode.EXPAND) == str(tmp_path / "a.txt")


def test_load_and_exists(tmp_path):
    path = tmp_path / "s.txt"
    path.write_bytes(b"data\x00\xff")
    fs = FileSystem()

    assert fs.exists(path)
    assert fs.load(path) == b"data\x00\xff"
    assert not fs.exists(tmp_path / "missing.txt")


def test_load_missing_file(tmp_path):
    with pytest.raises(ScriptLoadError) as excinfo:
        FileSystem().load(tmp_path / "missing.txt")
    assert excinfo.value.filename == str(tmp_path / "missing.txt")
    assert isinstance(excinfo.value.__cause__, OSError)


class TestWrite:
    """Tests for write() and its modes."""

    def test_always_creates_directories(self, tmp_path):
        target = tmp_path / "out" / "deep" / "f.txt"
        assert FileSystem().write(target, b"abc")
        assert target.read_bytes() == b"abc"

    def test_text_is_written_as_latin1(self, tmp_path):
        target = tmp_path / "f.txt"
        FileSystem().write(target, "\xe9")
        assert target.read_bytes() == b"\xe9"

    def test_update_skips_missing_file(self, tmp_path):
        target = tmp_path / "f.txt"
        assert FileSystem().write(target, b"abc", WriteMode.UPDATE)
        assert not target.exists()

    def test_update_replaces_existing_file(self, tmp_path):
        target = tmp_path / "f.txt"
        target.write_bytes(b"old")
        assert FileSystem().write(target, b"new", WriteMode.UPDATE)
        assert target.read_bytes() == b"new"

    def test_never(self, tmp_path):
        target = tmp_path / "f.txt"
        assert FileSystem().write(target, b"abc", WriteMode.NEVER)
        assert not target.exists()

    def test_failure_returns_false(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_bytes(b"")
        assert not FileSystem().write(blocker / "child.txt", b"abc")


class TestFindFiles:
    """Tests for find_files()."""

    @pytest.fixture
    def tree(self, tmp_path):
        for name in ["a.qc", "b.qc", "notes.txt", "sub/c.qc", "sub/deeper/d.qc", "other/e.txt"]:
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"")
        return tmp_path

    def test_single_directory(self, tree):
        found = FileSystem().find_files(tree / "*.qc")
        assert [os.path.basename(e.path) for e in found] == ["a.qc", "b.qc"]

    def test_recursive(self, tree):
        found = FileSystem().find_files(tree / "*.qc", recurse=True)
        names = [os.path.basename(e.path) for e in found]
        assert sorted(names) == ["a.qc", "b.qc", "c.qc", "d.qc"]
        # deeper directories come first
        assert names.index("d.qc") < names.index("c.qc") < names.index("a.qc")

    def test_directories_are_not_matched(self, tree):
        found = FileSystem().find_files(tree / "*")
        assert sorted(os.path.basename(e.path) for e in found) == ["a.qc", "b.qc", "notes.txt"]

    def test_missing_directory(self, tmp_path):
        assert FileSystem().find_files(tmp_path / "nope" / "*.qc") == []


def test_compare_file_time(tmp_path):
    old = tmp_path / "old.txt"
    new = tmp_path / "new.txt"
    old.write_bytes(b"")
    new.write_bytes(b"")
    os.utime(old, (1000, 1000))
    os.utime(new, (2000, 2000))
    fs = FileSystem()

    assert fs.compare_file_time(old, new) == -1
    assert fs.compare_file_time(new, old) == 1
    assert fs.compare_file_time(old, old) == 0
    assert fs.compare_file_time(tmp_path / "missing", old) == -1


def test_temporary_files(tmp_path):
    fs = FileSystem()
    name = fs.make_temporary_filename(tmp_path)
    assert os.path.dirname(name) == str(tmp_path)
    assert os.path.basename(name).startswith("mgd_")
    assert name.endswith(".tmp")
    assert not os.path.exists(name)

    fs.write(name, b"x")
    (tmp_path / "keep.txt").write_bytes(b"")
    assert fs.delete_temporary_files("mgd_*.tmp", directory=tmp_path) == 1
    assert not os.path.exists(name)
    assert (tmp_path / "keep.txt").exists()
