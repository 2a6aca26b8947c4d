"""
File access for script tooling.

The tokenizer only needs load(); the remaining helpers (writing build
outputs, enumerating script directories, comparing timestamps and
managing temporary files) are what the surrounding tools use around it.
"""

import fnmatch
import os
import tempfile
import uuid
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import List, Optional, Union

from .errors import ScriptLoadError

PathLike = Union[str, os.PathLike]

TEMP_PREFIX = "mgd_"


class PathMode(Enum):
    """How a script path is turned into a file to load."""
    RELATIVE = auto()    # use the path exactly as given
    EXPAND = auto()      # resolve relative paths against the base search path


class WriteMode(Enum):
    """When write() is allowed to touch the disk."""
    ALWAYS = auto()      # always write
    UPDATE = auto()      # only overwrite an existing file
    NEVER = auto()       # dry run


@dataclass
class FileEntry:
    """A file found by find_files()."""
    path: str
    mtime: float


class FileSystem:
    """Loads and writes script files, optionally below a base search path."""

    def __init__(self, base_path: Optional[PathLike] = None):
        self.base_path = Path(base_path) if base_path is not None else None

    def expand_path(self, path: PathLike) -> str:
        """Resolve a relative path against the base search path."""
        candidate = Path(path)
        if self.base_path is None or candidate.is_absolute():
            return str(candidate)
        return str(self.base_path / candidate)

    def resolve(self, path: PathLike, mode: PathMode = PathMode.EXPAND) -> str:
        if mode is PathMode.RELATIVE:
            return str(path)
        return self.expand_path(path)

    def exists(self, path: PathLike) -> bool:
        return Path(path).is_file()

    def load(self, path: PathLike) -> bytes:
        """
        Read a whole file.

        Raises:
            ScriptLoadError: if the file is missing or unreadable
        """
        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise ScriptLoadError(f"cannot load script: {e.strerror or e}",
                                  filename=str(path)) from e

    def write(self, path: PathLike, data: Union[bytes, str],
              mode: WriteMode = WriteMode.ALWAYS) -> bool:
        """
        Write data to path, creating missing parent directories.

        Args:
            path: Target file
            data: Contents; str is written as latin-1 to keep bytes one-to-one
            mode: ALWAYS writes, UPDATE only replaces an existing file,
                NEVER skips the write

        Returns:
            False if the write failed, True otherwise (skipped writes succeed)
        """
        target = Path(path)
        if mode is WriteMode.NEVER:
            return True
        if mode is WriteMode.UPDATE and not target.is_file():
            return True

        if isinstance(data, str):
            data = data.encode('latin-1')
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'wb') as f:
                f.write(data)
        except OSError:
            return False
        return True

    def find_files(self, mask: PathLike, recurse: bool = False) -> List[FileEntry]:
        """
        List files matching a glob mask such as ``scripts/*.qc``.

        With recurse, every directory below the mask's directory is searched
        as well, deepest directories first.
        """
        mask = Path(mask)
        directory = mask.parent
        pattern = mask.name

        if not recurse:
            return self._list_directory(directory, pattern)

        entries: List[FileEntry] = []
        for dir_path in self._directory_tree(directory):
            entries.extend(self._list_directory(dir_path, pattern))
        return entries

    def _list_directory(self, directory: Path, pattern: str) -> List[FileEntry]:
        if not directory.is_dir():
            return []
        entries = []
        for child in sorted(directory.iterdir()):
            if child.is_file() and fnmatch.fnmatch(child.name, pattern):
                entries.append(FileEntry(str(child), child.stat().st_mtime))
        return entries

    def _directory_tree(self, directory: Path) -> List[Path]:
        # Children before parents, matching a post-order walk
        result: List[Path] = []
        for child in sorted(directory.iterdir()):
            if child.is_dir():
                result.extend(self._directory_tree(child))
        result.append(directory)
        return result

    def file_time(self, path: PathLike) -> float:
        """Modification time, or 0 when the file does not exist."""
        try:
            return os.stat(path).st_mtime
        except OSError:
            return 0

    def compare_file_time(self, path_a: PathLike, path_b: PathLike) -> int:
        """Return -1, 0 or 1 as path_a is older, as old, or newer than path_b."""
        time_a = self.file_time(path_a)
        time_b = self.file_time(path_b)
        if time_a < time_b:
            return -1
        if time_a > time_b:
            return 1
        return 0

    def make_temporary_filename(self, directory: Optional[PathLike] = None) -> str:
        """Return an unused ``mgd_*.tmp`` path in directory (default: system temp)."""
        directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        while True:
            candidate = directory / f"{TEMP_PREFIX}{uuid.uuid4().hex[:8]}.tmp"
            if not candidate.exists():
                return str(candidate)

    def delete_temporary_files(self, mask: str, directory: Optional[PathLike] = None) -> int:
        """Delete files matching mask in the temporary directory; returns the count."""
        directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        deleted = 0
        for entry in self.find_files(directory / mask):
            try:
                os.unlink(entry.path)
                deleted += 1
            except OSError:
                continue
        return deleted
