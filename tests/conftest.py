"""
Test fixtures for the script tokenizer tests.

- values(): token texts of an in-memory script
- script_dir: a tmp_path-backed FileSystem plus a helper to write scripts
"""

import sys
from pathlib import Path
from typing import List

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from scriptlex import FileSystem, Tokenizer, tokenize


def values(source, **options) -> List[str]:
    """Token texts of an in-memory script."""
    return [t.value for t in tokenize(source, **options)]


class ScriptDir:
    """A directory of script files and a tokenizer rooted at it."""

    def __init__(self, root: Path):
        self.root = root
        self.filesystem = FileSystem(base_path=root)

    def write(self, name: str, text: str) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode('latin-1'))
        return path

    def path(self, name: str) -> str:
        return str(self.root / name)

    def tokenizer(self, **options) -> Tokenizer:
        return Tokenizer(filesystem=self.filesystem, **options)

    def tokens(self, entry: str, **options):
        tokenizer = self.tokenizer(**options)
        tokenizer.begin(entry)
        return list(tokenizer.tokens())


@pytest.fixture
def script_dir(tmp_path):
    return ScriptDir(tmp_path)
