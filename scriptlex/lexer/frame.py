"""
Script frames - one level of the include/macro expansion stack.

A frame is a read cursor over an immutable text buffer plus the name it
came from and, for macro expansions, the parameter bindings in effect.
Buffers are bytes decoded as latin-1 so each byte is one character.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

MEMORY_BUFFER_NAME = "memory buffer"


def decode_buffer(data) -> str:
    """Turn loaded bytes into a frame buffer (str input passes through)."""
    if isinstance(data, str):
        return data
    return bytes(data).decode('latin-1')


def is_space(ch: str) -> bool:
    """Control characters and space separate tokens."""
    return ord(ch) <= 32


@dataclass
class ScriptFrame:
    """A cursor over one script buffer."""
    name: str
    buffer: str
    line: int = 1
    pos: int = 0
    params: List[Tuple[str, str]] = field(default_factory=list)
    in_memory: bool = False

    @property
    def end(self) -> int:
        return len(self.buffer)

    def at_end(self) -> bool:
        return self.pos >= len(self.buffer)

    def peek(self, offset: int = 0) -> Optional[str]:
        """Peek at character at current position + offset."""
        pos = self.pos + offset
        if pos < len(self.buffer):
            return self.buffer[pos]
        return None

    def advance(self) -> Optional[str]:
        """Consume and return current character, counting newlines."""
        if self.pos >= len(self.buffer):
            return None
        ch = self.buffer[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
        return ch

    def starts_comment(self, pos: Optional[int] = None) -> bool:
        """True if a line comment (;  #  //) starts at pos."""
        if pos is None:
            pos = self.pos
        if pos >= len(self.buffer):
            return False
        ch = self.buffer[pos]
        return ch in ';#' or self.buffer.startswith('//', pos)

    def lookup_param(self, name: str) -> Optional[str]:
        """Bound value for a macro parameter, case-insensitive."""
        folded = name.lower()
        for param, value in self.params:
            if param.lower() == folded:
                return value
        return None

    def release(self):
        """Drop the buffer once the frame is popped."""
        if not self.in_memory:
            self.buffer = ""
            self.pos = 0

    def __repr__(self):
        return f"ScriptFrame({self.name!r}, {self.line}, {self.pos}/{self.end})"
