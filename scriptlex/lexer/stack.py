"""Bounded include/macro expansion stack."""

from typing import List, Optional

from ..errors import ResourceExhaustedError
from .frame import ScriptFrame

MAX_INCLUDES = 16


class ExpansionStack:
    """
    Frames for the entry script, every active $include and every active
    macro expansion, innermost last.

    The depth limit stops runaway recursive includes and macros; going past
    it is fatal.
    """

    def __init__(self, max_depth: int = MAX_INCLUDES):
        self.max_depth = max_depth
        self.frames: List[ScriptFrame] = []

    def __len__(self) -> int:
        return len(self.frames)

    def __bool__(self) -> bool:
        return bool(self.frames)

    def current(self) -> Optional[ScriptFrame]:
        """The frame being tokenized, or None when the stack is empty."""
        return self.frames[-1] if self.frames else None

    def push(self, frame: ScriptFrame):
        if len(self.frames) >= self.max_depth:
            current = self.current()
            raise ResourceExhaustedError(
                f"script file exceeded MAX_INCLUDES ({self.max_depth}) entering {frame.name}",
                filename=current.name if current else None,
                line=current.line if current else None)
        self.frames.append(frame)

    def pop(self) -> ScriptFrame:
        """Remove and release the top frame; the one below resumes where it was."""
        frame = self.frames.pop()
        frame.release()
        return frame

    def clear(self):
        while self.frames:
            self.pop()
