"""
Script tokenizer errors.

Every failure inside the tokenizer is fatal for the script being read:
there is no local recovery, the caller gets one of these exceptions and
abandons the batch. Reaching the end of the script is not an error.
"""

from typing import Optional


class ScriptError(Exception):
    """Base class for fatal tokenizer errors, with optional location."""

    def __init__(self, message: str, filename: Optional[str] = None,
                 line: Optional[int] = None):
        self.message = message
        self.filename = filename
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        if self.filename is not None and self.line is not None:
            return f"{self.filename}:{self.line}: {self.message}"
        if self.filename is not None:
            return f"{self.filename}: {self.message}"
        return self.message


class ResourceExhaustedError(ScriptError):
    """Nesting too deep, a macro buffer overflowed, or a token is too large."""
    pass


class MalformedScriptError(ScriptError):
    """The script text itself is broken (incomplete line, unknown reference...)."""
    pass


class ScriptLoadError(ScriptError):
    """A script file could not be read."""
    pass


class TokenizerUsageError(ScriptError):
    """The tokenizer API was called out of order."""
    pass
