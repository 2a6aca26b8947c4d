"""
Script Tokenizer - pulls normalized tokens out of text script files.

Handles:
- Whitespace-delimited tokens and "quoted tokens"
- Expression tokens split by C operator rules (next_expr_token)
- Comments: ; # // to end of line, and /* ... */
- $include of other script files
- $definemacro / $NAME parameterized text macros
- $definevariable and $name$ substitution inside tokens
"""

import string
import sys
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterator, List, Optional, Tuple

from ..errors import (ResourceExhaustedError, MalformedScriptError,
                      ScriptLoadError, TokenizerUsageError)
from ..filesystem import FileSystem, PathMode
from .definitions import MacroDefinition, MacroTable, VariableTable, buffer_size
from .frame import ScriptFrame, MEMORY_BUFFER_NAME, decode_buffer, is_space
from .stack import ExpansionStack, MAX_INCLUDES

MAX_TOKEN = 1024
MAX_MACRO_PARAMS = 64
MACRO_BUFFER_SIZE = 4096

CONTINUATION = '\\\\'

IDENT_START = string.ascii_letters + '_'
IDENT_CHARS = string.ascii_letters + string.digits + '_'
NUMBER_CHARS = string.digits + '.'

DefinitionCallback = Callable[[str, Optional[str], int], None]


class Directive(Enum):
    """Keywords the tokenizer consumes itself."""
    NONE = auto()
    INCLUDE = auto()           # $include
    DEFINE_MACRO = auto()      # $definemacro
    DEFINE_VARIABLE = auto()   # $definevariable

    @classmethod
    def resolve(cls, text: str) -> 'Directive':
        return _DIRECTIVE_NAMES.get(text.lower(), cls.NONE)


_DIRECTIVE_NAMES = {
    '$include': Directive.INCLUDE,
    '$definemacro': Directive.DEFINE_MACRO,
    '$definevariable': Directive.DEFINE_VARIABLE,
}


@dataclass
class Token:
    """A token and the script position it was read from."""
    value: str
    filename: str
    line: int

    def __str__(self):
        return self.value

    def __repr__(self):
        return f"Token({self.value!r}, {self.filename}:{self.line})"


def default_definition_callback(filename: str, parent: Optional[str], parent_line: int):
    pass


class Tokenizer:
    """
    One tokenizing session.

    Owns the expansion stack, the macro and variable tables and the
    one-token lookahead. Macros and variables outlive begin(), so a
    definitions file can be read first and the real script afterwards.
    """

    def __init__(self, filesystem: Optional[FileSystem] = None,
                 max_token: int = MAX_TOKEN, max_depth: int = MAX_INCLUDES,
                 max_macro_params: int = MAX_MACRO_PARAMS,
                 macro_buffer_size: int = MACRO_BUFFER_SIZE,
                 verbose: bool = False):
        self.filesystem = filesystem or FileSystem()
        self.max_token = max_token
        self.max_macro_params = max_macro_params
        self.macro_buffer_size = macro_buffer_size
        self.verbose = verbose

        self.stack = ExpansionStack(max_depth)
        self.macros = MacroTable()
        self.variables = VariableTable()
        self.definition_callback: DefinitionCallback = default_definition_callback

        self.token: Optional[Token] = None
        self.token_ready = False  # only true if unget_token() was just called
        self.end_of_script = False
        self.started = False

    def log(self, message: str):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[scriptlex] {message}", file=sys.stderr)

    def error(self, message: str, kind=MalformedScriptError):
        """Raise a fatal error located at the current frame."""
        frame = self.stack.current()
        if frame is not None:
            raise kind(message, frame.name, frame.line)
        raise kind(message)

    # ------------------------------------------------------------------
    # Session setup

    def begin(self, source, path_mode: PathMode = PathMode.EXPAND):
        """Start tokenizing bytes held in memory, or a script file path."""
        if isinstance(source, (bytes, bytearray, memoryview)):
            self.begin_memory(source)
        else:
            self.begin_file(source, path_mode)

    def begin_file(self, path, path_mode: PathMode = PathMode.EXPAND):
        self._reset()
        self.push_file(path, path_mode)

    def begin_memory(self, data, name: str = MEMORY_BUFFER_NAME):
        """
        Tokenize a buffer the caller owns.

        The memory frame is never popped: running off its end simply
        reports end of script.
        """
        self._reset()
        self.stack.push(ScriptFrame(name, decode_buffer(data), in_memory=True))

    def _reset(self):
        self.stack.clear()
        self.token = None
        self.token_ready = False
        self.end_of_script = False
        self.started = True

    def set_definition_callback(self, callback: Optional[DefinitionCallback]) -> DefinitionCallback:
        """
        Install a hook called for every script file pushed, with
        (filename, including filename or None, including line).

        Returns the previously installed callback.
        """
        previous = self.definition_callback
        self.definition_callback = callback or default_definition_callback
        return previous

    def define_variable(self, name: str, value: str):
        self.variables.define(name, value)
        self.log(f"variable {name} = {value!r}")

    def define_macro(self, name: str, parameters: List[str], body: str,
                     line: int = 1) -> MacroDefinition:
        """Register a macro, enforcing the parameter limits."""
        if len(parameters) > self.max_macro_params:
            self.error(f"macro {name} has more than {self.max_macro_params} parameters",
                       ResourceExhaustedError)
        if buffer_size(parameters) >= self.macro_buffer_size:
            self.error(f"macro buffer overflow defining {name}", ResourceExhaustedError)
        seen = set()
        for param in parameters:
            if param.lower() in seen:
                self.error(f"duplicate parameter {param!r} in macro {name}")
            seen.add(param.lower())

        macro = self.macros.define(MacroDefinition(name, list(parameters), body, line))
        self.log(f"macro {name}({', '.join(parameters)})")
        return macro

    # ------------------------------------------------------------------
    # Expansion stack

    def push_file(self, path, path_mode: PathMode = PathMode.EXPAND):
        """Load a script file and make it the current frame."""
        filename = self.filesystem.resolve(path, path_mode)
        parent = self.stack.current()
        try:
            data = self.filesystem.load(filename)
        except ScriptLoadError as e:
            if parent is None:
                raise
            raise ScriptLoadError(f"cannot include {filename}: {e.message}",
                                  parent.name, parent.line) from e

        self.stack.push(ScriptFrame(filename, decode_buffer(data)))
        self.log(f"entering {filename}")
        if parent is None:
            self.definition_callback(filename, None, 0)
        else:
            self.definition_callback(filename, parent.name, parent.line)

    def push_macro(self, name: str) -> bool:
        """
        Expand macro name in place.

        Reads one argument token per formal parameter from the current
        frame, then pushes a frame over a copy of the macro body with the
        arguments bound.

        Returns:
            False if no macro of that name exists
        """
        macro = self.macros.lookup(name)
        if macro is None:
            return False

        values = []
        for _ in macro.parameters:
            token = self._require_token(f"${macro.name}")
            values.append(token.value)
            if buffer_size(values) >= self.macro_buffer_size:
                self.error(f"macro buffer overflow expanding {macro.name}",
                           ResourceExhaustedError)

        frame = ScriptFrame(macro.name, macro.body, line=macro.line,
                            params=list(zip(macro.parameters, values)))
        self.stack.push(frame)
        self.log(f"expanding macro {macro.name}")
        return True

    def _end_of_frame(self, crossline: bool) -> bool:
        """
        The current frame ran out of text.

        Returns:
            True if a parent frame resumes, False at end of script
        """
        frame = self.stack.current()
        if not crossline:
            self.error("line is incomplete")

        if frame.in_memory:
            self.end_of_script = True
            return False

        self.stack.pop()
        if not self.stack:
            self.end_of_script = True
            return False

        self.log(f"returning to {self.stack.current().name}")
        return True

    # ------------------------------------------------------------------
    # Token API

    def next_token(self, crossline: bool = True) -> Optional[Token]:
        """
        Get the next whitespace-delimited token, or None at end of script.

        Args:
            crossline: If False, the token must be on the current line;
                reaching a newline, a comment or the end first is fatal
        """
        if self.token_ready:
            self.token_ready = False
            return self.token

        while True:
            token = self._scan(crossline, expression=False)
            if token is None:
                return None

            directive = Directive.resolve(token.value)
            if directive is Directive.INCLUDE:
                self._include()
            elif directive is Directive.DEFINE_MACRO:
                self._define_macro()
            elif directive is Directive.DEFINE_VARIABLE:
                self._define_variable()
            elif token.value.startswith('$') and self.push_macro(token.value[1:]):
                continue
            else:
                self.token = token
                return token

    def next_expr_token(self, crossline: bool = True) -> Optional[Token]:
        """
        Get the next token using C operator rules instead of whitespace:
        identifiers, numbers and single punctuation characters.

        Only $include is honoured here; macros and variables are not expanded.
        """
        if self.token_ready:
            self.token_ready = False
            return self.token

        while True:
            token = self._scan(crossline, expression=True)
            if token is None:
                return None
            if Directive.resolve(token.value) is Directive.INCLUDE:
                self._include()
                continue
            self.token = token
            return token

    def unget_token(self):
        """
        Make the next get return the current token again.

        Note that next_token(True); unget_token(); next_token(False)
        can hand back a token from a previous line.
        """
        if self.token is None:
            raise TokenizerUsageError("no token to unget")
        if self.token_ready:
            raise TokenizerUsageError("unget_token() called twice without a get in between")
        self.token_ready = True

    def token_available(self) -> bool:
        """True if there is another token on the current line."""
        if self.token_ready:
            return True

        frame = self.stack.current()
        if frame is None:
            return False

        buf = frame.buffer
        pos = frame.pos
        if pos >= frame.end:
            return False
        while is_space(buf[pos]):
            if buf[pos] == '\n':
                return False
            pos += 1
            if pos >= frame.end:
                return False

        return not frame.starts_comment(pos)

    def status(self) -> Optional[Tuple[str, int]]:
        """(origin name, line) of the current frame, or None when idle or finished."""
        frame = self.stack.current()
        if frame is None or frame.at_end():
            return None
        return frame.name, frame.line

    def tokens(self, crossline: bool = True) -> Iterator[Token]:
        """Iterate over the remaining tokens."""
        while True:
            token = self.next_token(crossline)
            if token is None:
                return
            yield token

    # ------------------------------------------------------------------
    # Scanning

    def _scan(self, crossline: bool, expression: bool) -> Optional[Token]:
        if not self.started:
            raise TokenizerUsageError("begin() must be called before reading tokens")

        while True:
            frame = self.stack.current()
            if frame is None:
                return None
            if not self._skip_space(frame, crossline):
                if self._end_of_frame(crossline):
                    continue
                return None

            line = frame.line
            if frame.peek() == '"':
                value = self._scan_quoted(frame)
            elif expression:
                value = self._scan_expression(frame)
            else:
                value = self._scan_word(frame)
            return Token(value, frame.name, line)

    def _skip_space(self, frame: ScriptFrame, crossline: bool) -> bool:
        """
        Skip whitespace and comments.

        Returns:
            True if a token starts at the cursor, False if the frame ran out
        """
        buf = frame.buffer
        while True:
            while frame.pos < frame.end and is_space(buf[frame.pos]):
                if buf[frame.pos] == '\n' and not crossline:
                    self.error("line is incomplete")
                frame.advance()

            if frame.at_end():
                return False

            if frame.starts_comment():
                if not crossline:
                    self.error("line is incomplete")
                while True:
                    ch = frame.advance()
                    if ch is None:
                        return False
                    if ch == '\n':
                        break
                continue

            if buf.startswith('/*', frame.pos):
                if not crossline:
                    self.error("line is incomplete")
                close = buf.find('*/', frame.pos + 2)
                if close < 0:
                    self.error("unterminated /* comment")
                frame.line += buf.count('\n', frame.pos, close)
                frame.pos = close + 2
                continue

            return True

    def _check_length(self, chars: List[str]):
        if len(chars) >= self.max_token:
            self.error("token too large", ResourceExhaustedError)

    def _scan_quoted(self, frame: ScriptFrame) -> str:
        """Read a "quoted token" verbatim; no escapes, may run to end of buffer."""
        frame.advance()  # opening "
        chars = []
        while not frame.at_end() and frame.peek() != '"':
            chars.append(frame.advance())
            self._check_length(chars)
        frame.advance()  # closing "
        return ''.join(chars)

    def _scan_word(self, frame: ScriptFrame) -> str:
        """Read up to whitespace or ';', splicing $name$ references."""
        chars = []
        while not frame.at_end():
            ch = frame.peek()
            if is_space(ch) or ch == ';':
                break
            if ch == '$' and self._splice(frame, chars):
                continue
            chars.append(frame.advance())
            self._check_length(chars)
        return ''.join(chars)

    def _splice(self, frame: ScriptFrame, chars: List[str]) -> bool:
        """
        Replace a $name$ reference at the cursor.

        Inside a macro expansion the name must be one of the macro's
        parameters; elsewhere it must be a defined variable.

        Returns:
            False if there is no closing '$' before whitespace, in which
            case the '$' is ordinary token text
        """
        buf = frame.buffer
        close = frame.pos + 1
        while close < frame.end and not is_space(buf[close]) and buf[close] != '$':
            close += 1
        if close >= frame.end or buf[close] != '$':
            return False

        name = buf[frame.pos + 1:close]
        if frame.params:
            value = frame.lookup_param(name)
            if value is None:
                self.error(f'unknown macro token "{name}" in {frame.name}')
        else:
            variable = self.variables.lookup(name)
            if variable is None:
                self.error(f'unknown variable token "{name}"')
            value = variable.value

        chars.extend(value)
        frame.pos = close + 1
        self._check_length(chars)
        return True

    def _scan_expression(self, frame: ScriptFrame) -> str:
        chars = []
        ch = frame.peek()

        if ch in IDENT_START:
            while not frame.at_end() and frame.peek() in IDENT_CHARS:
                chars.append(frame.advance())
                self._check_length(chars)
        elif ch in NUMBER_CHARS:
            while not frame.at_end() and frame.peek() in NUMBER_CHARS:
                chars.append(frame.advance())
                self._check_length(chars)
        elif ch == '$' and self._include_follows(frame):
            chars.append(frame.advance())
            while not frame.at_end() and frame.peek() in IDENT_CHARS:
                chars.append(frame.advance())
        else:
            chars.append(frame.advance())

        return ''.join(chars)

    def _include_follows(self, frame: ScriptFrame) -> bool:
        """True if the '$' at the cursor starts a $include keyword."""
        end = frame.pos + 1
        while end < frame.end and frame.buffer[end] in IDENT_CHARS:
            end += 1
        return frame.buffer[frame.pos:end].lower() == '$include'

    # ------------------------------------------------------------------
    # Directives

    def _require_token(self, directive: str) -> Token:
        """Read an argument that must be on the current line."""
        token = self.next_token(crossline=False)
        if token is None:
            self.error(f"missing argument for {directive}")
        return token

    def _include(self):
        path = self._require_token('$include')
        self.push_file(path.value, PathMode.EXPAND)

    def _define_variable(self):
        name = self._require_token('$definevariable')
        value = self._require_token('$definevariable')
        self.define_variable(name.value, value.value)

    def _define_macro(self):
        """
        $definemacro NAME [PARAM ...] [\\\\] BODY

        Parameters run to the end of the line or to a \\\\ token. The body
        is raw text up to the next newline; a \\\\ that ends a line, or is
        followed only by a comment, joins the next line onto the body.
        """
        name = self._require_token('$definemacro').value
        frame = self.stack.current()
        line = frame.line

        params = []
        body_start = frame.pos
        while self.token_available():
            token = self._require_token('$definemacro')
            if token.value.startswith(CONTINUATION):
                break
            if len(params) >= self.max_macro_params:
                self.error(f"macro {name} has more than {self.max_macro_params} parameters",
                           ResourceExhaustedError)
            params.append(token.value)
            body_start = frame.pos

        frame.pos = body_start
        body = self._capture_macro_body(frame)
        self.define_macro(name, params, body, line)

    def _capture_macro_body(self, frame: ScriptFrame) -> str:
        buf = frame.buffer
        pos = frame.pos
        pieces = []
        while pos < frame.end and buf[pos] != '\n':
            if not buf.startswith(CONTINUATION, pos):
                pieces.append(buf[pos])
                pos += 1
                continue

            eol = buf.find('\n', pos)
            if eol < 0:
                eol = frame.end
            rest = pos + 2
            while rest < eol and is_space(buf[rest]):
                rest += 1
            if rest == eol or frame.starts_comment(rest):
                # escaped newline: blank the rest of the line and keep going
                pieces.append(' ' * (eol - pos))
                if eol < frame.end:
                    pieces.append('\n')
                    frame.line += 1
                pos = min(eol + 1, frame.end)
            else:
                pieces.append('  ')
                pos += 2

        frame.pos = pos
        return ''.join(pieces)


def tokenize(source, filename: str = MEMORY_BUFFER_NAME, **options) -> List[Token]:
    """Convenience function to tokenize script text held in memory."""
    tokenizer = Tokenizer(**options)
    tokenizer.begin_memory(source, filename)
    return list(tokenizer.tokens())
