"""
Script Lexer (scriptlex) - Tokenizes text script files for build tools.

This package provides a pull-based tokenizer for whitespace-delimited
script files, with $include, $definemacro and $definevariable
preprocessing, plus the file helpers the surrounding tools rely on.
"""

from .errors import (ScriptError, ResourceExhaustedError, MalformedScriptError,
                     ScriptLoadError, TokenizerUsageError)
from .filesystem import FileSystem, PathMode, WriteMode
from .lexer import Tokenizer, Token, tokenize

__version__ = "0.1.0"
__author__ = "scriptlex project"
