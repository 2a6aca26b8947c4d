"""Script Lexer - tokenizer with include, macro and variable preprocessing."""

from .tokenizer import Tokenizer, Token, Directive, tokenize, MAX_TOKEN
from .frame import ScriptFrame
from .stack import ExpansionStack, MAX_INCLUDES
from .definitions import MacroDefinition, VariableDefinition, MacroTable, VariableTable

__all__ = [
    'Tokenizer', 'Token', 'Directive', 'tokenize', 'MAX_TOKEN',
    'ScriptFrame',
    'ExpansionStack', 'MAX_INCLUDES',
    'MacroDefinition', 'VariableDefinition', 'MacroTable', 'VariableTable',
]
