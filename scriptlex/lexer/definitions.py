"""
Macro and variable tables.

Both live for the whole tokenizing session. Names are matched without
regard to case.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class MacroDefinition:
    """A $definemacro: positional parameter names and a raw body."""
    name: str
    parameters: List[str] = field(default_factory=list)
    body: str = ""
    line: int = 1

    def __repr__(self):
        return f"MacroDefinition({self.name!r}, {self.parameters!r}, {self.body!r})"


@dataclass
class VariableDefinition:
    """A $definevariable: a name and the literal text it expands to."""
    name: str
    value: str


def buffer_size(strings: List[str]) -> int:
    """Bytes needed to store strings back to back, one terminator each."""
    return sum(len(s) + 1 for s in strings)


class MacroTable:
    """Macros by name. As with variables, the first definition of a name wins."""

    def __init__(self):
        self.macros: Dict[str, MacroDefinition] = {}

    def define(self, macro: MacroDefinition) -> MacroDefinition:
        """Register macro; returns the definition now in effect for its name."""
        return self.macros.setdefault(macro.name.lower(), macro)

    def lookup(self, name: str) -> Optional[MacroDefinition]:
        return self.macros.get(name.lower())


class VariableTable:
    """
    Variables in definition order.

    A later definition never hides an earlier one with the same name:
    lookup returns the first match.
    """

    def __init__(self):
        self.variables: List[VariableDefinition] = []

    def define(self, name: str, value: str) -> VariableDefinition:
        variable = VariableDefinition(name, value)
        self.variables.append(variable)
        return variable

    def lookup(self, name: str) -> Optional[VariableDefinition]:
        folded = name.lower()
        for variable in self.variables:
            if variable.name.lower() == folded:
                return variable
        return None
