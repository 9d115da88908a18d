"""Variable scopes and the function table.

There is one global Environment holding the assignments made outside of any function. Every function call gets a fresh
Environment whose only parent is the global one, so a function can read globals but never sees its caller's locals.
Assignments always bind in the innermost Environment.
"""

import logging
from typing import Dict, Optional

from dmm.lang.error import UndefinedFunction, UndefinedVariable
from dmm.lang.syntax import Block, FunctionDef, Node, Value

log = logging.getLogger(__name__)


class Environment:
    """Mapping from identifier name to Value."""

    def __init__(self, parent: Optional["Environment"] = None):
        self.parent = parent
        self.values: Dict[str, Value] = {}

    @property
    def is_global(self):
        return self.parent is None

    def define(self, name, value: Value):
        """Binds name in this environment. Used for parameters."""
        self.values[name] = value

    def assign(self, name, value: Value):
        """Overwrites name in this environment, or creates it. The new value may be of a different kind."""
        self.values[name] = value

    def find(self, name) -> Optional[Value]:
        """Returns the value bound to name here or in the global environment, or None if there is none."""
        if name in self.values:
            return self.values[name]
        if self.parent is not None:
            return self.parent.find(name)
        return None

    def get(self, name, node: Optional[Node] = None) -> Value:
        """Like find, but raises UndefinedVariable if name is unbound. node is used for the error position."""
        value = self.find(name)
        if value is None:
            raise UndefinedVariable("unknown variable name '{}'", name, node)
        return value

    def snapshot(self):
        """Returns a readable dump of every visible binding, innermost scope first."""
        lines = []
        scope, label = self, "local" if self.parent is not None else "global"
        while scope is not None:
            if not scope.values:
                lines.append(f"  {label}: (empty)")
            for name, value in scope.values.items():
                lines.append(f"  {label}: {name} = {value!r} ({value.kind})")
            scope, label = scope.parent, "global"
        return "\n".join(lines)


class FunctionTable:
    """Process-wide mapping from function name to its definition. Filled once before a run starts."""

    def __init__(self):
        self.functions: Dict[str, FunctionDef] = {}

    def register(self, definition: FunctionDef):
        """Registers definition under its name. A later definition of the same name silently replaces the earlier."""
        if definition.name in self.functions:
            log.debug("function '%s' redefined at %s:%s", definition.name, *definition.position)
        self.functions[definition.name] = definition

    def register_all(self, program: Block):
        """Pre-pass: registers the function definitions among program's top-level statements, in source order, so forward
        references resolve. Bare blocks at the top level (a program wrapped in hallo ... danke) are searched too.
        Definitions nested in a function body or in a branch are never registered.
        """
        for statement in program.body:
            if isinstance(statement, FunctionDef):
                self.register(statement)
            elif isinstance(statement, Block):
                self.register_all(statement)

    def lookup(self, name, node: Optional[Node] = None) -> FunctionDef:
        if name not in self.functions:
            raise UndefinedFunction("unknown function name '{}'", name, node)
        return self.functions[name]

    def __contains__(self, name):
        return name in self.functions
