"""Abstract syntax tree and runtime values of the dmm language.

The set of nodes is closed: every node class is tagged with a NodeKind, and the evaluator dispatches on that tag. Nodes
own their children exclusively, so a tree never shares subtrees and never has cycles.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Optional, Tuple

from dmm.lang.lexical import Kind


class ValueKind(Enum):
    INTEGER = "Integer"
    TEXT = "Text"
    BOOLEAN = "Boolean"
    NONE = "None"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Value:
    """Tagged runtime value. NONE is the unit value produced by statements and by functions that return nothing."""
    kind: ValueKind
    data: object = None

    @classmethod
    def integer(cls, number):
        return cls(ValueKind.INTEGER, int(number))

    @classmethod
    def text(cls, string):
        return cls(ValueKind.TEXT, str(string))

    @classmethod
    def boolean(cls, truth):
        return cls(ValueKind.BOOLEAN, bool(truth))

    def __str__(self):
        if self.kind is ValueKind.BOOLEAN:
            return Kind.TRUE.value if self.data else Kind.FALSE.value
        if self.kind is ValueKind.NONE:
            return "-"
        return str(self.data)

    def __repr__(self):
        if self.kind is ValueKind.TEXT:
            return f"<{self.data}>"
        return str(self)


NONE = Value(ValueKind.NONE)
TRUE = Value.boolean(True)
FALSE = Value.boolean(False)


class NodeKind(Enum):
    BLOCK = "block"
    VARIABLE = "variable"
    LITERAL = "literal"
    COMPARE = "compare"
    ARITHMETIC = "arithmetic"
    UNARY = "unary"
    ASSIGN = "assign"
    IF = "if"
    WHILE = "while"
    FUNCTION_DEF = "function definition"
    CALL = "call"
    RETURN = "return"
    PRINT = "print"
    READ = "read"


class Node:
    """Superclass of every AST node. position is the (line, col) of the node's first token, set by the parser."""
    kind: NodeKind
    statement = False  # whether or not this node only appears as a statement (and so produces no value)
    position: Tuple[int, int] = (0, 0)

    def at(self, position):
        """Sets self.position and returns self."""
        self.position = position
        return self

    def children(self):
        """Yields direct child nodes in source order."""
        for attr in fields(self):
            value = getattr(self, attr.name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                yield from (item for item in value if isinstance(item, Node))

    def walk(self):
        """Yields self and all descendants, depth-first in source order."""
        yield self
        for child in self.children():
            yield from child.walk()

    def describe(self):
        """One-line description of this node, without its children."""
        attrs = []
        for attr in fields(self):
            value = getattr(self, attr.name)
            if isinstance(value, Node) or (isinstance(value, list) and any(isinstance(v, Node) for v in value)):
                continue
            attrs.append(f"{attr.name}={_format(value)}")
        line, col = self.position
        return f"{type(self).__name__}({', '.join(attrs)}) at {line}:{col}"

    def display(self, indents=0):
        """Recursively displays the tree with readable format.

        Format:
        <Node>(<attr>=<value>, <child>=
            <Node>(...),
        <children>=[
            <Node>(...),
            ...
        ])
        """
        pad = "    " * indents
        parts = []
        for attr in fields(self):
            value = getattr(self, attr.name)
            if isinstance(value, Node):
                parts.append(f"{attr.name}=\n{value.display(indents + 1)}")
            elif isinstance(value, list) and value and all(isinstance(v, Node) for v in value):
                nested = ",\n".join(node.display(indents + 1) for node in value)
                parts.append(f"{attr.name}=[\n{nested}\n{pad}]")
            else:
                parts.append(f"{attr.name}={_format(value)}")
        return f"{pad}{type(self).__name__}({', '.join(parts)})"

    def __str__(self):
        return self.display()


def _format(value):
    if isinstance(value, Kind):
        return f"'{value.value}'"
    if isinstance(value, list):
        return "[" + ", ".join(_format(v) for v in value) + "]"
    return repr(value)


@dataclass(eq=True)
class Block(Node):
    body: List[Node] = field(default_factory=list)
    kind = NodeKind.BLOCK
    statement = True


@dataclass(eq=True)
class Variable(Node):
    name: str
    kind = NodeKind.VARIABLE


@dataclass(eq=True)
class Literal(Node):
    value: Value
    kind = NodeKind.LITERAL


@dataclass(eq=True)
class Compare(Node):
    op: Kind  # one of EQUALS, NOT_EQUALS, LESS, GREATER
    left: Node
    right: Node
    kind = NodeKind.COMPARE


@dataclass(eq=True)
class Arithmetic(Node):
    op: Kind  # one of PLUS, MINUS, MUL, DIV
    left: Node
    right: Node
    kind = NodeKind.ARITHMETIC


@dataclass(eq=True)
class Unary(Node):
    op: Kind  # PLUS or MINUS
    operand: Node
    kind = NodeKind.UNARY


@dataclass(eq=True)
class Assign(Node):
    name: str
    expr: Node
    kind = NodeKind.ASSIGN
    statement = True


@dataclass(eq=True)
class If(Node):
    condition: Node
    body: Block
    kind = NodeKind.IF
    statement = True


@dataclass(eq=True)
class While(Node):
    condition: Node
    body: Block
    kind = NodeKind.WHILE
    statement = True


@dataclass(eq=True)
class FunctionDef(Node):
    name: str
    params: List[str]
    body: Block
    kind = NodeKind.FUNCTION_DEF
    statement = True


@dataclass(eq=True)
class Call(Node):
    name: str
    args: List[Node] = field(default_factory=list)
    kind = NodeKind.CALL


@dataclass(eq=True)
class Return(Node):
    expr: Optional[Node] = None
    kind = NodeKind.RETURN
    statement = True


@dataclass(eq=True)
class Print(Node):
    args: List[Node] = field(default_factory=list)
    kind = NodeKind.PRINT
    statement = True


@dataclass(eq=True)
class Read(Node):
    prompt: Optional[Node] = None
    kind = NodeKind.READ
