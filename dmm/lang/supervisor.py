"""Supervised evaluation: every `threshold` node visits, automatic evaluation stops and the supervising party (whoever
is on the other end of stdin) is shown the current node and environment and asked for the node's value.

The answer is one line:
- "-" lets the evaluator compute the value as usual
- a literal (42, -7, <text>, :) or :() of the kind the node produces is used as the node's value instead
- anything else aborts the run with SupervisionAbort

Statements produce no value, so "-" is the only acceptable answer at a statement. A gate never changes control flow or
scoping on its own: at most it replaces one computed value.
"""

import logging
import sys
from enum import Enum
from typing import Optional

from dmm.lang.config import Config
from dmm.lang.error import LexError, SupervisionAbort
from dmm.lang.lexical import Kind, tokenize
from dmm.lang.scope import Environment
from dmm.lang.syntax import Node, NodeKind, Value, ValueKind, FALSE, TRUE

log = logging.getLogger(__name__)

PASS = "-"
ANY = frozenset((ValueKind.INTEGER, ValueKind.TEXT, ValueKind.BOOLEAN))


class Mood(Enum):
    """The supervisor's mood, which sours the more nodes it has had to look at."""
    HAPPY = "=D"
    GLAD = "=)"
    OKAY = "=I"
    SAD = "=("
    AGGRESSIVE = "=X"
    DEPRESSIVE = "X/"
    DEACTIVATED = "Xc"

    @classmethod
    def after(cls, visits):
        moods = list(cls)
        for mood, limit in zip(moods, (20, 30, 40, 100, 1000, 10000)):
            if visits < limit:
                return mood
        return cls.DEACTIVATED

    def __str__(self):
        return self.value


def expected_kinds(node: Node, environment: Environment):
    """Returns the set of ValueKinds node can produce. Empty for statements."""
    if node.statement:
        return frozenset()
    if node.kind is NodeKind.LITERAL:
        return frozenset((node.value.kind,))
    if node.kind is NodeKind.COMPARE:
        return frozenset((ValueKind.BOOLEAN,))
    if node.kind is NodeKind.ARITHMETIC and node.op is Kind.PLUS:
        return frozenset((ValueKind.INTEGER, ValueKind.TEXT))
    if node.kind in (NodeKind.ARITHMETIC, NodeKind.UNARY):
        return frozenset((ValueKind.INTEGER,))
    if node.kind is NodeKind.READ:
        return frozenset((ValueKind.TEXT,))
    if node.kind is NodeKind.VARIABLE:
        bound = environment.find(node.name)
        if bound is not None and bound.kind is not ValueKind.NONE:
            return frozenset((bound.kind,))
    return ANY


def parse_literal(answer) -> Optional[Value]:
    """Returns the Value of answer if it is a single dmm literal, otherwise None."""
    try:
        tokens = [token for token in tokenize(answer) if token.kind is not Kind.EOF]
    except LexError:
        return None

    kinds = [token.kind for token in tokens]
    if kinds == [Kind.INTEGER]:
        return Value.integer(tokens[0].value)
    if kinds == [Kind.MINUS, Kind.INTEGER]:
        return Value.integer(-tokens[1].value)
    if kinds == [Kind.STRING]:
        return Value.text(tokens[0].value)
    if kinds == [Kind.TRUE]:
        return TRUE
    if kinds == [Kind.FALSE]:
        return FALSE
    return None


class Supervisor:
    """Counts node visits and, when enabled, asks for a node's value every config.threshold visits."""

    def __init__(self, config: Config, stdin=None, stdout=None):
        self.enabled = config.supervised
        self.threshold = config.threshold
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout

        self.visits = 0
        self.next_gate = self.threshold
        self.gates = 0

    @property
    def mood(self):
        return Mood.after(self.visits)

    def before_evaluate(self, node: Node, environment: Environment) -> Optional[Value]:
        """Called by the evaluator before it evaluates node. Returns the value to use instead of evaluating node, or
        None to evaluate normally.
        """
        if not self.enabled:
            return None

        self.visits += 1
        if self.visits < self.next_gate:
            return None

        self.next_gate += self.threshold
        self.gates += 1
        log.debug("gate %d fired at visit %d on %s", self.gates, self.visits, node.describe())
        return self.ask(node, environment)

    def ask(self, node: Node, environment: Environment) -> Optional[Value]:
        expected = expected_kinds(node, environment)

        print(f"{self.mood} gate {self.gates} after {self.visits} node visits", file=self.stdout)
        print(node.display(1), file=self.stdout)
        print("environment:", file=self.stdout)
        print(environment.snapshot(), file=self.stdout)
        if expected:
            kinds = ", ".join(sorted(str(kind) for kind in expected))
            print(f"value ({kinds}) or '{PASS}'? ", end="", file=self.stdout)
        else:
            print(f"statement, '{PASS}' to continue: ", end="", file=self.stdout)
        self.stdout.flush()

        line = self.stdin.readline()
        if not line:
            raise SupervisionAbort("no answer at supervision gate for {}", node.describe(), node.position)

        answer = line.strip()
        if answer == PASS:
            return None

        value = parse_literal(answer)
        if value is None:
            raise SupervisionAbort("'{}' is not a literal value", answer, node.position, diagnosis=False)
        if value.kind not in expected:
            raise SupervisionAbort("'{}' is not a valid value for {}", (answer, node.describe()), node.position,
                                   diagnosis=False)

        log.debug("gate %d overrode %s with %r", self.gates, node.describe(), value)
        return value
