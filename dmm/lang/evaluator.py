"""Tree-walking evaluator for the dmm language.

Statements yield a Completion: either NORMAL, or RETURN carrying the returned value. A Block stops at the first RETURN
and hands it up unchanged, If and While pass it through, and a Call unwraps it into the call's value. Expressions yield
plain Values.

Before any node is evaluated, the Supervisor gets the chance to supply the node's value instead (see supervisor.py).
"""

import logging
import re
import sys
from collections import namedtuple
from enum import Enum

from dmm.lang.config import Config
from dmm.lang.error import (ArityError, DivisionByZero, GenericException, InterpreterError, ReturnOutsideFunction,
                            TypeMismatch)
from dmm.lang.lexical import Kind
from dmm.lang.scope import Environment, FunctionTable
from dmm.lang.supervisor import Supervisor
from dmm.lang.syntax import Block, Node, NodeKind, Value, ValueKind, NONE

log = logging.getLogger(__name__)

NUMERIC = re.compile(r"^[+-]?[0-9]+$")

RECURSION_LIMIT = 10000  # every dmm call costs about a dozen Python frames


class Signal(Enum):
    NORMAL = "normal"
    RETURN = "return"


Completion = namedtuple("Completion", ["signal", "value"])

CONTINUE = Completion(Signal.NORMAL, NONE)


def truncated_division(dividend, divisor):
    """Integer division rounding toward zero: 7 / 2 = 3, -7 / 2 = -3."""
    quotient = abs(dividend) // abs(divisor)
    return quotient if (dividend < 0) == (divisor < 0) else -quotient


class Evaluator:
    """Evaluates trees against a global Environment and a FunctionTable, writing to stdout and reading from stdin."""

    def __init__(self, functions: FunctionTable = None, environment: Environment = None, config: Config = None,
                 stdin=None, stdout=None, supervisor: Supervisor = None):
        self.functions = functions if functions is not None else FunctionTable()
        self.globals = environment if environment is not None else Environment()
        self.config = config if config is not None else Config()
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.supervisor = supervisor if supervisor is not None else Supervisor(self.config, self.stdin, self.stdout)

        self.dispatch = {
            NodeKind.BLOCK: self.block,
            NodeKind.VARIABLE: self.variable,
            NodeKind.LITERAL: self.literal,
            NodeKind.COMPARE: self.compare,
            NodeKind.ARITHMETIC: self.arithmetic,
            NodeKind.UNARY: self.unary,
            NodeKind.ASSIGN: self.assign,
            NodeKind.IF: self.if_statement,
            NodeKind.WHILE: self.while_statement,
            NodeKind.FUNCTION_DEF: self.function_definition,
            NodeKind.CALL: self.call,
            NodeKind.RETURN: self.return_statement,
            NodeKind.PRINT: self.print_statement,
            NodeKind.READ: self.read,
        }
        missing = set(NodeKind) - set(self.dispatch)
        if missing:
            raise GenericException("no evaluator for node kinds {}", ", ".join(sorted(kind.value for kind in missing)),
                                   internal=True)

    def execute(self, program: Block) -> Environment:
        """Registers program's function definitions, then runs program in the global environment. Returns the global
        environment.
        """
        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)
        self.functions.register_all(program)
        self.visit(program, self.globals)
        return self.globals

    def visit(self, node: Node, environment: Environment) -> Completion:
        override = self.supervisor.before_evaluate(node, environment)
        if override is not None:
            return Completion(Signal.NORMAL, override)

        try:
            result = self.dispatch[node.kind](node, environment)
        except InterpreterError as error:
            if self.config.supervised and error.snapshot is None:
                error.snapshot = environment.snapshot()
            raise

        return result if node.statement else Completion(Signal.NORMAL, result)

    def evaluate(self, node: Node, environment: Environment) -> Value:
        """Evaluates node and returns its value. A statement evaluates to the unit value unless it returned."""
        return self.visit(node, environment).value

    # statements

    def block(self, node, environment):
        for statement in node.body:
            completion = self.visit(statement, environment)
            if completion.signal is Signal.RETURN:
                return completion
        return CONTINUE

    def assign(self, node, environment):
        environment.assign(node.name, self.evaluate(node.expr, environment))
        return CONTINUE

    def condition(self, node, environment):
        value = self.evaluate(node, environment)
        if value.kind is not ValueKind.BOOLEAN:
            raise TypeMismatch("condition must be a Boolean, got {} '{}'", (value.kind, value), node)
        return value.data

    def if_statement(self, node, environment):
        if self.condition(node.condition, environment):
            return self.visit(node.body, environment)
        return CONTINUE

    def while_statement(self, node, environment):
        while self.condition(node.condition, environment):
            completion = self.visit(node.body, environment)
            if completion.signal is Signal.RETURN:
                return completion
        return CONTINUE

    def function_definition(self, node, environment):
        """Top-level definitions are registered before the run starts and nested ones stay inert, so there is nothing
        left to do.
        """
        return CONTINUE

    def return_statement(self, node, environment):
        if environment.is_global:
            raise ReturnOutsideFunction("'{}' outside of a function", Kind.RETURN.value, node)
        value = self.evaluate(node.expr, environment) if node.expr is not None else NONE
        return Completion(Signal.RETURN, value)

    def print_statement(self, node, environment):
        text = "".join(str(self.evaluate(arg, environment)) for arg in node.args)
        print(text, file=self.stdout)
        return CONTINUE

    # expressions

    def variable(self, node, environment):
        return environment.get(node.name, node)

    def literal(self, node, environment):
        return node.value

    def read(self, node, environment):
        if node.prompt is not None:
            self.stdout.write(str(self.evaluate(node.prompt, environment)))
            self.stdout.flush()
        return Value.text(self.stdin.readline().rstrip("\r\n"))

    def call(self, node, environment):
        definition = self.functions.lookup(node.name, node)
        if len(node.args) != len(definition.params):
            raise ArityError("'{}' takes {} argument(s), got {}",
                             (node.name, len(definition.params), len(node.args)), node)

        scope = Environment(parent=self.globals)
        for param, arg in zip(definition.params, node.args):
            scope.define(param, self.evaluate(arg, environment))

        log.debug("calling '%s' with %s", node.name, scope.values)
        completion = self.visit(definition.body, scope)
        return completion.value if completion.signal is Signal.RETURN else NONE

    def integer(self, value, node):
        """Returns the integer in value. Text is parsed if it is numeric, anything else is a TypeMismatch."""
        if value.kind is ValueKind.INTEGER:
            return value.data
        if value.kind is ValueKind.TEXT and NUMERIC.match(value.data.strip()):
            return int(value.data.strip())
        raise TypeMismatch("expected a number, got {} '{}'", (value.kind, value), node)

    def unary(self, node, environment):
        number = self.integer(self.evaluate(node.operand, environment), node)
        return Value.integer(-number if node.op is Kind.MINUS else number)

    def arithmetic(self, node, environment):
        left = self.evaluate(node.left, environment)
        right = self.evaluate(node.right, environment)

        if node.op is Kind.PLUS and left.kind is ValueKind.TEXT and right.kind is ValueKind.TEXT:
            return Value.text(left.data + right.data)

        a, b = self.integer(left, node), self.integer(right, node)
        if node.op is Kind.PLUS:
            return Value.integer(a + b)
        if node.op is Kind.MINUS:
            return Value.integer(a - b)
        if node.op is Kind.MUL:
            return Value.integer(a * b)

        if b == 0:
            raise DivisionByZero("division of {} by zero", str(a), node)
        return Value.integer(truncated_division(a, b))

    def compare(self, node, environment):
        left = self.evaluate(node.left, environment)
        right = self.evaluate(node.right, environment)

        if node.op in (Kind.LESS, Kind.GREATER):
            a, b = self.integer(left, node), self.integer(right, node)
            return Value.boolean(a < b if node.op is Kind.LESS else a > b)

        if left.kind is right.kind:
            equal = left.data == right.data
        elif {left.kind, right.kind} == {ValueKind.INTEGER, ValueKind.TEXT}:
            equal = self.integer(left, node) == self.integer(right, node)
        else:
            raise TypeMismatch("cannot compare {} with {}", (left.kind, right.kind), node)

        return Value.boolean(equal if node.op is Kind.EQUALS else not equal)
