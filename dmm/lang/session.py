"""Session control for the dmm language: ties lexer, parser and evaluator together to run a file, a string or, one
chunk at a time, command-line input.
"""

import logging
from typing import List

from dmm.lang.config import Config
from dmm.lang.error import ErrorHandler, GenericException, ParseError
from dmm.lang.evaluator import Evaluator
from dmm.lang.lexical import Kind, Lexer, Token, tokenize
from dmm.lang.parser import parse
from dmm.lang.scope import Environment, FunctionTable
from dmm.lang.syntax import Block

log = logging.getLogger(__name__)


class Session:
    """Governs a dmm session. The global environment and the function table live as long as the session, so in
    command-line mode variables and functions carry over from one input to the next.
    """
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path, config=None, stdin=None, stdout=None, source=None, cmd_line=False):
        self.error_handler = error_handler
        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        if self.cmd_line:
            self.error_handler.fatal = False

        if source is None and path != Session.SH_FILE:
            try:
                with open(path, "r") as file:
                    source = file.read()
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False)

        self.source = source if source is not None else ""
        self.error_handler.register_file(path, self.source)

        self.functions = FunctionTable()
        self.globals = Environment()
        self.evaluator = Evaluator(self.functions, self.globals, config if config is not None else Config(),
                                   stdin, stdout)

    @staticmethod
    def is_incomplete(source):
        """Whether or not source stops in the middle of a statement, e.g. inside a block that has not been closed.
        Used for line continuations in command-line mode.
        """
        try:
            parse(tokenize(source))
        except ParseError as error:
            return error.found.kind is Kind.EOF
        except GenericException:
            return False
        return False

    def tokens(self):
        """Yields the tokens of this session's source one by one, ending with EOF."""
        return iter(Lexer(self.source))

    def tree(self) -> Block:
        return parse(tokenize(self.source))

    def run(self):
        """Parses and runs this session's source. Raises the first error encountered."""
        program = self.tree()
        log.debug("running '%s' (%d top-level statements)", self.path, len(program.body))
        self.evaluator.execute(program)

    def add(self, source):
        """Parses and runs source in this session's global environment. Used in command-line mode."""
        self.source = source
        self.error_handler.register_file(self.path, source)
        self.run()


def run(source, config=None, stdin=None, stdout=None, stderr=None, path="<string>") -> int:
    """Runs source and returns the exit status: 0 on success, otherwise the exit_code of the error that stopped the
    run, after rendering it to stderr.
    """
    with ErrorHandler(fatal=False, stream=stderr) as error_handler:
        Session(error_handler, path, config, stdin, stdout, source=source).run()
    return error_handler.status


def dump_tokens(source) -> List[Token]:
    return tokenize(source)


def dump_ast(source) -> Block:
    return parse(tokenize(source))
