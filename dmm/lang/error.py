"""Error handling for the dmm language. Only GenericExceptions should be encountered during a run: if another type of
error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Every error is fatal to the run that raised it. The exit status tells apart the stage that failed:

```
0  success
1  internal error
2  LexError
3  ParseError
4  InterpreterError (and its subclasses)
5  SupervisionAbort
```
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error message so that it can be used to throw a dmm error. msg is a format string whose fields are
    filled with exprs, which are bolded on display.
    """
    exit_code = 1

    def __init__(self, msg, exprs=None, position=None, length=1, diagnosis=True, internal=False):
        if exprs is None:
            exprs = []
        if isinstance(exprs, str):
            exprs = [exprs]

        self.plain = msg.format(*exprs)
        self.msg = msg.format(*(colored(str(expr), attrs=["bold"]) for expr in exprs))  # color expr snippets
        self.position = position  # (line, col), both 1-based
        self.length = max(length, 1)

        self.diagnosis = diagnosis
        self.internal = internal
        super().__init__(self.plain)


class LexError(GenericException):
    """Unrecognized character, unterminated string or malformed integer literal."""
    exit_code = 2


class ParseError(GenericException):
    """Grammar violation. expected is the token category the parser wanted, found is the offending token."""
    exit_code = 3

    def __init__(self, expected, found, position=None, length=1):
        self.expected = expected
        self.found = found
        super().__init__("expected {}, found {}", (expected, found), position, length)


class InterpreterError(GenericException):
    """Superclass of every error raised while evaluating a tree."""
    exit_code = 4

    def __init__(self, msg, exprs=None, node=None, snapshot=None):
        self.node = node
        self.snapshot = snapshot  # only set in supervised mode
        super().__init__(msg, exprs, position=node.position if node is not None else None)


class UndefinedVariable(InterpreterError):
    pass


class UndefinedFunction(InterpreterError):
    pass


class TypeMismatch(InterpreterError):
    pass


class ArityError(InterpreterError):
    pass


class DivisionByZero(InterpreterError):
    pass


class ReturnOutsideFunction(InterpreterError):
    pass


class SupervisionAbort(GenericException):
    """Raised when the supervising party answers a gate with something that is neither '-' nor a fitting literal."""
    exit_code = 5


class ErrorHandler:
    """Context manager that renders dmm errors and converts any other exception into an internal dmm error."""
    ERROR = "red"

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream
        self.status = 0
        self.files = {}   # path: source text
        self.path = None  # file currently being run

    def register_file(self, path, source):
        """Registers source under path so that error positions can be displayed. Should be called prior to Session
        add/run.
        """
        self.files[path] = source.splitlines()
        self.path = path

    def _print(self, text):
        print(text, file=self.stream if self.stream is not None else sys.stderr)

    def source_line(self, line_num):
        """Returns line line_num of the registered file, or None if it is unknown."""
        lines = self.files.get(self.path, [])
        if 0 < line_num <= len(lines):
            return lines[line_num - 1]
        return None

    def diagnose(self, error):
        """Returns the offending line with the offending part highlighted and underlined."""
        line_num, col = error.position
        line = self.source_line(line_num)
        if line is None:
            return None

        start = min(col - 1, len(line))
        end = min(start + error.length, len(line))

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], ErrorHandler.ERROR, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (error.length - 1), ErrorHandler.ERROR, attrs=["bold"])

        return diagnosis

    def throw(self, error):
        """Throws error, which must be a GenericException. Exits with error.exit_code if self.fatal."""
        error_msg = ""
        if error.position is not None:
            line_num, col = error.position
            error_msg += colored(f"{self.path}:{line_num}:{col}: ", attrs=["bold"])

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        self._print(error_msg)

        if not error.internal and error.diagnosis and error.position is not None:
            diagnosis = self.diagnose(error)
            if diagnosis:
                self._print(diagnosis)

        node = getattr(error, "node", None)
        if node is not None:
            self._print("node: " + node.describe())

        snapshot = getattr(error, "snapshot", None)
        if snapshot:
            self._print("environment:\n" + snapshot)

        self.status = error.exit_code
        if self.fatal:
            sys.exit(error.exit_code)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(InterpreterError("maximum recursion depth exceeded"))
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            do_exit = True

        return not do_exit
