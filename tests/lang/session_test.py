import io
import os
import sys
import tempfile
import unittest
from unittest import mock

from dmm import dump_ast, dump_tokens, run
from dmm.lang.config import Config, DEFAULT_THRESHOLD
from dmm.lang.error import ErrorHandler, GenericException, InterpreterError, LexError, ParseError, SupervisionAbort
from dmm.lang.lexical import Kind
from dmm.lang.session import Session
from dmm.lang.syntax import Block, Print


no_color = mock.patch.dict(os.environ, {"ANSI_COLORS_DISABLED": "1"})


def setUpModule():
    no_color.start()


def tearDownModule():
    no_color.stop()


def execute(source, stdin="", config=None):
    """Runs source through run(), returns (status, stdout, stderr)."""
    stdout, stderr = io.StringIO(), io.StringIO()
    status = run(source, config, io.StringIO(stdin), stdout, stderr)
    return status, stdout.getvalue(), stderr.getvalue()


class RunTestCase(unittest.TestCase):

    def test_exit_status(self):
        cases = {
            "sag(<ok>)": 0,
            "": 0,
            "sag(<ok)": LexError.exit_code,
            "sag(1": ParseError.exit_code,
            "sag(1 / 0)": InterpreterError.exit_code,
            "sag(x)": InterpreterError.exit_code,
            "zurueck": InterpreterError.exit_code,
        }
        for case, expected in cases.items():
            self.assertEqual(expected, execute(case)[0], case)

        statuses = {0, LexError.exit_code, ParseError.exit_code, InterpreterError.exit_code,
                    SupervisionAbort.exit_code}
        self.assertEqual(5, len(statuses))

    def test_output_before_error_remains(self):
        status, out, err = execute("sag(1)\nsag(2 / 0)\nsag(3)")
        self.assertEqual(InterpreterError.exit_code, status)
        self.assertEqual("1\n", out)
        self.assertIn("<string>:2:5: ", err)
        self.assertIn("error: ", err)

    def test_deep_recursion(self):
        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(1000)
        try:
            source = "funny sum(n) avo wenn n ist 0 avo zurueck 0 cado zurueck n + sum(n - 1) cado sag(sum(300))"
            self.assertEqual((0, "45150\n", ""), execute(source))
        finally:
            sys.setrecursionlimit(limit)

    def test_runtime_error_context(self):
        status, __, err = execute("x = 1\nsag(x / 0)", "", Config(True, 10000))
        self.assertEqual(InterpreterError.exit_code, status)
        self.assertIn("node: Arithmetic(", err)
        self.assertIn("at 2:5", err)
        self.assertIn("global: x = 1 (Integer)", err)

    def test_supervision_pass(self):
        status, out, __ = execute("sag(1)", "-\n-\n-\n", Config(True, 1))
        self.assertEqual(0, status)
        self.assertTrue(out.endswith("1\n"), out)

    def test_dump(self):
        tokens = dump_tokens("sag(1)")
        self.assertEqual([Kind.PRINT, Kind.LPAREN, Kind.INTEGER, Kind.RPAREN, Kind.EOF], [t.kind for t in tokens])
        self.assertEqual(Block([Print([])]), dump_ast("sag()"))
        self.assertRaises(ParseError, dump_ast, "sag(")


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.stdout = io.StringIO()
        self.handler = ErrorHandler(fatal=False, stream=io.StringIO())

    def test_file(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "hallo.dmm")
            with open(path, "w") as file:
                file.write("hallo\n    sag(<hallo welt>)\nreicht dann auch mal\n")

            sess = Session(self.handler, path, stdout=self.stdout)
            self.assertEqual(Kind.OPEN, next(sess.tokens()).kind)
            sess.run()
            self.assertEqual("hallo welt\n", self.stdout.getvalue())

            self.assertRaises(GenericException, Session, self.handler, os.path.join(directory, "missing.dmm"))

    def test_command_line(self):
        sess = Session(ErrorHandler(), Session.SH_FILE, stdout=self.stdout, cmd_line=True)
        self.assertFalse(sess.error_handler.fatal)

        sess.add("x = 20")
        sess.add("funny plus(a, b) avo zurueck a + b cado")
        sess.add("sag(plus(x, 22))")
        self.assertEqual("42\n", self.stdout.getvalue())

    def test_is_incomplete(self):
        should_pass = ["avo", "wenn :) avo\n sag(1)", "sag(1", "funny f(a,", "x ="]
        for case in should_pass:
            self.assertTrue(Session.is_incomplete(case), case)

        should_fail = ["", "avo cado", "x = = 1", "cado", "sag(<open", "x = 1"]
        for case in should_fail:
            self.assertFalse(Session.is_incomplete(case), case)


class ConfigTestCase(unittest.TestCase):

    def test_from_env(self):
        self.assertEqual(Config(False, DEFAULT_THRESHOLD), Config.from_env({}))

        cases = {
            (("DMM_SUPERVISED", "1"),): Config(True, DEFAULT_THRESHOLD),
            (("DMM_SUPERVISED", "TRUE"), ("DMM_THRESHOLD", "5")): Config(True, 5),
            (("DMM_SUPERVISED", "no"), ("DMM_THRESHOLD", " 3 ")): Config(False, 3),
            (("DMM_SUPERVISED", ""),): Config(False, DEFAULT_THRESHOLD),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, Config.from_env(dict(case)), case)

        should_raise = ["abc", "0", "-4", "1.5"]
        for case in should_raise:
            self.assertRaises(GenericException, Config.from_env, {"DMM_THRESHOLD": case})


class ErrorHandlerTestCase(unittest.TestCase):

    def test_throw(self):
        stream = io.StringIO()
        handler = ErrorHandler(fatal=False, stream=stream)
        handler.register_file("prog.dmm", "x = 1\ny = = 2\n")

        with handler:
            raise ParseError("expression", "=", (2, 5))

        self.assertEqual(ParseError.exit_code, handler.status)
        self.assertIn("prog.dmm:2:5: ", stream.getvalue())
        self.assertIn("y = = 2", stream.getvalue())
        self.assertIn("^", stream.getvalue())

    def test_fatal(self):
        handler = ErrorHandler(stream=io.StringIO())
        with self.assertRaises(SystemExit) as context:
            with handler:
                raise LexError("unrecognized character '{}'", "$", (1, 1))
        self.assertEqual(LexError.exit_code, context.exception.code)

    def test_internal(self):
        stream = io.StringIO()
        handler = ErrorHandler(fatal=False, stream=stream)
        with self.assertRaises(ValueError):
            with handler:
                raise ValueError("boom")
        self.assertIn("[internal]", stream.getvalue())
        self.assertEqual(1, handler.status)

    def test_message(self):
        error = GenericException("unknown variable name '{}'", "x")
        self.assertEqual("unknown variable name 'x'", error.plain)
        self.assertEqual("unknown variable name 'x'", str(error))


if __name__ == '__main__':
    unittest.main()
