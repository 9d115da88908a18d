"""Runs the dmm interpreter on a .dmm file, or in command-line mode when no file is given. Also uses the error handling
context manager. Called from the dmm console script.

Supervised evaluation is switched on through the environment (see dmm.lang.config).
"""

import argparse
import logging

from dmm.lang.config import Config
from dmm.lang.error import ErrorHandler
from dmm.lang.session import Session
from dmm.lang.shell import Shell


def main():
    """Runs dmm interpreter. Called from dmm executable script."""
    parser = argparse.ArgumentParser(prog="dmm")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--lexer", action="store_true", help="print the tokens of file instead of running it")
    mode.add_argument("--ast", action="store_true", help="print the syntax tree of file instead of running it")
    parser.add_argument("-v", "--verbose", action="store_true", help="log interpreter internals to stderr")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    with ErrorHandler() as error_handler:
        config = Config.from_env()

        if args.file is None:
            Shell(Session(error_handler, Session.SH_FILE, config, cmd_line=True)).cmdloop()
            return

        sess = Session(error_handler, args.file, config)
        if args.lexer:
            for token in sess.tokens():
                print(repr(token))
        elif args.ast:
            print(sess.tree().display())
        else:
            sess.run()


if __name__ == "__main__":
    main()
