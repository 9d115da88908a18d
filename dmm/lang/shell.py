"""Handles interactive/command-line mode for the dmm interpreter. Uses cmd as backend."""

import cmd

from dmm.lang.lexical import KEYWORDS, Kind


class Shell(cmd.Cmd):
    """dmm interpreter shell."""
    intro = "dmm interpreter :: Python backend\nType '?' or 'help' for more information."
    prompt = "dmm> "
    secondary_prompt = "...  "  # used for line continuations
    _tmp_prompt = "dmm> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_lines = []

    def default(self, line):
        """Executes arbitrary dmm input. Input that leaves a block open is continued on the next line."""
        self._tmp_lines.append(line)
        source = "\n".join(self._tmp_lines)

        if self.sess.is_incomplete(source):
            self.prompt = self.secondary_prompt
            return

        self._tmp_lines = []
        self.prompt = self._tmp_prompt

        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.sess.add(source)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        openers = ", ".join(word for word, kind in KEYWORDS.items() if kind is Kind.OPEN)
        closers = ", ".join(word for word, kind in KEYWORDS.items() if kind is Kind.CLOSE)
        print("Welcome to the dmm interpreter!\n\n"
              "dmm spells its punctuation out. Blocks are opened with one of\n"
              f"  {openers}\n"
              "and closed with any one of\n"
              f"  {closers}\n\n"
              "Try it out by typing 'x = 6 * 7', then 'sag(<x is >, x)'. Functions are\n"
              "defined with 'funny name(a, b) avo zurueck a + b cado', conditions with\n"
              "'wenn x ist 42 avo ... cado' and loops with 'solange x kleiner als 50 avo ... cado'.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
