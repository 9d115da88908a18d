import unittest

from dmm.lang.error import LexError
from dmm.lang.lexical import Kind, Lexer, Token, tokenize


def kinds(text):
    return [token.kind for token in tokenize(text)]


class LexerTestCase(unittest.TestCase):

    def test_tokenize(self):
        cases = {
            "x = 5": [Kind.ID, Kind.ASSIGN, Kind.INTEGER, Kind.EOF],
            "sag(<hi>, x)": [Kind.PRINT, Kind.LPAREN, Kind.STRING, Kind.COMMA, Kind.ID, Kind.RPAREN, Kind.EOF],
            "avo cado": [Kind.OPEN, Kind.CLOSE, Kind.EOF],
            "hallo reicht dann auch mal": [Kind.OPEN, Kind.CLOSE, Kind.EOF],
            "bitte\n\tdanke": [Kind.OPEN, Kind.CLOSE, Kind.EOF],
            "a kleiner als b groesser als c": [Kind.ID, Kind.LESS, Kind.ID, Kind.GREATER, Kind.ID, Kind.EOF],
            "a ist b ungleich c": [Kind.ID, Kind.EQUALS, Kind.ID, Kind.NOT_EQUALS, Kind.ID, Kind.EOF],
            ":) :(": [Kind.TRUE, Kind.FALSE, Kind.EOF],
            "sag(:))": [Kind.PRINT, Kind.LPAREN, Kind.TRUE, Kind.RPAREN, Kind.EOF],
            "1+2*3/4-5": [Kind.INTEGER, Kind.PLUS, Kind.INTEGER, Kind.MUL, Kind.INTEGER, Kind.DIV, Kind.INTEGER,
                          Kind.MINUS, Kind.INTEGER, Kind.EOF],
            "wenn solange funny zurueck frag": [Kind.IF, Kind.WHILE, Kind.FUNCTION, Kind.RETURN, Kind.READ, Kind.EOF],
            "": [Kind.EOF],
            "   \n  ": [Kind.EOF],
        }
        for case, expected in cases.items():
            self.assertEqual(expected, kinds(case), case)

    def test_keywords_need_word_boundary(self):
        cases = {
            "avocado": "avocado",
            "wennschon": "wennschon",
            "kleiner": "kleiner",
            "_sag": "_sag",
            "x1": "x1",
        }
        for case, name in cases.items():
            token, eof = tokenize(case)
            self.assertEqual(Token(Kind.ID, name, 1, 1), token, case)
            self.assertIs(Kind.EOF, eof.kind)

    def test_multi_word_keyword(self):
        token, __ = tokenize("reicht dann auch mal")
        self.assertEqual(Kind.CLOSE, token.kind)
        self.assertEqual("reicht dann auch mal", token.value)

        self.assertEqual([Kind.ID, Kind.ID, Kind.EOF], kinds("reicht dann"))

    def test_literals(self):
        integer, string, empty, __ = tokenize("2147483647 <hallo avo welt> <>")
        self.assertEqual(2147483647, integer.value)
        self.assertEqual("hallo avo welt", string.value)
        self.assertEqual("", empty.value)

        multiline, __ = tokenize("<a\nb>")
        self.assertEqual("a\nb", multiline.value)

    def test_positions(self):
        tokens = tokenize("x = 1\n  sag(x)")
        self.assertEqual([(1, 1), (1, 3), (1, 5), (2, 3), (2, 6), (2, 7), (2, 8), (2, 9)],
                         [token.position for token in tokens])

        __, after_string = tokenize("<a\nbc> y")[:2]
        self.assertEqual((2, 5), after_string.position)

    def test_errors(self):
        should_raise = ["<abc", "x ; y", "2147483648", ":", "12ab", "x # y", "a & b", "sag(<unterminated)"]
        for case in should_raise:
            self.assertRaises(LexError, tokenize, case)

        try:
            tokenize("x = 1\ny = $")
        except LexError as error:
            self.assertEqual((2, 5), error.position)
        else:
            self.fail("LexError not raised")

        try:
            tokenize("x = 123abcdef + 1")
        except LexError as error:
            self.assertEqual("malformed integer literal '123abcdef'", error.plain)
            self.assertEqual((1, 5), error.position)
            self.assertEqual(9, error.length)
        else:
            self.fail("LexError not raised")

    def test_iteration(self):
        lexer = Lexer("a b")
        self.assertEqual([Kind.ID, Kind.ID, Kind.EOF], [token.kind for token in lexer])
        self.assertEqual(Kind.EOF, Lexer("").next_token().kind)

    def test_deterministic(self):
        source = "funny f(a) avo zurueck a * 2 cado\nsag(<f: >, f(21), :))"
        self.assertEqual(tokenize(source), tokenize(source))


if __name__ == '__main__':
    unittest.main()
