"""Lexical analysis for the dmm language: turns source text into a list of Tokens.

Token grammar can be loosely defined as follows:

```
<open>    ::= "avo" | "hallo" | "bitte"                    ; block openers, interchangeable
<close>   ::= "cado" | "reicht dann auch mal" | "danke"    ; block closers, interchangeable
<keyword> ::= "wenn" | "solange" | "funny" | "zurueck" | "sag" | "frag"
            | "ist" | "ungleich" | "kleiner als" | "groesser als"
<boolean> ::= ":)" | ":("                                  ; true, false
<integer> ::= <digit>+                                     ; must fit in a signed 32 bit integer
<string>  ::= "<" <char except ">">* ">"
<id>      ::= (<letter> | "_") (<letter> | <digit> | "_")*
<symbol>  ::= "(" | ")" | "," | "+" | "-" | "*" | "/" | "="
```

Keywords made of several words and the smileys are matched greedily: the longest keyword starting at the current
position wins. Whitespace (including newlines) only separates tokens.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from dmm.lang.error import LexError


INT_MAX = 2 ** 31 - 1
DIGITS = "0123456789"


class Kind(Enum):
    OPEN = "open"
    CLOSE = "close"
    IF = "wenn"
    WHILE = "solange"
    FUNCTION = "funny"
    RETURN = "zurueck"
    PRINT = "sag"
    READ = "frag"
    EQUALS = "ist"
    NOT_EQUALS = "ungleich"
    LESS = "kleiner als"
    GREATER = "groesser als"
    TRUE = ":)"
    FALSE = ":("
    ID = "identifier"
    INTEGER = "integer"
    STRING = "string"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    PLUS = "+"
    MINUS = "-"
    MUL = "*"
    DIV = "/"
    ASSIGN = "="
    EOF = "end of input"

    def __str__(self):
        return self.value


KEYWORDS = {
    "avo": Kind.OPEN,
    "hallo": Kind.OPEN,
    "bitte": Kind.OPEN,
    "cado": Kind.CLOSE,
    "reicht dann auch mal": Kind.CLOSE,
    "danke": Kind.CLOSE,
    "wenn": Kind.IF,
    "solange": Kind.WHILE,
    "funny": Kind.FUNCTION,
    "zurueck": Kind.RETURN,
    "sag": Kind.PRINT,
    "frag": Kind.READ,
    "ist": Kind.EQUALS,
    "ungleich": Kind.NOT_EQUALS,
    "kleiner als": Kind.LESS,
    "groesser als": Kind.GREATER,
}

SMILEYS = {":)": Kind.TRUE, ":(": Kind.FALSE}

SYMBOLS = {
    "(": Kind.LPAREN,
    ")": Kind.RPAREN,
    ",": Kind.COMMA,
    "+": Kind.PLUS,
    "-": Kind.MINUS,
    "*": Kind.MUL,
    "/": Kind.DIV,
    "=": Kind.ASSIGN,
}

# longest first, so that "reicht dann auch mal" is tried before any shorter keyword
_BY_LENGTH = sorted(KEYWORDS, key=len, reverse=True)


@dataclass(frozen=True)
class Token:
    """A single token. value is the keyword's source text, the identifier's name, the integer or the string's
    contents. line and col are 1-based.
    """
    kind: Kind
    value: Union[int, str, None] = None
    line: int = 0
    col: int = 0

    @property
    def position(self):
        return self.line, self.col

    @property
    def length(self):
        """Length of this token in the source, used to underline it in error messages."""
        if self.kind is Kind.STRING:
            return len(self.value) + 2
        if self.value is None:
            return len(self.kind.value) if self.kind is not Kind.EOF else 1
        return len(str(self.value))

    def __str__(self):
        if self.kind is Kind.EOF:
            return str(self.kind)
        if self.kind is Kind.STRING:
            return f"<{self.value}>"
        if self.value is not None:
            return str(self.value)
        return self.kind.value

    def __repr__(self):
        if self.value is None:
            return f"Token({self.kind.name}, {self.line}:{self.col})"
        return f"Token({self.kind.name}, {self.value!r}, {self.line}:{self.col})"


def is_word_char(char):
    return char.isalnum() or char == "_"


class Lexer:
    """Scans source text left to right. Use tokenize() for the whole list, or iterate for one token at a time."""

    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.line = 1
        self.col = 1

    def current_char(self) -> Optional[str]:
        return self.text[self.pos] if self.pos < len(self.text) else None

    def advance(self, count=1):
        for _ in range(count):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.col = 1
            else:
                self.col += 1
            self.pos += 1

    def skip_whitespace(self):
        while self.current_char() is not None and self.current_char().isspace():
            self.advance()

    def integer(self, line, col):
        start = self.pos
        while self.current_char() is not None and self.current_char() in DIGITS:
            self.advance()

        if self.current_char() is not None and is_word_char(self.current_char()):
            while self.current_char() is not None and is_word_char(self.current_char()):
                self.advance()
            malformed = self.text[start:self.pos]
            raise LexError("malformed integer literal '{}'", malformed, (line, col), len(malformed))

        digits = self.text[start:self.pos]
        number = int(digits)
        if number > INT_MAX:
            raise LexError("integer literal '{}' is too large", digits, (line, col), len(digits))
        return Token(Kind.INTEGER, number, line, col)

    def string(self, line, col):
        end = self.text.find(">", self.pos + 1)
        if end == -1:
            raise LexError("missing string closure '{}'", ">", (line, col))

        contents = self.text[self.pos + 1:end]
        self.advance(end + 1 - self.pos)
        return Token(Kind.STRING, contents, line, col)

    def keyword(self):
        """Returns the longest keyword starting at the current position, or None. Keywords must not run into the
        following word: 'avocado' is an identifier, not 'avo' followed by 'cado'.
        """
        for word in _BY_LENGTH:
            end = self.pos + len(word)
            if self.text.startswith(word, self.pos) and (end >= len(self.text) or not is_word_char(self.text[end])):
                return word
        return None

    def word(self, line, col):
        keyword = self.keyword()
        if keyword is not None:
            self.advance(len(keyword))
            return Token(KEYWORDS[keyword], keyword, line, col)

        start = self.pos
        while self.current_char() is not None and is_word_char(self.current_char()):
            self.advance()
        return Token(Kind.ID, self.text[start:self.pos], line, col)

    def next_token(self) -> Token:
        """Returns the next token. Once the text is exhausted, returns EOF tokens forever."""
        self.skip_whitespace()

        line, col = self.line, self.col
        char = self.current_char()

        if char is None:
            return Token(Kind.EOF, None, line, col)

        if char in DIGITS:
            return self.integer(line, col)

        if char == "<":
            return self.string(line, col)

        if char.isalpha() or char == "_":
            return self.word(line, col)

        smiley = self.text[self.pos:self.pos + 2]
        if smiley in SMILEYS:
            self.advance(2)
            return Token(SMILEYS[smiley], None, line, col)

        if char in SYMBOLS:
            self.advance()
            return Token(SYMBOLS[char], None, line, col)

        raise LexError("unrecognized character '{}'", char, (line, col))

    def __iter__(self):
        while True:
            token = self.next_token()
            yield token
            if token.kind is Kind.EOF:
                break


def tokenize(text) -> List[Token]:
    """Converts text into a list of tokens ending with a single EOF token. Raises LexError on invalid input."""
    return list(Lexer(text))
