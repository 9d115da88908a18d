"""Recursive-descent parser for the dmm language. Consumes the tokens produced by dmm.lang.lexical and produces a single
Block holding the whole program.

```
<program>    ::= <statement>* EOF
<block>      ::= <open> <statement>* <close>          ; any opener may be closed by any closer
<statement>  ::= <block>
               | "wenn" <expression> <block>
               | "solange" <expression> <block>
               | "funny" <id> "(" [<id> ("," <id>)*] ")" <block>
               | "zurueck" [<expression>]             ; expression must start on the same line as "zurueck"
               | "sag" "(" [<expression> ("," <expression>)*] ")"
               | <id> "=" <expression>
               | <expression>
<expression> ::= <additive> (<comparison> <additive>)*
<additive>   ::= <term> (("+" | "-") <term>)*
<term>       ::= <unary> (("*" | "/") <unary>)*
<unary>      ::= ("+" | "-") <unary> | <primary>
<primary>    ::= <integer> | <string> | ":)" | ":("
               | "frag" "(" [<expression>] ")"
               | <id> "(" [<expression> ("," <expression>)*] ")"
               | <id>
               | "(" <expression> ")"
```
"""

from typing import List

from dmm.lang.error import ParseError
from dmm.lang.lexical import KEYWORDS, Kind, Token
from dmm.lang.syntax import (Arithmetic, Assign, Block, Call, Compare, FunctionDef, If, Literal, Print, Read, Return,
                             Unary, Value, Variable, While, FALSE, TRUE)


COMPARISONS = (Kind.EQUALS, Kind.NOT_EQUALS, Kind.LESS, Kind.GREATER)
ADDITIVE = (Kind.PLUS, Kind.MINUS)
MULTIPLICATIVE = (Kind.MUL, Kind.DIV)

EXPRESSION_START = (Kind.INTEGER, Kind.STRING, Kind.TRUE, Kind.FALSE, Kind.ID, Kind.LPAREN, Kind.PLUS, Kind.MINUS,
                    Kind.READ)

OPENERS = ", ".join(word for word, kind in KEYWORDS.items() if kind is Kind.OPEN)
CLOSERS = ", ".join(word for word, kind in KEYWORDS.items() if kind is Kind.CLOSE)


class Parser:
    """Parses one token list. Parsing aborts on the first error: there is no partial tree."""

    def __init__(self, tokens: List[Token]):
        if not tokens or tokens[-1].kind is not Kind.EOF:
            raise ValueError("token list must end with an EOF token")
        self.tokens = tokens
        self.idx = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.idx]

    def peek(self, offset=1) -> Token:
        return self.tokens[min(self.idx + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.current
        if token.kind is not Kind.EOF:
            self.idx += 1
        return token

    def error(self, expected):
        return ParseError(expected, self.current, self.current.position, self.current.length)

    def consume(self, kind, expected=None) -> Token:
        """Consumes and returns the current token if it is of kind, otherwise raises a ParseError."""
        if self.current.kind is not kind:
            raise self.error(expected or f"'{kind}'")
        return self.advance()

    # statements

    def program(self) -> Block:
        start = self.current.position
        body = []
        while self.current.kind is not Kind.EOF:
            body.append(self.statement())
        return Block(body).at(start)

    def block(self) -> Block:
        opener = self.consume(Kind.OPEN, f"block opener ({OPENERS})")

        body = []
        while self.current.kind is not Kind.CLOSE:
            if self.current.kind is Kind.EOF:
                line, col = opener.position
                raise self.error(f"block closer ({CLOSERS}) for '{opener.value}' opened at {line}:{col}")
            body.append(self.statement())

        self.advance()
        return Block(body).at(opener.position)

    def statement(self):
        kind = self.current.kind

        if kind is Kind.OPEN:
            return self.block()
        if kind is Kind.IF:
            return self.if_statement()
        if kind is Kind.WHILE:
            return self.while_statement()
        if kind is Kind.FUNCTION:
            return self.function_definition()
        if kind is Kind.RETURN:
            return self.return_statement()
        if kind is Kind.PRINT:
            return self.print_statement()
        if kind is Kind.ID and self.peek().kind is Kind.ASSIGN:
            return self.assignment()
        if kind in EXPRESSION_START:
            return self.expression()

        raise self.error("statement")

    def if_statement(self):
        start = self.advance().position
        condition = self.expression()
        return If(condition, self.block()).at(start)

    def while_statement(self):
        start = self.advance().position
        condition = self.expression()
        return While(condition, self.block()).at(start)

    def function_definition(self):
        start = self.advance().position
        name = self.consume(Kind.ID, "function name").value

        self.consume(Kind.LPAREN)
        params = []
        if self.current.kind is not Kind.RPAREN:
            params.append(self.parameter(params))
            while self.current.kind is Kind.COMMA:
                self.advance()
                params.append(self.parameter(params))
        self.consume(Kind.RPAREN, "',' or ')'")

        return FunctionDef(name, params, self.block()).at(start)

    def parameter(self, params):
        if self.current.kind is Kind.ID and self.current.value in params:
            raise self.error("distinct parameter name")
        return self.consume(Kind.ID, "parameter name").value

    def return_statement(self):
        keyword = self.advance()
        expr = None
        if self.current.kind in EXPRESSION_START and self.current.line == keyword.line:
            expr = self.expression()
        return Return(expr).at(keyword.position)

    def print_statement(self):
        start = self.advance().position
        return Print(self.arguments()).at(start)

    def assignment(self):
        name = self.advance()
        self.consume(Kind.ASSIGN)
        return Assign(name.value, self.expression()).at(name.position)

    def arguments(self):
        """Parses '(' [<expression> (',' <expression>)*] ')'."""
        self.consume(Kind.LPAREN)
        args = []
        if self.current.kind is not Kind.RPAREN:
            args.append(self.expression())
            while self.current.kind is Kind.COMMA:
                self.advance()
                args.append(self.expression())
        self.consume(Kind.RPAREN, "',' or ')'")
        return args

    # expressions

    def expression(self):
        node = self.additive()
        while self.current.kind in COMPARISONS:
            op = self.advance().kind
            node = Compare(op, node, self.additive()).at(node.position)
        return node

    def additive(self):
        node = self.term()
        while self.current.kind in ADDITIVE:
            op = self.advance().kind
            node = Arithmetic(op, node, self.term()).at(node.position)
        return node

    def term(self):
        node = self.unary()
        while self.current.kind in MULTIPLICATIVE:
            op = self.advance().kind
            node = Arithmetic(op, node, self.unary()).at(node.position)
        return node

    def unary(self):
        if self.current.kind in ADDITIVE:
            token = self.advance()
            return Unary(token.kind, self.unary()).at(token.position)
        return self.primary()

    def primary(self):
        token = self.current

        if token.kind is Kind.INTEGER:
            self.advance()
            return Literal(Value.integer(token.value)).at(token.position)

        if token.kind is Kind.STRING:
            self.advance()
            return Literal(Value.text(token.value)).at(token.position)

        if token.kind in (Kind.TRUE, Kind.FALSE):
            self.advance()
            return Literal(TRUE if token.kind is Kind.TRUE else FALSE).at(token.position)

        if token.kind is Kind.READ:
            self.advance()
            self.consume(Kind.LPAREN)
            prompt = None
            if self.current.kind is not Kind.RPAREN:
                prompt = self.expression()
            self.consume(Kind.RPAREN)
            return Read(prompt).at(token.position)

        if token.kind is Kind.ID:
            self.advance()
            if self.current.kind is Kind.LPAREN:
                return Call(token.value, self.arguments()).at(token.position)
            return Variable(token.value).at(token.position)

        if token.kind is Kind.LPAREN:
            self.advance()
            node = self.expression()
            self.consume(Kind.RPAREN)
            return node

        raise self.error("expression")


def parse(tokens: List[Token]) -> Block:
    """Parses tokens into the program's root Block. Raises ParseError if the grammar is violated."""
    return Parser(tokens).program()
