"""
Boolean tag expressions.

Grammar (precedence ! > & > |, parentheses override):

    expr    := term ('|' term)*
    term    := factor ('&' factor)*
    factor  := '!' factor | '(' expr ')' | TAG
    TAG     := letters, digits and spaces (outer whitespace trimmed)

Expressions are compiled once, when they are registered, into a small tree
that is evaluated against a photo's tag set.
"""
from dataclasses import dataclass
from typing import AbstractSet, List, Optional, Tuple

from .. import config
from ..exceptions import ConfigurationError

OPERATORS = '&|!()'


@dataclass(frozen=True)
class Token:
    kind: str       # 'tag' or one of OPERATORS
    value: str
    pos: int


class Expression:
    def evaluate(self, tags: AbstractSet[str]) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class TagTerm(Expression):
    name: str

    def evaluate(self, tags: AbstractSet[str]) -> bool:
        return self.name in tags


@dataclass(frozen=True)
class NotExpr(Expression):
    operand: Expression

    def evaluate(self, tags: AbstractSet[str]) -> bool:
        return not self.operand.evaluate(tags)


@dataclass(frozen=True)
class AndExpr(Expression):
    # "a & b & c" is one node with three operands, so long chains stay flat
    operands: Tuple[Expression, ...]

    def evaluate(self, tags: AbstractSet[str]) -> bool:
        return all(op.evaluate(tags) for op in self.operands)


@dataclass(frozen=True)
class OrExpr(Expression):
    operands: Tuple[Expression, ...]

    def evaluate(self, tags: AbstractSet[str]) -> bool:
        return any(op.evaluate(tags) for op in self.operands)


def _is_operand_char(ch: str) -> bool:
    # isalnum() would also let through '²' or '½'
    return ch.isalpha() or ch.isdecimal() or ch == ' '


def tokenize(text: str) -> List[Token]:
    """
    Splits text into tag and operator tokens.
    Raises ConfigurationError on any character outside the grammar.
    """
    tokens: List[Token] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in OPERATORS:
            tokens.append(Token(ch, ch, i))
            i += 1
        elif _is_operand_char(ch):
            start = i
            while i < n and _is_operand_char(text[i]):
                i += 1
            name = text[start:i].strip()
            if name:
                tokens.append(Token('tag', name, start))
        else:
            raise ConfigurationError(
                f"Illegal character {ch!r} at position {i} in expression {text!r}"
            )
    return tokens


class _Parser:
    def __init__(self, text: str, tokens: List[Token]):
        self.text = text
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    def parse(self) -> Expression:
        if not self.tokens:
            raise ConfigurationError(f"Empty expression {self.text!r}")
        node = self._expr()
        tok = self._peek()
        if tok is not None:
            self._fail(f"unexpected {tok.value!r} at position {tok.pos}")
        return node

    def _peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _accept(self, kind: str) -> bool:
        tok = self._peek()
        if tok is not None and tok.kind == kind:
            self.index += 1
            return True
        return False

    def _expr(self) -> Expression:
        operands = [self._term()]
        while self._accept('|'):
            operands.append(self._term())
        return operands[0] if len(operands) == 1 else OrExpr(tuple(operands))

    def _term(self) -> Expression:
        operands = [self._factor()]
        while self._accept('&'):
            operands.append(self._factor())
        return operands[0] if len(operands) == 1 else AndExpr(tuple(operands))

    def _factor(self) -> Expression:
        tok = self._peek()
        if tok is None:
            self._fail("unexpected end of expression")
        self.index += 1

        if tok.kind in ('!', '('):
            self.depth += 1
            if self.depth > config.MAX_EXPRESSION_DEPTH:
                self._fail(f"nested deeper than {config.MAX_EXPRESSION_DEPTH} levels at position {tok.pos}")
            if tok.kind == '!':
                node = NotExpr(self._factor())
            else:
                node = self._expr()
                if not self._accept(')'):
                    self._fail(f"missing ')' for '(' at position {tok.pos}")
            self.depth -= 1
            return node
        if tok.kind == 'tag':
            return TagTerm(tok.value)
        self._fail(f"unexpected {tok.value!r} at position {tok.pos}")

    def _fail(self, reason: str):
        raise ConfigurationError(f"Malformed expression {self.text!r}: {reason}")


def compile_expression(text: str) -> Expression:
    """Parses text into an evaluable Expression or raises ConfigurationError."""
    if not isinstance(text, str):
        raise ConfigurationError(f"Expression must be a string, got {type(text).__name__}")
    return _Parser(text, tokenize(text)).parse()
