"""
Requirement Parser - Builds an expression tree from tokens.

Grammar (AND binds tighter than OR, juxtaposition is AND):

    expr      := and_expr ( '|' and_expr )*
    and_expr  := unary ( ['&'] unary )*
    unary     := '!' unary | primary
    primary   := '(' expr ')' | reference
    reference := 'Item' name ['xN'] | 'Area' name ['(' tod ')']
               | 'Event' name | 'Option' name | name ['xN']
    name      := STRING | WORD+

A keyword ends a bare name, so names containing Item, Area, Event or Option
as a word have to be quoted.
"""

import re
from typing import List, Optional, Tuple

from ..errors import ParseError
from ..lexer import Lexer, Token, TokenType
from ..runtime.timeofday import TimeOfDay
from .ast_nodes import *

COUNT_RE = re.compile(r'^x(\d+)$')

TOD_WORDS = frozenset({'any', 'both', 'day', 'night'})

# Tokens that can start a primary; seeing one after a complete operand means
# an implicit AND.
PRIMARY_START = frozenset({
    TokenType.LPAREN, TokenType.NOT, TokenType.KEYWORD,
    TokenType.WORD, TokenType.STRING,
})


class Parser:
    """Parses requirement tokens into an expression tree."""

    def __init__(self, tokens: List[Token], source: str = "", area: Optional[str] = None):
        self.tokens = tokens
        self.source = source
        self.area = area
        self.pos = 0
        self.current_token = self.tokens[0]

    def error(self, message: str, token: Optional[Token] = None):
        """Raise a parser error naming the offending token."""
        token = token or self.current_token
        if token.type == TokenType.EOF:
            message = f"{message}, got end of input"
        else:
            message = f"{message}, got {token.value!r}"
        raise ParseError(message, self.source, token.offset, self.area)

    def peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        pos = self.pos + offset
        if pos < len(self.tokens):
            return self.tokens[pos]
        return self.tokens[-1]

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current_token
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
            self.current_token = self.tokens[self.pos]
        return token

    def expect(self, token_type: TokenType, what: str) -> Token:
        """Consume token of expected type or raise error."""
        if self.current_token.type != token_type:
            self.error(f"Expected {what}")
        return self.advance()

    def parse(self) -> Expression:
        """Parse the whole requirement."""
        if self.current_token.type == TokenType.EOF:
            self.error("Expected a requirement")
        expression = self.parse_or()
        if self.current_token.type != TokenType.EOF:
            self.error("Unexpected token")
        return expression

    def parse_or(self) -> Expression:
        items = [self.parse_and()]
        while self.current_token.type == TokenType.OR:
            self.advance()
            items.append(self.parse_and())
        if len(items) == 1:
            return items[0]
        return Or(tuple(items))

    def parse_and(self) -> Expression:
        items = [self.parse_unary()]
        while True:
            if self.current_token.type == TokenType.AND:
                self.advance()
                items.append(self.parse_unary())
            elif self.current_token.type in PRIMARY_START:
                items.append(self.parse_unary())
            else:
                break
        if len(items) == 1:
            return items[0]
        return And(tuple(items))

    def parse_unary(self) -> Expression:
        if self.current_token.type == TokenType.NOT:
            self.advance()
            return Not(self.parse_unary())
        return self.parse_primary()

    def parse_primary(self) -> Expression:
        token = self.current_token

        if token.type == TokenType.LPAREN:
            self.advance()
            if self.current_token.type == TokenType.RPAREN:
                self.error("Expected a requirement inside parentheses")
            expression = self.parse_or()
            self.expect(TokenType.RPAREN, "')'")
            return expression

        if token.type == TokenType.KEYWORD:
            return self.parse_reference()

        if token.type in (TokenType.WORD, TokenType.STRING):
            name, count = self.parse_name(allow_count=True)
            return NameRef(name, count, token.offset)

        self.error("Expected a requirement")

    def parse_reference(self) -> Expression:
        """Parse a keyword reference: Item, Area, Event or Option."""
        keyword = self.advance()

        if keyword.value == 'Item':
            name, count = self.parse_name(allow_count=True)
            return ItemCount(name, count or 1)

        if keyword.value == 'Area':
            name, _ = self.parse_name(allow_count=False)
            tod = self.parse_tod()
            return AreaReachable(name, tod)

        if keyword.value == 'Event':
            name, _ = self.parse_name(allow_count=False)
            return EventRef(name)

        name, _ = self.parse_name(allow_count=False)
        return OptionRef(name)

    def parse_name(self, allow_count: bool) -> Tuple[str, int]:
        """
        Parse a name made of one quoted string or several bare words.

        Returns:
            (name, count) where count is 0 if no trailing 'xN' was given
        """
        token = self.current_token
        if token.type == TokenType.STRING:
            self.advance()
            words = [token.value]
            quoted = True
        elif token.type == TokenType.WORD:
            words = []
            while self.current_token.type == TokenType.WORD:
                words.append(self.advance().value)
            quoted = False
        else:
            self.error("Expected a name")

        count = 0
        if allow_count:
            match = None
            if quoted:
                if self.current_token.type == TokenType.WORD:
                    match = COUNT_RE.match(self.current_token.value)
                    if match:
                        self.advance()
            elif len(words) > 1:
                match = COUNT_RE.match(words[-1])
                if match:
                    words.pop()
            if match:
                count = int(match.group(1))
                if count == 0:
                    self.error("Item count must be at least 1", self.peek(-1))

        return ' '.join(words), count

    def parse_tod(self) -> TimeOfDay:
        """Parse an optional '(day)' / '(night)' / '(any)' qualifier."""
        if (self.current_token.type == TokenType.LPAREN
                and self.peek(1).type == TokenType.WORD
                and self.peek(1).value.lower() in TOD_WORDS
                and self.peek(2).type == TokenType.RPAREN):
            self.advance()
            tod = TimeOfDay.parse(self.advance().value)
            self.advance()
            return tod
        return TimeOfDay.BOTH


def parse_requirement(text: str, area: Optional[str] = None) -> Expression:
    """Convenience function to lex and parse requirement text."""
    tokens = Lexer(text, area).tokenize()
    return Parser(tokens, text, area).parse()
