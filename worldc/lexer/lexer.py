"""
Requirement Lexer - Tokenizes requirement expressions.

Handles:
- Operators & && | || !
- Parentheses for grouping (and for time-of-day qualifiers)
- Quoted names "..."
- Reference keywords (Item, Area, Event, Option)
- Bare words, which the parser joins into multi-word names

The keywords are reserved as whole words anywhere in the text; a name that
contains one must be quoted ("Goddess Item Chest").
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional, List

from ..errors import ParseError


class TokenType(Enum):
    """Requirement token types."""
    # Delimiters
    LPAREN = auto()      # (
    RPAREN = auto()      # )

    # Operators
    AND = auto()         # & or &&
    OR = auto()          # | or ||
    NOT = auto()         # !

    # Names
    KEYWORD = auto()     # Item, Area, Event, Option
    WORD = auto()        # one word of a name
    STRING = auto()      # "quoted name"

    # End of input
    EOF = auto()


KEYWORDS = frozenset({'Item', 'Area', 'Event', 'Option'})

# Characters that end a bare word
DELIMITERS = '()&|!"'


@dataclass
class Token:
    """Represents a single token."""
    type: TokenType
    value: str
    offset: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, {self.offset})"


class Lexer:
    """Tokenizes requirement expression text."""

    def __init__(self, source: str, area: Optional[str] = None):
        self.source = source
        self.area = area
        self.pos = 0
        self.tokens: List[Token] = []

    def error(self, message: str, offset: Optional[int] = None):
        """Raise a lexer error with location information."""
        raise ParseError(message, self.source, self.pos if offset is None else offset, self.area)

    def peek(self, offset: int = 0) -> Optional[str]:
        """Peek at character at current position + offset."""
        pos = self.pos + offset
        if pos < len(self.source):
            return self.source[pos]
        return None

    def advance(self) -> Optional[str]:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return None
        ch = self.source[self.pos]
        self.pos += 1
        return ch

    def skip_whitespace(self):
        """Skip whitespace characters."""
        while self.peek() is not None and self.peek().isspace():
            self.advance()

    def read_string(self) -> str:
        """Read a quoted name. Backslash escapes the next character."""
        start = self.pos
        self.advance()  # opening "
        chars = []
        while True:
            ch = self.advance()
            if ch is None:
                self.error("Unterminated string", start)
            if ch == '"':
                break
            if ch == '\\' and self.peek() is not None:
                ch = self.advance()
            chars.append(ch)
        return ''.join(chars)

    def read_word(self) -> str:
        """Read a bare word up to whitespace or a delimiter."""
        start = self.pos
        while self.peek() is not None and not self.peek().isspace() and self.peek() not in DELIMITERS:
            self.advance()
        return self.source[start:self.pos]

    def tokenize(self) -> List[Token]:
        """Tokenize the entire requirement text."""
        while True:
            self.skip_whitespace()
            if self.pos >= len(self.source):
                break

            ch = self.peek()
            start = self.pos

            if ch == '(':
                self.advance()
                self.tokens.append(Token(TokenType.LPAREN, ch, start))
            elif ch == ')':
                self.advance()
                self.tokens.append(Token(TokenType.RPAREN, ch, start))
            elif ch == '&':
                self.advance()
                if self.peek() == '&':
                    self.advance()
                self.tokens.append(Token(TokenType.AND, self.source[start:self.pos], start))
            elif ch == '|':
                self.advance()
                if self.peek() == '|':
                    self.advance()
                self.tokens.append(Token(TokenType.OR, self.source[start:self.pos], start))
            elif ch == '!':
                self.advance()
                self.tokens.append(Token(TokenType.NOT, ch, start))
            elif ch == '"':
                value = self.read_string()
                self.tokens.append(Token(TokenType.STRING, value, start))
            else:
                word = self.read_word()
                token_type = TokenType.KEYWORD if word in KEYWORDS else TokenType.WORD
                self.tokens.append(Token(token_type, word, start))

        self.tokens.append(Token(TokenType.EOF, '', len(self.source)))
        return self.tokens


def tokenize(source: str, area: Optional[str] = None) -> List[Token]:
    """Convenience function to tokenize requirement text."""
    lexer = Lexer(source, area)
    return lexer.tokenize()
