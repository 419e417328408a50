"""
Cursor over scanner output for the parser.

Whitespace, newline and comment tokens are hidden from the grammar but kept
around: the stream still knows whether a line break separated two
significant tokens, and where the input ends.
"""

from typing import List, Optional, Sequence

from ..lexer.tokens import Token, TokenType, SourceLocation
from ..errors import TokenStreamExhausted


class TokenStream:
    """One-token-lookahead cursor over the significant tokens."""

    def __init__(self, tokens: Sequence[Token]):
        self.all_tokens: Sequence[Token] = tokens
        self.tokens: List[Token] = []
        # newline_flags[i] is True when a line break precedes self.tokens[i]
        self._newline_flags: List[bool] = []
        self.current = 0

        saw_newline = False
        for token in tokens:
            if token.type == TokenType.NEWLINE:
                saw_newline = True
            elif token.type == TokenType.COMMENT and ('\n' in token.lexeme or '\r' in token.lexeme):
                saw_newline = True
            elif not token.is_trivia:
                self.tokens.append(token)
                self._newline_flags.append(saw_newline)
                saw_newline = False

        self._end = self._compute_end_location(tokens)

    @staticmethod
    def _compute_end_location(tokens: Sequence[Token]) -> SourceLocation:
        if not tokens:
            return SourceLocation(1, 1, 0)
        last = tokens[-1]
        if last.type == TokenType.NEWLINE:
            return SourceLocation(last.position.line + 1, 1, last.position.end)
        # Multi-line comments end on a later line than they start
        lines = last.lexeme.replace('\r\n', '\n').replace('\r', '\n').split('\n')
        if len(lines) > 1:
            return SourceLocation(last.position.line + len(lines) - 1,
                                  len(lines[-1]) + 1, last.position.end)
        return SourceLocation(last.position.line, last.position.column + last.position.length,
                              last.position.end)

    def at_end(self) -> bool:
        return self.current >= len(self.tokens)

    def peek(self) -> Optional[Token]:
        """Current token, or None at end of input."""
        if self.current < len(self.tokens):
            return self.tokens[self.current]
        return None

    def previous(self) -> Token:
        if self.current == 0:
            raise TokenStreamExhausted("no token has been consumed yet")
        return self.tokens[self.current - 1]

    def advance(self) -> Token:
        """Consume and return the current token."""
        if self.at_end():
            raise TokenStreamExhausted("advanced past the end of the token stream")
        self.current += 1
        return self.tokens[self.current - 1]

    def check(self, token_type: TokenType, value: Optional[str] = None) -> bool:
        token = self.peek()
        if token is None or token.type != token_type:
            return False
        return value is None or token.lexeme == value

    def match(self, token_type: TokenType, value: Optional[str] = None) -> Optional[Token]:
        """Consume the current token if it matches."""
        if self.check(token_type, value):
            return self.advance()
        return None

    def newline_before(self) -> bool:
        """Whether a line break separates the previous and current token."""
        if self.at_end():
            return True
        return self._newline_flags[self.current]

    def end_location(self) -> SourceLocation:
        """The point just past the last character of the source."""
        return self._end

    def __len__(self) -> int:
        return len(self.tokens)
