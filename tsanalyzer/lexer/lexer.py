"""
TypeScript scanner - turns source text into a contiguous token list

Every character of the input ends up in exactly one token, trivia included,
so joining the lexemes back together gives the original text. Problems are
never raised: a token the scanner cannot finish is emitted anyway with a
``malformed`` reason and an error diagnostic.
"""

import logging
from typing import List, Optional

from .tokens import (
    Token, TokenType, Position, KEYWORDS, OPERATORS_BY_LENGTH, PUNCTUATION, QUOTES
)
from .errors import (
    UNTERMINATED_STRING, UNTERMINATED_BLOCK_COMMENT, multiple_decimal_points,
    unrecognized_character, report_malformed_token
)
from ..diagnostics import DiagnosticCollector
from ..errors import ScannerInvariantError

logger = logging.getLogger(__name__)


class Lexer:
    """
    TypeScript lexical analyzer.

    Greedy, maximal-munch scanner. Offsets and columns count code points, so
    a multi-byte character advances both by one.
    """

    def __init__(self, source: str, diagnostics: Optional[DiagnosticCollector] = None):
        """
        Initialize the lexer with source code.

        Args:
            source: Source code string
            diagnostics: Collector shared with later stages; a private one is
                created when omitted
        """
        self.source = source
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source.

        Returns:
            Tokens whose positions partition the input, in source order
        """
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens = []

        while self.pos < len(self.source):
            start = self.pos
            token = self._next_token()
            if self.pos <= start:
                raise ScannerInvariantError(start)

            self.tokens.append(token)
            if token.malformed is not None:
                report_malformed_token(token, self.diagnostics)

        logger.debug("scanned %d tokens from %d characters", len(self.tokens), len(self.source))
        return self.tokens

    def _next_token(self) -> Token:
        """Scan one token starting at the current position."""
        start_pos = self.pos
        start_line = self.line
        start_column = self.column

        current_char = self.source[self.pos]

        def make(token_type: TokenType, malformed: Optional[str] = None) -> Token:
            return Token(
                token_type,
                self.source[start_pos:self.pos],
                Position(start_pos, self.pos, start_line, start_column),
                malformed,
            )

        if current_char in ' \t':
            while self._current() in (' ', '\t'):
                self._advance()
            return make(TokenType.WHITESPACE)

        if current_char in '\r\n':
            # \r\n is one line break
            if current_char == '\r' and self._peek() == '\n':
                self._advance()
            self._advance()
            return make(TokenType.NEWLINE)

        if self._is_identifier_start(current_char):
            self._scan_identifier()
            lexeme = self.source[start_pos:self.pos]
            return make(TokenType.KEYWORD if lexeme in KEYWORDS else TokenType.IDENTIFIER)

        if current_char.isnumeric():
            return make(TokenType.LITERAL, self._scan_number())

        if current_char in QUOTES:
            return make(TokenType.LITERAL, self._scan_string(current_char))

        if current_char == '/' and self._peek() in ('/', '*'):
            return make(TokenType.COMMENT, self._scan_comment())

        # Operators, longest first so '=>' wins over '=' followed by '>'
        for op_len, operators in OPERATORS_BY_LENGTH:
            candidate = self.source[self.pos:self.pos + op_len]
            if candidate in operators:
                self._advance_by(op_len)
                return make(TokenType.OPERATOR)

        if current_char in PUNCTUATION:
            self._advance()
            return make(TokenType.PUNCTUATION)

        self._advance()
        return make(TokenType.UNKNOWN, unrecognized_character(current_char))

    def _scan_identifier(self):
        self._advance()
        while self.pos < len(self.source) and self._is_identifier_continue(self.source[self.pos]):
            self._advance()

    def _scan_number(self) -> Optional[str]:
        """Consume a numeric run; returns the malformation reason, if any."""
        dot_count = 0
        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char.isnumeric():
                self._advance()
            elif char == '.':
                dot_count += 1
                self._advance()
            else:
                break

        if dot_count > 1:
            return multiple_decimal_points(dot_count)
        return None

    def _scan_string(self, quote: str) -> Optional[str]:
        """
        Consume a string or template literal.

        Stops before a line break; an escape never swallows a line break so
        the newline still becomes its own token.
        """
        self._advance()  # Opening quote

        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char == quote:
                self._advance()
                return None
            if char in '\r\n':
                break
            if char == '\\':
                self._advance()
                if self.pos < len(self.source) and self.source[self.pos] not in '\r\n':
                    self._advance()
            else:
                self._advance()

        return UNTERMINATED_STRING

    def _scan_comment(self) -> Optional[str]:
        if self._peek() == '/':
            while self.pos < len(self.source) and self.source[self.pos] not in '\r\n':
                self._advance()
            return None

        self._advance_by(2)  # Skip /*
        while self.pos < len(self.source):
            if self.source[self.pos] == '*' and self._peek() == '/':
                self._advance_by(2)
                return None
            self._advance()

        return UNTERMINATED_BLOCK_COMMENT

    def _is_identifier_start(self, char: str) -> bool:
        return char.isalpha() or char in ('_', '$')

    def _is_identifier_continue(self, char: str) -> bool:
        return char.isalnum() or char in ('_', '$')

    def _current(self) -> str:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return '\0'

    def _peek(self, offset: int = 1) -> str:
        """Peek at character ahead without advancing."""
        peek_pos = self.pos + offset
        if peek_pos < len(self.source):
            return self.source[peek_pos]
        return '\0'

    def _advance(self):
        """Advance position by one character, updating line/column."""
        if self.pos >= len(self.source):
            return
        char = self.source[self.pos]
        self.pos += 1
        # The \r of a \r\n pair is not a break on its own
        if char == '\n' or (char == '\r' and self._current() != '\n'):
            self.line += 1
            self.column = 1
        else:
            self.column += 1

    def _advance_by(self, count: int):
        for _ in range(count):
            self._advance()


def tokenize_string(source: str, diagnostics: Optional[DiagnosticCollector] = None) -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Never raises for malformed input; inspect ``Token.malformed`` or the
    collector for problems.
    """
    return Lexer(source, diagnostics).tokenize()
