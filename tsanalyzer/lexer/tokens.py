"""
Token definitions for the TypeScript scanner.

This module defines the token categories produced by the scanner along with
the static lookup tables it consults:
- Keywords (the reserved and contextual TypeScript words)
- Operators (longest-match table)
- Punctuation and delimiters

All tables are read-only module constants.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class TokenType(Enum):
    """
    Coarse token categories.

    The values double as the external ``type`` names of serialized tokens.
    """

    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"
    WHITESPACE = "whitespace"
    NEWLINE = "newline"
    UNKNOWN = "unknown"


# Token types the parser never sees
TRIVIA = frozenset({TokenType.WHITESPACE, TokenType.NEWLINE, TokenType.COMMENT})


@dataclass(frozen=True)
class SourceLocation:
    """
    A single point in the source text.

    ``offset`` counts characters (code points), not encoded bytes.
    """
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Position:
    """Half-open character range ``[start, end)`` plus the 1-based start line/column."""
    start: int
    end: int
    line: int
    column: int

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def start_location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.start)

    def to_dict(self) -> Dict[str, int]:
        return {
            "start": self.start,
            "end": self.end,
            "line": self.line,
            "column": self.column,
        }


@dataclass(frozen=True)
class Token:
    """
    A classified, positioned lexeme.

    ``lexeme`` is the exact source text covered by ``position``; ``malformed``
    carries the reason when the scanner could not complete the token.
    """
    type: TokenType
    lexeme: str
    position: Position
    malformed: Optional[str] = None

    def __str__(self) -> str:
        if self.malformed:
            return f"{self.type.name}({self.lexeme!r}, malformed={self.malformed!r})"
        return f"{self.type.name}({self.lexeme!r})"

    @property
    def is_trivia(self) -> bool:
        """Whitespace, newlines and comments."""
        return self.type in TRIVIA

    @property
    def is_malformed(self) -> bool:
        return self.malformed is not None

    def is_keyword(self, word: str) -> bool:
        return self.type == TokenType.KEYWORD and self.lexeme == word

    def is_operator(self, op: str) -> bool:
        return self.type == TokenType.OPERATOR and self.lexeme == op

    def is_punctuation(self, char: str) -> bool:
        return self.type == TokenType.PUNCTUATION and self.lexeme == char

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "type": self.type.value,
            "value": self.lexeme,
            "position": self.position.to_dict(),
        }
        if self.malformed is not None:
            result["malformed"] = self.malformed
        return result


# ============================================================================
# Lookup tables
# ============================================================================

KEYWORDS = frozenset({
    "abstract", "any", "as", "asserts", "bigint", "boolean", "break", "case",
    "catch", "class", "const", "continue", "debugger", "declare", "default",
    "delete", "do", "else", "enum", "export", "extends", "false", "finally",
    "for", "from", "function", "get", "if", "implements", "import", "in",
    "infer", "instanceof", "interface", "is", "keyof", "let", "module",
    "namespace", "never", "new", "null", "number", "object", "of", "package",
    "private", "protected", "public", "readonly", "require", "return", "set",
    "static", "string", "super", "switch", "symbol", "this", "throw", "true",
    "try", "type", "typeof", "undefined", "unique", "unknown", "var", "void",
    "while", "with", "yield",
})

# Keywords that start constructs the grammar does not cover yet
UNSUPPORTED_STATEMENT_KEYWORDS = frozenset({
    "if", "else", "for", "while", "do", "switch", "case", "default", "break",
    "continue", "class", "interface", "enum", "type", "import", "export",
    "try", "catch", "finally", "throw", "namespace", "module", "declare",
    "abstract",
})

DECLARATION_KEYWORDS = ("let", "const", "var")

OPERATORS = frozenset({
    # Equality and assignment
    "===", "!==", "==", "!=", "=>", "=",
    # Relational and shifts
    "<=", "<<", "<", ">=", ">>", ">",
    # Logical
    "&&", "||", "??", "!",
    # Arithmetic
    "++", "+=", "+", "--", "-=", "-", "**", "*=", "*", "/=", "/", "%=", "%",
    # Bitwise
    "&", "|", "^",
    # Type annotations and conditionals
    "?", ":",
})

# Operators grouped by length, longest first, for maximal munch
OPERATORS_BY_LENGTH = tuple(
    (length, frozenset(op for op in OPERATORS if len(op) == length))
    for length in sorted({len(op) for op in OPERATORS}, reverse=True)
)

PUNCTUATION = frozenset({"{", "}", "(", ")", "[", "]", ";", ",", "."})

QUOTES = frozenset({"'", '"', "`"})
