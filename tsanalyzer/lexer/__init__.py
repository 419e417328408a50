"""
Scanner package

Converts TypeScript source text into a contiguous, positioned token list.

Key Features:
- Every character lands in exactly one token (trivia included)
- Malformed strings, numbers, comments and characters are flagged inline
- Positions count code points, so multi-byte text stays aligned
"""

from .tokens import Token, TokenType, Position, SourceLocation, KEYWORDS, OPERATORS, PUNCTUATION
from .lexer import Lexer, tokenize_string

__all__ = [
    "Lexer",
    "tokenize_string",
    "Token",
    "TokenType",
    "Position",
    "SourceLocation",
    "KEYWORDS",
    "OPERATORS",
    "PUNCTUATION",
]
