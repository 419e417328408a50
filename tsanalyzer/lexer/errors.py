"""
Lexical malformation reasons and the diagnostics derived from them.

The reason strings are attached verbatim to malformed tokens; the scanner
reports one error diagnostic per malformed token.
"""

from typing import Optional

from .tokens import Token
from ..diagnostics import Diagnostic, DiagnosticCollector, DiagnosticLocation


UNTERMINATED_STRING = "unterminated string"
UNTERMINATED_BLOCK_COMMENT = "unterminated block comment"


def multiple_decimal_points(count: int) -> str:
    return f"number with multiple decimal points ({count})"


def unrecognized_character(char: str) -> str:
    return f"unrecognized character: '{char}'"


# Common error codes for categorization
ERROR_CODES = {
    "L001": "Unrecognized character",
    "L002": "Unterminated string literal",
    "L003": "Malformed numeric literal",
    "L004": "Unterminated block comment",
}


def error_code_for(reason: str) -> Optional[str]:
    """Map a malformation reason back to its error code."""
    if reason == UNTERMINATED_STRING:
        return "L002"
    if reason == UNTERMINATED_BLOCK_COMMENT:
        return "L004"
    if reason.startswith("number with multiple decimal points"):
        return "L003"
    if reason.startswith("unrecognized character"):
        return "L001"
    return None


def token_location(token: Token) -> DiagnosticLocation:
    return DiagnosticLocation(
        line=token.position.line,
        column=token.position.column,
        length=token.position.length,
    )


def report_malformed_token(token: Token, diagnostics: DiagnosticCollector) -> Diagnostic:
    """Record the error diagnostic for a malformed token."""
    return diagnostics.error(
        message=token.malformed,
        location=token_location(token),
        code=error_code_for(token.malformed),
        offset=token.position.start,
    )
