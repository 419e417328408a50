"""
Syntax diagnostics for the parser.

The parser never raises on bad input. Each helper here records a Diagnostic
in the shared collector and hands it back.
"""

from typing import Optional

from ..lexer.tokens import Token, SourceLocation
from ..diagnostics import Diagnostic, DiagnosticCollector, DiagnosticLocation


# Common parser error codes for categorization
PARSER_ERROR_CODES = {
    "P001": "Unexpected token",
    "P002": "Unmatched closing brace",
    "P010": "Unexpected end of input",
    "P011": "Nesting too deep",
    "P100": "Construct not supported yet",
}


def describe_token(token: Optional[Token]) -> str:
    if token is None:
        return "end of input"
    return f"'{token.lexeme}'"


def _token_location(token: Token) -> DiagnosticLocation:
    return DiagnosticLocation(token.position.line, token.position.column, token.position.length)


def _end_location(end: SourceLocation) -> DiagnosticLocation:
    return DiagnosticLocation(end.line, end.column, 0)


def report_unexpected_token(diagnostics: DiagnosticCollector, expected: str,
                            found: Optional[Token], end: SourceLocation) -> Diagnostic:
    """Expected ``expected`` but saw ``found`` (None meaning end of input)."""
    message = f"Expected {expected}, found {describe_token(found)}"
    if found is None:
        return diagnostics.error(message, _end_location(end), code="P010", offset=end.offset)
    return diagnostics.error(message, _token_location(found), code="P001",
                             offset=found.position.start)


def report_unmatched_brace(diagnostics: DiagnosticCollector, token: Token) -> Diagnostic:
    return diagnostics.error("Unexpected '}' with no open block", _token_location(token),
                             code="P002", offset=token.position.start)


def report_nesting_too_deep(diagnostics: DiagnosticCollector, token: Optional[Token],
                            end: SourceLocation, limit: int) -> Diagnostic:
    message = f"Maximum nesting depth ({limit}) exceeded"
    if token is None:
        return diagnostics.error(message, _end_location(end), code="P011", offset=end.offset)
    return diagnostics.error(message, _token_location(token), code="P011",
                             offset=token.position.start)


def report_unsupported_construct(diagnostics: DiagnosticCollector, token: Token) -> Diagnostic:
    """Note that a keyword starts a construct outside the supported grammar."""
    return diagnostics.info(
        f"'{token.lexeme}' is not supported by this parser yet",
        _token_location(token),
        code="P100",
        offset=token.position.start,
    )
