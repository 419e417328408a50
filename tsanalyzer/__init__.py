"""
TypeScript Analyzer Package

Lexical scanner, recursive descent parser and diagnostic collection for a
TypeScript subset. Turns source text into a token stream, an AST and a list
of recoverable diagnostics.

Architecture:
    tsanalyzer/
    ├── lexer/           # Tokenization with inline malformation flags
    ├── parser/          # Token stream, AST nodes, recursive descent parser
    ├── diagnostics.py   # Diagnostic records and collector
    ├── api.py           # analyze() and front-end helpers
    └── cli.py           # Command-line front end
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .lexer import Lexer, Token, TokenType
from .parser import Parser, Program
from .diagnostics import Diagnostic, DiagnosticCollector, Severity
from .errors import SourceAcquisitionError, InternalError
from .api import (
    AnalysisOptions, AnalysisResult, TokenStatistics, analyze, analyze_file,
    compute_statistics, load_source, select_tokens,
)

__all__ = [
    # Core classes
    "Lexer",
    "Parser",
    "Token",
    "TokenType",
    "Program",
    "Diagnostic",
    "DiagnosticCollector",
    "Severity",

    # Analysis API
    "analyze",
    "analyze_file",
    "load_source",
    "select_tokens",
    "compute_statistics",
    "AnalysisOptions",
    "AnalysisResult",
    "TokenStatistics",

    # Errors
    "SourceAcquisitionError",
    "InternalError",

    # Version info
    "__version__",
    "__license__",
]
