"""
Analysis entry points.

``analyze`` runs scanner and parser over one source text and returns tokens,
AST and diagnostics. It is a pure function: every call builds its own
collector, scanner and parser, so calls may run concurrently.

Token selection and statistics live here too so that front ends (the CLI,
an editor bridge) only have to map their flags onto AnalysisOptions.
"""

import io
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, TextIO

from .lexer.tokens import Token, TokenType
from .lexer.lexer import Lexer
from .parser.ast_nodes import Program, to_dict
from .parser.parser import Parser
from .parser.token_stream import TokenStream
from .diagnostics import Diagnostic, DiagnosticCollector
from .errors import CoverageError, SourceAcquisitionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Knobs for a single analysis call.

    Token filters only shape the returned token list; the parser always
    sees the complete stream.
    """
    lexical_only: bool = False
    token_types: Optional[FrozenSet[TokenType]] = None
    exclude_whitespace: bool = False
    only_malformed: bool = False

    @classmethod
    def from_type_names(cls, names: Iterable[str], **kwargs) -> "AnalysisOptions":
        """
        Build options from type names such as ``["keyword", "identifier"]``.

        Raises:
            ValueError: If a name is not a token type
        """
        types = set()
        for name in names:
            name = name.strip().lower()
            if not name:
                continue
            try:
                types.add(TokenType(name))
            except ValueError:
                valid = ", ".join(t.value for t in TokenType)
                raise ValueError(f"unknown token type '{name}' (expected one of: {valid})")
        return cls(token_types=frozenset(types), **kwargs)


@dataclass(frozen=True)
class TokenStatistics:
    total: int
    by_type: Dict[str, int]
    malformed: int

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "by_type": dict(self.by_type), "malformed": self.malformed}


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one analysis call produced."""
    tokens: List[Token]
    ast: Optional[Program]
    diagnostics: List[Diagnostic]
    statistics: TokenStatistics = field(compare=False)

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)

    def to_dict(self, include_spans: bool = False) -> Dict[str, Any]:
        """
        The structured result: ``{tokens, ast, diagnostics}``.

        ``ast`` is left out for lexical-only runs. Statistics are never part
        of this dictionary.
        """
        result: Dict[str, Any] = {"tokens": [t.to_dict() for t in self.tokens]}
        if self.ast is not None:
            result["ast"] = to_dict(self.ast, include_spans)
        result["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        return result


def analyze(source: str, options: Optional[AnalysisOptions] = None) -> AnalysisResult:
    """
    Analyze source text.

    Never raises for any input string. The only exceptions that can escape
    are InternalError subclasses, which signal a bug in the analyzer.
    """
    options = options or AnalysisOptions()
    diagnostics = DiagnosticCollector()

    tokens = Lexer(source, diagnostics).tokenize()
    _check_coverage(source, tokens)

    ast = None
    if not options.lexical_only:
        ast = Parser(TokenStream(tokens), diagnostics).parse()

    statistics = compute_statistics(tokens)
    logger.debug("analysis finished: %d tokens (%d malformed), %d diagnostics",
                 statistics.total, statistics.malformed, len(diagnostics))

    return AnalysisResult(
        tokens=select_tokens(tokens, options),
        ast=ast,
        diagnostics=diagnostics.sorted(),
        statistics=statistics,
    )


def select_tokens(tokens: Iterable[Token], options: AnalysisOptions) -> List[Token]:
    """Apply the whitespace, malformed-only and type filters, in that order."""
    selected = list(tokens)
    if options.exclude_whitespace:
        selected = [t for t in selected
                    if t.type not in (TokenType.WHITESPACE, TokenType.NEWLINE)]
    if options.only_malformed:
        selected = [t for t in selected if t.malformed is not None]
    if options.token_types is not None:
        selected = [t for t in selected if t.type in options.token_types]
    return selected


def compute_statistics(tokens: Iterable[Token]) -> TokenStatistics:
    """Counts per token type and the number of malformed tokens."""
    counts: Counter = Counter()
    malformed = 0
    total = 0
    for token in tokens:
        total += 1
        counts[token.type.value] += 1
        if token.malformed is not None:
            malformed += 1
    by_type = {t.value: counts.get(t.value, 0) for t in TokenType}
    return TokenStatistics(total=total, by_type=by_type, malformed=malformed)


def load_source(path: Optional[str] = None, stream: Optional[TextIO] = None) -> str:
    """
    Acquire source text from a file or an open text stream.

    Files are decoded as UTF-8 with undecodable bytes replaced, so any file
    that can be read yields some text to analyze.

    Raises:
        SourceAcquisitionError: If the file is missing or unreadable, or no
            input was given
    """
    if path is not None:
        try:
            with io.open(path, 'r', encoding='utf-8', errors='replace', newline='') as f:
                return f.read()
        except OSError as e:
            raise SourceAcquisitionError(f"cannot read '{path}': {e.strerror or e}", path) from e

    if stream is not None:
        try:
            return stream.read()
        except (OSError, UnicodeDecodeError) as e:
            raise SourceAcquisitionError(f"cannot read input stream: {e}") from e

    raise SourceAcquisitionError("no input given: pass a file path or a stream")


def analyze_file(path: str, options: Optional[AnalysisOptions] = None) -> AnalysisResult:
    """Load ``path`` and analyze it. Acquisition errors propagate before analysis."""
    return analyze(load_source(path=path), options)


def _check_coverage(source: str, tokens: List[Token]):
    expected = 0
    for token in tokens:
        if token.position.start != expected or token.position.end - token.position.start != len(token.lexeme):
            raise CoverageError(f"token {token} does not start at offset {expected}")
        expected = token.position.end
    if expected != len(source):
        raise CoverageError(f"tokens cover {expected} of {len(source)} characters")
