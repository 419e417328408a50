"""
Diagnostic records shared by the scanner and the parser.

A DiagnosticCollector is created per analysis call and handed to every
stage by reference; nothing here is process-wide.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


class Severity(Enum):
    """Diagnostic severity levels."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class DiagnosticLocation:
    """Where a diagnostic points: 1-based line/column and a length in characters."""
    line: int
    column: int
    length: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "length": self.length}


@dataclass(frozen=True)
class Diagnostic:
    """A positioned lexical or syntactic irregularity."""
    severity: Severity
    message: str
    location: DiagnosticLocation
    code: Optional[str] = None
    # Character offset of the start, kept for ordering only
    offset: int = field(default=0, compare=False)

    def __str__(self) -> str:
        code = f"[{self.code}] " if self.code else ""
        return (f"{self.severity.value.upper()}: {code}{self.message}\n"
                f"  --> {self.location.line}:{self.location.column}")

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "level": self.severity.value,
            "message": self.message,
            "location": self.location.to_dict(),
        }
        if self.code is not None:
            result["code"] = self.code
        return result


class DiagnosticCollector:
    """
    Ordered, append-only sink for diagnostics.

    Records keep their emission order; ``sorted()`` returns the source-ordered
    view handed back to callers.
    """

    def __init__(self):
        self._diagnostics: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic):
        self._diagnostics.append(diagnostic)

    def report(self, severity: Severity, message: str, location: DiagnosticLocation,
               code: Optional[str] = None, offset: int = 0) -> Diagnostic:
        """Create, append and return a diagnostic."""
        diagnostic = Diagnostic(severity, message, location, code, offset)
        self._diagnostics.append(diagnostic)
        return diagnostic

    def error(self, message: str, location: DiagnosticLocation,
              code: Optional[str] = None, offset: int = 0) -> Diagnostic:
        return self.report(Severity.ERROR, message, location, code, offset)

    def warning(self, message: str, location: DiagnosticLocation,
                code: Optional[str] = None, offset: int = 0) -> Diagnostic:
        return self.report(Severity.WARNING, message, location, code, offset)

    def info(self, message: str, location: DiagnosticLocation,
             code: Optional[str] = None, offset: int = 0) -> Diagnostic:
        return self.report(Severity.INFO, message, location, code, offset)

    def extend(self, other: "DiagnosticCollector"):
        self._diagnostics.extend(other._diagnostics)

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self._diagnostics)

    def has_warnings(self) -> bool:
        return any(d.severity == Severity.WARNING for d in self._diagnostics)

    def error_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.severity == Severity.ERROR)

    def warning_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.severity == Severity.WARNING)

    def sorted(self) -> List[Diagnostic]:
        """Diagnostics in source order; ties keep emission order."""
        return sorted(self._diagnostics,
                      key=lambda d: (d.location.line, d.location.column))

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)
