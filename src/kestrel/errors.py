"""Parse errors and Rust-style colored diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from kestrel.source import Location, Span


class Severity(Enum):
    ERROR = "error"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",  # bold red
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class Error:
    """A fatal failure at one exact source location.

    Errors are plain values handed back through the grammar rules; they
    only become a :class:`CompileError` at the public entry points.
    ``hint`` is printed under the caret; ``notes`` follow the snippet.
    """

    location: Location
    message: str
    code: str = "E200"
    hint: str = ""
    notes: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"

    def to_diagnostic(self, filename: str = "<stdin>") -> Diagnostic:
        span = Span(self.location, self.location)
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=self.message,
            filename=filename,
            labels=[DiagnosticLabel(span=span, message=self.hint)],
            notes=list(self.notes),
        )


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str = ""


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and notes."""

    severity: Severity
    code: str
    message: str
    filename: str = "<stdin>"
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._file_cache: dict[str, list[str]] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def add_source(self, filename: str, source: str) -> None:
        """Register in-memory source text (e.g. stdin) for ``filename``."""
        self._file_cache[filename] = source.splitlines()

    def _get_source_line(self, filename: str, line: int) -> str | None:
        """Load and cache source file, return the 0-indexed line."""
        if filename not in self._file_cache:
            try:
                path = Path(filename)
                if path.is_file():
                    self._file_cache[filename] = path.read_text(encoding="utf-8").splitlines()
                else:
                    self._file_cache[filename] = []
            except OSError:
                self._file_cache[filename] = []
        lines = self._file_cache[filename]
        if 0 <= line < len(lines):
            return lines[line]
        return None

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E200]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            start, end = label.span.start, label.span.end
            lines.append(
                f"  {self._c(_BLUE)}-->{self._c(_RESET)} {diag.filename}:{start}"
            )
            gutter = f"{start.line + 1:>4}"
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")

            source_line = self._get_source_line(diag.filename, start.line)
            if source_line is not None:
                lines.append(
                    f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
                )
                if start.line == end.line:
                    caret_len = max(1, end.column - start.column)
                    padding = " " * start.column
                    carets = "^" * caret_len
                    lines.append(
                        f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                        f"{padding}{self._c(color)}{carets}{self._c(_RESET)}"
                    )

            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


class CompileError(Exception):
    """Compilation error carrying one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")
