"""Value types shared across the table generation pipeline."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from tab2fig.errors import CompilationError, UsageError

ColumnSelector = Sequence[int | str] | int | str | None
RowSelector = Sequence[int] | int | None

VALIGN_CHOICES = ("middle", "top", "bottom")
HLINE_CHOICES = ("full", "major", "none", "custom")
ROUND_MODES = ("none", "places", "figures")


@dataclass(frozen=True)
class Theme:
    """A named bundle of style defaults; ``None`` fields defer to the built-ins."""

    name: str
    shading_color: str | None = None
    document_class: str | None = None
    extra_packages: tuple[str, ...] = ()
    header_bold: bool | None = None
    striped: bool | None = None
    font_size: str | None = None


@dataclass(frozen=True)
class StyleConfig:
    """Fully resolved visual and document parameters for one table."""

    shading_color: str | None
    document_class: str
    extra_packages: tuple[str, ...]
    header_bold: bool
    striped: bool
    font_size: str | None = None


@dataclass(frozen=True)
class DecimalColumn:
    """A siunitx ``S`` column aligning numbers on their decimal point.

    Header text in such a column is parsed as a number unless it is wrapped
    in braces, which the header styling stage takes care of.
    """

    integers: int = 3
    decimals: int = 2
    round_mode: str = "none"
    round_precision: int | None = None
    detect_weight: bool = True
    group_separator: str | None = None

    packages: ClassVar[tuple[str, ...]] = (
        "\\usepackage{siunitx}",
        "\\sisetup{detect-all}",
    )

    def __post_init__(self) -> None:
        if self.integers < 0 or self.decimals < 0:
            msg = (
                "Decimal column digit counts must be non-negative, got "
                f"integers={self.integers}, decimals={self.decimals}"
            )
            raise UsageError(msg)
        if self.round_mode not in ROUND_MODES:
            msg = f"round_mode must be one of {', '.join(ROUND_MODES)}; got {self.round_mode!r}"
            raise UsageError(msg)

    @property
    def spec(self) -> str:
        opts = [f"table-format={self.integers}.{self.decimals}"]
        if self.round_mode != "none" and self.round_precision is not None:
            opts.append(f"round-mode={self.round_mode}")
            opts.append(f"round-precision={self.round_precision}")
        if self.detect_weight:
            opts.extend(["detect-weight=true", "mode=text"])
        if self.group_separator is not None:
            opts.append(f"group-separator={{{self.group_separator}}}")
        return f"S[{','.join(opts)}]"


@dataclass(frozen=True)
class ResolvedAlignment:
    columns: tuple[str, ...]
    packages: tuple[str, ...] = ()
    decimal_columns: tuple[int, ...] = ()

    @property
    def column_spec(self) -> str:
        return "".join(self.columns)


@dataclass(frozen=True)
class FootnoteSpec:
    """Notes attached below the table, grouped by label style."""

    general: tuple[str, ...] = ()
    number: tuple[str, ...] = ()
    alphabet: tuple[str, ...] = ()
    symbol: tuple[str, ...] = ()
    general_title: str | None = "Note: "
    number_title: str | None = None
    alphabet_title: str | None = None
    symbol_title: str | None = None
    as_chunk: bool = False
    threeparttable: bool = True

    @property
    def is_empty(self) -> bool:
        return not (self.general or self.number or self.alphabet or self.symbol)


@dataclass(frozen=True)
class HeaderSpec:
    """One spanning-header row: ordered ``(label, span)`` pairs."""

    spans: tuple[tuple[str, int], ...]
    bold: bool = True
    italic: bool = False
    align: str = "c"
    line: bool = True
    line_sep: float = 3

    def __post_init__(self) -> None:
        if not self.spans:
            msg = "A spanning header needs at least one (label, span) pair"
            raise UsageError(msg)
        for label, span in self.spans:
            if not isinstance(label, str):
                msg = f"Spanning header labels must be strings, got {label!r}"
                raise UsageError(msg)
            if isinstance(span, bool) or not isinstance(span, int) or span < 1:
                msg = f"Span for header {label!r} must be a positive integer, got {span!r}"
                raise UsageError(msg)
        if self.align not in ("l", "c", "r"):
            msg = f"Spanning header align must be 'l', 'c' or 'r'; got {self.align!r}"
            raise UsageError(msg)

    @property
    def total(self) -> int:
        return sum(span for _, span in self.spans)


@dataclass(frozen=True)
class CollapseSpec:
    """Columns whose consecutive equal values merge into one multirow cell."""

    columns: tuple[int | str, ...]
    valign: str = "middle"
    hline: str = "full"
    custom_rows: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if not self.columns:
            msg = "collapse_rows needs at least one column"
            raise UsageError(msg)
        if self.valign not in VALIGN_CHOICES:
            msg = f"valign must be one of {', '.join(VALIGN_CHOICES)}; got {self.valign!r}"
            raise UsageError(msg)
        if self.hline not in HLINE_CHOICES:
            msg = f"hline must be one of {', '.join(HLINE_CHOICES)}; got {self.hline!r}"
            raise UsageError(msg)


@dataclass(frozen=True)
class CellStyle:
    bold: bool | None = None
    italic: bool | None = None
    color: str | None = None
    background: str | None = None

    def merged(self, other: CellStyle) -> CellStyle:
        """Overlay *other*: its specified attributes win, the rest are kept."""
        return CellStyle(
            bold=self.bold if other.bold is None else other.bold,
            italic=self.italic if other.italic is None else other.italic,
            color=self.color if other.color is None else other.color,
            background=self.background if other.background is None else other.background,
        )


@dataclass(frozen=True)
class CellFormat:
    """Style applied to the cells picked out by row, column and condition selectors.

    ``rows=None`` targets every row and ``cols=None`` every column.  A
    ``condition`` is called with each targeted cell's raw value; cells for
    which it returns falsy or raises are left alone.
    """

    rows: tuple[int, ...] | None = None
    cols: tuple[int | str, ...] | None = None
    style: CellStyle = field(default_factory=CellStyle)
    condition: Callable[[Any], Any] | None = None

    def __post_init__(self) -> None:
        if self.condition is not None and not callable(self.condition):
            msg = "`condition` must be None or a callable"
            raise UsageError(msg)


@dataclass(frozen=True)
class RenderedTable:
    """In-progress table representation transformed by the feature appliers.

    Body cells hold sanitized LaTeX text.  Per-cell styles and multirow
    anchors are kept apart from the text so later stages can combine them
    when the table is emitted.
    """

    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    row_prefixes: tuple[str, ...]
    rules_after: tuple[str, ...]
    header_above: tuple[str, ...] = ()
    multirow: dict[tuple[int, int], tuple[int, str]] = field(default_factory=dict)
    cell_styles: dict[tuple[int, int], CellStyle] = field(default_factory=dict)
    notes: tuple[str, ...] = ()
    threeparttable: bool = False
    packages: tuple[str, ...] = ()

    @property
    def ncol(self) -> int:
        return len(self.header)

    @property
    def nrow(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class CompilationRequest:
    source: str
    directory: Path
    basename: str

    @property
    def tex_path(self) -> Path:
        return self.directory / f"{self.basename}.tex"


@dataclass(frozen=True)
class CompilationResult:
    """Outcome of one engine run."""

    tex_path: Path
    pdf_path: Path
    returncode: int
    produced: bool
    diagnostics: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and self.produced

    @property
    def log_path(self) -> Path:
        return self.tex_path.with_suffix(".log")

    def raise_for_status(self) -> Path:
        """Return the PDF path, or raise ``CompilationError`` describing the failure."""
        if self.ok:
            return self.pdf_path

        if self.diagnostics:
            msg = "LaTeX compilation failed. Errors found:\n" + "\n".join(self.diagnostics)
        elif self.returncode != 0:
            msg = f"LaTeX compilation failed with exit code: {self.returncode}"
        else:
            msg = f"LaTeX compilation failed: output file was not created: {self.pdf_path}"
        raise CompilationError(
            msg,
            returncode=self.returncode,
            diagnostics=self.diagnostics,
            log_path=self.log_path if self.log_path.exists() else None,
        )
