"""
Argolex source model: the text being scanned and positions inside it.

Overview
- SourceBuffer: owns the immutable text of one command line (plus an optional
  filename used only for diagnostics). Tokens keep a reference to the buffer and
  read their text through spans, so a token never outlives the text it views.
- Location: human-facing position (filename, 1-based line, 1-based column).
  Tabs advance the column by TAB_WIDTH.
- Span: half-open [start, end) offsets into the buffer.

Rendering
- str(Location) -> "<string> (1:5)", the form used in every lexical error.
"""
from dataclasses import dataclass

TAB_WIDTH = 4
DEFAULT_FILENAME = "<string>"


@dataclass(frozen=True, slots=True)
class Location:
    """
    A point in the source, as a person counts it.
    """
    filename: str = DEFAULT_FILENAME
    line: int = 1
    column: int = 1

    def __str__(self):
        return f"{self.filename or DEFAULT_FILENAME} ({self.line}:{self.column})"


@dataclass(frozen=True, slots=True)
class Span:
    """
    Half-open [start, end) range of buffer offsets.
    """
    start: int
    end: int

    def __post_init__(self):
        if not isinstance(self.start, int) or not isinstance(self.end, int):
            raise TypeError("span bounds must be integers")
        if not 0 <= self.start <= self.end:
            raise ValueError(f"invalid span [{self.start}, {self.end})")

    def __len__(self):
        return self.end - self.start

    def __contains__(self, offset):
        return self.start <= offset < self.end


class SourceBuffer:
    """
    Immutable text being tokenized.

    The buffer supports len(), offset indexing (buffer[3] -> character), and
    span slicing (buffer[span] -> str). Reading past the end through at()
    yields "" so scanners can look ahead without bound checks.
    """

    __slots__ = ("_text", "_filename")

    def __init__(self, text, /, filename=DEFAULT_FILENAME):
        if not isinstance(text, str):
            raise TypeError("source buffer text must be a string")
        if not isinstance(filename, str):
            raise TypeError("source buffer filename must be a string")
        self._text = text
        self._filename = filename or DEFAULT_FILENAME

    @property
    def text(self):
        return self._text

    @property
    def filename(self):
        return self._filename

    def at(self, offset, /):
        """
        Character at offset, or "" when offset is outside the buffer.
        """
        return self._text[offset] if 0 <= offset < len(self._text) else ""

    def __len__(self):
        return len(self._text)

    def __getitem__(self, key, /):
        if isinstance(key, Span):
            if key.end > len(self._text):
                raise IndexError(f"span [{key.start}, {key.end}) exceeds the source buffer")
            return self._text[key.start:key.end]
        return self._text[key]

    def __repr__(self):
        return f"SourceBuffer({self._text!r}, filename={self._filename!r})"


__all__ = (
    "SourceBuffer",
    "Location",
    "Span",
    "TAB_WIDTH",
)
