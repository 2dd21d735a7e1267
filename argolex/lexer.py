r"""
Argolex tokenizer: command-line text to a span-tracked token list.

Contract
- tokenize(source) -> list[Token], always terminated by exactly one EOF token.
- on failure a LexError is raised and nothing is returned (all-or-nothing).

Lexical rules
- whitespace (space, tab, CR, LF) and "//" comments (to end of line) are skipped.
- identifiers start with an ASCII letter, '$', '_' or '/', and continue with
  those plus digits and '.'; keywords are matched against KEYWORDS afterwards.
  A leading '/' only starts an identifier when an identifier character follows
  ("/usr/include"); otherwise it is the divide operator.
- '-' forms:
  • "--name"  long flag; the name runs over identifier characters and '-',
    stopping before '=' (lexed separately as ASSIGN).
  • "--"      double minus when no identifier start follows.
  • "-abc"    short flag (possibly a cluster) when a letter or digit follows.
  • "-"       minus otherwise.
- numbers: decimal, 0x/0X hex, 0b/0B binary, '_' as digit separator. Decimal
  literals become floats with ".digits" and/or an e/E exponent.
- strings: double quoted, single line, escapes \n \r \t \\ \" \0 (validated
  here, decoded lazily by the token).

Errors (LexErrorKind) and where they point
- INVALID_CHAR        the offending character
- UNCLOSED_STRING     opening quote (end of input), the newline, or a trailing backslash
- UNKNOWN_ESCAPE      the character after the backslash
- INCOMPLETE_INT      the first character after a base prefix
- INT_OUT_OF_RANGE    the end of the literal
- FLOAT_OUT_OF_RANGE  the end of the literal
- INVALID_FLOAT       the start of the literal
"""
import math
import string

from .faults import LexErrorKind, LexError
from .logging import get_logger
from .source import SourceBuffer, Location, Span, TAB_WIDTH, DEFAULT_FILENAME
from .tokens import Base, Token, TokenKind, KEYWORDS, PUNCTUATORS, COMPOUND_PUNCTUATORS, ESCAPES
from .utils import Unset, coalesce

logger = get_logger(__name__)

INT64_MAX = 2 ** 63 - 1

_WHITESPACE = frozenset(" \t\r\n")
_IDENTIFIER_START = frozenset(string.ascii_letters + "$_/")
_IDENTIFIER_CONTINUE = _IDENTIFIER_START | frozenset(string.digits + ".")
_LONG_FLAG_NAME = _IDENTIFIER_CONTINUE | {"-"}
_DIGITS = {
    Base.BIN: frozenset("01"),
    Base.DEC: frozenset(string.digits),
    Base.HEX: frozenset(string.hexdigits),
}
_PREFIXES = {"x": Base.HEX, "X": Base.HEX, "b": Base.BIN, "B": Base.BIN}


class _Scanner:
    """
    Single-use cursor over a SourceBuffer.

    Tracks the offset plus the human line/column; the buffer answers "" past
    its end, so lookahead never needs a bound check (and "" is in no class).
    """

    def __init__(self, buffer):
        self._buffer = buffer
        self._offset = 0
        self._line = 1
        self._column = 1
        self._tokens = []

    @property
    def _current(self):
        return self._buffer.at(self._offset)

    def _peek(self, distance=1):
        return self._buffer.at(self._offset + distance)

    def _location(self):
        return Location(self._buffer.filename, self._line, self._column)

    def _advance(self):
        char = self._current
        if not char:
            return char
        self._offset += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        elif char == "\t":
            self._column += TAB_WIDTH
        else:
            self._column += 1
        return char

    def _fail(self, kind, location=Unset):
        raise LexError(kind, coalesce(location, self._location()))

    def _emit(self, kind, start, location, /, payload=None, **options):
        self._tokens.append(Token(kind, Span(start, self._offset), location, self._buffer, payload, **options))

    def scan(self):
        while True:
            self._skip_trivia()
            if not self._current:
                self._emit(TokenKind.EOF, self._offset, self._location())
                return self._tokens
            self._scan_token()

    def _skip_trivia(self):
        while True:
            if self._current in _WHITESPACE:
                self._advance()
            elif self._current == "/" and self._peek() == "/":
                while self._current and self._current != "\n":
                    self._advance()
            else:
                return

    def _scan_token(self):
        start, location, char = self._offset, self._location(), self._current

        match char:
            case "-":
                return self._scan_dash(start, location)
            case "/":
                if self._peek() in _IDENTIFIER_CONTINUE:
                    return self._scan_identifier(start, location)
                self._advance()
                return self._emit(TokenKind.DIVIDE, start, location)
            case '"':
                return self._scan_string(start, location)

        if char in _DIGITS[Base.DEC]:
            return self._scan_number(start, location)
        if char in _IDENTIFIER_START:
            return self._scan_identifier(start, location)

        # Two-character operators win over their one-character prefixes.
        if (kind := COMPOUND_PUNCTUATORS.get(char + self._peek())) is not None:
            self._advance()
            self._advance()
            return self._emit(kind, start, location)
        if (kind := PUNCTUATORS.get(char)) is not None:
            self._advance()
            return self._emit(kind, start, location)

        self._fail(LexErrorKind.INVALID_CHAR, location)

    def _scan_dash(self, start, location):
        self._advance()

        if self._current == "-":
            self._advance()
            if self._current not in _IDENTIFIER_START:
                return self._emit(TokenKind.DOUBLE_MINUS, start, location)
            name = self._offset
            while self._current in _LONG_FLAG_NAME:
                self._advance()
            return self._emit(TokenKind.LONG_FLAG, start, location, Span(name, self._offset))

        if self._current in _IDENTIFIER_START or self._current in _DIGITS[Base.DEC]:
            name = self._offset
            while self._current in _IDENTIFIER_CONTINUE:
                self._advance()
            return self._emit(TokenKind.SHORT_FLAG, start, location, Span(name, self._offset))

        return self._emit(TokenKind.MINUS, start, location)

    def _scan_identifier(self, start, location):
        self._advance()
        while self._current in _IDENTIFIER_CONTINUE:
            self._advance()
        span = Span(start, self._offset)
        if (kind := KEYWORDS.get(self._buffer[span])) is not None:
            return self._emit(kind, start, location)
        return self._emit(TokenKind.IDENTIFIER, start, location, span)

    def _consume_digits(self, base, digits):
        while self._current in _DIGITS[base] or self._current == "_":
            if (char := self._advance()) != "_":
                digits.append(char)

    def _scan_number(self, start, location):
        base = Base.DEC
        if self._current == "0" and (prefix := _PREFIXES.get(self._peek())):
            base = prefix
            self._advance()
            self._advance()
            if self._current not in _DIGITS[base]:
                self._fail(LexErrorKind.INCOMPLETE_INT)

        digits = []
        floating = exponent = False
        self._consume_digits(base, digits)

        if base is Base.DEC:
            if self._current == "." and self._peek() in _DIGITS[Base.DEC]:
                floating = True
                digits.append(self._advance())
                self._consume_digits(Base.DEC, digits)
            if self._current in ("e", "E") and (
                self._peek() in _DIGITS[Base.DEC]
                or self._peek() in ("+", "-") and self._peek(2) in _DIGITS[Base.DEC]
            ):
                floating = exponent = True
                digits.append(self._advance())
                if self._current in ("+", "-"):
                    digits.append(self._advance())
                self._consume_digits(Base.DEC, digits)
        elif self._current in (".", "e", "E"):
            self._fail(LexErrorKind.INVALID_CHAR)

        literal = "".join(digits)
        end = self._location()

        if floating:
            try:
                value = float(literal)
            except ValueError:
                self._fail(LexErrorKind.INVALID_FLOAT, location)
            mantissa = literal.lower().partition("e")[0]
            if math.isinf(value) or value == 0.0 and mantissa.strip("0.") != "":
                self._fail(LexErrorKind.FLOAT_OUT_OF_RANGE, end)
            return self._emit(TokenKind.FLOAT_LITERAL, start, location, value, exponent=exponent)

        try:
            value = int(literal, base)
        except ValueError:
            self._fail(LexErrorKind.INCOMPLETE_INT, location)
        if value > INT64_MAX:
            self._fail(LexErrorKind.INT_OUT_OF_RANGE, end)
        return self._emit(TokenKind.INT_LITERAL, start, location, value, base=base)

    def _scan_string(self, start, location):
        self._advance()
        content = self._offset

        while (char := self._current) != '"':
            if not char:
                self._fail(LexErrorKind.UNCLOSED_STRING, location)
            if char == "\n":
                self._fail(LexErrorKind.UNCLOSED_STRING)
            if char == "\\":
                backslash = self._location()
                self._advance()
                if not self._current or self._current == "\n":
                    self._fail(LexErrorKind.UNCLOSED_STRING, backslash)
                if self._current not in ESCAPES:
                    self._fail(LexErrorKind.UNKNOWN_ESCAPE)
            self._advance()

        span = Span(content, self._offset)
        self._advance()
        return self._emit(TokenKind.STRING_LITERAL, start, location, span)


def tokenize(source, /, filename=Unset):
    """
    Tokenize a command line.

    Parameters
    - source: str | SourceBuffer
      Text to scan. A str is wrapped in a SourceBuffer named after filename.
    - filename: str | Unset
      Diagnostic name for a str source (defaults to "<string>"). Not accepted
      together with a SourceBuffer, which carries its own name.

    Returns
    - list[Token] ending in exactly one EOF token.

    Raises
    - LexError: on the first lexical error (no partial result).
    - TypeError: when source is neither a str nor a SourceBuffer.
    """
    if isinstance(source, str):
        source = SourceBuffer(source, coalesce(filename, DEFAULT_FILENAME))
    elif not isinstance(source, SourceBuffer):
        raise TypeError("tokenize() argument must be a string or a source buffer")
    elif filename is not Unset:
        raise TypeError("tokenize() filename cannot be combined with a source buffer")

    try:
        tokens = _Scanner(source).scan()
    except LexError as error:
        logger.debug("tokenization failed: %s", error)
        raise
    logger.debug("tokenized %d characters into %d tokens", len(source), len(tokens))
    return tokens


__all__ = (
    "tokenize",
)
