"""
Argolex token model.

Overview
- TokenKind: every lexical class the tokenizer can produce. The enum value is
  the canonical spelling of fixed tokens ("if", "<<", "(") and a bracketed label
  for payload-carrying kinds ("<identifier>", "<int>").
- Base: radix of an integer literal (DEC, HEX, BIN).
- Token: kind + span + location + kind-specific payload.

Payload access
- payloads are only readable through accessors that check the kind first:
  text (identifiers, flags, raw string content), name (flags), int_value/base,
  float_value/has_exponent, string_value (decoded string content).
- reading a payload under the wrong kind raises TokenAccessError; there is no
  fallback value.
- text payloads are spans into the token's SourceBuffer (index scheme); the
  token holds the buffer, so the view stays valid for the token's lifetime.
- string literal escapes are decoded on first access of string_value and
  cached on the token.

Tables
- KEYWORDS, PUNCTUATORS and COMPOUND_PUNCTUATORS are read-only mappings built
  once at import.
"""
import re
from enum import Enum, IntEnum
from types import MappingProxyType

from .faults import TokenAccessError
from .source import SourceBuffer, Location, Span
from .utils import Unset, mirror


class TokenKind(Enum):
    EOF = "<EOF>"

    # --- keywords ---
    IF = "if"
    ELSE = "else"
    FOR = "for"
    IN = "in"
    WHILE = "while"
    BREAK = "break"
    RETURN = "return"
    INT = "int"
    BOOL = "bool"
    STRING = "string"
    AND = "and"
    OR = "or"
    NOT = "not"
    TRUE = "true"
    FALSE = "false"

    # --- operators ---
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    DOUBLE_MINUS = "--"
    TIMES = "*"
    DIVIDE = "/"
    MODULO = "%"
    SHL = "<<"
    SHR = ">>"
    LESS = "<"
    GREATER = ">"
    LESS_EQ = "<="
    GREATER_EQ = ">="
    EQ = "=="
    NOT_EQ = "!="

    # --- punctuation ---
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    SEMI = ";"
    COLON = ":"
    COMMA = ","
    DOT = "."

    # --- payload-carrying ---
    IDENTIFIER = "<identifier>"
    INT_LITERAL = "<int>"
    FLOAT_LITERAL = "<float>"
    STRING_LITERAL = "<string>"
    SHORT_FLAG = "<short-flag>"
    LONG_FLAG = "<long-flag>"

    @property
    def keyword(self):
        return self in _KEYWORD_KINDS

    @property
    def flag(self):
        return self in FLAG_KINDS

    @property
    def literal(self):
        return self in LITERAL_KINDS


class Base(IntEnum):
    """
    Radix of an integer literal; usable directly as the base argument of int().
    """
    BIN = 2
    DEC = 10
    HEX = 16


_KEYWORD_KINDS = frozenset({
    TokenKind.IF,
    TokenKind.ELSE,
    TokenKind.FOR,
    TokenKind.IN,
    TokenKind.WHILE,
    TokenKind.BREAK,
    TokenKind.RETURN,
    TokenKind.INT,
    TokenKind.BOOL,
    TokenKind.STRING,
    TokenKind.AND,
    TokenKind.OR,
    TokenKind.NOT,
    TokenKind.TRUE,
    TokenKind.FALSE,
})

FLAG_KINDS = frozenset({TokenKind.SHORT_FLAG, TokenKind.LONG_FLAG})

TEXT_KINDS = frozenset({
    TokenKind.IDENTIFIER,
    TokenKind.STRING_LITERAL,
    TokenKind.SHORT_FLAG,
    TokenKind.LONG_FLAG,
})

LITERAL_KINDS = frozenset({
    TokenKind.INT_LITERAL,
    TokenKind.FLOAT_LITERAL,
    TokenKind.STRING_LITERAL,
    TokenKind.TRUE,
    TokenKind.FALSE,
})

KEYWORDS = MappingProxyType({kind.value: kind for kind in _KEYWORD_KINDS})

PUNCTUATORS = MappingProxyType({
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ";": TokenKind.SEMI,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    "+": TokenKind.PLUS,
    "*": TokenKind.TIMES,
    "%": TokenKind.MODULO,
    "=": TokenKind.ASSIGN,
    "<": TokenKind.LESS,
    ">": TokenKind.GREATER,
    "!": TokenKind.NOT,
})

COMPOUND_PUNCTUATORS = MappingProxyType({
    "<<": TokenKind.SHL,
    "<=": TokenKind.LESS_EQ,
    ">>": TokenKind.SHR,
    ">=": TokenKind.GREATER_EQ,
    "==": TokenKind.EQ,
    "!=": TokenKind.NOT_EQ,
})

ESCAPES = MappingProxyType({
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "0": "\0",
})


def decode_escapes(raw, /):
    """
    Decode the escape sequences of raw string literal content.

    The tokenizer has already rejected unknown escapes, so every backslash here
    is followed by a key of ESCAPES.
    """
    return re.sub(r"\\(.)", lambda match: ESCAPES[match[1]], raw, flags=re.DOTALL)


class Token:
    """
    One lexical unit of a command line.

    Tokens are immutable. Build them through the tokenizer; the constructor
    validates that the payload fits the kind.
    """

    __slots__ = ("_kind", "_span", "_location", "_buffer", "_payload", "_base", "_exponent", "_decoded")

    kind = mirror("kind")
    span = mirror("span")
    location = mirror("location")

    def __init__(self, kind, span, location, buffer, /, payload=None, *, base=None, exponent=False):
        if not isinstance(kind, TokenKind):
            raise TypeError("token kind must be a TokenKind")
        if not isinstance(span, Span):
            raise TypeError("token span must be a Span")
        if not isinstance(location, Location):
            raise TypeError("token location must be a Location")
        if not isinstance(buffer, SourceBuffer):
            raise TypeError("token buffer must be a SourceBuffer")

        match kind:
            case TokenKind.INT_LITERAL:
                if not isinstance(payload, int) or isinstance(payload, bool) or not isinstance(base, Base):
                    raise TypeError("integer literal tokens need an int payload and a base")
            case TokenKind.FLOAT_LITERAL:
                if not isinstance(payload, float):
                    raise TypeError("float literal tokens need a float payload")
            case _ if kind in TEXT_KINDS:
                if not isinstance(payload, Span) or payload.end > len(buffer):
                    raise TypeError(f"{kind.name.lower()} tokens need a text span inside the buffer")
            case _:
                if payload is not None:
                    raise TypeError(f"{kind.name.lower()} tokens carry no payload")

        self._kind = kind
        self._span = span
        self._location = location
        self._buffer = buffer
        self._payload = payload
        self._base = base
        self._exponent = bool(exponent)
        self._decoded = Unset

    def _expect(self, accessor, *kinds):
        if self._kind not in kinds:
            raise TokenAccessError(f"{accessor!r} is not available on {self._kind.name.lower()} tokens")

    @property
    def text(self):
        """
        Raw text payload: identifier text, flag name, or undecoded string content.
        """
        self._expect("text", *TEXT_KINDS)
        return self._buffer[self._payload]

    @property
    def name(self):
        """
        Flag name without its leading dashes.
        """
        self._expect("name", *FLAG_KINDS)
        return self._buffer[self._payload]

    @property
    def int_value(self):
        self._expect("int_value", TokenKind.INT_LITERAL)
        return self._payload

    @property
    def base(self):
        self._expect("base", TokenKind.INT_LITERAL)
        return self._base

    @property
    def float_value(self):
        self._expect("float_value", TokenKind.FLOAT_LITERAL)
        return self._payload

    @property
    def has_exponent(self):
        self._expect("has_exponent", TokenKind.FLOAT_LITERAL)
        return self._exponent

    @property
    def string_value(self):
        """
        Decoded string literal content (escapes resolved on first access).
        """
        self._expect("string_value", TokenKind.STRING_LITERAL)
        if self._decoded is Unset:
            self._decoded = decode_escapes(self._buffer[self._payload])
        return self._decoded

    @property
    def source(self):
        """
        Exact source text covered by the token ("" for EOF).
        """
        return self._buffer[self._span]

    def __str__(self):
        match self._kind:
            case TokenKind.SHORT_FLAG:
                return "-" + self.name
            case TokenKind.LONG_FLAG:
                return "--" + self.name
            case TokenKind.IDENTIFIER:
                return self.text
            case TokenKind.STRING_LITERAL:
                return '"%s"' % self.text.replace("\t", "\\t").replace("\r", "\\r")
            case TokenKind.INT_LITERAL:
                match self._base:
                    case Base.HEX:
                        return f"0x{self._payload:x}"
                    case Base.BIN:
                        return f"0b{self._payload:b}"
                return str(self._payload)
            case TokenKind.FLOAT_LITERAL:
                return format(self._payload, "e" if self._exponent else "g")
        return self._kind.value

    def __repr__(self):
        return f"Token({self._kind.name}, {str(self)!r}, {self._span.start}:{self._span.end})"

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return (
            self._kind is other._kind
            and self._span == other._span
            and self._buffer[self._span] == other._buffer[other._span]
        )

    def __hash__(self):
        return hash((self._kind, self._span, self.source))


__all__ = (
    "TokenKind",
    "Base",
    "Token",
    "KEYWORDS",
    "PUNCTUATORS",
    "COMPOUND_PUNCTUATORS",
    "ESCAPES",
    "FLAG_KINDS",
    "TEXT_KINDS",
    "LITERAL_KINDS",
    "decode_escapes",
)
