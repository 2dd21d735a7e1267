"""
Argolex faults (lexical and grammar errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing error.
  Codes are grouped by stage and domain to keep copy consistent and make
  logs/searches predictable.
- Fault: base type that carries message + options and knows how to render
  itself (rich) in a friendly, lowercased, and actionable way.
- LexError: raised by the tokenizer; tokenization is all-or-nothing.
- ParseFault family: grammar errors. The parse engine never raises them; they
  travel as data inside ParseResult.fault so every outcome has one shape.
- TokenAccessError: a payload was read under the wrong token kind.
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- the driver injects rendering options (prog, colorful, fancy) with
  copy.replace(fault, ...) right before printing.
"""
from collections import defaultdict
from enum import Enum, IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across argolex (stable identifiers).

    grouping (by stage, then domain)
    - lexical (21xxx)
      • characters/strings (2110x): INVALID_CHAR, UNCLOSED_STRING, UNKNOWN_ESCAPE
      • integers (2111x): INT_OUT_OF_RANGE, INCOMPLETE_INT
      • floats (2112x): FLOAT_OUT_OF_RANGE, INVALID_FLOAT
    - grammar (11xxx)
      • routing (1110x): AMBIGUOUS_ALIAS
      • switches (1111x): UNKNOWN_OPTION, UNCOMBINABLE_OPTION, MISSING_VALUE,
        INVALID_VALUE, MISSING_REQUIRED_OPTION
      • positionals (1112x): UNEXPECTED_ARGUMENT, INVALID_ARGUMENT,
        MISSING_REQUIRED_ARGUMENT

    rationale
    - spacing leaves room for future additions without reshuffling existing codes.
    - normalize() lets hosts remap codes to custom labels while keeping them stable.
    """
    # --- lexical errors (21xxx) ---
    INVALID_CHAR                = 21101
    UNCLOSED_STRING             = 21102
    UNKNOWN_ESCAPE              = 21103
    INT_OUT_OF_RANGE            = 21111
    INCOMPLETE_INT              = 21112
    FLOAT_OUT_OF_RANGE          = 21121
    INVALID_FLOAT               = 21122

    # --- routing errors (11xxx) ---
    AMBIGUOUS_ALIAS             = 11103

    # --- switch/flag/option errors (11xxx) ---
    UNKNOWN_OPTION              = 11112
    UNCOMBINABLE_OPTION         = 11116
    MISSING_VALUE               = 11117
    INVALID_VALUE               = 11118
    MISSING_REQUIRED_OPTION     = 11119

    # --- positional errors (11xxx) ---
    UNEXPECTED_ARGUMENT         = 11121
    INVALID_ARGUMENT            = 11122
    MISSING_REQUIRED_ARGUMENT   = 11125

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class TokenAccessError(TypeError):
    """
    A token payload was read under a kind that does not carry it.
    """


class Fault(Exception):
    """
    Base for every argolex error that reaches a user.

    options
    - code (FaultCode), title, hint, docs: set where the fault is created.
    - prog, colorful, fancy, ratio: rendering context, usually injected by the
      driver through copy.replace().
    - any extra context the creator wants to keep (argument, token, ...).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return self.message if self.message is not Unset else ""

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "#737373",  # dim footer gray
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog", "argolex")), styler("prog-name"))
        code = self.code.normalize() if isinstance(self.code, FaultCode) else "?"

        header = Text.assemble(
            "[ ",
            prog,
            ": ",
            text(code, styler("code")),
            " | ",
            text(str(self.options.get("title", "error")).title(), styler("error-title")),
            " ]"
        )
        renders = [text(str(self), styler("error-message"))]
        if self.hint:
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(self.hint, styler("hint"))))
        if docs := self.options.get("docs"):
            renders.append(text(docs, styler("docs")))

        if fancy:
            try:
                width = int((console.width - 4) * self.options["ratio"])
            except KeyError:
                width = None
            return Panel(Group(*renders), title=header, title_align="left", width=width)

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class LexErrorKind(Enum):
    """
    The seven ways tokenization can fail; the value is the user-facing message.
    """
    INVALID_CHAR = "invalid character"
    UNCLOSED_STRING = "unclosed string literal"
    UNKNOWN_ESCAPE = "unknown escape character"
    INT_OUT_OF_RANGE = "integer literal out of 64-bit range"
    INCOMPLETE_INT = "incomplete integer literal"
    FLOAT_OUT_OF_RANGE = "floating-point literal out of range"
    INVALID_FLOAT = "invalid floating-point literal"

    @property
    def code(self):
        return FaultCode[self.name]

    @property
    def title(self):
        return self.name.lower().replace("_", " ")


_LEX_HINTS = MappingProxyType({
    LexErrorKind.INVALID_CHAR: "quote the value if the character is meant literally",
    LexErrorKind.UNCLOSED_STRING: 'close the string with a matching \'"\' on the same line',
    LexErrorKind.UNKNOWN_ESCAPE: 'valid escapes are \\n, \\r, \\t, \\\\, \\" and \\0',
    LexErrorKind.INT_OUT_OF_RANGE: "integers must fit in a signed 64-bit value",
    LexErrorKind.INCOMPLETE_INT: "add at least one digit after the base prefix",
    LexErrorKind.FLOAT_OUT_OF_RANGE: "use a smaller exponent",
    LexErrorKind.INVALID_FLOAT: "check the fraction and exponent parts",
})


class LexError(Fault):
    """
    Tokenization failure at a precise location.

    str(error) -> "<string> (1:4): unknown escape character"
    """

    def __init__(self, kind, location, /, **options):
        if not isinstance(kind, LexErrorKind):
            raise TypeError("lex error kind must be a LexErrorKind")
        options.setdefault("code", kind.code)
        options.setdefault("title", kind.title)
        options.setdefault("hint", _LEX_HINTS[kind])
        options.setdefault("docs", getdoc(kind.code))
        super().__init__(kind.value, **options)
        self.kind = kind
        self.location = location

    def __str__(self):
        return f"{self.location}: {self.message}"

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.kind, self.location, **{**self.options, **overrides})


class ParseFault(Fault):
    """
    Grammar error recorded in a ParseResult (never raised by the engine).
    """


class UnknownOptionError(ParseFault): ...
class UncombinableOptionError(ParseFault): ...
class MissingValueError(ParseFault): ...
class InvalidValueError(ParseFault): ...
class UnexpectedArgumentError(ParseFault): ...
class MissingRequiredOptionError(ParseFault): ...
class MissingRequiredArgumentError(ParseFault): ...
class AmbiguousAliasError(ParseFault): ...


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "Fault",
    "TokenAccessError",
    "LexErrorKind",
    "LexError",
    "ParseFault",
    "UnknownOptionError",
    "UncombinableOptionError",
    "MissingValueError",
    "InvalidValueError",
    "UnexpectedArgumentError",
    "MissingRequiredOptionError",
    "MissingRequiredArgumentError",
    "AmbiguousAliasError",
    "getdoc",
)
