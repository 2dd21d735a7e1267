r"""
Argolex argument definitions.

Overview
- ArgKind: FLAG (presence-only), SINGLE (one value), MULTIPLE (greedy list of
  strings), POSITIONAL (a single positional slot; positional slots may also be
  SINGLE or MULTIPLE).
- ArgumentDef: one declared argument of a Command, keyword or positional.
  Read-only after construction; the ArgumentType metaclass mirrors every field
  listed in __introspectable__ into a property and provides stable
  __repr__/__rich_repr__.

Metadata (sanitized on construction)
- name: lookup key in ParseResult; letters, digits, '_' and '-', not starting
  with a digit.
- short: None | "-x" (shell spelling, one dash, lexable as a short flag).
- long: None | "--name" (two dashes, lexable as a long flag; inner '-' allowed).
- help: str, trimmed (may be empty).
- kind: ArgKind.
- required: bool.
- type: None | bool | int | float | str; None infers the type from the literal.
  FLAG accepts only None/bool, MULTIPLE only None/str.
- default: Unset | Python value | ArgValue; materialized as an ArgValue
  (FLAG -> false, others -> none when Unset) and checked against kind/type.
- helper: marks the synthetic help flag.
- negates: name of the flag an auto-generated "--no-x" flag opposes.

Validation raises TypeError for wrong types and ValueError for wrong shapes.

Token conversion
- convert(token) applies the token-to-value rule of this argument and returns
  an ArgValue, or None when the token is not an acceptable value.
"""
import functools
import operator
import re
from enum import Enum

from .tokens import TokenKind
from .utils import Unset, coalesce, mirror, rename
from .values import ArgValue, ValueKind


class ArgKind(Enum):
    FLAG = "flag"
    SINGLE = "single"
    MULTIPLE = "multiple"
    POSITIONAL = "positional"


_TYPE_KINDS = {
    bool: ValueKind.BOOL,
    int: ValueKind.INT,
    float: ValueKind.FLOAT,
    str: ValueKind.STRING,
}


class ArgumentType(type):
    """
    Metaclass that turns argument definitions into introspectable, read-only records.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument-def(name='file', short='-f', long='--file', kind=<ArgKind.SINGLE: 'single'>, ...)
            """
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize the shared fields (name, help, kind, required, type).

    Raises
    - TypeError: wrong field types.
    - ValueError: empty or malformed names, type not allowed for the kind.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not re.fullmatch(r"(?!\d)[\w-]+", name := name.strip(), re.ASCII):
        raise ValueError(f"{cls.__typename__} 'name' must be a non-empty identifier, got {name!r}")
    metadata["name"] = name

    if not isinstance(help := metadata["help"], str):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")
    metadata["help"] = help.strip()

    if not isinstance(kind := metadata["kind"], ArgKind):
        raise TypeError(f"{cls.__typename__} 'kind' must be an ArgKind")

    if not isinstance(metadata["required"], bool):
        raise TypeError(f"{cls.__typename__} 'required' must be a bool")

    if (type := metadata["type"]) is not None and type not in _TYPE_KINDS:
        raise TypeError(f"{cls.__typename__} 'type' must be one of bool, int, float or str")
    if kind is ArgKind.FLAG and type not in (None, bool):
        raise ValueError(f"{cls.__typename__} flag 'type' can only be bool")
    if kind is ArgKind.MULTIPLE and type not in (None, str):
        raise ValueError(f"{cls.__typename__} multiple 'type' can only be str")


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate the shell spellings (short, long).

    Accepted forms
    - short: r"-[A-Za-z0-9$_/][A-Za-z0-9$_/.]*"  (e.g. "-v", "-O", "-5")
    - long:  r"--[A-Za-z$_/][A-Za-z0-9$_/.-]*"   (e.g. "--file", "--no-cache")
    Both are exactly what the tokenizer produces for flags, so every declared
    spelling is reachable from a command line.
    """
    if (short := metadata["short"]) is not None:
        if not isinstance(short, str):
            raise TypeError(f"{cls.__typename__} 'short' must be a string")
        elif not re.fullmatch(r"-[A-Za-z0-9$_/][A-Za-z0-9$_/.]*", short := short.strip()):
            raise ValueError(f"{cls.__typename__} 'short' must look like '-x', got {short!r}")
        metadata["short"] = short

    if (long := metadata["long"]) is not None:
        if not isinstance(long, str):
            raise TypeError(f"{cls.__typename__} 'long' must be a string")
        elif not re.fullmatch(r"--[A-Za-z$_/][A-Za-z0-9$_/.-]*", long := long.strip()):
            raise ValueError(f"{cls.__typename__} 'long' must look like '--name', got {long!r}")
        metadata["long"] = long

    if (negates := metadata["negates"]) is not None and not isinstance(negates, str):
        raise TypeError(f"{cls.__typename__} 'negates' must be a string")


def _sanitize_default(cls, metadata, /):
    """
    Internal: materialize the default as an ArgValue and check it against kind/type.
    """
    kind, type = metadata["kind"], metadata["type"]

    if (default := metadata["default"]) is Unset:
        default = ArgValue.of(False) if kind is ArgKind.FLAG else ArgValue.none()
    else:
        try:
            default = ArgValue.of(default)
        except (TypeError, OverflowError) as error:
            raise TypeError(f"{cls.__typename__} 'default' is not a valid value: {error}") from None

    if type is float and default.kind is ValueKind.INT:
        default = ArgValue.of(float(default.value))

    if default.kind is not ValueKind.NONE:
        match kind:
            case ArgKind.FLAG:
                expected = ValueKind.BOOL
            case ArgKind.MULTIPLE:
                expected = ValueKind.STRING_LIST
            case _ if type is not None:
                expected = _TYPE_KINDS[type]
            case _:
                # Untyped single values take any scalar default.
                expected = ValueKind.STRING if default.kind is ValueKind.STRING_LIST else default.kind
        if default.kind is not expected:
            raise TypeError(
                f"{cls.__typename__} {kind.value} 'default' must be a {expected.value} value, got {default.kind.value}"
            )
    elif kind is ArgKind.FLAG:
        raise TypeError(f"{cls.__typename__} flag 'default' must be a bool value")

    metadata["default"] = default


class ArgumentDef(metaclass=ArgumentType):
    """
    Declared argument of a command (keyword or positional).

    Keyword arguments have at least one spelling (short and/or long); positional
    arguments have none and are bound by order.
    """

    __introspectable__ = (
        "name",
        "short",
        "long",
        "help",
        "kind",
        "required",
        "default",
        "type",
        "helper",
        "negates",
    )

    __displayable__ = (
        "name",
        "short",
        "long",
        "kind",
        "required",
        "default",
    )

    def __init__(
            self,
            name,
            /,
            short=None,
            long=None,
            help="",
            kind=ArgKind.FLAG,
            required=False,
            default=Unset,
            type=None,
            *,
            helper=False,
            negates=None,
    ):
        metadata = {
            "name": name,
            "short": short,
            "long": long,
            "help": help,
            "kind": kind,
            "required": required,
            "default": default,
            "type": type,
            "helper": bool(helper),
            "negates": negates,
        }
        _sanitize_metadata(ArgumentDef, metadata)
        _sanitize_named_metadata(ArgumentDef, metadata)
        _sanitize_default(ArgumentDef, metadata)

        if metadata["helper"] and metadata["kind"] is not ArgKind.FLAG:
            raise ValueError(f"helper {ArgumentDef.__typename__} must be a flag")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def positional(self):
        """
        True for arguments bound by position (no shell spelling).
        """
        return self._short is None and self._long is None

    @property
    def display(self):
        """
        Display form used in messages and help: "-f, --file <value>".
        """
        names = ", ".join(filter(None, (self._short, self._long))) or self._name
        match self._kind:
            case ArgKind.SINGLE | ArgKind.POSITIONAL if not self.positional:
                return names + " <value>"
            case ArgKind.MULTIPLE if not self.positional:
                return names + " <value>..."
        return names

    def matches(self, name, /, *, short):
        """
        True when a flag token name (dashes stripped) spells this argument.
        """
        spelling = self._short if short else self._long
        return spelling is not None and spelling.lstrip("-") == name

    def convert(self, token, /):
        """
        Apply the token-to-value rule for this argument.

        - int/float/true/false literals become typed values, unless the
          argument expects text (MULTIPLE, or type=str): then the literal's
          source text is used.
        - identifiers and string literals always become text.
        - any other keyword becomes its keyword text.
        - operators and punctuation are not values (None).
        - a declared type rejects other kinds (int widens to float).
        """
        text = self._kind is ArgKind.MULTIPLE or self._type is str

        match token.kind:
            case TokenKind.IDENTIFIER:
                value = ArgValue.of(token.text)
            case TokenKind.STRING_LITERAL:
                value = ArgValue.of(token.string_value)
            case TokenKind.INT_LITERAL:
                value = ArgValue.of(token.source if text else token.int_value)
            case TokenKind.FLOAT_LITERAL:
                value = ArgValue.of(token.source if text else token.float_value)
            case TokenKind.TRUE | TokenKind.FALSE:
                value = ArgValue.of(token.kind.value if text else token.kind is TokenKind.TRUE)
            case kind if kind.keyword:
                value = ArgValue.of(kind.value)
            case _:
                return None

        if self._type is None or value.kind is _TYPE_KINDS[self._type]:
            return value
        if self._type is float and value.kind is ValueKind.INT:
            return ArgValue.of(float(value.value))
        return None


__all__ = (
    "ArgKind",
    "ArgumentDef",
)

# Keep the metaclass out of star-imports; it is not part of the public API.
del ArgumentType
