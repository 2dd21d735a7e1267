"""
Argolex parsed values.

ArgValue is the single value shape stored in a ParseResult: an immutable
tagged value whose ValueKind says which Python type sits inside.

    NONE         -> None          (default not resolved, or nothing bound)
    BOOL         -> bool
    INT          -> int           (signed 64-bit range)
    FLOAT        -> float
    STRING       -> str
    STRING_LIST  -> tuple[str, ...]

Typed accessors (as_bool, as_int, ...) return None when the kind does not match,
so a caller asking for the wrong type gets "absent", never a coerced value.
"""
from collections.abc import Iterable
from enum import Enum

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


class ValueKind(Enum):
    NONE = "none"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    STRING_LIST = "string-list"


class ArgValue:
    """
    Immutable tagged value bound to an argument.

    Build values with ArgValue.of(python_value) (kind inferred) or the explicit
    constructors (ArgValue.none(), ArgValue.of_list(...)).
    """

    __slots__ = ("_kind", "_value")

    def __init__(self, kind, value, /):
        if not isinstance(kind, ValueKind):
            raise TypeError("argument value kind must be a ValueKind")
        match kind:
            case ValueKind.NONE:
                if value is not None:
                    raise TypeError("none values carry no payload")
            case ValueKind.BOOL:
                if not isinstance(value, bool):
                    raise TypeError("bool values need a bool payload")
            case ValueKind.INT:
                if not isinstance(value, int) or isinstance(value, bool):
                    raise TypeError("int values need an int payload")
                if not INT64_MIN <= value <= INT64_MAX:
                    raise OverflowError("int values must fit in a signed 64-bit integer")
            case ValueKind.FLOAT:
                if not isinstance(value, float):
                    raise TypeError("float values need a float payload")
            case ValueKind.STRING:
                if not isinstance(value, str):
                    raise TypeError("string values need a str payload")
            case ValueKind.STRING_LIST:
                if not isinstance(value, tuple) or not all(isinstance(item, str) for item in value):
                    raise TypeError("string-list values need a tuple of str payload")
        self._kind = kind
        self._value = value

    @property
    def kind(self):
        return self._kind

    @property
    def value(self):
        """
        The raw Python payload (None, bool, int, float, str or tuple of str).
        """
        return self._value

    @classmethod
    def none(cls):
        return cls(ValueKind.NONE, None)

    @classmethod
    def of_list(cls, items=(), /):
        if isinstance(items, str) or not isinstance(items, Iterable):
            raise TypeError("string-list values must be built from an iterable of strings")
        return cls(ValueKind.STRING_LIST, tuple(items))

    @classmethod
    def of(cls, object, /):
        """
        Wrap a Python value, inferring its kind.

        Existing ArgValue instances are returned unchanged; iterables (other
        than str) become string lists.
        """
        match object:
            case ArgValue():
                return object
            case None:
                return cls.none()
            case bool():
                return cls(ValueKind.BOOL, object)
            case int():
                return cls(ValueKind.INT, object)
            case float():
                return cls(ValueKind.FLOAT, object)
            case str():
                return cls(ValueKind.STRING, object)
            case Iterable():
                return cls.of_list(object)
        raise TypeError(f"cannot build an argument value from {type(object).__name__!r}")

    def _expect(self, kind):
        return self._value if self._kind is kind else None

    def as_bool(self):
        return self._expect(ValueKind.BOOL)

    def as_int(self):
        return self._expect(ValueKind.INT)

    def as_float(self):
        return self._expect(ValueKind.FLOAT)

    def as_string(self):
        return self._expect(ValueKind.STRING)

    def as_list(self):
        return self._expect(ValueKind.STRING_LIST)

    def is_none(self):
        return self._kind is ValueKind.NONE

    def extend(self, *items):
        """
        Return a new string list with items appended (lists only).
        """
        if self._kind is not ValueKind.STRING_LIST:
            raise TypeError(f"cannot extend a {self._kind.value} value")
        return ArgValue.of_list(self._value + items)

    def __eq__(self, other):
        if isinstance(other, ArgValue):
            return self._kind is other._kind and self._value == other._value
        return NotImplemented

    def __hash__(self):
        return hash((self._kind, self._value))

    def __str__(self):
        match self._kind:
            case ValueKind.NONE:
                return "none"
            case ValueKind.BOOL:
                return "true" if self._value else "false"
            case ValueKind.STRING_LIST:
                return "[%s]" % ", ".join(map(repr, self._value))
        return str(self._value)

    def __repr__(self):
        return f"ArgValue({self._kind.name}, {self._value!r})"

    def __rich_repr__(self):
        yield self._kind.name
        yield self._value


__all__ = (
    "ValueKind",
    "ArgValue",
)
